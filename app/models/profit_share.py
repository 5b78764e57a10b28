"""
Profit share model.

Analytics record of one ancestor credit. Balances are authoritative,
this table is not.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, PercentType


class ProfitShare(Base):
    """Profit share model."""

    __tablename__ = "profit_shares"
    __table_args__ = (
        Index('idx_profit_share_receiver_type', 'account_id', 'share_type'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Receiver (ancestor)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    share_type: Mapped[str] = mapped_column(String(40), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    source_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    wallet: Mapped[str] = mapped_column(String(20), nullable=False)
    ledger_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("ledger_entries.id", ondelete="SET NULL"), nullable=True
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ProfitShare(account_id={self.account_id}, level={self.level}, "
            f"type={self.share_type}, amount={self.amount})>"
        )
