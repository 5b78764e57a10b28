"""
Ledger entry model.

Append-only record of one signed movement on one wallet bucket.
Only the status of a withdrawal reservation entry may ever change.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import EntryStatus
from app.models.types import MoneyType


class LedgerEntry(Base):
    """Ledger entry model - signed movement on an account bucket."""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint('amount <> 0', name='amount_non_zero'),
        Index('idx_ledger_account_wallet', 'account_id', 'wallet'),
        Index('idx_ledger_kind_created', 'kind', 'created_at'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    wallet: Mapped[str] = mapped_column(String(20), nullable=False)
    # Positive = credit, negative = debit
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    related_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EntryStatus.COMPLETED.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LedgerEntry(id={self.id}, account_id={self.account_id}, "
            f"wallet={self.wallet}, amount={self.amount}, kind={self.kind})>"
        )
