"""
Withdrawal request model.

The requested amount is reserved (debited) when the request is created;
approval completes the reservation, rejection refunds it.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import RequestStatus, WalletBucket
from app.models.types import MoneyType


class WithdrawalRequest(Base):
    """Withdrawal request model."""

    __tablename__ = "withdrawal_requests"
    __table_args__ = (
        CheckConstraint('amount > 0', name='amount_positive'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    wallet: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WalletBucket.WITHDRAWAL.value
    )
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestStatus.PENDING.value, index=True
    )

    reservation_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("ledger_entries.id", ondelete="SET NULL"), nullable=True
    )

    # Filled on approval
    fee_amount: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    final_amount: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)

    remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
    processed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WithdrawalRequest(id={self.id}, account_id={self.account_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
