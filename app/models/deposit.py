"""
Deposit model.

Approved principal that grows the account's wallets once per tick
until its day cap is reached.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType, RateType


if TYPE_CHECKING:
    from app.models.account import Account


class Deposit(Base):
    """Deposit model - growing principal."""

    __tablename__ = "deposits"
    __table_args__ = (
        CheckConstraint('principal > 0', name='principal_positive'),
        CheckConstraint('days_grown >= 0', name='days_grown_non_negative'),
        CheckConstraint('days_grown <= day_cap', name='days_grown_within_cap'),
        Index('idx_deposit_active', 'is_active'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    principal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    normal_growth_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    benefit_growth_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)

    # Lifetime
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    day_cap: Mapped[int] = mapped_column(Integer, nullable=False)
    days_grown: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_growth_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Growth totals
    total_normal_growth: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    total_benefit_growth: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    account: Mapped["Account"] = relationship(
        "Account", back_populates="deposits", lazy="raise"
    )

    @property
    def is_capped(self) -> bool:
        """Deposit reached its day cap."""
        return self.days_grown >= self.day_cap

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Deposit(id={self.id}, account_id={self.account_id}, "
            f"principal={self.principal}, days={self.days_grown}/{self.day_cap})>"
        )
