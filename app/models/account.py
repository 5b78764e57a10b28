"""
Account model.

Holds the four wallet buckets and the denormalized ancestor snapshot.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import WalletBucket
from app.models.types import JsonType, MoneyType


if TYPE_CHECKING:
    from app.models.deposit import Deposit


class Account(Base):
    """Account model - wallet holder and referral graph node."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint('normal_balance >= 0', name='normal_balance_non_negative'),
        CheckConstraint('benefit_balance >= 0', name='benefit_balance_non_negative'),
        CheckConstraint('game_balance >= 0', name='game_balance_non_negative'),
        CheckConstraint(
            'withdrawal_balance >= 0', name='withdrawal_balance_non_negative'
        ),
        CheckConstraint('mlm_level >= 0', name='mlm_level_non_negative'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    referral_code: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True
    )

    # Referral graph
    referred_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Ordered [{"ancestor_id": int, "level": int}], level 1 = direct referrer
    ancestors: Mapped[list[dict[str, Any]]] = mapped_column(
        JsonType, nullable=False, default=list
    )
    mlm_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Wallet buckets
    normal_balance: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    benefit_balance: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    game_balance: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    withdrawal_balance: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    # Deposit principal tracking
    total_deposits: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    initial_normal_balance: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    initial_benefit_balance: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    # MLM earnings (analytics totals, balances stay authoritative)
    mlm_earnings_total: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    mlm_earnings_daily: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    mlm_earnings_level_based: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    referrer: Mapped["Account | None"] = relationship(
        "Account", remote_side="Account.id", lazy="raise"
    )
    deposits: Mapped[list["Deposit"]] = relationship(
        "Deposit", back_populates="account", lazy="raise"
    )

    def balance_of(self, wallet: WalletBucket) -> Decimal:
        """Get balance of bucket."""
        return getattr(self, wallet.column)

    def balances(self) -> dict[str, Decimal]:
        """Snapshot of every bucket balance."""
        return {wallet.value: self.balance_of(wallet) for wallet in WalletBucket}

    @property
    def ancestor_ids(self) -> list[int]:
        """Ancestor ids ordered from direct referrer upward."""
        return [link["ancestor_id"] for link in self.ancestors or []]

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(id={self.id}, username={self.username!r}, "
            f"mlm_level={self.mlm_level})>"
        )
