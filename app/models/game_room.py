"""
Game room model.

A room fills up with players and settles exactly once when full.
Rows are versioned so that two concurrent settlements cannot both commit.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import PayoutShape, RoomStatus, WalletBucket
from app.models.types import JsonType, MoneyType, RateType


if TYPE_CHECKING:
    from app.models.game_player import GamePlayer


class GameRoom(Base):
    """Game room model."""

    __tablename__ = "game_rooms"
    __table_args__ = (
        CheckConstraint('max_players >= 2', name='max_players_min'),
        CheckConstraint(
            'current_players >= 0 AND current_players <= max_players',
            name='current_players_range',
        ),
        CheckConstraint('entry_fee >= 0', name='entry_fee_non_negative'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    room_code: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    game_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Options in tie-break order, counts keyed by option.
    # JSON columns are reassigned on change, never mutated in place.
    options: Mapped[list[str]] = mapped_column(JsonType, nullable=False)
    option_counts: Mapped[dict[str, int]] = mapped_column(JsonType, nullable=False)

    entry_fee: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    # {"normal": "1", "benefit": "2"}: bucket -> multiplier of the entry amount
    fee_split: Mapped[dict[str, str]] = mapped_column(JsonType, nullable=False)

    # Payout
    payout_shape: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PayoutShape.FIXED.value
    )
    payout_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    payout_multiplier: Mapped[Decimal] = mapped_column(
        RateType, nullable=False, default=Decimal("1")
    )
    payout_wallet: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WalletBucket.NORMAL.value
    )
    return_wallet: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WalletBucket.NORMAL.value
    )

    max_players: Mapped[int] = mapped_column(Integer, nullable=False)
    current_players: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RoomStatus.WAITING.value, index=True
    )
    winning_option: Mapped[str | None] = mapped_column(String(20), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    players: Mapped[list["GamePlayer"]] = relationship(
        "GamePlayer",
        back_populates="room",
        lazy="raise",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_full(self) -> bool:
        """Room has reached max players."""
        return self.current_players >= self.max_players

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<GameRoom(code={self.room_code!r}, type={self.game_type}, "
            f"players={self.current_players}/{self.max_players}, "
            f"status={self.status})>"
        )
