"""
Game player model.

One join of an account into a room. Deleted when the room is reset.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import JsonType, MoneyType


if TYPE_CHECKING:
    from app.models.game_room import GameRoom


class GamePlayer(Base):
    """Game player model."""

    __tablename__ = "game_players"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(
        ForeignKey("game_rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option: Mapped[str] = mapped_column(String(20), nullable=False)
    entry_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    # {"normal": "10.00", "benefit": "20.00"}: what was debited per bucket
    paid: Mapped[dict[str, str]] = mapped_column(JsonType, nullable=False)

    has_won: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    amount_won: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    room: Mapped["GameRoom"] = relationship(
        "GameRoom", back_populates="players", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<GamePlayer(room_id={self.room_id}, account_id={self.account_id}, "
            f"option={self.option})>"
        )
