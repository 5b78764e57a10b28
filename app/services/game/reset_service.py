"""
Game reset service.

Returns completed rooms to the waiting state once they have been
completed for long enough, deleting their players.
"""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import GameType, RoomStatus
from app.repositories.game_repository import GamePlayerRepository, GameRoomRepository
from app.services.base_service import BaseService
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_auto_commit


def default_reset_delay(game_type: GameType) -> int:
    """Seconds a completed room of game_type stays visible before reset."""
    if game_type == GameType.COLOR:
        return settings.color_reset_delay_seconds
    return settings.number_reset_delay_seconds


class GameResetService(BaseService):
    """Resets completed rooms."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize reset service.

        Args:
            session: Async database session
        """
        super().__init__(session)
        self.room_repo = GameRoomRepository(session)
        self.player_repo = GamePlayerRepository(session)

    @with_auto_commit
    async def reset_completed_rooms(
        self,
        game_type: GameType | str,
        min_age_seconds: int | None = None,
    ) -> int:
        """
        Reset completed rooms of game_type.

        Players are deleted, counts zeroed and the room reopened with
        the same options and payout configuration.

        Args:
            game_type: Game type to reset
            min_age_seconds: Only rooms completed at least this long ago
                (defaults to the per-game reset delay)

        Returns:
            Number of rooms reset
        """
        game_type = GameType(game_type)
        if min_age_seconds is None:
            min_age_seconds = default_reset_delay(game_type)

        cutoff = utc_now() - timedelta(seconds=min_age_seconds)
        rooms = await self.room_repo.get_completed_before(game_type.value, cutoff)
        if not rooms:
            return 0

        deleted = await self.player_repo.delete_by_rooms([room.id for room in rooms])

        for room in rooms:
            room.status = RoomStatus.WAITING.value
            room.current_players = 0
            room.option_counts = {option: 0 for option in room.options}
            room.winning_option = None
            room.completed_at = None

        await self.session.flush()

        self.logger.info(
            "Game rooms reset",
            extra={
                "game_type": game_type.value,
                "rooms": len(rooms),
                "players_deleted": deleted,
            },
        )
        return len(rooms)
