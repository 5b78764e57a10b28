"""
Game repositories.

Data access layer for GameRoom and GamePlayer models.
"""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import RoomStatus
from app.models.game_player import GamePlayer
from app.models.game_room import GameRoom
from app.repositories.base import BaseRepository


class GameRoomRepository(BaseRepository[GameRoom]):
    """Game room repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize game room repository."""
        super().__init__(GameRoom, session)

    async def get_by_code(
        self, room_code: str, for_update: bool = False
    ) -> GameRoom | None:
        """
        Get room by code.

        Args:
            room_code: Room code
            for_update: Lock the row and reload its attributes

        Returns:
            Room or None
        """
        stmt = select(GameRoom).where(GameRoom.room_code == room_code)
        if for_update:
            await self.session.flush()
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_completed_before(
        self, game_type: str, cutoff: datetime
    ) -> list[GameRoom]:
        """
        Get completed rooms that finished at or before cutoff, locked.

        Args:
            game_type: Game type
            cutoff: Latest completion time to include

        Returns:
            Completed rooms
        """
        await self.session.flush()
        stmt = (
            select(GameRoom)
            .where(GameRoom.game_type == game_type)
            .where(GameRoom.status == RoomStatus.COMPLETED.value)
            .where(GameRoom.completed_at <= cutoff)
            .order_by(GameRoom.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_recent_completed(
        self, game_type: str, limit: int = 10
    ) -> list[GameRoom]:
        """Most recently completed rooms of a game type."""
        stmt = (
            select(GameRoom)
            .where(GameRoom.game_type == game_type)
            .where(GameRoom.status == RoomStatus.COMPLETED.value)
            .order_by(GameRoom.completed_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class GamePlayerRepository(BaseRepository[GamePlayer]):
    """Game player repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize game player repository."""
        super().__init__(GamePlayer, session)

    async def get_by_room(self, room_id: int) -> list[GamePlayer]:
        """Get players of room in join order."""
        return await self.find_by(room_id=room_id)

    async def delete_by_rooms(self, room_ids: list[int]) -> int:
        """
        Delete every player of the given rooms.

        Args:
            room_ids: Room IDs

        Returns:
            Number of deleted rows
        """
        if not room_ids:
            return 0
        stmt = delete(GamePlayer).where(GamePlayer.room_id.in_(room_ids))
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
