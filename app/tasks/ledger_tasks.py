"""
Ledger tasks.

Each task opens its own session, runs one service operation as one unit
of work and returns a serializable summary. Used by the in-process
scheduler, the dramatiq actors and the manual-run script.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.enums import GameType
from app.services.accrual.accrual_service import AccrualService
from app.services.game.reset_service import GameResetService
from app.services.referral.chain_builder import ReferralChainBuilder
from app.services.referral.profit_share_service import ProfitShareService


SessionFactory = Callable[[], AsyncSession] | async_sessionmaker[AsyncSession]


def _default_session_maker() -> async_sessionmaker[AsyncSession]:
    from app.config.database import async_session_maker

    return async_session_maker


async def run_accrual_tick(session_maker: SessionFactory | None = None) -> dict:
    """
    Run the daily accrual tick.

    Raises:
        BatchFailedError: Tick failed and was rolled back
    """
    async with (session_maker or _default_session_maker())() as session:
        result = await AccrualService(session).run_daily_tick()
    return result.to_dict()


async def run_daily_profit_sharing(
    session_maker: SessionFactory | None = None,
) -> dict:
    """Run daily benefit profit sharing."""
    async with (session_maker or _default_session_maker())() as session:
        result = await ProfitShareService(session).run_daily_profit_sharing()
    return result.to_dict()


async def run_level_based_profit_sharing(
    session_maker: SessionFactory | None = None,
) -> dict:
    """Run level-based profit sharing."""
    async with (session_maker or _default_session_maker())() as session:
        result = await ProfitShareService(session).run_level_based_profit_sharing()
    return result.to_dict()


async def reset_game_rooms(
    game_type: GameType | str,
    session_maker: SessionFactory | None = None,
) -> dict:
    """Reopen completed rooms of game_type whose reset delay has passed."""
    game_type = GameType(game_type)
    async with (session_maker or _default_session_maker())() as session:
        reset = await GameResetService(session).reset_completed_rooms(game_type)
    if reset:
        logger.info(
            "Room reset sweep finished",
            extra={"game_type": game_type.value, "rooms_reset": reset},
        )
    return {"game_type": game_type.value, "rooms_reset": reset}


async def rebuild_all_chains(session_maker: SessionFactory | None = None) -> dict:
    """Rebuild every ancestor snapshot."""
    async with (session_maker or _default_session_maker())() as session:
        success_count, error_count = await ReferralChainBuilder(
            session
        ).rebuild_all_chains()
    return {"success": success_count, "errors": error_count}
