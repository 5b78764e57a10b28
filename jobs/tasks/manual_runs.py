"""
Manual ledger runs.

Dramatiq actors that let an operator trigger a scheduled job out of
process. Each run holds a Redis lock named after the job, so a manual run
never overlaps another manual run of the same job.
"""

from collections.abc import Awaitable, Callable

import dramatiq
from loguru import logger

from app.models.enums import GameType
from app.tasks import ledger_tasks
from app.utils.redis_utils import job_lock
from jobs.async_runner import local_session_maker, run_async
from jobs.broker import broker  # noqa: F401

JOB_LOCK_TIMEOUT = 600


async def _locked_run(
    name: str, run: Callable[..., Awaitable[dict]], *args
) -> dict | None:
    async with job_lock(name, timeout=JOB_LOCK_TIMEOUT) as acquired:
        if not acquired:
            logger.warning(f"Job {name} already running, skipping manual run")
            return None
        async with local_session_maker() as session_maker:
            result = await run(*args, session_maker=session_maker)
    logger.info(f"Manual run of {name} completed", extra={"job": name, **result})
    return result


@dramatiq.actor(max_retries=2, time_limit=900_000)  # 15 min, longer than the lock
def run_accrual_tick() -> None:
    """Run the accrual tick now."""
    run_async(_locked_run("accrual_tick", ledger_tasks.run_accrual_tick))


@dramatiq.actor(max_retries=2, time_limit=900_000)
def run_daily_profit_sharing() -> None:
    """Run daily benefit profit sharing now."""
    run_async(
        _locked_run("daily_profit_sharing", ledger_tasks.run_daily_profit_sharing)
    )


@dramatiq.actor(max_retries=2, time_limit=900_000)
def run_level_based_profit_sharing() -> None:
    """Run level-based profit sharing now."""
    run_async(
        _locked_run(
            "level_based_profit_sharing", ledger_tasks.run_level_based_profit_sharing
        )
    )


@dramatiq.actor(max_retries=0, time_limit=120_000)
def reset_game_rooms(game_type: str) -> None:
    """Reset completed rooms of one game type now."""
    game_type = GameType(game_type).value
    run_async(
        _locked_run(f"reset_{game_type}_rooms", ledger_tasks.reset_game_rooms, game_type)
    )


@dramatiq.actor(max_retries=0, time_limit=900_000)
def rebuild_all_chains() -> None:
    """Rebuild every ancestor snapshot now."""
    run_async(_locked_run("rebuild_chains", ledger_tasks.rebuild_all_chains))
