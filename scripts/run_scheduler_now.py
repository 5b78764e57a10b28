#!/usr/bin/env python3
"""
Run a scheduled ledger job once, in this process.

Usage:
    python scripts/run_scheduler_now.py accrual
    python scripts/run_scheduler_now.py daily
    python scripts/run_scheduler_now.py level-based
    python scripts/run_scheduler_now.py reset-color
    python scripts/run_scheduler_now.py reset-number
    python scripts/run_scheduler_now.py rebuild-chains

Add --queue to enqueue the run on the dramatiq broker instead.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.config.database import async_engine
from app.utils.logging import setup_logging
from jobs.scheduler import (
    ACCRUAL_JOB,
    COLOR_RESET_JOB,
    DAILY_SHARE_JOB,
    LEVEL_SHARE_JOB,
    NUMBER_RESET_JOB,
    REBUILD_CHAINS_JOB,
    LedgerScheduler,
)


JOBS = {
    "accrual": ACCRUAL_JOB,
    "daily": DAILY_SHARE_JOB,
    "level-based": LEVEL_SHARE_JOB,
    "reset-color": COLOR_RESET_JOB,
    "reset-number": NUMBER_RESET_JOB,
    "rebuild-chains": REBUILD_CHAINS_JOB,
}


async def run_now(job: str) -> dict | None:
    """Run job once and return its summary."""
    scheduler = LedgerScheduler()
    try:
        return await scheduler.run_job(JOBS[job])
    finally:
        await async_engine.dispose()


def enqueue(job: str) -> None:
    """Send job to the dramatiq workers."""
    from jobs.tasks import manual_runs

    actors = {
        "accrual": lambda: manual_runs.run_accrual_tick.send(),
        "daily": lambda: manual_runs.run_daily_profit_sharing.send(),
        "level-based": lambda: manual_runs.run_level_based_profit_sharing.send(),
        "reset-color": lambda: manual_runs.reset_game_rooms.send("color"),
        "reset-number": lambda: manual_runs.reset_game_rooms.send("number"),
        "rebuild-chains": lambda: manual_runs.rebuild_all_chains.send(),
    }
    message = actors[job]()
    logger.info(f"Enqueued {job} (message {message.message_id})")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a ledger job once")
    parser.add_argument("job", choices=sorted(JOBS), help="Job to run")
    parser.add_argument(
        "--queue",
        action="store_true",
        help="Enqueue on the dramatiq broker instead of running here",
    )

    args = parser.parse_args()
    setup_logging("run_scheduler_now")

    if args.queue:
        enqueue(args.job)
        return

    result = asyncio.run(run_now(args.job))
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
