"""
Scheduler process entry point.

Runs the ledger scheduler and its health server until SIGINT or SIGTERM.

Usage:
    python -m jobs.main
"""

import asyncio
import signal

from loguru import logger

from app.config.database import async_engine
from app.config.settings import settings
from app.utils.logging import setup_logging
from jobs.health import start_health_server, stop_health_server
from jobs.scheduler import LedgerScheduler


async def main() -> None:
    """Start scheduler and health server, wait for a stop signal."""
    setup_logging("ledger scheduler")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    scheduler = LedgerScheduler()
    scheduler.start()
    runner = await start_health_server(scheduler, port=settings.health_check_port)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutdown requested")
        scheduler.stop()
        await stop_health_server(runner)
        await async_engine.dispose()
        logger.info("Scheduler process stopped")


if __name__ == "__main__":
    asyncio.run(main())
