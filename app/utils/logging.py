"""
Logging setup.

Configures loguru sinks for the scheduler process and CLI scripts.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(service_name: str = "ledger", log_file: str | None = None) -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        service_name: Name written to the first log line
        log_file: Log file path (defaults to settings.log_file)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
            "<level>{message}</level>"
        ),
    )
    logger.add(
        log_file or settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
        serialize=False,
    )

    logger.info(f"Starting {service_name}...")
