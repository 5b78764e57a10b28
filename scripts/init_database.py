#!/usr/bin/env python3
"""
Initialize database tables.

Creates every ledger table that does not exist yet. Use Alembic
(`alembic upgrade head`) for managed deployments.

Usage:
    python scripts/init_database.py
    python scripts/init_database.py --database-url sqlite+aiosqlite:///ledger.db
    python scripts/init_database.py --drop   # drop and recreate (destroys data)
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.config.database import create_engine
from app.models import Base


# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level} | {message}")


async def init_database(database_url: str | None = None, drop: bool = False) -> None:
    """
    Create all database tables.

    Args:
        database_url: Database URL (defaults to DATABASE_URL)
        drop: Drop existing tables first
    """
    engine = create_engine(database_url, echo=False)

    logger.info("Connecting to database...")
    async with engine.begin() as conn:
        if drop:
            logger.warning("Dropping existing tables...")
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    await engine.dispose()
    logger.success(f"Database tables ready: {', '.join(sorted(Base.metadata.tables))}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create ledger database tables")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (defaults to DATABASE_URL from the environment)",
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing tables before creating them",
    )

    args = parser.parse_args()
    asyncio.run(init_database(args.database_url, drop=args.drop))


if __name__ == "__main__":
    main()
