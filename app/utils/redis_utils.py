"""Redis connection utilities.

Provides helper functions for creating Redis connections and job locks
with configuration from settings.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis

from app.config.settings import settings
from app.utils.distributed_lock import DistributedLock


def get_redis_client() -> redis.Redis:
    """
    Create and return a Redis client with settings from config.

    Returns:
        redis.Redis: Configured Redis client with decode_responses=True
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )


def get_redis_url() -> str:
    """
    Build Redis URL from settings.

    WARNING: This URL contains the password in plaintext. Use get_redis_url_masked()
    for logging.

    Returns:
        str: Redis connection URL in format redis://[:[password]@]host:port/db
    """
    if settings.redis_password:
        return f"redis://:{settings.redis_password}@{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
    return f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"


def get_redis_url_masked() -> str:
    """
    Build Redis URL with masked password for safe logging.

    Returns:
        str: Redis connection URL with masked password
    """
    if settings.redis_password:
        return f"redis://:****@{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
    return f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"


@asynccontextmanager
async def job_lock(name: str, timeout: int = 300) -> AsyncIterator[bool]:
    """
    Hold a cross-process lock named after a job.

    Opens its own Redis client and closes it on exit.

    Usage:
        async with job_lock("accrual_tick") as acquired:
            if not acquired:
                return

    Yields:
        True if this process holds the lock
    """
    client = get_redis_client()
    try:
        lock = DistributedLock(redis_client=client)
        async with lock.lock(f"job:{name}", timeout=timeout) as acquired:
            yield acquired
    finally:
        await client.aclose()
