"""
Distributed lock on Redis.

Prevents the same job from running in two processes at once
(scheduler process and a manually triggered dramatiq worker).
"""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger


# Delete the key only if we still own it
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class DistributedLock:
    """
    Redis SET NX lock with owner token.

    Example:
        lock = DistributedLock(redis_client=client)
        async with lock.lock("accrual_tick", timeout=300) as acquired:
            if not acquired:
                return
            ...
    """

    KEY_PREFIX = "lock:"

    def __init__(
        self,
        redis_client: redis.Redis,
        retry_interval: float = 0.1,
    ) -> None:
        """
        Initialize lock.

        Args:
            redis_client: Async Redis client
            retry_interval: Seconds between attempts in blocking mode
        """
        self.redis_client = redis_client
        self.retry_interval = retry_interval

    async def acquire(
        self,
        key: str,
        timeout: int,
        blocking: bool = False,
        blocking_timeout: float | None = None,
    ) -> str | None:
        """
        Try to take the lock.

        Args:
            key: Lock name
            timeout: Lock expiry in seconds
            blocking: Wait until the lock is free
            blocking_timeout: Give up waiting after this many seconds

        Returns:
            Owner token if acquired, None otherwise
        """
        token = uuid.uuid4().hex
        full_key = f"{self.KEY_PREFIX}{key}"
        loop = asyncio.get_running_loop()
        deadline = (
            loop.time() + blocking_timeout if blocking_timeout is not None else None
        )

        while True:
            if await self.redis_client.set(full_key, token, nx=True, ex=timeout):
                return token
            if not blocking:
                return None
            if deadline is not None and loop.time() >= deadline:
                return None
            await asyncio.sleep(self.retry_interval)

    async def release(self, key: str, token: str) -> bool:
        """
        Release the lock if still owned.

        Returns:
            True if the key was deleted
        """
        full_key = f"{self.KEY_PREFIX}{key}"
        deleted = await self.redis_client.eval(_RELEASE_SCRIPT, 1, full_key, token)
        return bool(deleted)

    @asynccontextmanager
    async def lock(
        self,
        key: str,
        timeout: int = 60,
        blocking: bool = False,
        blocking_timeout: float | None = None,
    ) -> AsyncIterator[bool]:
        """
        Hold the lock for the duration of the block.

        Yields:
            True if the lock was acquired
        """
        token = await self.acquire(key, timeout, blocking, blocking_timeout)
        if token is None:
            logger.warning(f"Lock '{key}' is held by another worker")
            yield False
            return

        logger.debug(f"Lock '{key}' acquired")
        try:
            yield True
        finally:
            released = await self.release(key, token)
            if not released:
                logger.warning(
                    f"Lock '{key}' expired before release (timeout={timeout}s)"
                )
