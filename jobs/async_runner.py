"""
Async runner for dramatiq tasks.

Dramatiq actors are synchronous. Each worker thread keeps one event
loop and every actor run gets its own engine, so pooled connections are
never shared across loops.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config.database import create_session_maker
from app.config.settings import settings

T = TypeVar("T")

_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """Get or create the event loop of the current thread."""
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(f"Created new event loop for thread {threading.current_thread().name}")
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    return get_event_loop().run_until_complete(coro)


@asynccontextmanager
async def local_session_maker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """
    Session factory bound to a NullPool engine owned by the current loop.

    Usage:
        async with local_session_maker() as session_maker:
            await run_accrual_tick(session_maker)
    """
    local_engine = create_async_engine(
        settings.database_url,
        echo=False,
        poolclass=NullPool,
    )
    try:
        yield create_session_maker(local_engine)
    finally:
        await local_engine.dispose()
