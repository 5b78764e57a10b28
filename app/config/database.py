"""
Database configuration.

Async SQLAlchemy engine and session factory shared by services and jobs.
"""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings


def create_engine(url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """
    Create async engine.

    Args:
        url: Database URL (defaults to settings.database_url)
        echo: Echo SQL statements (defaults to settings.database_echo)

    Returns:
        AsyncEngine
    """
    url = url or settings.database_url
    kwargs: dict = {
        "echo": settings.database_echo if echo is None else echo,
    }
    if url.startswith("postgresql"):
        kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return create_async_engine(url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory bound to engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Yield a session for request-scoped callers.

    Yields:
        AsyncSession
    """
    async with async_session_maker() as session:
        yield session
