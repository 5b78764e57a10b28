"""
Database decorators for automatic error handling and rollback.

Provides decorators to automatically handle database errors and rollbacks
in async functions that use SQLAlchemy sessions.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


def _find_session(args: tuple, kwargs: dict) -> AsyncSession | None:
    """
    Locate the session of a decorated call.

    Looks at the 'session' keyword, then the first positional argument,
    then a 'session' attribute of the first positional argument (methods).
    """
    session = kwargs.get('session')
    if session is None and args:
        if isinstance(args[0], AsyncSession):
            session = args[0]
        else:
            session = getattr(args[0], 'session', None)
    return session


async def _rollback(session: AsyncSession, func_name: str, error: Exception) -> None:
    try:
        await session.rollback()
        logger.info(
            f"Rollback performed in {func_name} due to error: {type(error).__name__}"
        )
    except Exception as rollback_error:
        logger.error(
            f"Failed to rollback in {func_name}: {rollback_error}",
            exc_info=True
        )


def with_auto_commit(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that automatically commits the session on success and rolls back on error.

    Usage:
        @with_auto_commit
        async def my_function(session: AsyncSession, ...):
            # Your database operations
            # No need to call session.commit() - it's automatic
            pass

    The decorator will:
    1. Execute the wrapped function
    2. If successful, automatically call session.commit()
    3. If an exception occurs, automatically call session.rollback()
    4. Re-raise the exception for proper error handling

    Args:
        func: Async function to wrap. Must accept 'session' as a keyword
              argument, have it as the first positional argument, or be a
              method of an object with a 'session' attribute.

    Returns:
        Wrapped function with automatic commit/rollback
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_auto_commit "
                f"but no session argument found. Commit/rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            await _rollback(session, func.__name__, e)
            raise

    return wrapper
