"""
Base service class.

Provides common functionality for all service classes including session management,
logging, and helper decorators.
"""

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.exceptions import LedgerError


# Type variable for generic decorator return types
T = TypeVar("T")


@dataclass
class ServiceResult:
    """
    Standard service result container.

    Used to return structured results from service methods.
    """
    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        """Successful result."""
        return cls(success=True, data=data)

    @classmethod
    def from_error(cls, error: LedgerError) -> "ServiceResult":
        """Failed result carrying a domain error."""
        return cls(
            success=False,
            error=error.message,
            error_code=error.error_code,
            data=error.context or None,
        )


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """
        Commit current transaction.

        Raises:
            Exception: If commit fails
        """
        await self.session.commit()

    async def rollback(self) -> None:
        """
        Rollback current transaction.

        Raises:
            Exception: If rollback fails
        """
        await self.session.rollback()


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Logs:
    - Method entry
    - Method exit with duration
    - Exceptions if any

    Usage:
        @log_operation
        async def run_daily_tick(self):
            # Your code here
            pass

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.info(
            f"Starting {func.__name__}",
            extra={"function": func.__name__},
        )

        try:
            result = await func(self, *args, **kwargs)
            duration = time.time() - start_time

            self.logger.info(
                f"Completed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "success": True,
                },
            )

            return result

        except Exception as e:
            duration = time.time() - start_time

            self.logger.error(
                f"Failed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "error": str(e),
                    "success": False,
                },
            )

            raise

    return wrapper
