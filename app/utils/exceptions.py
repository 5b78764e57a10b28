"""
Exception handling utilities.

Defines the ledger's exception hierarchy and categorized exception types
for proper error handling.
"""

from typing import Any

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError


class LedgerError(Exception):
    """
    Base class for ledger domain errors.

    Carries a context dict (account id, amount, stage, ...) that callers
    put into structured log records.
    """

    error_code = "ledger_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class ValidationError(LedgerError):
    """Raised when input or state does not allow the operation."""

    error_code = "validation_error"


class InsufficientBalanceError(ValidationError):
    """Raised before any mutation when a debit would make a bucket negative."""

    error_code = "insufficient_balance"


class NotFoundError(LedgerError):
    """Raised when an account, room or request does not exist."""

    error_code = "not_found"


class ConcurrencyConflictError(LedgerError):
    """Raised when a concurrent writer changed the row first."""

    error_code = "concurrency_conflict"


class BatchFailedError(LedgerError):
    """Raised when a batch unit of work failed and was rolled back entirely."""

    error_code = "batch_failed"


# Exception categories based on handling strategy

# Domain errors: surfaced to the caller as a failed ServiceResult
DOMAIN_ERRORS = (
    ValidationError,
    NotFoundError,
    ConcurrencyConflictError,
)

# Retryable - a fresh attempt may succeed
RETRYABLE = (
    StaleDataError,
    ConcurrencyConflictError,
    OperationalError,
)


def is_domain_error(exc: Exception) -> bool:
    """
    Check if exception is an expected domain error.

    Args:
        exc: Exception to check

    Returns:
        True if exception is a domain error
    """
    return isinstance(exc, DOMAIN_ERRORS)


def is_retryable(exc: Exception) -> bool:
    """
    Check if operation may be retried after exception.

    Args:
        exc: Exception to check

    Returns:
        True if a retry may succeed
    """
    return isinstance(exc, RETRYABLE)
