"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    SQLite returns naive datetimes even for timezone-aware columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_business_day(day: date) -> bool:
    """Monday to Friday."""
    return day.weekday() < 5


def add_days(start: datetime, days: int) -> datetime:
    """Datetime shifted by a whole number of days."""
    return start + timedelta(days=days)
