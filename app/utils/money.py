"""
Money arithmetic helpers.

All amounts are truncated (floored) to cents before they touch a balance:
1% of 33.339 is 0.33, never 0.34.
"""

from decimal import ROUND_FLOOR, Decimal, InvalidOperation

from app.config.business_constants import MONEY_QUANTUM


ZERO = Decimal("0.00")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert value to Decimal without float artifacts.

    Args:
        value: Number or numeric string

    Returns:
        Decimal value

    Raises:
        ValueError: If value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e


def truncate_money(value: Decimal | int | float | str) -> Decimal:
    """
    Truncate amount to two decimal places (floor).

    Args:
        value: Amount

    Returns:
        Amount floored to 0.01
    """
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_FLOOR)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """
    Truncated share of amount for a per-cent value.

    Example:
        percent_of(Decimal("1000"), Decimal("15")) == Decimal("150.00")
    """
    return truncate_money(amount * percent / Decimal("100"))


def fraction_of(amount: Decimal, rate: Decimal) -> Decimal:
    """
    Truncated share of amount for a fractional rate.

    Example:
        fraction_of(Decimal("33.339"), Decimal("0.01")) == Decimal("0.33")
    """
    return truncate_money(amount * rate)
