"""
Tests for money arithmetic.

All amounts are floored to cents, never rounded.
"""

from decimal import Decimal

import pytest

from app.services.ledger.ledger_service import parse_amount, parse_wallet
from app.models.enums import WalletBucket
from app.utils.exceptions import ValidationError
from app.utils.money import fraction_of, percent_of, to_decimal, truncate_money


class TestTruncation:
    """Floor to two decimal places."""

    def test_one_percent_of_fractional_amount(self):
        """1% of 33.339 is 0.33."""
        assert fraction_of(Decimal("33.339"), Decimal("0.01")) == Decimal("0.33")

    def test_truncates_instead_of_rounding(self):
        assert truncate_money(Decimal("10.999")) == Decimal("10.99")

    def test_percent_of_level_share(self):
        assert percent_of(Decimal("1000"), Decimal("15")) == Decimal("150.00")
        assert percent_of(Decimal("1000"), Decimal("0.3")) == Decimal("3.00")

    def test_percent_of_small_amount_can_be_zero(self):
        assert percent_of(Decimal("0.05"), Decimal("10")) == Decimal("0.00")

    def test_to_decimal_avoids_float_artifacts(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_decimal("ten")


class TestParsing:
    """Amount and wallet validation at the ledger boundary."""

    def test_parse_amount_truncates(self):
        assert parse_amount("12.349") == Decimal("12.34")

    @pytest.mark.parametrize("amount", ["0", "-5", "0.001"])
    def test_parse_amount_rejects_non_positive(self, amount):
        with pytest.raises(ValidationError):
            parse_amount(amount)

    def test_parse_amount_rejects_non_numeric(self):
        with pytest.raises(ValidationError):
            parse_amount("abc")

    def test_parse_wallet(self):
        assert parse_wallet("benefit") is WalletBucket.BENEFIT

    def test_parse_wallet_unknown(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_wallet("savings")
        assert exc_info.value.context["wallet"] == "savings"
