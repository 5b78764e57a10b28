"""
Tests for accrual formulas.

Covers:
- Percentage of current balances
- Fixed percentage of initial principal
- Deposit target release
- Deposit growth and day cap
"""

from decimal import Decimal

import pytest

from app.models.deposit import Deposit
from app.services.accrual.formulas import (
    AccrualRates,
    DepositTargetFormula,
    FixedInitialFormula,
    PercentOfBalanceFormula,
    deposit_growth,
    get_formula,
)


@pytest.fixture
def rates():
    """0.5% normal decay and 1% benefit release."""
    return AccrualRates(
        daily_normal_rate=Decimal("0.005"),
        daily_benefit_rate=Decimal("0.01"),
        target_multiplier=Decimal("2"),
        target_days=200,
    )


class TestPercentOfBalance:
    """Percentage of current balances."""

    def test_amounts(self, rates, make_account):
        account = make_account(normal="1000", benefit="500")
        amounts = PercentOfBalanceFormula(rates).compute(account)
        assert amounts.normal_deduction == Decimal("5.00")
        assert amounts.benefit_transfer == Decimal("5.00")

    def test_truncates(self, rates, make_account):
        account = make_account(normal="0", benefit="33.339")
        amounts = PercentOfBalanceFormula(rates).compute(account)
        assert amounts.benefit_transfer == Decimal("0.33")

    def test_empty_wallets(self, rates, make_account):
        amounts = PercentOfBalanceFormula(rates).compute(make_account())
        assert amounts == (Decimal("0"), Decimal("0"))


class TestFixedInitial:
    """Percentage of initial principal, capped at current balance."""

    def test_uses_initial_balances(self, rates, make_account):
        account = make_account(
            normal="100", benefit="100", initial_normal="1000", initial_benefit="1000"
        )
        amounts = FixedInitialFormula(rates).compute(account)
        assert amounts.normal_deduction == Decimal("5.00")
        assert amounts.benefit_transfer == Decimal("10.00")

    def test_capped_at_balance(self, rates, make_account):
        account = make_account(
            normal="2", benefit="3", initial_normal="1000", initial_benefit="1000"
        )
        amounts = FixedInitialFormula(rates).compute(account)
        assert amounts.normal_deduction == Decimal("2")
        assert amounts.benefit_transfer == Decimal("3")


class TestDepositTarget:
    """Release of target_multiplier x deposits over target_days."""

    def test_daily_target(self, rates, make_account):
        account = make_account(normal="1000", benefit="5000", total_deposits="1000")
        amounts = DepositTargetFormula(rates).compute(account)
        assert amounts.normal_deduction == Decimal("5.00")
        assert amounts.benefit_transfer == Decimal("10.00")

    def test_capped_at_benefit_balance(self, rates, make_account):
        account = make_account(benefit="4", total_deposits="1000")
        amounts = DepositTargetFormula(rates).compute(account)
        assert amounts.benefit_transfer == Decimal("4")


class TestGrowth:
    """Optional positive growth."""

    def test_disabled_by_default(self, rates, make_account):
        growth = PercentOfBalanceFormula(rates).growth(make_account(normal="1000"))
        assert growth == (Decimal("0"), Decimal("0"))

    def test_enabled(self, make_account):
        rates = AccrualRates(
            daily_normal_rate=Decimal("0"),
            daily_benefit_rate=Decimal("0"),
            growth_normal_rate=Decimal("0.001"),
            growth_benefit_rate=Decimal("0.002"),
        )
        growth = PercentOfBalanceFormula(rates).growth(
            make_account(normal="1000", benefit="1000")
        )
        assert growth.normal == Decimal("1.00")
        assert growth.benefit == Decimal("2.00")


class TestDepositGrowth:
    """Per-deposit growth until the day cap."""

    def _deposit(self, days_grown: int, is_active: bool = True) -> Deposit:
        return Deposit(
            account_id=1,
            principal=Decimal("1000"),
            normal_growth_rate=Decimal("0.01"),
            benefit_growth_rate=Decimal("0.005"),
            day_cap=200,
            days_grown=days_grown,
            is_active=is_active,
        )

    def test_growth(self):
        growth = deposit_growth(self._deposit(days_grown=10))
        assert growth.normal == Decimal("10.00")
        assert growth.benefit == Decimal("5.00")

    def test_capped(self):
        assert deposit_growth(self._deposit(days_grown=200)) == (
            Decimal("0"),
            Decimal("0"),
        )

    def test_inactive(self):
        assert deposit_growth(self._deposit(days_grown=0, is_active=False)) == (
            Decimal("0"),
            Decimal("0"),
        )


class TestGetFormula:
    """Formula lookup by configured name."""

    @pytest.mark.parametrize(
        "name,formula_class",
        [
            ("percent_of_balance", PercentOfBalanceFormula),
            ("fixed_initial", FixedInitialFormula),
            ("deposit_target", DepositTargetFormula),
        ],
    )
    def test_known(self, rates, name, formula_class):
        assert isinstance(get_formula(name, rates), formula_class)

    def test_unknown(self, rates):
        with pytest.raises(ValueError, match="Unknown accrual formula"):
            get_formula("compound", rates)
