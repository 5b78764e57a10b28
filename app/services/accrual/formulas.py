"""
Accrual formulas.

Compute how much of an account's normal wallet decays and how much of its
benefit wallet moves to the withdrawal wallet on one tick. All amounts are
computed on start-of-tick balances and truncated to cents.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import NamedTuple

from app.config.settings import Settings, settings as default_settings
from app.models.account import Account
from app.models.deposit import Deposit
from app.utils.money import ZERO, fraction_of, truncate_money


class AccrualAmounts(NamedTuple):
    """Movements of one account on one tick."""

    normal_deduction: Decimal
    benefit_transfer: Decimal


class GrowthAmounts(NamedTuple):
    """Growth credited to the normal and benefit wallets on one tick."""

    normal: Decimal
    benefit: Decimal


@dataclass(frozen=True)
class AccrualRates:
    """
    Rate set used by a tick.

    Decay rates and growth rates are independent so that positive
    growth can be enabled without touching the deductions.
    """

    daily_normal_rate: Decimal
    daily_benefit_rate: Decimal
    growth_normal_rate: Decimal = Decimal("0")
    growth_benefit_rate: Decimal = Decimal("0")
    target_multiplier: Decimal = Decimal("2")
    target_days: int = 200

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "AccrualRates":
        """Build rates from application settings."""
        config = config or default_settings
        return cls(
            daily_normal_rate=config.daily_normal_rate,
            daily_benefit_rate=config.daily_benefit_rate,
            growth_normal_rate=config.growth_normal_rate,
            growth_benefit_rate=config.growth_benefit_rate,
            target_multiplier=config.deposit_target_multiplier,
            target_days=config.deposit_target_days,
        )


class AccrualFormula:
    """Base class for accrual formulas."""

    name = "base"

    def __init__(self, rates: AccrualRates) -> None:
        self.rates = rates

    def compute(self, account: Account) -> AccrualAmounts:
        raise NotImplementedError

    def growth(self, account: Account) -> GrowthAmounts:
        """Optional positive growth on start-of-tick balances."""
        return GrowthAmounts(
            fraction_of(account.normal_balance, self.rates.growth_normal_rate),
            fraction_of(account.benefit_balance, self.rates.growth_benefit_rate),
        )


class PercentOfBalanceFormula(AccrualFormula):
    """
    Percentage of the current balances.

    normal_deduction = floor(normal * daily_normal_rate)
    benefit_transfer = floor(benefit * daily_benefit_rate)
    """

    name = "percent_of_balance"

    def compute(self, account: Account) -> AccrualAmounts:
        return AccrualAmounts(
            fraction_of(account.normal_balance, self.rates.daily_normal_rate),
            fraction_of(account.benefit_balance, self.rates.daily_benefit_rate),
        )


class FixedInitialFormula(AccrualFormula):
    """
    Percentage of the principal originally credited to each wallet.

    Produces a constant daily amount, capped at the current balance.
    """

    name = "fixed_initial"

    def compute(self, account: Account) -> AccrualAmounts:
        deduction = fraction_of(
            account.initial_normal_balance, self.rates.daily_normal_rate
        )
        transfer = fraction_of(
            account.initial_benefit_balance, self.rates.daily_benefit_rate
        )
        return AccrualAmounts(
            min(deduction, account.normal_balance),
            min(transfer, account.benefit_balance),
        )


class DepositTargetFormula(AccrualFormula):
    """
    Fixed benefit release that pays target_multiplier x deposits over target_days.

    Normal decays as in the percentage formula.
    """

    name = "deposit_target"

    def compute(self, account: Account) -> AccrualAmounts:
        deduction = fraction_of(account.normal_balance, self.rates.daily_normal_rate)
        daily_target = truncate_money(
            account.total_deposits
            * self.rates.target_multiplier
            / Decimal(self.rates.target_days)
        )
        return AccrualAmounts(deduction, min(daily_target, account.benefit_balance))


FORMULAS: dict[str, type[AccrualFormula]] = {
    PercentOfBalanceFormula.name: PercentOfBalanceFormula,
    FixedInitialFormula.name: FixedInitialFormula,
    DepositTargetFormula.name: DepositTargetFormula,
}


def get_formula(name: str, rates: AccrualRates) -> AccrualFormula:
    """
    Instantiate formula by configured name.

    Raises:
        ValueError: Unknown formula name
    """
    try:
        return FORMULAS[name](rates)
    except KeyError as e:
        raise ValueError(f"Unknown accrual formula: {name}") from e


def deposit_growth(deposit: Deposit) -> GrowthAmounts:
    """
    Growth one tick adds for a deposit, zero once the day cap is reached.

    Args:
        deposit: Deposit

    Returns:
        GrowthAmounts for normal and benefit wallets
    """
    if not deposit.is_active or deposit.is_capped:
        return GrowthAmounts(ZERO, ZERO)
    return GrowthAmounts(
        fraction_of(deposit.principal, deposit.normal_growth_rate),
        fraction_of(deposit.principal, deposit.benefit_growth_rate),
    )
