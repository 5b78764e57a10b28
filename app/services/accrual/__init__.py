"""
Accrual services package.

- formulas: configurable decay formulas and deposit growth
- accrual_service: the nightly tick
"""

from app.services.accrual.accrual_service import AccrualService, AccrualTickResult
from app.services.accrual.formulas import (
    AccrualAmounts,
    AccrualFormula,
    AccrualRates,
    DepositTargetFormula,
    FixedInitialFormula,
    GrowthAmounts,
    PercentOfBalanceFormula,
    deposit_growth,
    get_formula,
)


__all__ = [
    "AccrualAmounts",
    "AccrualFormula",
    "AccrualRates",
    "AccrualService",
    "AccrualTickResult",
    "DepositTargetFormula",
    "FixedInitialFormula",
    "GrowthAmounts",
    "PercentOfBalanceFormula",
    "deposit_growth",
    "get_formula",
]
