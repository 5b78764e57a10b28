"""
Referral services package.

Contains modular services for referral processing:
- chain_builder: ancestor snapshot maintenance
- distribution_engine: per-level profit distribution
- profit_share_service: scheduled daily and level-based runs
- statistics: downline and network statistics
"""

from app.services.referral.chain_builder import ReferralChainBuilder
from app.services.referral.distribution_engine import (
    DistributionResult,
    ProfitDistributionEngine,
    ShareCredit,
)
from app.services.referral.profit_share_service import (
    ProfitShareRunResult,
    ProfitShareService,
)
from app.services.referral.statistics import ReferralStatisticsManager


__all__ = [
    "DistributionResult",
    "ProfitDistributionEngine",
    "ProfitShareRunResult",
    "ProfitShareService",
    "ReferralChainBuilder",
    "ReferralStatisticsManager",
    "ShareCredit",
]
