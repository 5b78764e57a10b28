"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
)

# Core Services
from app.services.accrual import AccrualService
from app.services.account_service import AccountService
from app.services.deposit_service import DepositService
from app.services.game import GameResetService, GameService
from app.services.ledger import LedgerService, WalletService
from app.services.referral import (
    ProfitDistributionEngine,
    ProfitShareService,
    ReferralChainBuilder,
    ReferralStatisticsManager,
)
from app.services.withdrawal_service import WithdrawalService

# Admin Services
from app.services.admin_service import AdminService


__all__ = [
    # Base
    "BaseService",
    "ServiceResult",
    "log_operation",
    # Core
    "AccountService",
    "AccrualService",
    "DepositService",
    "GameResetService",
    "GameService",
    "LedgerService",
    "ProfitDistributionEngine",
    "ProfitShareService",
    "ReferralChainBuilder",
    "ReferralStatisticsManager",
    "WalletService",
    "WithdrawalService",
    # Admin
    "AdminService",
]
