"""
Account service.

Registration with referral support and account summaries.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.repositories.account_repository import AccountRepository
from app.repositories.deposit_repository import DepositRepository
from app.repositories.profit_share_repository import ProfitShareRepository
from app.services.base_service import BaseService
from app.services.referral.chain_builder import ReferralChainBuilder
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import NotFoundError, ValidationError


class AccountService(BaseService):
    """Account registration and lookup."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize account service.

        Args:
            session: Async database session
        """
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.share_repo = ProfitShareRepository(session)
        self.deposit_repo = DepositRepository(session)
        self.chain_builder = ReferralChainBuilder(session)

    async def _generate_referral_code(self) -> str:
        while True:
            referral_code = secrets.token_urlsafe(8)
            if await self.account_repo.get_by_referral_code(referral_code) is None:
                return referral_code

    @with_auto_commit
    async def register_account(
        self, username: str, referral_code: str | None = None
    ) -> Account:
        """
        Register new account with referral support.

        The ancestor snapshot is built in the same unit of work.

        Args:
            username: Unique username
            referral_code: Referral code of the referrer (optional)

        Returns:
            Created account

        Raises:
            ValidationError: Empty or taken username
            NotFoundError: Unknown referral code
        """
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is required")
        if await self.account_repo.get_by_username(username) is not None:
            raise ValidationError("Username already registered", username=username)

        referrer_id = None
        if referral_code:
            referrer = await self.account_repo.get_by_referral_code(referral_code)
            if referrer is None:
                raise NotFoundError(
                    "Referral code not found", referral_code=referral_code
                )
            referrer_id = referrer.id

        account = await self.account_repo.create(
            username=username,
            referral_code=await self._generate_referral_code(),
            referred_by_id=referrer_id,
            ancestors=[],
            mlm_level=0,
        )
        chain = await self.chain_builder.build_ancestor_chain(account.id)

        self.logger.info(
            "Account registered",
            extra={
                "account_id": account.id,
                "has_referrer": referrer_id is not None,
                "ancestors": len(chain),
            },
        )
        return account

    async def get_summary(self, account_id: int) -> dict:
        """
        Balances, referral position and MLM earnings of account.

        Raises:
            NotFoundError: Account does not exist
        """
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found", account_id=account_id)

        earnings = await self.share_repo.get_earnings_by_type(account_id)
        deposits = await self.deposit_repo.get_by_account(account_id, active_only=True)
        return {
            "account_id": account.id,
            "username": account.username,
            "referral_code": account.referral_code,
            "referred_by_id": account.referred_by_id,
            "mlm_level": account.mlm_level,
            "balances": account.balances(),
            "total_deposits": account.total_deposits,
            "active_deposits": [
                {
                    "deposit_id": deposit.id,
                    "principal": deposit.principal,
                    "days_grown": deposit.days_grown,
                    "day_cap": deposit.day_cap,
                }
                for deposit in deposits
            ],
            "mlm_earnings_total": account.mlm_earnings_total,
            "earnings_by_type": earnings,
        }
