"""
Scheduled profit sharing.

Two daily runs feed the distribution engine from every eligible account:

- daily benefit: 1% of the account's benefit wallet;
- level based: mlm_level x 0.5% of the benefit wallet.

The source account is not debited. Each run is one unit of work and is
rolled back entirely on failure.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.mlm_levels import LevelTables
from app.config.settings import settings
from app.models.account import Account
from app.models.enums import ShareType
from app.repositories.account_repository import AccountRepository
from app.services.base_service import BaseService, log_operation
from app.services.referral.distribution_engine import ProfitDistributionEngine
from app.utils.exceptions import BatchFailedError
from app.utils.money import ZERO, percent_of


@dataclass
class ProfitShareRunResult:
    """Totals of one scheduled run."""

    share_type: ShareType
    accounts_processed: int = 0
    shares_created: int = 0
    total_distributed: Decimal = field(default_factory=lambda: ZERO)

    def to_dict(self) -> dict:
        return {
            "share_type": self.share_type.value,
            "accounts_processed": self.accounts_processed,
            "shares_created": self.shares_created,
            "total_distributed": str(self.total_distributed),
        }


class ProfitShareService(BaseService):
    """Scheduled daily and level-based profit sharing."""

    def __init__(
        self,
        session: AsyncSession,
        tables: LevelTables | None = None,
        daily_percent: Decimal | None = None,
        level_percent: Decimal | None = None,
        batch_size: int | None = None,
    ) -> None:
        """
        Initialize profit share service.

        Args:
            session: Async database session
            tables: Level tables (defaults to configured tables)
            daily_percent: Percent of benefit shared daily
            level_percent: Percent of benefit shared per MLM level
            batch_size: Accounts per chunk
        """
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.engine = ProfitDistributionEngine(session, tables)
        self.daily_percent = (
            settings.daily_profit_share_percent
            if daily_percent is None
            else daily_percent
        )
        self.level_percent = (
            settings.level_based_percent_per_level
            if level_percent is None
            else level_percent
        )
        self.batch_size = batch_size or settings.accrual_batch_size

    @log_operation
    async def run_daily_profit_sharing(self) -> ProfitShareRunResult:
        """
        Share daily_percent of every positive benefit wallet upward.

        Raises:
            BatchFailedError: Run failed and was rolled back
        """
        return await self._run(
            ShareType.DAILY_BENEFIT,
            self.account_repo.find_with_positive_benefit,
            lambda account: percent_of(account.benefit_balance, self.daily_percent),
        )

    @log_operation
    async def run_level_based_profit_sharing(self) -> ProfitShareRunResult:
        """
        Share mlm_level x level_percent of the benefit wallet upward.

        Raises:
            BatchFailedError: Run failed and was rolled back
        """
        return await self._run(
            ShareType.LEVEL_BASED,
            self.account_repo.find_with_mlm_level,
            lambda account: percent_of(
                account.benefit_balance,
                Decimal(account.mlm_level) * self.level_percent,
            ),
        )

    async def _run(
        self,
        share_type: ShareType,
        fetch_chunk: Callable[[int, int], Awaitable[list[Account]]],
        amount_for: Callable[[Account], Decimal],
    ) -> ProfitShareRunResult:
        result = ProfitShareRunResult(share_type=share_type)
        current_account_id: int | None = None
        last_id = 0

        try:
            while True:
                accounts = await fetch_chunk(last_id, self.batch_size)
                if not accounts:
                    break

                # Amounts come from balances as loaded, before this chunk credits anyone
                amounts = [(account, amount_for(account)) for account in accounts]

                for account, amount in amounts:
                    current_account_id = account.id
                    result.accounts_processed += 1
                    if amount <= 0:
                        continue
                    distribution = await self.engine.distribute(
                        account, amount, share_type
                    )
                    result.shares_created += distribution.shares_count
                    result.total_distributed += distribution.total_distributed

                await self.session.flush()
                last_id = accounts[-1].id

            await self.session.commit()

        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                "Profit sharing run failed, rolled back",
                extra={
                    "share_type": share_type.value,
                    "account_id": current_account_id,
                    "error": str(e),
                },
            )
            raise BatchFailedError(
                "Profit sharing run failed",
                stage=share_type.value,
                account_id=current_account_id,
                cause=type(e).__name__,
            ) from e

        self.logger.info("Profit sharing run committed", extra=result.to_dict())
        return result
