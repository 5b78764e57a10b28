"""
Accrual service.

Nightly tick over the whole account set:

1. decay of the normal wallet and benefit -> withdrawal transfer, both
   computed on start-of-tick balances by the configured formula;
2. optional growth on an independent rate set;
3. growth of every active deposit until its day cap.

The tick is one unit of work. Accounts are streamed in keyset chunks that
are flushed as they go, and nothing is committed until the last chunk has
been processed. Any failure rolls the whole tick back.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.account import Account
from app.models.deposit import Deposit
from app.models.enums import EntryKind, WalletBucket
from app.repositories.account_repository import AccountRepository
from app.repositories.deposit_repository import DepositRepository
from app.services.accrual.formulas import (
    AccrualFormula,
    AccrualRates,
    deposit_growth,
    get_formula,
)
from app.services.base_service import BaseService, log_operation
from app.services.ledger.ledger_service import LedgerService
from app.utils.datetime_utils import is_business_day, utc_now
from app.utils.exceptions import BatchFailedError
from app.utils.money import ZERO


@dataclass
class AccrualTickResult:
    """Totals of one tick."""

    run_date: date
    skipped: bool = False
    accounts_processed: int = 0
    deposits_grown: int = 0
    deposits_completed: int = 0
    total_normal_deducted: Decimal = field(default_factory=lambda: ZERO)
    total_benefit_transferred: Decimal = field(default_factory=lambda: ZERO)
    total_normal_growth: Decimal = field(default_factory=lambda: ZERO)
    total_benefit_growth: Decimal = field(default_factory=lambda: ZERO)

    def to_dict(self) -> dict:
        """Serializable view for logs and job results."""
        data = asdict(self)
        data["run_date"] = self.run_date.isoformat()
        for key, value in data.items():
            if isinstance(value, Decimal):
                data[key] = str(value)
        return data


class AccrualService(BaseService):
    """Daily wallet accrual / deduction engine."""

    def __init__(
        self,
        session: AsyncSession,
        formula: AccrualFormula | None = None,
        batch_size: int | None = None,
        business_days_only: bool | None = None,
    ) -> None:
        """
        Initialize accrual service.

        Args:
            session: Async database session
            formula: Accrual formula (defaults to settings.accrual_formula)
            batch_size: Accounts per chunk (defaults to settings)
            business_days_only: Skip Saturday and Sunday (defaults to settings)
        """
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.deposit_repo = DepositRepository(session)
        self.ledger = LedgerService(session)
        self.formula = formula or get_formula(
            settings.accrual_formula, AccrualRates.from_settings()
        )
        self.batch_size = batch_size or settings.accrual_batch_size
        self.business_days_only = (
            settings.accrual_business_days_only
            if business_days_only is None
            else business_days_only
        )

    @log_operation
    async def run_daily_tick(self, run_date: date | None = None) -> AccrualTickResult:
        """
        Run one accrual tick over every account.

        Not idempotent for a calendar day: each call applies one more day.

        Args:
            run_date: Logical date of the tick (defaults to today, UTC)

        Returns:
            AccrualTickResult with totals

        Raises:
            BatchFailedError: Tick failed and was rolled back entirely
        """
        run_date = run_date or utc_now().date()
        result = AccrualTickResult(run_date=run_date)

        if self.business_days_only and not is_business_day(run_date):
            self.logger.info(
                "Accrual tick skipped: not a business day",
                extra={"run_date": run_date.isoformat()},
            )
            result.skipped = True
            return result

        stage = "load"
        current_account_id: int | None = None
        last_id = 0

        try:
            while True:
                stage = "load"
                accounts = await self.account_repo.find_chunk_after(
                    last_id, self.batch_size, for_update=True
                )
                if not accounts:
                    break

                deposits = await self.deposit_repo.get_active_for_accounts(
                    [account.id for account in accounts]
                )

                for account in accounts:
                    current_account_id = account.id
                    stage = "decay"
                    await self._apply_decay(account, result)
                    stage = "deposit_growth"
                    for deposit in deposits.get(account.id, []):
                        await self._grow_deposit(account, deposit, result)
                    result.accounts_processed += 1

                stage = "flush"
                await self.session.flush()
                last_id = accounts[-1].id

            stage = "commit"
            await self.session.commit()

        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                "Accrual tick failed, rolled back",
                extra={
                    "stage": stage,
                    "account_id": current_account_id,
                    "error": str(e),
                },
            )
            raise BatchFailedError(
                "Accrual tick failed",
                stage=stage,
                account_id=current_account_id,
                cause=type(e).__name__,
            ) from e

        self.logger.info("Accrual tick committed", extra=result.to_dict())
        return result

    async def _apply_decay(self, account: Account, result: AccrualTickResult) -> None:
        """Apply decay and optional growth computed on start-of-tick balances."""
        amounts = self.formula.compute(account)
        growth = self.formula.growth(account)

        if amounts.normal_deduction > 0:
            await self.ledger.debit(
                account,
                WalletBucket.NORMAL,
                amounts.normal_deduction,
                EntryKind.DAILY_DEDUCTION,
                "Daily normal wallet deduction",
            )
            result.total_normal_deducted += amounts.normal_deduction

        if amounts.benefit_transfer > 0:
            await self.ledger.transfer(
                account,
                WalletBucket.BENEFIT,
                WalletBucket.WITHDRAWAL,
                amounts.benefit_transfer,
                EntryKind.BENEFIT_TRANSFER,
                "Daily benefit release",
            )
            result.total_benefit_transferred += amounts.benefit_transfer

        if growth.normal > 0:
            await self.ledger.credit(
                account,
                WalletBucket.NORMAL,
                growth.normal,
                EntryKind.GROWTH,
                "Daily normal wallet growth",
            )
            result.total_normal_growth += growth.normal

        if growth.benefit > 0:
            await self.ledger.credit(
                account,
                WalletBucket.BENEFIT,
                growth.benefit,
                EntryKind.GROWTH,
                "Daily benefit wallet growth",
            )
            result.total_benefit_growth += growth.benefit

    async def _grow_deposit(
        self, account: Account, deposit: Deposit, result: AccrualTickResult
    ) -> None:
        """Credit one day of deposit growth and retire the deposit at its cap."""
        if deposit.is_capped:
            deposit.is_active = False
            return

        growth = deposit_growth(deposit)
        label = f"Deposit #{deposit.id} day {deposit.days_grown + 1}"

        if growth.normal > 0:
            await self.ledger.credit(
                account, WalletBucket.NORMAL, growth.normal,
                EntryKind.DEPOSIT_GROWTH, label,
            )
        if growth.benefit > 0:
            await self.ledger.credit(
                account, WalletBucket.BENEFIT, growth.benefit,
                EntryKind.DEPOSIT_GROWTH, label,
            )

        deposit.days_grown += 1
        deposit.total_normal_growth += growth.normal
        deposit.total_benefit_growth += growth.benefit
        deposit.last_growth_at = utc_now()
        result.deposits_grown += 1
        result.total_normal_growth += growth.normal
        result.total_benefit_growth += growth.benefit

        if deposit.is_capped:
            deposit.is_active = False
            result.deposits_completed += 1
            self.logger.info(
                "Deposit reached day cap",
                extra={
                    "deposit_id": deposit.id,
                    "account_id": account.id,
                    "day_cap": deposit.day_cap,
                },
            )
