"""
Deposit service.

Deposit requests and their approval. Approval charges the deposit fee,
credits the normal and benefit wallets, opens a growing Deposit and
triggers the deposit bonuses of the account's upline.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.mlm_levels import LevelTables
from app.config.settings import settings
from app.models.deposit import Deposit
from app.models.deposit_request import DepositRequest
from app.models.enums import EntryKind, RequestStatus, ShareType, WalletBucket
from app.repositories.request_repository import DepositRequestRepository
from app.services.base_service import BaseService
from app.services.ledger.ledger_service import LedgerService, parse_amount
from app.services.referral.distribution_engine import ProfitDistributionEngine
from app.utils.datetime_utils import add_days, utc_now
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import NotFoundError, ValidationError
from app.utils.money import fraction_of, percent_of


class DepositService(BaseService):
    """Deposit service handles deposit requests and their approval."""

    def __init__(
        self, session: AsyncSession, tables: LevelTables | None = None
    ) -> None:
        """
        Initialize deposit service.

        Args:
            session: Async database session
            tables: Level tables for deposit bonuses
        """
        super().__init__(session)
        self.request_repo = DepositRequestRepository(session)
        self.ledger = LedgerService(session)
        self.distribution = ProfitDistributionEngine(session, tables)

    @with_auto_commit
    async def create_request(
        self, account_id: int, amount: Decimal | int | str
    ) -> DepositRequest:
        """
        Create a pending deposit request.

        Args:
            account_id: Requesting account
            amount: Gross deposit amount

        Returns:
            Pending request

        Raises:
            ValidationError: Amount not positive or below the minimum
            NotFoundError: Account does not exist
        """
        value = parse_amount(amount)
        if value < settings.minimum_deposit_amount:
            raise ValidationError(
                f"Minimum deposit amount is {settings.minimum_deposit_amount}",
                amount=str(value),
            )

        if await self.ledger.account_repo.get_by_id(account_id) is None:
            raise NotFoundError("Account not found", account_id=account_id)

        request = DepositRequest(
            account_id=account_id,
            amount=value,
            status=RequestStatus.PENDING.value,
        )
        self.session.add(request)
        await self.session.flush()

        self.logger.info(
            "Deposit request created",
            extra={"request_id": request.id, "account_id": account_id, "amount": str(value)},
        )
        return request

    async def _get_pending(self, request_id: int) -> DepositRequest:
        request = await self.request_repo.get_for_update(request_id)
        if request is None:
            raise NotFoundError("Deposit request not found", request_id=request_id)
        if request.status != RequestStatus.PENDING.value:
            raise ValidationError(
                "Deposit request is not pending",
                request_id=request_id,
                status=request.status,
            )
        return request

    @with_auto_commit
    async def approve(self, request_id: int, admin_id: int) -> DepositRequest:
        """
        Approve a pending deposit request.

        Args:
            request_id: Deposit request ID
            admin_id: Approving admin

        Returns:
            Approved request with fee, final amount and deposit filled

        Raises:
            NotFoundError: Request or account missing
            ValidationError: Request is not pending
        """
        request = await self._get_pending(request_id)
        is_first = (
            await self.request_repo.count_approved_for_account(request.account_id)
        ) == 0

        fee = percent_of(request.amount, settings.deposit_fee_percent)
        final_amount = request.amount - fee
        benefit_amount = fraction_of(final_amount, settings.deposit_benefit_multiplier)

        account = await self.ledger.lock_account(request.account_id)
        if final_amount > 0:
            await self.ledger.credit(
                account, WalletBucket.NORMAL, final_amount, EntryKind.DEPOSIT,
                f"Deposit request #{request.id} approved",
            )
        if benefit_amount > 0:
            await self.ledger.credit(
                account, WalletBucket.BENEFIT, benefit_amount, EntryKind.DEPOSIT_BENEFIT,
                f"Deposit request #{request.id} benefit",
            )

        now = utc_now()
        deposit = Deposit(
            account_id=account.id,
            principal=final_amount,
            normal_growth_rate=settings.deposit_normal_growth_rate,
            benefit_growth_rate=settings.deposit_benefit_growth_rate,
            start_date=now,
            end_date=add_days(now, settings.deposit_day_cap),
            day_cap=settings.deposit_day_cap,
            days_grown=0,
            is_active=True,
        )
        self.session.add(deposit)

        account.total_deposits += request.amount
        account.initial_normal_balance += final_amount
        account.initial_benefit_balance += benefit_amount

        request.status = RequestStatus.APPROVED.value
        request.fee_amount = fee
        request.final_amount = final_amount
        request.processed_by = admin_id
        request.processed_at = now
        await self.session.flush()
        request.deposit_id = deposit.id

        await self.distribution.distribute(
            account, final_amount, ShareType.DEPOSIT_BONUS,
            f"deposit bonus from request #{request.id}",
        )
        if is_first:
            await self.distribution.distribute(
                account, request.amount, ShareType.FIRST_DEPOSIT_BONUS,
                f"first deposit bonus from request #{request.id}",
            )
        await self.session.flush()

        self.logger.info(
            "Deposit approved",
            extra={
                "request_id": request.id,
                "account_id": account.id,
                "amount": str(request.amount),
                "fee": str(fee),
                "final_amount": str(final_amount),
                "benefit_amount": str(benefit_amount),
                "first_deposit": is_first,
                "admin_id": admin_id,
            },
        )
        return request

    @with_auto_commit
    async def reject(
        self, request_id: int, admin_id: int, reason: str | None = None
    ) -> DepositRequest:
        """
        Reject a pending deposit request. Nothing was credited, nothing moves.

        Raises:
            NotFoundError: Request missing
            ValidationError: Request is not pending
        """
        request = await self._get_pending(request_id)
        request.status = RequestStatus.REJECTED.value
        request.rejection_reason = reason
        request.processed_by = admin_id
        request.processed_at = utc_now()
        await self.session.flush()

        self.logger.info(
            "Deposit rejected",
            extra={"request_id": request.id, "admin_id": admin_id, "reason": reason},
        )
        return request
