"""
Withdrawal service.

The requested amount is reserved when the request is created: the
withdrawal wallet is debited at once with a pending entry. Approval
completes that entry, rejection cancels it and refunds the amount.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.mlm_levels import LevelTables
from app.config.settings import settings
from app.models.enums import (
    EntryKind,
    EntryStatus,
    RequestStatus,
    ShareType,
    WalletBucket,
    WithdrawalMethod,
)
from app.models.withdrawal_request import WithdrawalRequest
from app.repositories.request_repository import WithdrawalRequestRepository
from app.services.base_service import BaseService
from app.services.ledger.ledger_service import LedgerService, parse_amount
from app.services.referral.distribution_engine import ProfitDistributionEngine
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import NotFoundError, ValidationError
from app.utils.money import percent_of


class WithdrawalService(BaseService):
    """Withdrawal requests: reservation, approval and refund."""

    def __init__(
        self, session: AsyncSession, tables: LevelTables | None = None
    ) -> None:
        """
        Initialize withdrawal service.

        Args:
            session: Async database session
            tables: Level tables for withdrawal bonuses
        """
        super().__init__(session)
        self.request_repo = WithdrawalRequestRepository(session)
        self.ledger = LedgerService(session)
        self.distribution = ProfitDistributionEngine(session, tables)

    @with_auto_commit
    async def request(
        self,
        account_id: int,
        amount: Decimal | int | str,
        method: WithdrawalMethod | str,
        destination: str,
    ) -> WithdrawalRequest:
        """
        Create a withdrawal request and reserve its amount.

        Args:
            account_id: Requesting account
            amount: Amount to withdraw from the withdrawal wallet
            method: Payout method
            destination: UPI ID or bank account reference

        Returns:
            Pending request

        Raises:
            ValidationError: Below minimum, bad method or empty destination
            InsufficientBalanceError: Withdrawal wallet too low
            NotFoundError: Account does not exist
        """
        value = parse_amount(amount)
        if value < settings.min_withdrawal_amount:
            raise ValidationError(
                f"Minimum withdrawal amount is {settings.min_withdrawal_amount}",
                amount=str(value),
            )
        try:
            method = WithdrawalMethod(method)
        except ValueError as e:
            raise ValidationError("Unknown withdrawal method", method=str(method)) from e
        if not destination or not destination.strip():
            raise ValidationError("Withdrawal destination is required")

        entry = await self.ledger.debit(
            account_id,
            WalletBucket.WITHDRAWAL,
            value,
            EntryKind.WITHDRAWAL,
            f"Withdrawal via {method.value}",
            status=EntryStatus.PENDING,
        )

        request = WithdrawalRequest(
            account_id=account_id,
            amount=value,
            wallet=WalletBucket.WITHDRAWAL.value,
            method=method.value,
            destination=destination.strip(),
            status=RequestStatus.PENDING.value,
            reservation_entry_id=entry.id,
        )
        self.session.add(request)
        await self.session.flush()

        self.logger.info(
            "Withdrawal requested",
            extra={
                "request_id": request.id,
                "account_id": account_id,
                "amount": str(value),
                "method": method.value,
            },
        )
        return request

    async def _get_pending(self, request_id: int) -> WithdrawalRequest:
        request = await self.request_repo.get_for_update(request_id)
        if request is None:
            raise NotFoundError("Withdrawal request not found", request_id=request_id)
        if request.status != RequestStatus.PENDING.value:
            raise ValidationError(
                "Withdrawal request is not pending",
                request_id=request_id,
                status=request.status,
            )
        return request

    @with_auto_commit
    async def approve(
        self, request_id: int, admin_id: int, remarks: str | None = None
    ) -> WithdrawalRequest:
        """
        Approve a pending withdrawal.

        The reserved amount stays debited. The fee is recorded on the
        request; the payout itself happens outside the ledger.

        Raises:
            NotFoundError: Request missing
            ValidationError: Request is not pending
        """
        request = await self._get_pending(request_id)

        fee = percent_of(request.amount, settings.withdrawal_fee_percent)
        final_amount = request.amount - fee

        if request.reservation_entry_id is not None:
            await self.ledger.set_entry_status(
                request.reservation_entry_id, EntryStatus.COMPLETED
            )

        request.status = RequestStatus.APPROVED.value
        request.fee_amount = fee
        request.final_amount = final_amount
        request.remarks = remarks
        request.processed_by = admin_id
        request.processed_at = utc_now()
        await self.session.flush()

        for share_type in (
            ShareType.WITHDRAWAL_BONUS,
            ShareType.WITHDRAWAL_REFERRAL_BONUS,
        ):
            await self.distribution.distribute(
                request.account_id, request.amount, share_type,
                f"{share_type.value} from withdrawal #{request.id}",
            )
        await self.session.flush()

        self.logger.info(
            "Withdrawal approved",
            extra={
                "request_id": request.id,
                "account_id": request.account_id,
                "amount": str(request.amount),
                "fee": str(fee),
                "final_amount": str(final_amount),
                "admin_id": admin_id,
            },
        )
        return request

    @with_auto_commit
    async def reject(
        self, request_id: int, admin_id: int, reason: str
    ) -> WithdrawalRequest:
        """
        Reject a pending withdrawal and refund the reserved amount.

        Args:
            request_id: Withdrawal request ID
            admin_id: Rejecting admin
            reason: Rejection reason, required

        Raises:
            ValidationError: Empty reason or request is not pending
            NotFoundError: Request missing
        """
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required", request_id=request_id)

        request = await self._get_pending(request_id)

        await self.ledger.credit(
            request.account_id,
            request.wallet,
            request.amount,
            EntryKind.WITHDRAWAL_REFUND,
            f"Withdrawal #{request.id} rejected: {reason.strip()}",
        )
        if request.reservation_entry_id is not None:
            await self.ledger.set_entry_status(
                request.reservation_entry_id, EntryStatus.CANCELLED
            )

        request.status = RequestStatus.REJECTED.value
        request.remarks = reason.strip()
        request.processed_by = admin_id
        request.processed_at = utc_now()
        await self.session.flush()

        self.logger.info(
            "Withdrawal rejected",
            extra={
                "request_id": request.id,
                "account_id": request.account_id,
                "refunded": str(request.amount),
                "admin_id": admin_id,
            },
        )
        return request
