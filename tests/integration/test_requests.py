"""
Integration tests for deposit and withdrawal requests.

Covers:
- Deposit approval credits, deposit record and referral bonuses
- First-deposit bonus only once
- Withdrawal reservation, approval and refund on rejection
"""

from decimal import Decimal

import pytest

from app.config.mlm_levels import LevelTables
from app.models.deposit import Deposit
from app.models.enums import EntryStatus, RequestStatus
from app.models.ledger_entry import LedgerEntry
from app.services.deposit_service import DepositService
from app.services.ledger.ledger_service import LedgerService
from app.services.withdrawal_service import WithdrawalService
from app.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)


ADMIN_ID = 1


class TestDepositRequests:
    """Deposit request lifecycle."""

    @pytest.mark.asyncio
    async def test_approve(self, db_session, create_account):
        sponsor = await create_account()
        account = await create_account(referrer=sponsor)
        service = DepositService(db_session, LevelTables())

        request = await service.create_request(account.id, "1000")
        approved = await service.approve(request.id, ADMIN_ID)

        assert approved.status == RequestStatus.APPROVED.value
        assert approved.fee_amount == Decimal("100.00")
        assert approved.final_amount == Decimal("900.00")
        assert approved.processed_by == ADMIN_ID

        assert account.normal_balance == Decimal("900.00")
        assert account.benefit_balance == Decimal("1800.00")
        assert account.total_deposits == Decimal("1000.00")

        deposit = await db_session.get(Deposit, approved.deposit_id)
        assert deposit.principal == Decimal("900.00")
        assert deposit.is_active

        # 1% deposit bonus on the net amount to benefit, 6% first-deposit bonus
        # on the gross amount to normal
        assert sponsor.benefit_balance == Decimal("9.00")
        assert sponsor.normal_balance == Decimal("60.00")

        for account_id in (account.id, sponsor.id):
            assert await LedgerService(db_session).reconcile(account_id) == {}

    @pytest.mark.asyncio
    async def test_first_deposit_bonus_once(self, db_session, create_account):
        sponsor = await create_account()
        account = await create_account(referrer=sponsor)
        service = DepositService(db_session, LevelTables())

        for _ in range(2):
            request = await service.create_request(account.id, "1000")
            await service.approve(request.id, ADMIN_ID)

        assert sponsor.normal_balance == Decimal("60.00")
        assert sponsor.benefit_balance == Decimal("18.00")

    @pytest.mark.asyncio
    async def test_approve_twice(self, db_session, create_account):
        account = await create_account()
        service = DepositService(db_session)
        request = await service.create_request(account.id, "100")
        request_id = request.id
        await service.approve(request_id, ADMIN_ID)

        with pytest.raises(ValidationError, match="not pending"):
            await service.approve(request_id, ADMIN_ID)

    @pytest.mark.asyncio
    async def test_reject_moves_nothing(self, db_session, create_account):
        account = await create_account()
        service = DepositService(db_session)
        request = await service.create_request(account.id, "100")

        rejected = await service.reject(request.id, ADMIN_ID, "Payment not received")

        assert rejected.status == RequestStatus.REJECTED.value
        assert rejected.rejection_reason == "Payment not received"
        assert account.normal_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            await DepositService(db_session).create_request(404, "100")

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, db_session, create_account):
        account = await create_account()
        with pytest.raises(ValidationError):
            await DepositService(db_session).create_request(account.id, "0")


class TestWithdrawalRequests:
    """Withdrawal request lifecycle."""

    @pytest.mark.asyncio
    async def test_request_reserves_amount(self, db_session, create_account):
        account = await create_account(withdrawal="1000")

        request = await WithdrawalService(db_session).request(
            account.id, "600", "upi", "user@upi"
        )

        assert request.status == RequestStatus.PENDING.value
        assert account.withdrawal_balance == Decimal("400.00")
        entry = await db_session.get(LedgerEntry, request.reservation_entry_id)
        assert entry.status == EntryStatus.PENDING.value
        assert entry.amount == Decimal("-600.00")
        assert await LedgerService(db_session).reconcile(account.id) == {}

    @pytest.mark.asyncio
    async def test_approve(self, db_session, create_account):
        sponsor = await create_account()
        account = await create_account(referrer=sponsor, withdrawal="1000")
        service = WithdrawalService(db_session, LevelTables())
        request = await service.request(account.id, "600", "bank", "IFSC0001/123")

        approved = await service.approve(request.id, ADMIN_ID, remarks="Paid")

        assert approved.status == RequestStatus.APPROVED.value
        assert approved.fee_amount == Decimal("60.00")
        assert approved.final_amount == Decimal("540.00")
        assert account.withdrawal_balance == Decimal("400.00")

        entry = await db_session.get(LedgerEntry, approved.reservation_entry_id)
        assert entry.status == EntryStatus.COMPLETED.value

        # 4% level-1 withdrawal bonus and 10% direct referral bonus
        assert sponsor.withdrawal_balance == Decimal("24.00")
        assert sponsor.normal_balance == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_reject_refunds(self, db_session, create_account):
        account = await create_account(withdrawal="1000")
        service = WithdrawalService(db_session)
        request = await service.request(account.id, "600", "upi", "user@upi")

        rejected = await service.reject(request.id, ADMIN_ID, "Invalid UPI ID")

        assert rejected.status == RequestStatus.REJECTED.value
        assert rejected.remarks == "Invalid UPI ID"
        assert account.withdrawal_balance == Decimal("1000.00")

        entry = await db_session.get(LedgerEntry, rejected.reservation_entry_id)
        assert entry.status == EntryStatus.CANCELLED.value
        assert await LedgerService(db_session).reconcile(account.id) == {}

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, db_session, create_account):
        account = await create_account(withdrawal="1000")
        service = WithdrawalService(db_session)
        request = await service.request(account.id, "600", "upi", "user@upi")
        request_id = request.id

        with pytest.raises(ValidationError, match="reason"):
            await service.reject(request_id, ADMIN_ID, "  ")

    @pytest.mark.asyncio
    async def test_below_minimum(self, db_session, create_account):
        account = await create_account(withdrawal="1000")
        with pytest.raises(ValidationError, match="Minimum"):
            await WithdrawalService(db_session).request(
                account.id, "499.99", "upi", "user@upi"
            )

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, db_session, create_account):
        account = await create_account(withdrawal="550")
        account_id = account.id

        with pytest.raises(InsufficientBalanceError):
            await WithdrawalService(db_session).request(
                account_id, "600", "upi", "user@upi"
            )

        balances = await LedgerService(db_session).get_balances(account_id)
        assert balances["withdrawal"] == Decimal("550.00")

    @pytest.mark.asyncio
    async def test_unknown_method(self, db_session, create_account):
        account = await create_account(withdrawal="1000")
        with pytest.raises(ValidationError, match="method"):
            await WithdrawalService(db_session).request(
                account.id, "600", "paypal", "user@example.com"
            )

    @pytest.mark.asyncio
    async def test_empty_destination(self, db_session, create_account):
        account = await create_account(withdrawal="1000")
        with pytest.raises(ValidationError, match="destination"):
            await WithdrawalService(db_session).request(account.id, "600", "upi", " ")
