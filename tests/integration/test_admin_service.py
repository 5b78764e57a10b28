"""
Integration tests for the admin trigger surface.

Domain errors come back as failed results; batch failures propagate.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.config.mlm_levels import LevelTables
from app.services.admin_service import AdminService
from app.services.deposit_service import DepositService
from app.utils.exceptions import BatchFailedError


@pytest.fixture
def admin(db_session):
    """Admin service with default level tables."""
    return AdminService(db_session, tables=LevelTables())


class TestRequests:
    """Deposit and withdrawal triggers."""

    @pytest.mark.asyncio
    async def test_approve_deposit(self, db_session, admin, create_account):
        account = await create_account()
        request = await DepositService(db_session).create_request(account.id, "100")

        result = await admin.approve_deposit(request.id, admin_id=1)

        assert result.success
        assert result.data["status"] == "approved"
        assert result.data["final_amount"] == Decimal("90.00")
        assert result.data["balances"]["normal"] == Decimal("90.00")

    @pytest.mark.asyncio
    async def test_missing_request_is_failed_result(self, admin):
        result = await admin.approve_deposit(404, admin_id=1)

        assert not result.success
        assert result.error_code == "not_found"
        assert result.data == {"request_id": 404}

    @pytest.mark.asyncio
    async def test_reject_withdrawal_without_reason(self, admin, create_account):
        account = await create_account(withdrawal="1000")
        request = await admin.withdrawals.request(account.id, "500", "upi", "a@upi")

        result = await admin.reject_withdrawal(request.id, admin_id=1, reason="")

        assert not result.success
        assert result.error_code == "validation_error"

    @pytest.mark.asyncio
    async def test_reject_withdrawal(self, admin, create_account):
        account = await create_account(withdrawal="1000")
        request = await admin.withdrawals.request(account.id, "500", "upi", "a@upi")

        result = await admin.reject_withdrawal(request.id, admin_id=1, reason="Duplicate")

        assert result.success
        assert result.data["balances"]["withdrawal"] == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_pending_requests(self, db_session, admin, create_account):
        account = await create_account(withdrawal="1000")
        deposit = await DepositService(db_session).create_request(account.id, "50")
        withdrawal = await admin.withdrawals.request(account.id, "500", "bank", "ACC-1")

        result = await admin.get_pending_requests()

        assert [row["request_id"] for row in result.data["deposits"]] == [deposit.id]
        assert result.data["withdrawals"][0]["request_id"] == withdrawal.id
        assert result.data["withdrawals"][0]["method"] == "bank"


class TestGamesAndRuns:
    """Game joins and scheduled-run triggers."""

    @pytest.mark.asyncio
    async def test_join_with_insufficient_balance(self, admin, create_account):
        await admin.games.create_room("color", "C1")
        account = await create_account(normal="1")

        result = await admin.join_room(account.id, "C1", "red")

        assert not result.success
        assert result.error_code == "insufficient_balance"

    @pytest.mark.asyncio
    async def test_join(self, admin, create_account):
        await admin.games.create_room("color", "C1")
        account = await create_account(normal="100", benefit="100")

        result = await admin.join_room(account.id, "C1", "red")

        assert result.success
        assert result.data["current_players"] == 1
        assert result.data["completed"] is False

    @pytest.mark.asyncio
    async def test_run_daily_accrual(self, admin, create_account):
        await create_account(normal="1000")

        result = await admin.run_daily_accrual()

        assert result.success
        assert result.data["accounts_processed"] == 1

    @pytest.mark.asyncio
    async def test_batch_failure_propagates(self, admin):
        admin.accrual.run_daily_tick = AsyncMock(
            side_effect=BatchFailedError("Accrual tick failed", stage="decay")
        )

        with pytest.raises(BatchFailedError):
            await admin.run_daily_accrual()

    @pytest.mark.asyncio
    async def test_profit_sharing_runs(self, admin, chain):
        daily = await admin.run_daily()
        level_based = await admin.run_level_based()

        assert daily.success
        assert daily.data["share_type"] == "daily_benefit"
        assert level_based.success


class TestReporting:
    """Read-only triggers."""

    @pytest.mark.asyncio
    async def test_system_totals(self, admin, create_account):
        await create_account(normal="10")
        await create_account(normal="5", benefit="1")

        result = await admin.get_system_totals()

        assert result.data["accounts"] == 2
        assert result.data["balances"]["normal"] == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_reconcile_account(self, admin, create_account):
        account = await create_account(normal="10")

        result = await admin.reconcile_account(account.id)

        assert result.data["consistent"] is True

    @pytest.mark.asyncio
    async def test_network_stats(self, admin, chain):
        result = await admin.get_network_stats(chain[0].id)
        assert result.data["total_downline"] == 3

    @pytest.mark.asyncio
    async def test_rebuild_chain(self, admin, chain):
        leaf = chain[3]
        result = await admin.rebuild_chain(leaf.id)
        assert result.data["mlm_level"] == 3

    @pytest.mark.asyncio
    async def test_rebuild_missing_account(self, admin):
        result = await admin.rebuild_chain(404)
        assert result.error_code == "not_found"

    @pytest.mark.asyncio
    async def test_level_structure(self, admin):
        structure = admin.get_level_structure()
        assert structure["tables"]["mlm10"]["depth"] == 10
        assert structure["routes"]["game_win"]["wallet"] == "withdrawal"
