"""
Integration tests for the daily accrual tick.

Covers:
- Decay and benefit release on start-of-tick balances
- Whole-tick rollback on a mid-batch failure
- Deposit growth until the day cap
- Business-day skip
"""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models.deposit import Deposit
from app.models.enums import EntryKind
from app.models.ledger_entry import LedgerEntry
from app.services.accrual.accrual_service import AccrualService
from app.services.accrual.formulas import AccrualRates, PercentOfBalanceFormula
from app.services.ledger.ledger_service import LedgerService
from app.utils.exceptions import BatchFailedError


WEDNESDAY = date(2026, 10, 14)
SATURDAY = date(2026, 10, 17)


@pytest.fixture
def formula():
    """0.5% normal decay and 1% benefit release, no growth."""
    return PercentOfBalanceFormula(
        AccrualRates(
            daily_normal_rate=Decimal("0.005"),
            daily_benefit_rate=Decimal("0.01"),
        )
    )


def _service(session, formula, **kwargs) -> AccrualService:
    return AccrualService(session, formula=formula, batch_size=2, **kwargs)


class TestDailyTick:
    """Decay and release."""

    @pytest.mark.asyncio
    async def test_amounts(self, db_session, create_account, formula):
        account = await create_account(normal="1000", benefit="500")

        result = await _service(db_session, formula).run_daily_tick(WEDNESDAY)

        assert result.accounts_processed == 1
        assert result.total_normal_deducted == Decimal("5.00")
        assert result.total_benefit_transferred == Decimal("5.00")
        assert account.normal_balance == Decimal("995.00")
        assert account.benefit_balance == Decimal("495.00")
        assert account.withdrawal_balance == Decimal("5.00")
        assert await LedgerService(db_session).reconcile(account.id) == {}

    @pytest.mark.asyncio
    async def test_processes_every_chunk(self, db_session, create_account, formula):
        accounts = [await create_account(benefit="100") for _ in range(5)]

        result = await _service(db_session, formula).run_daily_tick(WEDNESDAY)

        assert result.accounts_processed == 5
        for account in accounts:
            assert account.withdrawal_balance == Decimal("1.00")

    @pytest.mark.asyncio
    async def test_each_run_applies_one_more_day(
        self, db_session, create_account, formula
    ):
        account = await create_account(benefit="100")
        service = _service(db_session, formula)

        await service.run_daily_tick(WEDNESDAY)
        await service.run_daily_tick(WEDNESDAY)

        assert account.benefit_balance == Decimal("98.01")
        assert account.withdrawal_balance == Decimal("1.99")

    @pytest.mark.asyncio
    async def test_small_balances_floor_to_zero(self, db_session, create_account, formula):
        account = await create_account(normal="0.50", benefit="0.99")

        result = await _service(db_session, formula).run_daily_tick(WEDNESDAY)

        assert result.total_normal_deducted == Decimal("0")
        assert account.normal_balance == Decimal("0.50")
        assert account.benefit_balance == Decimal("0.99")


class TestTickAtomicity:
    """A failing account rolls back the whole tick."""

    @pytest.mark.asyncio
    async def test_mid_batch_failure_rolls_back(
        self, db_session, create_account, formula, monkeypatch
    ):
        first = await create_account(normal="1000", benefit="500")
        second = await create_account(normal="1000", benefit="500")
        third = await create_account(normal="1000", benefit="500")

        third_id = third.id
        service = _service(db_session, formula)
        original_transfer = service.ledger.transfer

        async def failing_transfer(account, *args, **kwargs):
            if account.id == third_id:
                raise RuntimeError("connection lost")
            return await original_transfer(account, *args, **kwargs)

        monkeypatch.setattr(service.ledger, "transfer", failing_transfer)

        with pytest.raises(BatchFailedError) as exc_info:
            await service.run_daily_tick(WEDNESDAY)

        assert exc_info.value.context["account_id"] == third_id
        assert exc_info.value.context["stage"] == "decay"

        for account in (first, second, third):
            await db_session.refresh(account)
            assert account.normal_balance == Decimal("1000.00")
            assert account.benefit_balance == Decimal("500.00")
            assert account.withdrawal_balance == Decimal("0.00")

        deductions = await db_session.execute(
            select(LedgerEntry).where(
                LedgerEntry.kind == EntryKind.DAILY_DEDUCTION.value
            )
        )
        assert deductions.scalars().all() == []


class TestDepositGrowth:
    """Deposit growth and day cap."""

    @pytest.mark.asyncio
    async def test_growth_until_cap(self, db_session, create_account, formula):
        account = await create_account()
        now = datetime.now(UTC)
        deposit = Deposit(
            account_id=account.id,
            principal=Decimal("1000"),
            normal_growth_rate=Decimal("0.05"),
            benefit_growth_rate=Decimal("0.10"),
            start_date=now,
            end_date=now + timedelta(days=2),
            day_cap=2,
            days_grown=0,
            is_active=True,
            total_normal_growth=Decimal("0"),
            total_benefit_growth=Decimal("0"),
        )
        db_session.add(deposit)
        await db_session.commit()

        service = _service(db_session, formula)

        first = await service.run_daily_tick(WEDNESDAY)
        assert first.deposits_grown == 1
        assert account.normal_balance == Decimal("50.00")
        assert account.benefit_balance == Decimal("100.00")

        second = await service.run_daily_tick(WEDNESDAY)
        assert second.deposits_completed == 1
        # decay is computed on the balances before this tick's growth
        assert account.normal_balance == Decimal("99.75")
        assert account.benefit_balance == Decimal("199.00")
        assert account.withdrawal_balance == Decimal("1.00")
        assert deposit.days_grown == 2
        assert deposit.is_active is False

        third = await service.run_daily_tick(WEDNESDAY)
        assert third.deposits_grown == 0
        assert deposit.total_normal_growth == Decimal("100.00")
        assert await LedgerService(db_session).reconcile(account.id) == {}


class TestBusinessDays:
    """Weekend skip."""

    @pytest.mark.asyncio
    async def test_weekend_skipped(self, db_session, create_account, formula):
        account = await create_account(normal="1000")

        result = await _service(
            db_session, formula, business_days_only=True
        ).run_daily_tick(SATURDAY)

        assert result.skipped is True
        assert account.normal_balance == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_weekday_runs(self, db_session, create_account, formula):
        account = await create_account(normal="1000")

        result = await _service(
            db_session, formula, business_days_only=True
        ).run_daily_tick(WEDNESDAY)

        assert result.skipped is False
        assert account.normal_balance == Decimal("995.00")
