"""
Tests for the ledger scheduler.

Covers:
- Job registration
- Per-job in-flight guard
- Failure bookkeeping
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from jobs.scheduler import (
    ACCRUAL_JOB,
    COLOR_RESET_JOB,
    DAILY_SHARE_JOB,
    LEVEL_SHARE_JOB,
    NUMBER_RESET_JOB,
    REBUILD_CHAINS_JOB,
    LedgerScheduler,
)


@pytest.fixture
def scheduler():
    """Scheduler that is never started."""
    return LedgerScheduler(
        session_maker=AsyncMock(), scheduler=AsyncIOScheduler(timezone="UTC")
    )


class TestRegistration:
    """Periodic job registration."""

    def test_register_jobs(self, scheduler):
        scheduler.register_jobs()

        job_ids = {job.id for job in scheduler.scheduler.get_jobs()}
        assert job_ids == {
            ACCRUAL_JOB,
            DAILY_SHARE_JOB,
            LEVEL_SHARE_JOB,
            COLOR_RESET_JOB,
            NUMBER_RESET_JOB,
        }

    def test_register_twice_is_noop(self, scheduler):
        scheduler.register_jobs()
        scheduler.register_jobs()
        assert len(scheduler.scheduler.get_jobs()) == 5

    def test_rebuild_is_manual_only(self, scheduler):
        scheduler.register_jobs()
        assert scheduler.scheduler.get_job(REBUILD_CHAINS_JOB) is None
        assert REBUILD_CHAINS_JOB in scheduler.jobs


class TestRunJob:
    """In-flight guard and bookkeeping."""

    @pytest.mark.asyncio
    async def test_success(self, scheduler):
        scheduler._runners[ACCRUAL_JOB] = AsyncMock(return_value={"processed": 2})

        result = await scheduler.run_accrual_now()

        assert result == {"processed": 2}
        state = scheduler.jobs[ACCRUAL_JOB]
        assert state.runs == 1
        assert state.last_success is True
        assert not state.running

    @pytest.mark.asyncio
    async def test_overlapping_invocation_skipped(self, scheduler):
        release = asyncio.Event()
        started = asyncio.Event()

        async def slow_runner():
            started.set()
            await release.wait()
            return {"done": True}

        scheduler._runners[DAILY_SHARE_JOB] = slow_runner

        first = asyncio.create_task(scheduler.run_daily_now())
        await started.wait()

        assert scheduler.in_flight() == [DAILY_SHARE_JOB]
        assert await scheduler.run_daily_now() is None

        release.set()
        assert await first == {"done": True}

        state = scheduler.jobs[DAILY_SHARE_JOB]
        assert state.runs == 1
        assert state.skipped == 1
        assert scheduler.in_flight() == []

    @pytest.mark.asyncio
    async def test_different_jobs_may_overlap(self, scheduler):
        release = asyncio.Event()
        started = asyncio.Event()

        async def slow_runner():
            started.set()
            await release.wait()
            return {}

        scheduler._runners[ACCRUAL_JOB] = slow_runner
        scheduler._runners[COLOR_RESET_JOB] = AsyncMock(return_value={"rooms_reset": 1})

        first = asyncio.create_task(scheduler.run_accrual_now())
        await started.wait()

        assert await scheduler.reset_rooms_now("color") == {"rooms_reset": 1}

        release.set()
        await first

    @pytest.mark.asyncio
    async def test_failure_recorded_and_raised(self, scheduler):
        scheduler._runners[LEVEL_SHARE_JOB] = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await scheduler.run_level_based_now()

        state = scheduler.jobs[LEVEL_SHARE_JOB]
        assert state.failures == 1
        assert state.last_success is False
        assert state.last_error == "RuntimeError: boom"
        assert not state.running

    @pytest.mark.asyncio
    async def test_guard_released_after_failure(self, scheduler):
        scheduler._runners[NUMBER_RESET_JOB] = AsyncMock(
            side_effect=[RuntimeError("boom"), {"rooms_reset": 0}]
        )

        with pytest.raises(RuntimeError):
            await scheduler.reset_rooms_now("number")

        assert await scheduler.reset_rooms_now("number") == {"rooms_reset": 0}

    @pytest.mark.asyncio
    async def test_unknown_job(self, scheduler):
        with pytest.raises(KeyError):
            await scheduler.run_job("nightly_backup")


class TestStatus:
    """Status report."""

    def test_status_before_start(self, scheduler):
        status = scheduler.status()

        assert status["running"] is False
        assert status["in_flight"] == []
        assert set(status["jobs"]) == set(scheduler.jobs)
        assert status["jobs"][ACCRUAL_JOB]["runs"] == 0

    def test_status_with_pending_jobs(self, scheduler):
        scheduler.register_jobs()
        status = scheduler.status()
        assert status["jobs"][ACCRUAL_JOB]["next_run_time"] is None
