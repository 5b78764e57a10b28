"""
Ledger scheduler.

Runs the periodic ledger jobs on an APScheduler AsyncIOScheduler:

- accrual tick (cron, ACCRUAL_CRON_HOUR:ACCRUAL_CRON_MINUTE)
- daily benefit profit sharing (cron, DAILY_PROFIT_SHARE_HOUR)
- level-based profit sharing (cron, LEVEL_BASED_PROFIT_SHARE_HOUR)
- color and number room resets (interval, GAME_RESET_INTERVAL_SECONDS)

Each job has its own in-flight guard: an invocation that starts while the
previous invocation of the same job is still running is skipped. Different
jobs may overlap. All state lives on the instance.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import settings
from app.models.enums import GameType
from app.tasks import ledger_tasks
from app.utils.datetime_utils import utc_now


ACCRUAL_JOB = "accrual_tick"
DAILY_SHARE_JOB = "daily_profit_sharing"
LEVEL_SHARE_JOB = "level_based_profit_sharing"
COLOR_RESET_JOB = "reset_color_rooms"
NUMBER_RESET_JOB = "reset_number_rooms"
REBUILD_CHAINS_JOB = "rebuild_chains"


def _next_run(job: Any) -> str | None:
    # pending jobs (scheduler not started) have no next_run_time yet
    next_run_time = getattr(job, "next_run_time", None)
    return next_run_time.isoformat() if next_run_time else None


@dataclass
class JobState:
    """Run bookkeeping of one job."""

    running: bool = False
    runs: int = 0
    skipped: int = 0
    failures: int = 0
    last_started_at: datetime | None = None
    last_finished_at: datetime | None = None
    last_success: bool | None = None
    last_error: str | None = None
    last_result: dict | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "runs": self.runs,
            "skipped": self.skipped,
            "failures": self.failures,
            "last_started_at": (
                self.last_started_at.isoformat() if self.last_started_at else None
            ),
            "last_finished_at": (
                self.last_finished_at.isoformat() if self.last_finished_at else None
            ),
            "last_success": self.last_success,
            "last_error": self.last_error,
        }


class LedgerScheduler:
    """
    Periodic ledger jobs with per-job in-flight guards.

    Example:
        scheduler = LedgerScheduler()
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        """
        Initialize ledger scheduler.

        Args:
            session_maker: Session factory for the jobs (defaults to the
                application session maker)
            scheduler: APScheduler instance (defaults to a UTC AsyncIOScheduler)
        """
        self.session_maker = session_maker
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._runners: dict[str, Callable[[], Awaitable[dict]]] = {
            ACCRUAL_JOB: lambda: ledger_tasks.run_accrual_tick(self.session_maker),
            DAILY_SHARE_JOB: lambda: ledger_tasks.run_daily_profit_sharing(
                self.session_maker
            ),
            LEVEL_SHARE_JOB: lambda: ledger_tasks.run_level_based_profit_sharing(
                self.session_maker
            ),
            COLOR_RESET_JOB: lambda: ledger_tasks.reset_game_rooms(
                GameType.COLOR, self.session_maker
            ),
            NUMBER_RESET_JOB: lambda: ledger_tasks.reset_game_rooms(
                GameType.NUMBER, self.session_maker
            ),
            REBUILD_CHAINS_JOB: lambda: ledger_tasks.rebuild_all_chains(
                self.session_maker
            ),
        }
        self.jobs: dict[str, JobState] = {name: JobState() for name in self._runners}
        self._jobs_registered = False

    @property
    def running(self) -> bool:
        """APScheduler is running."""
        return self.scheduler.running

    def in_flight(self) -> list[str]:
        """Names of jobs currently running."""
        return [name for name, state in self.jobs.items() if state.running]

    def register_jobs(self) -> None:
        """Add the periodic jobs to the scheduler."""
        if self._jobs_registered:
            return

        common = {"max_instances": 1, "coalesce": True, "replace_existing": True}

        self.scheduler.add_job(
            self.run_job,
            "cron",
            args=[ACCRUAL_JOB],
            hour=settings.accrual_cron_hour,
            minute=settings.accrual_cron_minute,
            id=ACCRUAL_JOB,
            name="Daily accrual tick",
            **common,
        )
        self.scheduler.add_job(
            self.run_job,
            "cron",
            args=[DAILY_SHARE_JOB],
            hour=settings.daily_profit_share_hour,
            minute=0,
            id=DAILY_SHARE_JOB,
            name="Daily benefit profit sharing",
            **common,
        )
        self.scheduler.add_job(
            self.run_job,
            "cron",
            args=[LEVEL_SHARE_JOB],
            hour=settings.level_based_profit_share_hour,
            minute=0,
            id=LEVEL_SHARE_JOB,
            name="Level-based profit sharing",
            **common,
        )
        for job_id, name in (
            (COLOR_RESET_JOB, "Color room reset"),
            (NUMBER_RESET_JOB, "Number room reset"),
        ):
            self.scheduler.add_job(
                self.run_job,
                "interval",
                args=[job_id],
                seconds=settings.game_reset_interval_seconds,
                id=job_id,
                name=name,
                **common,
            )

        self._jobs_registered = True
        logger.info(
            "Ledger jobs registered",
            extra={
                "accrual": f"{settings.accrual_cron_hour:02d}:{settings.accrual_cron_minute:02d}",
                "daily_share_hour": settings.daily_profit_share_hour,
                "level_share_hour": settings.level_based_profit_share_hour,
                "reset_interval_seconds": settings.game_reset_interval_seconds,
            },
        )

    async def run_job(self, name: str) -> dict | None:
        """
        Run one job unless it is already in flight.

        Args:
            name: Job name

        Returns:
            Job summary, or None when the invocation was skipped

        Raises:
            KeyError: Unknown job
            Exception: Whatever the job raised, after it was recorded
        """
        runner = self._runners[name]
        state = self.jobs[name]

        if state.running:
            state.skipped += 1
            logger.warning(
                f"Job {name} still running, skipping this invocation",
                extra={"job": name, "skipped": state.skipped},
            )
            return None

        state.running = True
        state.runs += 1
        state.last_started_at = utc_now()
        try:
            result = await runner()
            state.last_success = True
            state.last_error = None
            state.last_result = result
            return result
        except Exception as e:
            state.failures += 1
            state.last_success = False
            state.last_error = f"{type(e).__name__}: {e}"
            logger.error(
                f"Job {name} failed",
                extra={"job": name, "error": state.last_error},
            )
            raise
        finally:
            state.running = False
            state.last_finished_at = utc_now()

    # Manual triggers

    async def run_accrual_now(self) -> dict | None:
        """Run the accrual tick now."""
        return await self.run_job(ACCRUAL_JOB)

    async def run_daily_now(self) -> dict | None:
        """Run daily benefit profit sharing now."""
        return await self.run_job(DAILY_SHARE_JOB)

    async def run_level_based_now(self) -> dict | None:
        """Run level-based profit sharing now."""
        return await self.run_job(LEVEL_SHARE_JOB)

    async def reset_rooms_now(self, game_type: GameType | str) -> dict | None:
        """Run the room reset of game_type now."""
        job = COLOR_RESET_JOB if GameType(game_type) == GameType.COLOR else NUMBER_RESET_JOB
        return await self.run_job(job)

    async def rebuild_chains_now(self) -> dict | None:
        """Rebuild every ancestor snapshot now."""
        return await self.run_job(REBUILD_CHAINS_JOB)

    # Lifecycle

    def start(self) -> None:
        """Register jobs and start the scheduler."""
        self.register_jobs()
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Ledger scheduler started")

    def stop(self, wait: bool = False) -> None:
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Ledger scheduler stopped")

    def status(self) -> dict[str, Any]:
        """Scheduler state, next run times and per-job bookkeeping."""
        next_runs = {
            job.id: _next_run(job)
            for job in self.scheduler.get_jobs()
        }
        return {
            "running": self.running,
            "in_flight": self.in_flight(),
            "jobs": {
                name: {**state.to_dict(), "next_run_time": next_runs.get(name)}
                for name, state in self.jobs.items()
            },
        }
