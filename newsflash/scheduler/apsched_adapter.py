"""APScheduler wrapper driving periodic feed refreshes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..logging_conf import configure_logging

REFRESH_JOB_ID = "feed::refresh"


class APSchedulerAdapter:
    """Own the single auto-refresh job on the running asyncio loop.

    ``start`` must be called from inside the loop (APScheduler binds the
    scheduler to the loop it starts on).
    """

    def __init__(self) -> None:
        self.scheduler = AsyncIOScheduler()
        self.logger = configure_logging().bind(component="scheduler")

    @property
    def running(self) -> bool:
        return bool(getattr(self.scheduler, "running", False))

    def start(self) -> None:
        if self.running:
            return
        self.scheduler.start()
        self.logger.info("scheduler_started", jobs=len(self.list_jobs()))

    def shutdown(self) -> None:
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)
        self.logger.info("scheduler_stopped")

    def schedule_refresh(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        run_immediately: bool = True,
    ) -> None:
        """Run ``callback`` every ``interval_seconds``; a run still in progress is never doubled."""

        trigger = self._build_trigger(interval_seconds)
        first_run = datetime.now(trigger.timezone) if run_immediately else None
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=REFRESH_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=first_run,
        )
        self.logger.info("refresh_scheduled", job_id=REFRESH_JOB_ID, interval=interval_seconds)

    def cancel_refresh(self) -> None:
        try:
            self.scheduler.remove_job(REFRESH_JOB_ID)
        except JobLookupError:
            self.logger.debug("refresh_not_scheduled", job_id=REFRESH_JOB_ID)

    @staticmethod
    def _build_trigger(interval_seconds: float) -> IntervalTrigger:
        if isinstance(interval_seconds, bool) or not isinstance(interval_seconds, (int, float)):
            raise ValueError(f"Refresh interval must be a number of seconds, got {interval_seconds!r}")
        if interval_seconds <= 0:
            raise ValueError("Refresh interval must be positive")
        return IntervalTrigger(seconds=float(interval_seconds))

    def list_jobs(self) -> list[dict[str, Any]]:
        return [
            {
                "id": job.id,
                "next_run_time": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]


__all__ = ["APSchedulerAdapter", "REFRESH_JOB_ID"]
