"""APScheduler wrapper driving periodic refresh rounds."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..logging_conf import configure_logging

REFRESH_JOB_ID = "refresh::all"


class APSchedulerAdapter:
    """Manage the background refresh job."""

    def __init__(self, scheduler: BackgroundScheduler | None = None) -> None:
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_refresh(
        self,
        callback: Callable[[], object],
        interval_seconds: float,
        run_immediately: bool = True,
    ) -> None:
        """Run ``callback`` every ``interval_seconds``.

        A round still running when the next one is due is not started twice;
        missed runs collapse into one.
        """

        trigger = self._build_trigger(interval_seconds)
        options: dict = {}
        if run_immediately:
            options["next_run_time"] = datetime.now(timezone.utc)
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            **options,
        )
        self.logger.info(
            "job_scheduled",
            job=REFRESH_JOB_ID,
            interval=interval_seconds,
            run_immediately=run_immediately,
        )

    def remove_job(self, job_id: str = REFRESH_JOB_ID) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            self.logger.warning("job_remove_failed", job=job_id)

    def _build_trigger(self, interval_seconds: float) -> IntervalTrigger:
        if interval_seconds <= 0:
            raise ValueError("Refresh interval must be positive")
        return IntervalTrigger(seconds=float(interval_seconds))

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "REFRESH_JOB_ID"]
