"""APScheduler wrapper triggering pipeline runs."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from .config import SchedulerConfig
from .utils.logging import log_event

RUN_JOB_ID = "pipeline::run"
STARTUP_JOB_ID = "pipeline::startup"


class PipelineScheduler:
    """Run the pipeline once at start, then on a cron schedule.

    The recurring job is limited to one instance at a time; a manual trigger
    can still overlap a scheduled run, which the orchestrator's run lock
    handles.
    """

    def __init__(
        self,
        cfg: SchedulerConfig,
        run: Callable[[], object],
        scheduler: BaseScheduler | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cfg = cfg
        self.run = run
        self.scheduler = scheduler or BackgroundScheduler()
        self.logger = logger or logging.getLogger(__name__)
        self.started = False

    def build_trigger(self) -> CronTrigger:
        return CronTrigger.from_crontab(self.cfg.cron, timezone=self.cfg.timezone)

    def start(self) -> None:
        if self.started:
            return
        self.scheduler.add_job(
            self.run,
            trigger=self.build_trigger(),
            id=RUN_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        if self.cfg.run_on_start:
            self.trigger_now(job_id=STARTUP_JOB_ID)
        log_event(
            self.logger,
            f"Scheduler started ({self.cfg.cron})",
            event="scheduler_started",
            cron=self.cfg.cron,
            run_on_start=self.cfg.run_on_start,
        )
        self.started = True
        # Blocking schedulers only return from start() on shutdown
        self.scheduler.start()

    def trigger_now(self, job_id: str | None = None) -> None:
        """Queue one immediate run."""
        self.scheduler.add_job(
            self.run,
            trigger=DateTrigger(),
            id=job_id or f"pipeline::manual::{datetime.now().isoformat()}",
            misfire_grace_time=None,
            replace_existing=True,
        )

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            log_event(self.logger, "Scheduler stopped", event="scheduler_stopped")

    def list_jobs(self) -> list[dict]:
        return [
            {"id": job.id, "next_run_time": job.next_run_time, "trigger": str(job.trigger)}
            for job in self.scheduler.get_jobs()
        ]


__all__ = ["PipelineScheduler", "RUN_JOB_ID", "STARTUP_JOB_ID"]
