"""Periodic driver that asks the orchestrator to process due alerts."""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from alert_engine.logging import get_logger

logger = get_logger(__name__, component="scheduler")

JOB_ID = "process-due-alerts"


class SchedulerService:
    """Runs a callable on a fixed interval using APScheduler.

    The job runs in a background thread; the main thread stays free to handle
    signals. Overlapping runs are prevented by APScheduler (max_instances=1)
    and late runs are coalesced into one.
    """

    def __init__(
        self,
        run_callable: Callable[[], Any],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """Initialize the scheduler service.

        Args:
            run_callable: Called on every tick (e.g. orchestrator.process_due_alerts)
            interval_seconds: Seconds between ticks
            shutdown_event: Set when the service shuts down
            scheduler: Optional pre-built scheduler (for testing)
        """
        self.run_callable = run_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event
        self.scheduler = scheduler or BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """Register the job and start the scheduler; the first run is immediate."""
        next_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self.run_callable,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=JOB_ID,
            name="Process due job alerts",
            replace_existing=True,
            next_run_time=next_run,
        )
        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """Stop the scheduler.

        Args:
            wait: Wait for a running job to finish before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """Next scheduled run, or None if the job is not registered."""
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
