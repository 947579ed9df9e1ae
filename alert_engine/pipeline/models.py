"""Data models for alert processing results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from alert_engine.domain.models import DeliveryChannel, DeliveryStatus


@dataclass
class AlertCycleResult:
    """
    Outcome of one trigger cycle for a single alert.

    Attributes:
        alert_id: Alert that was processed
        triggered_at: Reference time of the cycle (becomes last_triggered_at)
        postings_fetched: Recent postings returned by all sources
        duplicates_removed: Postings dropped by deduplication
        jobs_found: Ranked matches kept for delivery
        failed_sources: Sources that errored or timed out
        delivered: Whether at least one channel succeeded (None if nothing was dispatched)
        status: Delivery status written to the store, if a record was written
        channel: Channels that succeeded, if anything was dispatched
        delivery_id: Id of the stored delivery record
        error: Why the cycle was aborted; last_triggered_at is unchanged when set
        skipped: Whether the cycle did not run because the alert was not due
        duration_seconds: Time spent on the cycle
    """

    alert_id: int
    triggered_at: datetime
    postings_fetched: int = 0
    duplicates_removed: int = 0
    jobs_found: int = 0
    failed_sources: List[str] = field(default_factory=list)
    delivered: Optional[bool] = None
    status: Optional[DeliveryStatus] = None
    channel: Optional[DeliveryChannel] = None
    delivery_id: Optional[int] = None
    error: Optional[str] = None
    skipped: bool = False
    duration_seconds: float = 0.0

    @property
    def completed(self) -> bool:
        """True when the cycle ran to the end and advanced last_triggered_at."""
        return not self.skipped and self.error is None

    @property
    def failed(self) -> bool:
        """True when the cycle aborted or every delivery channel failed."""
        return self.error is not None or self.status == DeliveryStatus.FAILED


@dataclass
class RunResult:
    """
    Results of one "process all due alerts" invocation.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        alerts_considered: Active alerts loaded from the store
        alerts_due: Alerts that were due and processed
        cycles: Per-alert results in processing order
        skipped: Whether the run was coalesced into one already in progress
        error: Set when the run could not load alerts at all
    """

    run_started_at: datetime
    run_finished_at: datetime
    alerts_considered: int = 0
    alerts_due: int = 0
    cycles: List[AlertCycleResult] = field(default_factory=list)
    skipped: bool = False
    error: Optional[str] = None
    total_duration_seconds: float = 0.0

    def __post_init__(self):
        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    @property
    def completed_count(self) -> int:
        return sum(1 for cycle in self.cycles if cycle.completed)

    @property
    def failed_count(self) -> int:
        return sum(1 for cycle in self.cycles if cycle.failed)

    @property
    def deliveries_recorded(self) -> int:
        return sum(1 for cycle in self.cycles if cycle.delivery_id is not None)

    @property
    def total_jobs_found(self) -> int:
        return sum(cycle.jobs_found for cycle in self.cycles)

    @property
    def had_errors(self) -> bool:
        return self.error is not None or self.failed_count > 0
