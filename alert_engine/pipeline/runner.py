"""Alert orchestration: due alerts → sources → dedup → scoring → delivery."""

import contextvars
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import uuid4

from alert_engine.dedup import Deduplicator
from alert_engine.domain.models import Alert, Criteria, DeliveryRecord, build_criteria
from alert_engine.logging import get_logger, log_context
from alert_engine.matching import MatchResult, MatchScorer
from alert_engine.notifications import NotificationDispatcher
from alert_engine.persistence import AlertStore, PersistenceError, RecordNotFoundError
from alert_engine.scheduler import TriggerScheduler
from alert_engine.sources import SourceAggregator
from alert_engine.utils.timestamps import ensure_utc, utc_now

from .models import AlertCycleResult, RunResult

logger = get_logger(__name__, component="orchestrator")

MAX_RECORDED_POSTINGS = 20


class AlertOrchestrator:
    """
    Runs trigger cycles for saved alerts.

    A cycle loads the owner, aggregates postings from all sources, removes
    duplicates, ranks the rest against the alert's criteria, dispatches the
    top results, records the delivery, and finally advances
    last_triggered_at. A cycle that aborts leaves last_triggered_at
    unchanged, so the alert stays eligible on the next run.
    """

    def __init__(
        self,
        store: AlertStore,
        aggregator: SourceAggregator,
        dispatcher: NotificationDispatcher,
        scheduler: TriggerScheduler,
        deduplicator: Optional[Deduplicator] = None,
        scorer: Optional[MatchScorer] = None,
        max_workers: int = 4,
        max_results: int = 50,
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Alert store (alerts, owners, delivery records)
            aggregator: Fans out to job sources
            dispatcher: Delivers ranked matches
            scheduler: Decides which alerts are due
            deduplicator: Collapses duplicate postings
            scorer: Scores and ranks postings
            max_workers: Alerts processed concurrently per run
            max_results: Ranked matches kept per cycle
        """
        self.store = store
        self.aggregator = aggregator
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.deduplicator = deduplicator or Deduplicator()
        self.scorer = scorer or MatchScorer()
        self.max_workers = max_workers
        self.max_results = max_results
        self.last_run_at: Optional[datetime] = None
        self._lock = threading.Lock()

    @property
    def is_processing(self) -> bool:
        """Whether a process_due_alerts run is in progress."""
        return self._lock.locked()

    @property
    def status(self) -> Dict[str, Any]:
        """Processing flag and finish time of the last completed run."""
        return {"is_processing": self.is_processing, "last_run_at": self.last_run_at}

    def process_due_alerts(self, now: Optional[datetime] = None) -> RunResult:
        """
        Process every active alert that is due.

        Overlapping calls are coalesced: if a run is already in progress this
        returns a skipped result immediately.

        Args:
            now: Reference time for due checks and last_triggered_at (defaults to now)

        Returns:
            RunResult with one AlertCycleResult per due alert
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Alert run skipped: previous run still in progress",
                    extra={"event": "orchestrator.run.skipped", "reason": "lock_held"},
                )
            return RunResult(run_started_at=run_started_at, run_finished_at=utc_now(), skipped=True)

        try:
            with log_context(run_id=run_id):
                now = ensure_utc(now) or run_started_at
                result = self._run(run_started_at, now)
                self.last_run_at = result.run_finished_at
                return result
        finally:
            self._lock.release()

    def _run(self, run_started_at: datetime, now: datetime) -> RunResult:
        try:
            active = self.store.list_active_alerts()
        except PersistenceError as e:
            logger.error(
                f"Could not load active alerts: {e}",
                extra={"event": "orchestrator.run.failed", "error_type": type(e).__name__},
            )
            return RunResult(run_started_at=run_started_at, run_finished_at=utc_now(), error=str(e))

        due = self.scheduler.due_alerts(active, now)
        logger.info(
            f"Alert run started: {len(due)} of {len(active)} active alerts due",
            extra={
                "event": "orchestrator.run.started",
                "active_count": len(active),
                "due_count": len(due),
            },
        )

        cycles: List[AlertCycleResult] = []
        if due:
            workers = max(1, min(self.max_workers, len(due)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="alert") as pool:
                futures = [
                    pool.submit(contextvars.copy_context().run, self.process_alert, alert, now)
                    for alert in due
                ]
                cycles = [future.result() for future in futures]

        result = RunResult(
            run_started_at=run_started_at,
            run_finished_at=utc_now(),
            alerts_considered=len(active),
            alerts_due=len(due),
            cycles=cycles,
        )
        logger.info(
            "Alert run completed",
            extra={
                "event": "orchestrator.run.completed",
                "duration_ms": int(result.total_duration_seconds * 1000),
                "alerts_due": result.alerts_due,
                "completed": result.completed_count,
                "failed": result.failed_count,
                "deliveries_recorded": result.deliveries_recorded,
                "total_jobs_found": result.total_jobs_found,
            },
        )
        return result

    def process_alert(self, alert: Alert, now: Optional[datetime] = None) -> AlertCycleResult:
        """
        Run one trigger cycle for an alert, regardless of whether it is due.

        Store failures abort only this alert's cycle and are reported in the
        result rather than raised.

        Args:
            alert: Alert to process
            now: Cycle reference time (defaults to now)

        Returns:
            AlertCycleResult; ``error`` is set when the cycle aborted
        """
        now = ensure_utc(now) or utc_now()
        started = time.monotonic()
        result = AlertCycleResult(alert_id=alert.id, triggered_at=now)

        with log_context(alert_id=alert.id):
            logger.info(
                f"Processing alert '{alert.name}'",
                extra={"event": "orchestrator.alert.started", "frequency": alert.frequency.value},
            )
            try:
                self._run_cycle(alert, now, result)
            except PersistenceError as e:
                result.error = str(e)
                logger.error(
                    f"Alert {alert.id} aborted: {e}",
                    extra={"event": "orchestrator.alert.aborted", "error_type": type(e).__name__},
                )
            except Exception as e:
                result.error = str(e)
                logger.error(
                    f"Unexpected error processing alert {alert.id}: {e}",
                    extra={"event": "orchestrator.alert.aborted", "error_type": type(e).__name__},
                    exc_info=True,
                )
            finally:
                result.duration_seconds = time.monotonic() - started

            if result.completed:
                logger.info(
                    f"Alert '{alert.name}' processed: {result.jobs_found} jobs",
                    extra={
                        "event": "orchestrator.alert.completed",
                        "jobs_found": result.jobs_found,
                        "duplicates_removed": result.duplicates_removed,
                        "delivery_status": result.status.value if result.status else None,
                        "duration_seconds": round(result.duration_seconds, 3),
                    },
                )

        return result

    def _run_cycle(self, alert: Alert, now: datetime, result: AlertCycleResult) -> None:
        owner = self.store.get_owner(alert.owner_id)
        if owner is None:
            raise RecordNotFoundError(f"Owner {alert.owner_id} of alert {alert.id} not found")

        matches = self._collect_matches(alert.criteria, now, result)
        result.jobs_found = len(matches)

        if matches:
            dispatch = self.dispatcher.dispatch(alert, owner, matches)
            result.delivered = dispatch.delivered
            result.status = dispatch.status
            result.channel = dispatch.channel

            record = self.store.record_delivery(
                DeliveryRecord(
                    alert_id=alert.id,
                    owner_id=owner.id,
                    triggered_at=now,
                    jobs_found=len(matches),
                    status=dispatch.status,
                    channel=dispatch.channel,
                    posting_ids=[m.posting.id for m in matches[:MAX_RECORDED_POSTINGS]],
                    error_message=dispatch.error_message,
                )
            )
            result.delivery_id = record.id
        else:
            logger.info(
                f"No matching jobs for alert '{alert.name}'",
                extra={"event": "orchestrator.alert.no_matches"},
            )

        self.store.update_last_triggered(alert.id, now)

    def _collect_matches(
        self, criteria: Criteria, now: datetime, result: Optional[AlertCycleResult] = None
    ) -> List[MatchResult]:
        aggregation = self.aggregator.aggregate(criteria, now)
        dedup = self.deduplicator.find_duplicates(aggregation.postings)
        ranked = self.scorer.rank(dedup.unique, criteria)[: self.max_results]

        if result is not None:
            result.postings_fetched = len(aggregation.postings)
            result.duplicates_removed = dedup.duplicate_count
            result.failed_sources = aggregation.failed_sources
        return ranked

    def trigger_alert(self, alert_id: int, force: bool = False) -> AlertCycleResult:
        """
        Manually trigger one alert.

        Args:
            alert_id: Alert to trigger
            force: Run even if the alert is inactive or not yet due

        Returns:
            AlertCycleResult; ``skipped`` is set when the alert was not due

        Raises:
            RecordNotFoundError: If the alert doesn't exist
        """
        alert = self.store.get_alert(alert_id)
        if alert is None:
            raise RecordNotFoundError(f"Alert {alert_id} not found")

        now = utc_now()
        if not force and not self.scheduler.is_due(alert, now):
            logger.info(
                f"Alert {alert_id} not due, skipping manual trigger",
                extra={"event": "orchestrator.trigger.skipped", "alert_id": alert_id},
            )
            return AlertCycleResult(alert_id=alert_id, triggered_at=now, skipped=True)

        return self.process_alert(alert, now)

    def preview(
        self, criteria: Union[Criteria, Mapping[str, Any], None], limit: int = 10
    ) -> List[MatchResult]:
        """
        Show what an alert with these criteria would deliver right now.

        Nothing is dispatched and nothing is written.

        Raises:
            CriteriaValidationError: If raw criteria are invalid
        """
        if not isinstance(criteria, Criteria):
            criteria = build_criteria(criteria)
        return self._collect_matches(criteria, utc_now())[:limit]
