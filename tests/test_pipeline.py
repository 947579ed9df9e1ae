"""Tests for the alert orchestrator.

Tests cover:
- Full trigger cycles (fetch, dedup, rank, dispatch, record, advance)
- Zero-match cycles
- Failure isolation between alerts and between sources
- Overlapping run coalescing
- Manual triggering and previews
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from alert_engine.domain.exceptions import CriteriaValidationError
from alert_engine.domain.models import AlertFrequency, Criteria, DeliveryChannel, DeliveryStatus
from alert_engine.notifications import NotificationDispatcher, SMTPDeliveryError
from alert_engine.persistence import Database, PersistenceError, RecordNotFoundError, SqlAlertStore
from alert_engine.pipeline import AlertOrchestrator
from alert_engine.scheduler import TriggerScheduler
from alert_engine.sources import SourceAggregator, SourceHTTPError
from alert_engine.utils.timestamps import utc_now
from tests.helpers import (
    REFERENCE_NOW,
    FailingSource,
    InMemoryAlertStore,
    RecordingEmailSender,
    RecordingPushSender,
    StaticSource,
    make_alert,
    make_owner,
    make_posting,
)


class BrokenStore(InMemoryAlertStore):
    def list_active_alerts(self):
        raise PersistenceError("database is locked")


@pytest.fixture
def postings():
    return [
        make_posting("p1"),
        make_posting("p2", title="Python Data Engineer", company="Globex"),
        make_posting("p3", title="Registered Nurse", company="City Hospital", description=""),
    ]


@pytest.fixture
def source(postings):
    return StaticSource("greenhouse:acme", postings)


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def push_sender():
    return RecordingPushSender()


def build_orchestrator(store, sources, email_sender, push_sender=None, **kwargs):
    return AlertOrchestrator(
        store=store,
        aggregator=SourceAggregator(sources, timeout_seconds=5),
        dispatcher=NotificationDispatcher(email_sender, push_sender=push_sender),
        scheduler=TriggerScheduler(),
        **kwargs,
    )


class TestProcessDueAlerts:
    """Tests for AlertOrchestrator.process_due_alerts()."""

    def test_full_cycle(self, source, email_sender, push_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1, push_enabled=True)])
        orchestrator = build_orchestrator(store, [source], email_sender, push_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        assert result.alerts_considered == 1
        assert result.alerts_due == 1
        assert result.deliveries_recorded == 1
        assert not result.had_errors
        cycle = result.cycles[0]
        assert cycle.completed
        assert cycle.postings_fetched == 3
        assert cycle.jobs_found == 3
        assert cycle.status == DeliveryStatus.SENT
        assert cycle.channel == DeliveryChannel.BOTH

        record = store.deliveries[0]
        assert record.alert_id == 1
        assert record.owner_id == 1
        assert record.triggered_at == REFERENCE_NOW
        assert record.jobs_found == 3
        assert record.posting_ids[:2] == ["p1", "p2"]
        assert record.posting_ids[-1] == "p3"

        _, alert_name, matches = email_sender.calls[0]
        assert alert_name == "Alert 1"
        assert [m.score for m in matches] == sorted((m.score for m in matches), reverse=True)
        assert store.alerts[1].last_triggered_at == REFERENCE_NOW
        assert orchestrator.last_run_at == result.run_finished_at
        assert orchestrator.status == {"is_processing": False, "last_run_at": result.run_finished_at}

    def test_skips_alerts_that_are_not_due(self, source, email_sender):
        recent = make_alert(1, last_triggered_at=REFERENCE_NOW - timedelta(hours=2))
        store = InMemoryAlertStore([recent], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        assert result.alerts_considered == 1
        assert result.alerts_due == 0
        assert result.cycles == []
        assert source.fetch_calls == []

    def test_zero_matches_advances_without_record(self, email_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [StaticSource("lever:empty")], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        cycle = result.cycles[0]
        assert cycle.completed
        assert cycle.jobs_found == 0
        assert cycle.status is None
        assert store.deliveries == []
        assert email_sender.calls == []
        assert store.alerts[1].last_triggered_at == REFERENCE_NOW

    def test_failing_source_does_not_stop_delivery(self, source, email_sender):
        failing = FailingSource(
            "lever:down", SourceHTTPError("HTTP 500", status_code=500, url="https://x")
        )
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [failing, source], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        cycle = result.cycles[0]
        assert cycle.failed_sources == ["lever:down"]
        assert cycle.jobs_found == 3
        assert len(email_sender.calls) == 1
        assert store.deliveries[0].status == DeliveryStatus.SENT

    def test_duplicates_are_removed_before_scoring(self, email_sender):
        shared_url = "https://jobs.example.com/postings/shared"
        source = StaticSource(
            "greenhouse:acme",
            [make_posting("a", url=shared_url), make_posting("b", title="Other", url=shared_url)],
        )
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender)

        cycle = orchestrator.process_due_alerts(now=REFERENCE_NOW).cycles[0]

        assert cycle.duplicates_removed == 1
        assert cycle.jobs_found == 1
        assert store.deliveries[0].posting_ids == ["a"]

    def test_results_limited_to_max_results(self, source, email_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender, max_results=2)

        cycle = orchestrator.process_due_alerts(now=REFERENCE_NOW).cycles[0]

        assert cycle.jobs_found == 2
        assert len(email_sender.calls[0][2]) == 2

    def test_failed_dispatch_is_recorded_and_advances(self, source):
        email_sender = RecordingEmailSender(error=SMTPDeliveryError("connection refused"))
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        record = store.deliveries[0]
        assert record.status == DeliveryStatus.FAILED
        assert record.channel == DeliveryChannel.NONE
        assert "connection refused" in record.error_message
        assert store.alerts[1].last_triggered_at == REFERENCE_NOW
        assert result.failed_count == 1
        assert result.had_errors

    def test_persistence_failure_leaves_alert_due(self, source, email_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        store.fail_record_delivery = True
        orchestrator = build_orchestrator(store, [source], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        cycle = result.cycles[0]
        assert cycle.error == "disk I/O error"
        assert not cycle.completed
        assert store.alerts[1].last_triggered_at is None
        assert result.had_errors

    def test_one_alert_failure_does_not_stop_others(self, source, email_sender):
        orphan = make_alert(1, owner_id=404)
        healthy = make_alert(2)
        store = InMemoryAlertStore([orphan, healthy], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        by_id = {cycle.alert_id: cycle for cycle in result.cycles}
        assert "404" in by_id[1].error
        assert by_id[2].completed
        assert store.alerts[1].last_triggered_at is None
        assert store.alerts[2].last_triggered_at == REFERENCE_NOW
        assert result.completed_count == 1
        assert result.failed_count == 1

    def test_unexpected_error_is_contained(self, email_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        aggregator = Mock()
        aggregator.aggregate.side_effect = RuntimeError("boom")
        orchestrator = AlertOrchestrator(
            store=store,
            aggregator=aggregator,
            dispatcher=NotificationDispatcher(email_sender),
            scheduler=TriggerScheduler(),
        )

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        assert result.cycles[0].error == "boom"
        assert store.alerts[1].last_triggered_at is None

    def test_store_failure_while_listing(self, source, email_sender):
        orchestrator = build_orchestrator(BrokenStore(), [source], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        assert result.error == "database is locked"
        assert result.had_errors
        assert result.cycles == []

    def test_processes_many_alerts_concurrently(self, source, email_sender):
        alerts = [make_alert(i) for i in range(1, 7)]
        store = InMemoryAlertStore(alerts, [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender, max_workers=3)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        assert [cycle.alert_id for cycle in result.cycles] == [1, 2, 3, 4, 5, 6]
        assert result.completed_count == 6
        assert len(store.deliveries) == 6
        assert len(email_sender.calls) == 6

    def test_overlapping_run_is_skipped(self, source, email_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender)

        orchestrator._lock.acquire()
        try:
            assert orchestrator.is_processing
            assert orchestrator.status["is_processing"]
            result = orchestrator.process_due_alerts(now=REFERENCE_NOW)
        finally:
            orchestrator._lock.release()

        assert result.skipped
        assert result.cycles == []
        assert source.fetch_calls == []
        assert not orchestrator.is_processing

    def test_second_run_after_cycle_is_not_due(self, source, email_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender)

        orchestrator.process_due_alerts(now=REFERENCE_NOW)
        second = orchestrator.process_due_alerts(now=REFERENCE_NOW + timedelta(hours=1))

        assert second.alerts_due == 0
        assert len(store.deliveries) == 1


class TestTriggerAlert:
    """Tests for AlertOrchestrator.trigger_alert()."""

    @pytest.fixture
    def fresh_source(self):
        return StaticSource("greenhouse:acme", [make_posting("p1", posted_at=utc_now())])

    def test_missing_alert(self, fresh_source, email_sender):
        orchestrator = build_orchestrator(InMemoryAlertStore(), [fresh_source], email_sender)

        with pytest.raises(RecordNotFoundError):
            orchestrator.trigger_alert(42)

    def test_not_due_without_force(self, fresh_source, email_sender):
        alert = make_alert(1, last_triggered_at=utc_now() - timedelta(hours=1))
        store = InMemoryAlertStore([alert], [make_owner(1)])
        orchestrator = build_orchestrator(store, [fresh_source], email_sender)

        result = orchestrator.trigger_alert(1)

        assert result.skipped
        assert not result.completed
        assert email_sender.calls == []

    def test_force_runs_cycle(self, fresh_source, email_sender):
        alert = make_alert(
            1, frequency=AlertFrequency.WEEKLY, last_triggered_at=utc_now() - timedelta(hours=1)
        )
        store = InMemoryAlertStore([alert], [make_owner(1)])
        orchestrator = build_orchestrator(store, [fresh_source], email_sender)

        result = orchestrator.trigger_alert(1, force=True)

        assert result.completed
        assert result.jobs_found == 1
        assert len(store.deliveries) == 1
        assert store.alerts[1].last_triggered_at == result.triggered_at

    def test_due_alert_runs_without_force(self, fresh_source, email_sender):
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [fresh_source], email_sender)

        assert orchestrator.trigger_alert(1).completed


class TestPreview:
    """Tests for AlertOrchestrator.preview()."""

    def test_preview_does_not_dispatch_or_write(self, email_sender):
        source = StaticSource(
            "greenhouse:acme",
            [
                make_posting("nurse", title="Registered Nurse", description="", posted_at=utc_now()),
                make_posting("py", posted_at=utc_now()),
            ],
        )
        store = InMemoryAlertStore([make_alert(1)], [make_owner(1)])
        orchestrator = build_orchestrator(store, [source], email_sender)

        results = orchestrator.preview({"keywords": ["python"]}, limit=1)

        assert [r.posting.id for r in results] == ["py"]
        assert email_sender.calls == []
        assert store.deliveries == []
        assert store.alerts[1].last_triggered_at is None

    def test_preview_accepts_criteria_model(self, email_sender):
        source = StaticSource("greenhouse:acme", [make_posting("py", posted_at=utc_now())])
        orchestrator = build_orchestrator(InMemoryAlertStore(), [source], email_sender)

        results = orchestrator.preview(Criteria(keywords=["python"]))

        assert len(results) == 1
        assert source.fetch_calls == [Criteria(keywords=["python"])]

    def test_preview_rejects_invalid_criteria(self, source, email_sender):
        orchestrator = build_orchestrator(InMemoryAlertStore(), [source], email_sender)

        with pytest.raises(CriteriaValidationError):
            orchestrator.preview({"salary_min": -1})


class TestWithSqlStore:
    """Orchestrator running against the SQLAlchemy-backed store."""

    @pytest.fixture
    def store(self):
        database = Database("sqlite:///:memory:")
        yield SqlAlertStore(database)
        database.close()

    def test_cycle_persists_delivery_and_counters(self, store, source, email_sender):
        owner = store.create_owner("ada@example.com", name="Ada")
        alert = store.create_alert(owner.id, "Python roles", {"keywords": ["python"]})
        orchestrator = build_orchestrator(store, [source], email_sender)

        result = orchestrator.process_due_alerts(now=REFERENCE_NOW)

        assert result.deliveries_recorded == 1
        stored = store.get_alert(alert.id)
        assert stored.last_triggered_at == REFERENCE_NOW
        assert stored.total_notifications == 1
        history = store.list_deliveries(alert.id)
        assert [r.id for r in history] == [result.cycles[0].delivery_id]
        assert history[0].jobs_found == 3

        again = orchestrator.process_due_alerts(now=REFERENCE_NOW + timedelta(hours=1))
        assert again.alerts_due == 0
