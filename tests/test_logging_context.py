"""Tests for scoped logging context and its propagation into log records."""

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from alert_engine.logging import (
    ContextualFilter,
    clear_log_context,
    get_log_context,
    get_logger,
    log_context,
)


@pytest.fixture(autouse=True)
def reset_context():
    clear_log_context()
    yield
    clear_log_context()


def make_record(**extra):
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    """Tests for the log_context() context manager."""

    def test_fields_visible_inside_scope(self):
        with log_context(run_id="abc123"):
            assert get_log_context() == {"run_id": "abc123"}
        assert get_log_context() == {}

    def test_nested_scopes_merge_and_restore(self):
        with log_context(run_id="abc123"):
            with log_context(alert_id=7):
                assert get_log_context() == {"run_id": "abc123", "alert_id": 7}
            assert get_log_context() == {"run_id": "abc123"}

    def test_restored_after_exception(self):
        with pytest.raises(ValueError):
            with log_context(alert_id=7):
                raise ValueError("boom")
        assert get_log_context() == {}

    def test_copied_context_follows_worker_thread(self):
        def read_context():
            return get_log_context()

        with log_context(run_id="abc123"):
            with ThreadPoolExecutor(max_workers=1) as pool:
                inherited = pool.submit(contextvars.copy_context().run, read_context).result()

        assert inherited == {"run_id": "abc123"}


class TestContextualFilter:
    """Tests for ContextualFilter."""

    def test_adds_service_and_context_fields(self):
        record = make_record()

        with log_context(run_id="abc123"):
            ContextualFilter(environment="test").filter(record)

        assert record.service == "job-alert-engine"
        assert record.environment == "test"
        assert record.run_id == "abc123"

    def test_explicit_extra_wins(self):
        record = make_record(alert_id=1)

        with log_context(alert_id=99):
            ContextualFilter().filter(record)

        assert record.alert_id == 1


def test_component_logger_merges_extras(caplog):
    logger = get_logger("alert_engine.tests", component="orchestrator")

    with caplog.at_level(logging.INFO, logger="alert_engine.tests"):
        logger.info("Run started", extra={"event": "orchestrator.run.started"})

    record = caplog.records[-1]
    assert record.component == "orchestrator"
    assert record.event == "orchestrator.run.started"


def test_get_logger_without_component_returns_plain_logger():
    assert isinstance(get_logger("alert_engine.tests"), logging.Logger)
