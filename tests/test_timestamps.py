"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

import pytest

from alert_engine.utils.timestamps import (
    ensure_utc,
    format_timestamp,
    from_unix_millis,
    parse_iso_datetime,
    utc_now,
)


class TestUtcNow:
    """Tests for utc_now function."""

    def test_returns_recent_utc_datetime(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert now.tzinfo == timezone.utc
        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_treated_as_utc(self):
        result = ensure_utc(datetime(2025, 11, 4, 12, 0, 0))

        assert result == datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)

    def test_aware_converted(self):
        eastern = timezone(timedelta(hours=-5))

        result = ensure_utc(datetime(2025, 11, 4, 7, 0, 0, tzinfo=eastern))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12


class TestParseIsoDatetime:
    """Tests for parse_iso_datetime function."""

    @pytest.mark.parametrize(
        "text",
        ["2025-11-04T12:00:00Z", "2025-11-04T12:00:00+00:00", "2025-11-04T07:00:00-05:00"],
    )
    def test_valid_formats(self, text):
        assert parse_iso_datetime(text) == datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text", [None, "", "   ", "yesterday"])
    def test_missing_or_invalid(self, text):
        assert parse_iso_datetime(text) is None


class TestFromUnixMillis:
    """Tests for from_unix_millis function."""

    def test_converts_milliseconds(self):
        assert from_unix_millis(1762257600000) == datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, 0, 10**20])
    def test_missing_or_out_of_range(self, value):
        assert from_unix_millis(value) is None


class TestFormatTimestamp:
    """Tests for format_timestamp function."""

    def test_without_microseconds(self):
        dt = datetime(2025, 11, 4, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2025-11-04T12:00:00Z"

    def test_with_microseconds(self):
        dt = datetime(2025, 11, 4, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt, include_microseconds=True) == "2025-11-04T12:00:00.123456Z"

    def test_naive_input(self):
        assert format_timestamp(datetime(2025, 11, 4, 12, 0)) == "2025-11-04T12:00:00Z"
