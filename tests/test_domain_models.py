"""Unit tests for domain models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from alert_engine.domain.exceptions import CriteriaValidationError
from alert_engine.domain.models import (
    Alert,
    AlertFrequency,
    Criteria,
    Owner,
    Posting,
    build_criteria,
    parse_frequency,
)


class TestCriteria:
    """Tests for Criteria normalisation and validation."""

    def test_terms_normalised(self):
        criteria = Criteria(
            keywords=[" Python ", "python", "", "SQL"],
            companies=["Acme", "ACME"],
            job_types=["Full-Time"],
        )

        assert criteria.keywords == ["python", "sql"]
        assert criteria.companies == ["acme"]
        assert criteria.job_types == ["full-time"]

    def test_blank_location_is_unconstrained(self):
        assert Criteria(location="   ").location is None
        assert Criteria(location=" Remote ").location == "Remote"

    def test_defaults_are_unconstrained(self):
        criteria = Criteria()

        assert criteria.keywords == []
        assert criteria.salary_min is None
        assert criteria.location is None

    def test_equal_salary_bounds_allowed(self):
        criteria = Criteria(salary_min=90000, salary_max=90000)
        assert criteria.salary_min == criteria.salary_max


class TestBuildCriteria:
    """Tests for build_criteria()."""

    def test_none_means_unconstrained(self):
        assert build_criteria(None) == Criteria()

    def test_inverted_salary_range(self):
        with pytest.raises(CriteriaValidationError) as exc_info:
            build_criteria({"salary_min": 120000, "salary_max": 80000})

        assert "cannot exceed" in exc_info.value.errors[0]
        assert "cannot exceed" in str(exc_info.value)

    def test_negative_salary(self):
        with pytest.raises(CriteriaValidationError) as exc_info:
            build_criteria({"salary_min": -1})

        assert exc_info.value.errors[0].startswith("salary_min:")

    def test_wrong_type(self):
        with pytest.raises(CriteriaValidationError):
            build_criteria({"keywords": "python"})


class TestParseFrequency:
    """Tests for parse_frequency()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("daily", AlertFrequency.DAILY),
            (" Hourly ", AlertFrequency.HOURLY),
            ("IMMEDIATE", AlertFrequency.IMMEDIATE),
            (AlertFrequency.WEEKLY, AlertFrequency.WEEKLY),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_frequency(value) == expected

    def test_invalid(self):
        with pytest.raises(CriteriaValidationError) as exc_info:
            parse_frequency("monthly")

        assert "monthly" in exc_info.value.errors[0]


class TestPosting:
    """Tests for Posting."""

    def make(self, **overrides):
        fields = {
            "id": " gh-1 ",
            "title": " Backend Engineer ",
            "company": "Acme",
            "url": "https://boards.greenhouse.io/acme/jobs/1",
            "posted_at": datetime(2025, 11, 4, 12, 0),
        }
        fields.update(overrides)
        return Posting(**fields)

    def test_strips_and_defaults(self):
        posting = self.make(location="  ")

        assert posting.id == "gh-1"
        assert posting.title == "Backend Engineer"
        assert posting.location is None
        assert posting.description == ""
        assert posting.confidence == 1.0
        assert posting.posted_at.tzinfo == timezone.utc

    def test_remote_derived_from_location(self):
        assert self.make(location="Remote - US").is_remote
        assert not self.make(location="Berlin").is_remote

    def test_explicit_remote_flag_kept(self):
        assert not self.make(location="Remote", is_remote=False).is_remote

    def test_rejects_blank_required_field(self):
        with pytest.raises(ValidationError):
            self.make(title="   ")

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            self.make(confidence=1.5)


class TestOwnerAndAlert:
    """Tests for Owner and Alert."""

    def test_owner_email_validated(self):
        with pytest.raises(ValidationError):
            Owner(id=1, email="not-an-email")

    def test_alert_defaults(self):
        alert = Alert(id=1, owner_id=1, name="Python roles")

        assert alert.frequency == AlertFrequency.DAILY
        assert alert.active
        assert alert.criteria == Criteria()
        assert alert.last_triggered_at is None
        assert alert.created_at.tzinfo == timezone.utc

    def test_alert_naive_timestamp_becomes_utc(self):
        alert = Alert(
            id=1, owner_id=1, name="Python roles", last_triggered_at=datetime(2025, 11, 4, 12, 0)
        )

        assert alert.last_triggered_at == datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)
