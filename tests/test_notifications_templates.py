"""Unit tests for job alert email rendering and payload builders.

Tests the TemplateRenderer for:
- Subject, HTML, and text template rendering from build_alert_context()
- HTML auto-escaping
- Strict undefined variable detection
- Missing templates
"""

import pytest

from alert_engine.matching import MatchResult
from alert_engine.notifications.models import NotificationTemplateError
from alert_engine.notifications.payloads import (
    build_alert_context,
    build_alert_push_payload,
    build_match_push_payload,
    posting_summary,
)
from alert_engine.notifications.templates import TemplateRenderer
from tests.helpers import make_owner, make_posting


@pytest.fixture
def renderer():
    return TemplateRenderer()


@pytest.fixture
def matches():
    return [
        MatchResult(
            posting=make_posting("p1", salary_text="$150,000"),
            score=92,
            reasons=["Keywords: python", "Location: San Francisco, CA"],
        ),
        MatchResult(
            posting=make_posting(
                "p2", title="Data Engineer", company="Globex", location=None, is_remote=True
            ),
            score=71,
        ),
    ]


@pytest.fixture
def context(matches):
    return build_alert_context(make_owner(name="Ada"), "Python roles", matches)


class TestBuildAlertContext:
    """Tests for build_alert_context()."""

    def test_context_fields(self, context):
        assert context["owner_name"] == "Ada"
        assert context["alert_name"] == "Python roles"
        assert context["subject_prefix"] == "Job Alert"
        assert context["match_count"] == 2
        first = context["matches"][0]
        assert first["score"] == 92
        assert first["reasons"] == ["Keywords: python", "Location: San Francisco, CA"]
        assert first["salary"] == "$150,000"

    def test_owner_name_falls_back_to_email_local_part(self, matches):
        owner = make_owner(name=None, email="grace.hopper@example.com")
        assert build_alert_context(owner, "A", matches)["owner_name"] == "grace.hopper"

    def test_remote_posting_without_location(self, context):
        assert context["matches"][1]["location"] == "Remote"

    def test_location_not_specified(self):
        summary = posting_summary(make_posting("p", location=None))
        assert summary["location"] == "Not specified"
        assert summary["posted_at"] == "2025-11-03T12:00:00Z"


class TestTemplateRenderer:
    """Tests for TemplateRenderer.render()."""

    def test_subject(self, renderer, context):
        rendered = renderer.render(context)
        assert rendered["subject"] == 'Job Alert: 2 new jobs for "Python roles"'
        assert "\n" not in rendered["subject"]

    def test_text_body(self, renderer, context):
        text = renderer.render(context)["text_body"]

        assert "Hi Ada," in text
        assert "1. Senior Python Engineer at Example Corp (92% match)" in text
        assert "Salary: $150,000" in text
        assert "Why: Keywords: python; Location: San Francisco, CA" in text
        assert "2. Data Engineer at Globex (71% match)" in text
        assert "https://jobs.example.com/postings/p1" in text

    def test_html_body(self, renderer, context):
        html = renderer.render(context)["html_body"]

        assert '<a href="https://jobs.example.com/postings/p1">Senior Python Engineer</a>' in html
        assert "(92% match)" in html

    def test_html_is_escaped(self, renderer):
        posting = make_posting("x", title="<script>alert(1)</script>")
        context = build_alert_context(
            make_owner(), "Alert", [MatchResult(posting=posting, score=80)]
        )

        html = renderer.render(context)["html_body"]

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_single_match_uses_singular(self, renderer, matches):
        context = build_alert_context(make_owner(), "Python roles", matches[:1])
        assert "1 new job for" in renderer.render(context)["subject"]

    def test_missing_variable_raises(self, renderer, context):
        del context["alert_name"]

        with pytest.raises(NotificationTemplateError):
            renderer.render(context)

    def test_missing_template_raises(self, context):
        renderer = TemplateRenderer(subject_template="does_not_exist.j2")

        with pytest.raises(NotificationTemplateError):
            renderer.render(context)


class TestPushPayloads:
    """Tests for push payload builders."""

    def test_alert_payload(self):
        postings = [make_posting("p1"), make_posting("p2", company="Globex")]

        payload = build_alert_push_payload(5, 12, "Python roles", postings)

        assert payload["user_id"] == 5
        assert payload["type"] == "job_alert"
        assert payload["title"] == "12 new jobs for Python roles"
        assert payload["body"] == (
            "Senior Python Engineer at Example Corp, Senior Python Engineer at Globex"
        )
        assert [p["id"] for p in payload["data"]["postings"]] == ["p1", "p2"]

    def test_alert_payload_singular(self):
        payload = build_alert_push_payload(5, 1, "Python roles", [make_posting("p1")])
        assert payload["title"] == "1 new job for Python roles"

    def test_match_payload(self):
        payload = build_match_push_payload(5, make_posting("p1"), 93)

        assert payload["type"] == "job_match"
        assert payload["title"] == "93% match: Senior Python Engineer"
        assert payload["body"] == "Example Corp - San Francisco, CA"
        assert payload["data"]["score"] == 93
