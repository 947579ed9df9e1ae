"""Unit tests for NotificationDispatcher.

Tests cover:
- Email-only and email+push delivery
- Failure isolation between channels
- Status and channel derivation
- High-match push notifications and their cap
"""

import pytest

from alert_engine.domain.models import DeliveryChannel, DeliveryStatus
from alert_engine.matching import MatchResult
from alert_engine.notifications import (
    NotificationDispatcher,
    PushDeliveryError,
    SMTPDeliveryError,
)
from tests.helpers import RecordingEmailSender, RecordingPushSender, make_alert, make_owner, make_posting


def make_matches(*scores):
    return [MatchResult(posting=make_posting(f"p{i}"), score=s) for i, s in enumerate(scores)]


@pytest.fixture
def alert():
    return make_alert(7, name="Python roles")


@pytest.fixture
def push_owner():
    return make_owner(1, push_enabled=True)


class TestDispatch:
    """Test suite for NotificationDispatcher.dispatch()."""

    def test_email_only_when_push_disabled(self, alert):
        email = RecordingEmailSender()
        push = RecordingPushSender()
        dispatcher = NotificationDispatcher(email, push_sender=push)
        owner = make_owner(1, push_enabled=False)

        result = dispatcher.dispatch(alert, owner, make_matches(90, 70))

        assert len(email.calls) == 1
        sent_owner, alert_name, matches = email.calls[0]
        assert sent_owner == owner
        assert alert_name == "Python roles"
        assert [m.score for m in matches] == [90, 70]
        assert push.summaries == []
        assert result.push is None
        assert result.status == DeliveryStatus.SENT
        assert result.channel == DeliveryChannel.EMAIL
        assert result.delivered

    def test_email_only_without_push_sender(self, alert, push_owner):
        dispatcher = NotificationDispatcher(RecordingEmailSender())

        result = dispatcher.dispatch(alert, push_owner, make_matches(90))

        assert result.channel == DeliveryChannel.EMAIL
        assert result.push is None

    def test_both_channels(self, alert, push_owner):
        email = RecordingEmailSender()
        push = RecordingPushSender()
        dispatcher = NotificationDispatcher(email, push_sender=push)

        result = dispatcher.dispatch(alert, push_owner, make_matches(95, 80, 60, 40))

        assert result.status == DeliveryStatus.SENT
        assert result.channel == DeliveryChannel.BOTH
        owner_id, count, alert_name, top_postings = push.summaries[0]
        assert (owner_id, count, alert_name) == (1, 4, "Python roles")
        assert [p.id for p in top_postings] == ["p0", "p1", "p2"]
        assert [(p.id, score) for _, p, score in push.matches] == [("p0", 95)]
        assert result.push.match_notifications_sent == 1

    def test_email_failure_does_not_block_push(self, alert, push_owner):
        email = RecordingEmailSender(error=SMTPDeliveryError("Recipient refused"))
        push = RecordingPushSender()
        dispatcher = NotificationDispatcher(email, push_sender=push)

        result = dispatcher.dispatch(alert, push_owner, make_matches(70))

        assert result.status == DeliveryStatus.PARTIAL
        assert result.channel == DeliveryChannel.PUSH
        assert result.delivered
        assert len(push.summaries) == 1
        assert result.error_message == "email: Recipient refused"

    def test_push_failure_does_not_block_email(self, alert, push_owner):
        push = RecordingPushSender(summary_error=PushDeliveryError("HTTP 502", status_code=502))
        dispatcher = NotificationDispatcher(RecordingEmailSender(), push_sender=push)

        result = dispatcher.dispatch(alert, push_owner, make_matches(70))

        assert result.status == DeliveryStatus.PARTIAL
        assert result.channel == DeliveryChannel.EMAIL
        assert result.error_message == "push: HTTP 502"

    def test_all_channels_fail(self, alert, push_owner):
        email = RecordingEmailSender(error=SMTPDeliveryError("connection refused"))
        push = RecordingPushSender(summary_error=PushDeliveryError("gateway down"))
        dispatcher = NotificationDispatcher(email, push_sender=push)

        result = dispatcher.dispatch(alert, push_owner, make_matches(70))

        assert result.status == DeliveryStatus.FAILED
        assert result.channel == DeliveryChannel.NONE
        assert not result.delivered
        assert "email: connection refused" in result.error_message
        assert "push: gateway down" in result.error_message

    def test_unexpected_sender_exception_is_contained(self, alert):
        dispatcher = NotificationDispatcher(RecordingEmailSender(error=RuntimeError("boom")))

        result = dispatcher.dispatch(alert, make_owner(), make_matches(70))

        assert result.status == DeliveryStatus.FAILED
        assert result.email.error == "boom"


class TestHighMatchPushes:
    """Tests for individual high-match push notifications."""

    def test_capped_at_max(self, alert, push_owner):
        push = RecordingPushSender()
        dispatcher = NotificationDispatcher(RecordingEmailSender(), push_sender=push)

        dispatcher.dispatch(alert, push_owner, make_matches(99, 97, 95, 90, 88))

        assert [score for _, _, score in push.matches] == [99, 97, 95]

    def test_threshold_is_inclusive(self, alert, push_owner):
        push = RecordingPushSender()
        dispatcher = NotificationDispatcher(
            RecordingEmailSender(), push_sender=push, high_match_threshold=80
        )

        dispatcher.dispatch(alert, push_owner, make_matches(80, 79))

        assert [score for _, _, score in push.matches] == [80]

    def test_push_succeeds_if_any_push_succeeds(self, alert, push_owner):
        """A failed summary still counts as push delivery when a match push went out."""
        push = RecordingPushSender(summary_error=PushDeliveryError("summary rejected"))
        dispatcher = NotificationDispatcher(RecordingEmailSender(), push_sender=push)

        result = dispatcher.dispatch(alert, push_owner, make_matches(92))

        assert result.push.succeeded
        assert result.push.error == "summary rejected"
        assert result.channel == DeliveryChannel.BOTH

    def test_failed_match_pushes_are_not_counted(self, alert, push_owner):
        push = RecordingPushSender(match_error=PushDeliveryError("device gone"))
        dispatcher = NotificationDispatcher(RecordingEmailSender(), push_sender=push)

        result = dispatcher.dispatch(alert, push_owner, make_matches(99, 98))

        assert len(push.matches) == 2
        assert result.push.match_notifications_sent == 0
        assert result.push.succeeded
