"""Delivery of an alert's matches over email and push.

Email is always attempted; push only when the owner has it enabled and a
push sender is configured. The two channels run concurrently and a failure
in one is logged and contained; it never prevents the other.
"""

import contextvars
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from alert_engine.domain.models import Alert, Owner
from alert_engine.logging import get_logger
from alert_engine.matching.models import MatchResult

from .base import EmailSender, PushSender
from .models import ChannelResult, DeliveryError, DispatchResult

logger = get_logger(__name__, component="notification")

SUMMARY_PUSH_POSTINGS = 3


class NotificationDispatcher:
    """Sends ranked matches to an alert owner over every enabled channel.

    Besides the summary push, push-enabled owners get an individual
    notification for each of the top matches scoring at least
    ``high_match_threshold`` (at most ``max_match_notifications``).
    """

    def __init__(
        self,
        email_sender: EmailSender,
        push_sender: Optional[PushSender] = None,
        high_match_threshold: int = 85,
        max_match_notifications: int = 3,
    ) -> None:
        self.email_sender = email_sender
        self.push_sender = push_sender
        self.high_match_threshold = high_match_threshold
        self.max_match_notifications = max_match_notifications

    def dispatch(self, alert: Alert, owner: Owner, matches: Sequence[MatchResult]) -> DispatchResult:
        """Deliver matches for one alert cycle.

        Args:
            alert: Alert being delivered
            owner: Alert owner (decides whether push is attempted)
            matches: Ranked matches, best first

        Returns:
            DispatchResult describing which channels succeeded; never raises
            for channel failures
        """
        push_wanted = owner.push_enabled and self.push_sender is not None

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="dispatch") as pool:
            email_future = pool.submit(
                contextvars.copy_context().run, self._send_email, alert, owner, matches
            )
            push_future = None
            if push_wanted:
                push_future = pool.submit(
                    contextvars.copy_context().run, self._send_push, alert, owner, matches
                )

            result = DispatchResult(
                email=email_future.result(),
                push=push_future.result() if push_future else None,
            )

        logger.info(
            f"Dispatched {len(matches)} matches for alert {alert.id}: {result.channel.value}",
            extra={
                "event": "notification.dispatch.completed",
                "alert_id": alert.id,
                "match_count": len(matches),
                "delivered": result.delivered,
                "channel": result.channel.value,
                "status": result.status.value,
                "push_attempted": push_wanted,
            },
        )
        return result

    def _send_email(self, alert: Alert, owner: Owner, matches: Sequence[MatchResult]) -> ChannelResult:
        try:
            self.email_sender.send_job_alert(owner, alert.name, matches)
        except DeliveryError as e:
            logger.error(
                f"Email delivery failed for alert {alert.id}: {e}",
                extra={
                    "event": "notification.email.failed",
                    "alert_id": alert.id,
                    "error_type": type(e).__name__,
                },
            )
            return ChannelResult("email", succeeded=False, error=str(e))
        except Exception as e:
            logger.error(
                f"Unexpected error sending email for alert {alert.id}: {e}",
                extra={
                    "event": "notification.email.failed",
                    "alert_id": alert.id,
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return ChannelResult("email", succeeded=False, error=str(e))

        logger.info(
            f"Email sent for alert {alert.id}",
            extra={"event": "notification.email.sent", "alert_id": alert.id},
        )
        return ChannelResult("email", succeeded=True)

    def _send_push(self, alert: Alert, owner: Owner, matches: Sequence[MatchResult]) -> ChannelResult:
        errors = []

        summary_ok = self._attempt_push(
            "summary",
            alert,
            errors,
            self.push_sender.send_job_alert_notification,
            owner.id,
            len(matches),
            alert.name,
            [m.posting for m in matches[:SUMMARY_PUSH_POSTINGS]],
        )

        high_matches = [m for m in matches if m.is_high_match(self.high_match_threshold)]
        sent = 0
        for match in high_matches[: self.max_match_notifications]:
            if self._attempt_push(
                "match",
                alert,
                errors,
                self.push_sender.send_job_match_notification,
                owner.id,
                match.posting,
                match.score,
            ):
                sent += 1

        return ChannelResult(
            "push",
            succeeded=summary_ok or sent > 0,
            error=errors[0] if errors else None,
            match_notifications_sent=sent,
        )

    @staticmethod
    def _attempt_push(kind: str, alert: Alert, errors: list, send, *args) -> bool:
        try:
            send(*args)
            return True
        except Exception as e:
            errors.append(str(e))
            logger.warning(
                f"Push {kind} notification failed for alert {alert.id}: {e}",
                extra={
                    "event": "notification.push.failed",
                    "alert_id": alert.id,
                    "push_kind": kind,
                    "error_type": type(e).__name__,
                },
                exc_info=not isinstance(e, DeliveryError),
            )
            return False
