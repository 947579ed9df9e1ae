"""Result types and exceptions for notification delivery.

Channel failures are represented as DeliveryError subclasses raised by the
senders; the dispatcher converts them into ChannelResult values so one
failing channel never hides the outcome of the other.
"""

from dataclasses import dataclass
from typing import Optional

from alert_engine.domain.models import DeliveryChannel, DeliveryStatus


class DeliveryError(Exception):
    """Base exception for a failed delivery over one channel."""


class NotificationTemplateError(DeliveryError):
    """Raised when template rendering fails due to configuration or missing variables."""


class SMTPDeliveryError(DeliveryError):
    """Raised when the SMTP server rejects or cannot accept a message."""


class PushDeliveryError(DeliveryError):
    """Raised when the push gateway rejects or cannot accept a notification."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ChannelResult:
    """Outcome of one channel during a dispatch.

    Attributes:
        channel: "email" or "push"
        succeeded: Whether the channel delivered anything
        error: Error message of the first failure, if any
        match_notifications_sent: Individual high-match pushes delivered (push only)
    """

    channel: str
    succeeded: bool
    error: Optional[str] = None
    match_notifications_sent: int = 0


@dataclass
class DispatchResult:
    """Combined outcome of dispatching one alert's matches.

    Attributes:
        email: Email channel outcome (email is always attempted)
        push: Push channel outcome, None when push was not attempted
    """

    email: ChannelResult
    push: Optional[ChannelResult] = None

    @property
    def delivered(self) -> bool:
        """True when at least one channel succeeded."""
        return self.email.succeeded or bool(self.push and self.push.succeeded)

    @property
    def channel(self) -> DeliveryChannel:
        """Which channels succeeded."""
        push_ok = bool(self.push and self.push.succeeded)
        if self.email.succeeded and push_ok:
            return DeliveryChannel.BOTH
        if self.email.succeeded:
            return DeliveryChannel.EMAIL
        if push_ok:
            return DeliveryChannel.PUSH
        return DeliveryChannel.NONE

    @property
    def status(self) -> DeliveryStatus:
        """SENT if every attempted channel succeeded, PARTIAL if some, FAILED if none."""
        attempted = [self.email] + ([self.push] if self.push else [])
        succeeded = [result for result in attempted if result.succeeded]
        if len(succeeded) == len(attempted):
            return DeliveryStatus.SENT
        if succeeded:
            return DeliveryStatus.PARTIAL
        return DeliveryStatus.FAILED

    @property
    def error_message(self) -> Optional[str]:
        """Errors from failed channels, joined for the delivery record."""
        errors = [
            f"{result.channel}: {result.error}"
            for result in (self.email, self.push)
            if result is not None and result.error
        ]
        return "; ".join(errors) or None
