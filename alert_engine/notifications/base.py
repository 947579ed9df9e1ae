"""Sender interfaces for the email and push channels."""

from abc import ABC, abstractmethod
from typing import Sequence

from alert_engine.domain.models import Owner, Posting
from alert_engine.matching.models import MatchResult


class EmailSender(ABC):
    """Delivers an alert's matches to the owner by email."""

    @abstractmethod
    def send_job_alert(self, owner: Owner, alert_name: str, matches: Sequence[MatchResult]) -> None:
        """Send one email listing the ranked matches.

        Raises:
            DeliveryError: If the email could not be delivered
        """


class PushSender(ABC):
    """Delivers push notifications to the owner's devices."""

    @abstractmethod
    def send_job_alert_notification(
        self, owner_id: int, count: int, alert_name: str, top_postings: Sequence[Posting]
    ) -> None:
        """Send the summary notification for an alert cycle.

        Raises:
            DeliveryError: If the notification could not be delivered
        """

    @abstractmethod
    def send_job_match_notification(self, owner_id: int, posting: Posting, score: int) -> None:
        """Send an individual notification for one high-scoring posting.

        Raises:
            DeliveryError: If the notification could not be delivered
        """
