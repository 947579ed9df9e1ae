"""HTTP push gateway sender."""

from typing import Any, Dict, Optional, Sequence

import requests

from alert_engine.domain.models import Posting
from alert_engine.logging import get_logger

from .base import PushSender
from .models import PushDeliveryError
from .payloads import build_alert_push_payload, build_match_push_payload

logger = get_logger(__name__, component="notification")


class WebhookPushSender(PushSender):
    """Posts push notifications as JSON to a gateway that fans out to devices.

    Requests go to ``{gateway_url}/notifications`` with an optional bearer token.
    """

    def __init__(
        self,
        gateway_url: str,
        api_token: Optional[str] = None,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = gateway_url.rstrip("/") + "/notifications"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if api_token:
            self._session.headers.update({"Authorization": f"Bearer {api_token}"})

    def send_job_alert_notification(
        self, owner_id: int, count: int, alert_name: str, top_postings: Sequence[Posting]
    ) -> None:
        self._post(build_alert_push_payload(owner_id, count, alert_name, top_postings))

    def send_job_match_notification(self, owner_id: int, posting: Posting, score: int) -> None:
        self._post(build_match_push_payload(owner_id, posting, score))

    def _post(self, payload: Dict[str, Any]) -> None:
        try:
            response = self._session.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise PushDeliveryError(f"Push gateway request failed: {e}") from e

        if response.status_code >= 400:
            raise PushDeliveryError(
                f"Push gateway returned HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )

        logger.debug(
            "Push notification accepted",
            extra={
                "event": "notification.push.delivered",
                "push_type": payload["type"],
                "owner_id": payload["user_id"],
            },
        )
