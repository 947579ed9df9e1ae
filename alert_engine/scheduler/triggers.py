"""Per-alert trigger eligibility.

An alert is either IDLE (waiting for its interval to elapse) or DUE. It is
due when it is active and has never triggered, or when at least one full
frequency interval has passed since it last triggered.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from alert_engine.domain.models import Alert, AlertFrequency
from alert_engine.utils.timestamps import ensure_utc, utc_now

DEFAULT_IMMEDIATE_INTERVAL = timedelta(minutes=5)

_FIXED_INTERVALS: Dict[AlertFrequency, timedelta] = {
    AlertFrequency.HOURLY: timedelta(hours=1),
    AlertFrequency.DAILY: timedelta(hours=24),
    AlertFrequency.WEEKLY: timedelta(days=7),
}


class TriggerState(str, Enum):
    """Externally visible trigger states."""

    IDLE = "idle"
    DUE = "due"


class TriggerScheduler:
    """Decides which alerts are due.

    ``immediate`` alerts use a configurable minimum spacing (5 minutes by
    default) so a tight polling loop cannot re-trigger them on every pass.
    A spacing of zero makes them due on every pass.
    """

    def __init__(self, immediate_min_interval: timedelta = DEFAULT_IMMEDIATE_INTERVAL) -> None:
        if immediate_min_interval < timedelta(0):
            raise ValueError("immediate_min_interval cannot be negative")
        self.immediate_min_interval = immediate_min_interval

    def interval_for(self, frequency: AlertFrequency) -> timedelta:
        """Minimum time between two triggers of an alert with this frequency."""
        if frequency == AlertFrequency.IMMEDIATE:
            return self.immediate_min_interval
        return _FIXED_INTERVALS[AlertFrequency(frequency)]

    def state(self, alert: Alert, now: Optional[datetime] = None) -> TriggerState:
        """Current trigger state of an alert.

        Args:
            alert: Alert to check
            now: Reference time (defaults to current UTC time)

        Returns:
            TriggerState.DUE or TriggerState.IDLE
        """
        if not alert.active:
            return TriggerState.IDLE

        if alert.last_triggered_at is None:
            return TriggerState.DUE

        now = ensure_utc(now) or utc_now()
        elapsed = now - ensure_utc(alert.last_triggered_at)
        if elapsed >= self.interval_for(alert.frequency):
            return TriggerState.DUE
        return TriggerState.IDLE

    def is_due(self, alert: Alert, now: Optional[datetime] = None) -> bool:
        """Whether the alert should be processed now."""
        return self.state(alert, now) == TriggerState.DUE

    def due_alerts(self, alerts: Iterable[Alert], now: Optional[datetime] = None) -> List[Alert]:
        """Filter alerts down to the due ones.

        Never-triggered alerts come first, then the longest-waiting ones.
        """
        now = ensure_utc(now) or utc_now()
        due = [alert for alert in alerts if self.is_due(alert, now)]
        due.sort(key=lambda a: (a.last_triggered_at is not None, a.last_triggered_at or now))
        return due
