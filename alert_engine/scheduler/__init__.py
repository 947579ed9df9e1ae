"""Alert trigger eligibility and the periodic APScheduler driver."""

from .service import SchedulerService
from .triggers import DEFAULT_IMMEDIATE_INTERVAL, TriggerScheduler, TriggerState

__all__ = [
    "SchedulerService",
    "TriggerScheduler",
    "TriggerState",
    "DEFAULT_IMMEDIATE_INTERVAL",
]
