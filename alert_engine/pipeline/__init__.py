"""Alert orchestration: trigger cycles from due-alert selection to delivery records."""

from .models import AlertCycleResult, RunResult
from .runner import AlertOrchestrator

__all__ = [
    "AlertOrchestrator",
    "AlertCycleResult",
    "RunResult",
]
