"""Test helpers: posting/alert factories and in-memory collaborators."""

from .factories import REFERENCE_NOW, make_alert, make_owner, make_posting
from .stubs import (
    FailingSource,
    InMemoryAlertStore,
    RecordingEmailSender,
    RecordingPushSender,
    SlowSource,
    StaticSource,
)

__all__ = [
    "REFERENCE_NOW",
    "make_alert",
    "make_owner",
    "make_posting",
    "FailingSource",
    "InMemoryAlertStore",
    "RecordingEmailSender",
    "RecordingPushSender",
    "SlowSource",
    "StaticSource",
]
