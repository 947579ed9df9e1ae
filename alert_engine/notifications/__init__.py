"""Notification delivery over email and push.

This module provides:
- NotificationDispatcher: concurrent, failure-isolated delivery per alert
- EmailSender / PushSender: channel interfaces
- SMTPEmailSender / WebhookPushSender: bundled channel implementations
- DispatchResult and delivery exceptions
"""

from .base import EmailSender, PushSender
from .dispatcher import NotificationDispatcher
from .models import (
    ChannelResult,
    DeliveryError,
    DispatchResult,
    NotificationTemplateError,
    PushDeliveryError,
    SMTPDeliveryError,
)
from .push import WebhookPushSender
from .smtp_sender import SMTPEmailSender

__all__ = [
    "NotificationDispatcher",
    "EmailSender",
    "PushSender",
    "SMTPEmailSender",
    "WebhookPushSender",
    "ChannelResult",
    "DispatchResult",
    "DeliveryError",
    "NotificationTemplateError",
    "PushDeliveryError",
    "SMTPDeliveryError",
]
