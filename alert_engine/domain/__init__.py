"""Domain models for the job alert engine."""

from .exceptions import CriteriaValidationError
from .models import (
    Alert,
    AlertFrequency,
    Criteria,
    DeliveryChannel,
    DeliveryRecord,
    DeliveryStatus,
    Owner,
    Posting,
    build_criteria,
    parse_frequency,
)

__all__ = [
    "Alert",
    "AlertFrequency",
    "Criteria",
    "DeliveryChannel",
    "DeliveryRecord",
    "DeliveryStatus",
    "Owner",
    "Posting",
    "build_criteria",
    "parse_frequency",
    "CriteriaValidationError",
]
