"""Utility helpers shared across the alert engine."""

from .timestamps import (
    ensure_utc,
    format_timestamp,
    from_unix_millis,
    parse_iso_datetime,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "from_unix_millis",
    "format_timestamp",
]
