"""Non-fatal configuration checks reported as warnings."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Inspect raw configuration for settings that are valid but risky.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        Warning messages
    """
    messages = []

    for source in config_dict.get("sources") or []:
        if isinstance(source, dict) and not source.get("enabled", True):
            messages.append(f"Source '{source.get('name', 'Unknown')}' is disabled and will be skipped")

    engine = config_dict.get("engine") or {}
    if isinstance(engine, dict):
        immediate = engine.get("immediate_min_interval")
        if immediate is not None:
            try:
                if parse_duration(str(immediate), allow_zero=True) == 0:
                    messages.append(
                        "immediate_min_interval is 0: immediate alerts run on every poll"
                    )
            except DurationParseError:
                # Reported as an error by model validation
                pass

        timeout = engine.get("source_timeout_seconds")
        workers = engine.get("max_concurrent_alerts")
        if isinstance(timeout, (int, float)) and isinstance(workers, int) and timeout * workers > 600:
            messages.append(
                f"source_timeout_seconds ({timeout}) x max_concurrent_alerts ({workers}) "
                "may keep a poll running for a long time"
            )

    advanced = config_dict.get("advanced") or {}
    if isinstance(advanced, dict):
        max_jobs = advanced.get("max_jobs_per_source", 1000)
        if isinstance(max_jobs, int) and max_jobs > 5000:
            messages.append(f"Large max_jobs_per_source ({max_jobs}) may cause performance issues")

    return messages


def emit_warnings(messages: List[str]) -> None:
    """Emit each message as a UserWarning."""
    for message in messages:
        warnings.warn(message, UserWarning, stacklevel=2)
