"""Job sources and the concurrent source aggregator.

Sources:
- Greenhouse: greenhouse.GreenhouseSource
- Lever: lever.LeverSource

Build sources from configuration with the factory:
    from alert_engine.sources.factory import build_sources
    sources = build_sources(app_config.sources, app_config.advanced)
    aggregator = SourceAggregator(sources, timeout_seconds=30)
"""

from .aggregator import AggregationResult, SourceAggregator, SourceOutcome
from .base import HTTPJobSource, JobSource
from .exceptions import (
    SourceConfigurationError,
    SourceFetchError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)
from .factory import build_source, build_sources
from .greenhouse import GreenhouseSource
from .lever import LeverSource

__all__ = [
    "JobSource",
    "HTTPJobSource",
    "GreenhouseSource",
    "LeverSource",
    "build_source",
    "build_sources",
    "SourceAggregator",
    "AggregationResult",
    "SourceOutcome",
    "SourceFetchError",
    "SourceHTTPError",
    "SourceTimeoutError",
    "SourceResponseError",
    "SourceConfigurationError",
]
