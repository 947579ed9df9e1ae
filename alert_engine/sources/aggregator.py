"""Concurrent fan-out over job sources with per-source failure isolation."""

import contextvars
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from alert_engine.domain.models import Criteria, Posting
from alert_engine.logging import get_logger, log_context
from alert_engine.utils.timestamps import ensure_utc, utc_now

from .base import JobSource
from .exceptions import SourceFetchError

logger = get_logger(__name__, component="aggregator")


@dataclass
class SourceOutcome:
    """Value-or-error result of fetching from one source.

    Attributes:
        source: Source name
        postings: Postings returned (empty on failure)
        error: Error message if the fetch failed or timed out
        error_type: Exception class name, or "Timeout"
        timed_out: Whether the aggregator abandoned the fetch
        duration_seconds: Time spent waiting on this source
    """

    source: str
    postings: List[Posting] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    timed_out: bool = False
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class AggregationResult:
    """Postings gathered from all sources for one alert.

    Attributes:
        postings: Recent postings in source registration order
        outcomes: One outcome per queried source
        stale_count: Postings dropped for being older than the recency window
    """

    postings: List[Posting] = field(default_factory=list)
    outcomes: List[SourceOutcome] = field(default_factory=list)
    stale_count: int = 0

    @property
    def failed_sources(self) -> List[str]:
        return [o.source for o in self.outcomes if not o.succeeded]


class SourceAggregator:
    """Fetches postings from every available source concurrently.

    Each source runs on its own worker thread. A source that raises or does
    not finish within ``timeout_seconds`` contributes no postings; the fetch
    is abandoned and never retried within the same call.
    """

    def __init__(
        self,
        sources: Sequence[JobSource],
        timeout_seconds: float = 30.0,
        recency_window: timedelta = timedelta(days=7),
    ) -> None:
        """Initialize the aggregator.

        Args:
            sources: Registered sources, in the order their results are concatenated
            timeout_seconds: Per-source fetch timeout
            recency_window: Postings older than this are dropped
        """
        self.sources = list(sources)
        self.timeout_seconds = timeout_seconds
        self.recency_window = recency_window

    def aggregate(self, criteria: Criteria, now: Optional[datetime] = None) -> AggregationResult:
        """Fetch, concatenate, and recency-filter postings from all available sources.

        Args:
            criteria: Criteria passed to each source
            now: Reference time for the recency window (defaults to current UTC time)

        Returns:
            AggregationResult; never raises for source failures
        """
        now = ensure_utc(now) or utc_now()
        available = [source for source in self.sources if self._is_available(source)]
        if not available:
            logger.warning(
                "No job sources available",
                extra={"event": "aggregator.sources.unavailable", "registered": len(self.sources)},
            )
            return AggregationResult()

        outcomes = self._fetch_all(available, criteria)

        cutoff = now - self.recency_window
        postings: List[Posting] = []
        stale = 0
        for outcome in outcomes:
            for posting in outcome.postings:
                if posting.posted_at >= cutoff:
                    postings.append(posting)
                else:
                    stale += 1

        result = AggregationResult(postings=postings, outcomes=outcomes, stale_count=stale)
        logger.info(
            f"Aggregated {len(postings)} postings from {len(outcomes)} sources",
            extra={
                "event": "aggregator.fetch.completed",
                "posting_count": len(postings),
                "stale_count": stale,
                "source_count": len(outcomes),
                "failed_sources": result.failed_sources,
            },
        )
        return result

    def _fetch_all(self, sources: List[JobSource], criteria: Criteria) -> List[SourceOutcome]:
        started = time.monotonic()
        executor = ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="source-fetch")
        futures: Dict[Future, JobSource] = {}
        try:
            for source in sources:
                # Each worker gets its own copy so log_context fields follow the fetch.
                ctx = contextvars.copy_context()
                futures[executor.submit(ctx.run, self._fetch_one, source, criteria)] = source
            wait(futures, timeout=self.timeout_seconds)
        finally:
            # Abandon anything still running; do not block on it.
            executor.shutdown(wait=False, cancel_futures=True)

        outcomes = []
        for future, source in futures.items():
            if future.done() and not future.cancelled():
                outcomes.append(future.result())
                continue

            elapsed = time.monotonic() - started
            logger.warning(
                f"Source {source.name()} timed out after {self.timeout_seconds}s",
                extra={
                    "event": "aggregator.source.timed_out",
                    "source": source.name(),
                    "timeout_seconds": self.timeout_seconds,
                },
            )
            outcomes.append(
                SourceOutcome(
                    source=source.name(),
                    error=f"Timed out after {self.timeout_seconds} seconds",
                    error_type="Timeout",
                    timed_out=True,
                    duration_seconds=elapsed,
                )
            )
        return outcomes

    @staticmethod
    def _fetch_one(source: JobSource, criteria: Criteria) -> SourceOutcome:
        started = time.monotonic()
        name = source.name()
        with log_context(source=name):
            try:
                postings = list(source.fetch(criteria))
            except SourceFetchError as e:
                logger.warning(
                    f"Source {name} failed: {e}",
                    extra={
                        "event": "aggregator.source.failed",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )
                return SourceOutcome(
                    source=name,
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_seconds=time.monotonic() - started,
                )
            except Exception as e:
                logger.error(
                    f"Unexpected error fetching from {name}: {e}",
                    extra={
                        "event": "aggregator.source.failed",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                    exc_info=True,
                )
                return SourceOutcome(
                    source=name,
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_seconds=time.monotonic() - started,
                )

        return SourceOutcome(
            source=name, postings=postings, duration_seconds=time.monotonic() - started
        )

    @staticmethod
    def _is_available(source: JobSource) -> bool:
        try:
            return bool(source.is_available())
        except Exception as e:
            logger.warning(
                f"Availability check failed for {source.name()}: {e}",
                extra={
                    "event": "aggregator.source.unavailable",
                    "source": source.name(),
                    "error_type": type(e).__name__,
                },
            )
            return False
