"""Job source interface and shared HTTP plumbing.

JobSource is the capability every source exposes to the aggregator:
``name()``, ``is_available()`` and ``fetch(criteria)``. HTTPJobSource adds
request handling, HTML cleanup, and criteria pre-filtering for sources
backed by a public JSON API.
"""

import html
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from alert_engine.config.models import SourceConfig
from alert_engine.domain.models import Criteria, Posting
from alert_engine.logging import get_logger
from alert_engine.utils.timestamps import parse_iso_datetime

from .exceptions import (
    SourceConfigurationError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)

logger = get_logger(__name__, component="source")


class JobSource(ABC):
    """A pluggable provider of postings.

    Implementations raise SourceFetchError (or a subclass) when a fetch fails.
    Timeouts are enforced by the caller; a source does not need to bound its
    own runtime.
    """

    @abstractmethod
    def name(self) -> str:
        """Stable, human-readable source name used in logs and on postings."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the source should be queried this cycle."""

    @abstractmethod
    def fetch(self, criteria: Criteria) -> List[Posting]:
        """Fetch candidate postings for the given criteria.

        Raises:
            SourceFetchError: If the source could not be queried
        """


class HTTPJobSource(JobSource):
    """Base class for sources backed by a JSON HTTP API.

    Subclasses implement ``_fetch_postings()`` returning every posting on the
    board; ``fetch()`` narrows that list to postings that mention at least one
    of the alert's keywords.

    Attributes:
        source_config: Source name, type, and board identifier
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
        max_jobs: Maximum postings returned per fetch (0 = unlimited)
    """

    SOURCE_TYPE = ""

    def __init__(
        self,
        source_config: SourceConfig,
        timeout: int = 20,
        user_agent: str = "JobAlertEngine/1.0",
        max_jobs: int = 1000,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the source.

        Args:
            source_config: Source configuration
            timeout: HTTP request timeout in seconds (5-300)
            user_agent: User-Agent header
            max_jobs: Maximum postings per fetch (0 = unlimited)
            session: Optional requests session (for testing)

        Raises:
            SourceConfigurationError: If timeout is out of range or user_agent is empty
        """
        if not 5 <= timeout <= 300:
            raise SourceConfigurationError(f"Timeout must be between 5 and 300 seconds, got: {timeout}")
        if not user_agent or not user_agent.strip():
            raise SourceConfigurationError("user_agent cannot be empty")

        self.source_config = source_config
        self.timeout = timeout
        self.user_agent = user_agent.strip()
        self.max_jobs = max_jobs

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    def name(self) -> str:
        return f"{self.SOURCE_TYPE}:{self.source_config.identifier}"

    def is_available(self) -> bool:
        return self.source_config.enabled

    def fetch(self, criteria: Criteria) -> List[Posting]:
        postings = self._truncate(self._fetch_postings())
        matching = [p for p in postings if self._mentions_keyword(p, criteria)]

        logger.info(
            f"Fetched {len(postings)} postings from {self.name()}",
            extra={
                "event": "source.fetch.completed",
                "source": self.name(),
                "fetched_count": len(postings),
                "matching_count": len(matching),
            },
        )
        return matching

    @abstractmethod
    def _fetch_postings(self) -> List[Posting]:
        """Fetch and transform every posting on the board."""

    @staticmethod
    def _mentions_keyword(posting: Posting, criteria: Criteria) -> bool:
        if not criteria.keywords:
            return True
        haystack = " ".join([posting.title, posting.description, *posting.skills]).lower()
        return any(keyword in haystack for keyword in criteria.keywords)

    def _make_request(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET a JSON document.

        Args:
            url: URL to request
            params: Query parameters

        Returns:
            Parsed JSON body

        Raises:
            SourceHTTPError: On 4xx/5xx or connection failure
            SourceTimeoutError: On request timeout
            SourceResponseError: On invalid JSON
        """
        logger.debug(
            f"HTTP GET {url}",
            extra={"event": "source.request.started", "url": url, "timeout": self.timeout},
        )

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise SourceTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            raise SourceHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                level,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "source.request.failed",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise SourceHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            raise SourceResponseError(f"Failed to parse JSON response from {url}: {e}") from e

    @staticmethod
    def _clean_html(html_text: Optional[str]) -> str:
        """Convert an HTML fragment to plain text with paragraph breaks."""
        if not html_text:
            return ""

        text = html.unescape(html_text)
        text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
        text = re.sub(r"</p>|</li>", "\n", text, flags=re.IGNORECASE)
        text = re.sub(r"<[^>]+>", " ", text)
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r"\n\s*\n\s*\n+", "\n\n", text)
        return text.strip()

    @staticmethod
    def _list_items(html_text: Optional[str]) -> List[str]:
        """Extract the text of each <li> element."""
        if not html_text:
            return []
        items = re.findall(r"<li[^>]*>(.*?)</li>", html_text, flags=re.IGNORECASE | re.DOTALL)
        cleaned = [re.sub(r"<[^>]+>", " ", html.unescape(item)) for item in items]
        return [" ".join(item.split()) for item in cleaned if item.strip()]

    @staticmethod
    def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
        return parse_iso_datetime(value) if value else None

    def _truncate(self, postings: List[Posting]) -> List[Posting]:
        if self.max_jobs > 0 and len(postings) > self.max_jobs:
            logger.warning(
                "Truncating postings to max_jobs limit",
                extra={
                    "event": "source.fetch.truncated",
                    "source": self.name(),
                    "total": len(postings),
                    "max": self.max_jobs,
                },
            )
            return postings[: self.max_jobs]
        return postings
