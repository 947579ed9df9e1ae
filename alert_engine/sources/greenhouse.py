"""Greenhouse job board source."""

from typing import Any, Dict, List, Optional

from alert_engine.domain.models import Posting
from alert_engine.logging import get_logger
from alert_engine.utils.timestamps import utc_now

from .base import HTTPJobSource
from .exceptions import SourceResponseError

logger = get_logger(__name__, component="source")

_JOB_TYPE_FIELDS = ("employment type", "job type", "commitment")
_EXPERIENCE_FIELDS = ("experience", "seniority", "level")


class GreenhouseSource(HTTPJobSource):
    """Source for a Greenhouse public job board.

    API Details:
        Endpoint: https://boards-api.greenhouse.io/v1/boards/{identifier}/jobs?content=true
        Authentication: None (public)
        Response: JSON object with a 'jobs' array
    """

    SOURCE_TYPE = "greenhouse"
    API_BASE_URL = "https://boards-api.greenhouse.io/v1/boards"

    def _fetch_postings(self) -> List[Posting]:
        url = f"{self.API_BASE_URL}/{self.source_config.identifier}/jobs"
        response = self._make_request(url, params={"content": "true"})

        if not isinstance(response, dict) or not isinstance(response.get("jobs"), list):
            raise SourceResponseError(
                f"Expected JSON object with 'jobs' array from {url}, got {type(response).__name__}"
            )

        scraped_at = utc_now()
        postings = []
        for job in response["jobs"]:
            try:
                posting = self._transform_job(job, scraped_at)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(
                    "Failed to transform Greenhouse job",
                    extra={
                        "event": "source.transform.failed",
                        "source": self.name(),
                        "job_id": job.get("id") if isinstance(job, dict) else None,
                        "error": str(e),
                    },
                )
                continue
            if posting is not None:
                postings.append(posting)
        return postings

    def _transform_job(self, job: Dict[str, Any], scraped_at) -> Optional[Posting]:
        """Transform a Greenhouse job object into a Posting.

        Field mapping:
            id → id (prefixed with source type and board)
            title → title
            source_config.name → company
            location.name → location
            content (escaped HTML) → description
            absolute_url → url
            first_published, else updated_at → posted_at
            metadata "Employment Type" / "Experience" → job_type / experience_level
            departments[].name → tags

        Returns:
            Posting, or None when the job has no usable timestamp
        """
        posted_at = self._parse_timestamp(job.get("first_published")) or self._parse_timestamp(
            job.get("updated_at")
        )
        if posted_at is None:
            logger.debug(
                "Skipping Greenhouse job without timestamp",
                extra={"source": self.name(), "job_id": job.get("id")},
            )
            return None

        location = (job.get("location") or {}).get("name")
        metadata = self._metadata(job.get("metadata") or [])

        return Posting(
            id=f"{self.SOURCE_TYPE}:{self.source_config.identifier}:{job['id']}",
            title=job["title"],
            company=self.source_config.name,
            location=location,
            description=self._clean_html(job.get("content")),
            url=job["absolute_url"],
            posted_at=posted_at,
            job_type=self._first_field(metadata, _JOB_TYPE_FIELDS),
            experience_level=self._first_field(metadata, _EXPERIENCE_FIELDS),
            source=self.name(),
            scraped_at=scraped_at,
            tags=[d["name"] for d in job.get("departments") or [] if d.get("name")],
        )

    @staticmethod
    def _metadata(items: List[Dict[str, Any]]) -> Dict[str, str]:
        """Flatten Greenhouse custom fields into {lower-cased name: text value}."""
        flattened = {}
        for item in items:
            name = (item.get("name") or "").strip().lower()
            value = item.get("value")
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value if v)
            if name and value:
                flattened[name] = str(value)
        return flattened

    @staticmethod
    def _first_field(metadata: Dict[str, str], names: tuple) -> Optional[str]:
        for key, value in metadata.items():
            if any(name in key for name in names):
                return value
        return None
