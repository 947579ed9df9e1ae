"""Lever job board source."""

from typing import Any, Dict, List, Optional

from alert_engine.domain.models import Posting
from alert_engine.logging import get_logger
from alert_engine.utils.timestamps import from_unix_millis, utc_now

from .base import HTTPJobSource
from .exceptions import SourceResponseError

logger = get_logger(__name__, component="source")


class LeverSource(HTTPJobSource):
    """Source for a Lever public postings board.

    API Details:
        Endpoint: https://api.lever.co/v0/postings/{identifier}?mode=json
        Authentication: None (public)
        Response: JSON array of posting objects
    """

    SOURCE_TYPE = "lever"
    API_BASE_URL = "https://api.lever.co/v0/postings"

    def _fetch_postings(self) -> List[Posting]:
        url = f"{self.API_BASE_URL}/{self.source_config.identifier}"
        response = self._make_request(url, params={"mode": "json"})

        if not isinstance(response, list):
            raise SourceResponseError(f"Expected JSON array from {url}, got {type(response).__name__}")

        scraped_at = utc_now()
        postings = []
        for job in response:
            try:
                posting = self._transform_job(job, scraped_at)
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(
                    "Failed to transform Lever posting",
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
        """Transform a Lever posting object into a Posting.

        Field mapping:
            id → id (prefixed with source type and board)
            text → title
            categories.location / commitment / team → location / job_type / tags
            descriptionPlain + additionalPlain → description (HTML as fallback)
            hostedUrl → url
            createdAt (Unix ms) → posted_at
            salaryRange → salary_text
            workplaceType == "remote" → is_remote
            lists[] "requirements" / "benefits" → requirements / benefits

        Returns:
            Posting, or None when the posting has no creation time
        """
        posted_at = from_unix_millis(job.get("createdAt"))
        if posted_at is None:
            return None

        categories = job.get("categories") or {}
        location = categories.get("location")
        workplace = (job.get("workplaceType") or "").lower()
        requirements, benefits = self._lists(job.get("lists") or [])

        return Posting(
            id=f"{self.SOURCE_TYPE}:{self.source_config.identifier}:{job['id']}",
            title=job["text"],
            company=self.source_config.name,
            location=location,
            salary_text=self._salary_text(job.get("salaryRange")),
            description=self._description(job),
            url=job["hostedUrl"],
            posted_at=posted_at,
            job_type=categories.get("commitment"),
            is_remote=workplace == "remote" or "remote" in (location or "").lower(),
            source=self.name(),
            scraped_at=scraped_at,
            tags=[t for t in (categories.get("team"), categories.get("department")) if t],
            requirements=requirements,
            benefits=benefits,
        )

    def _description(self, job: Dict[str, Any]) -> str:
        plain = [
            (job.get(key) or "").strip() for key in ("descriptionPlain", "additionalPlain")
        ]
        plain = [part for part in plain if part]
        if plain:
            return "\n\n".join(plain)

        html_parts = [job.get(key) or "" for key in ("description", "additional")]
        return self._clean_html("\n\n".join(part for part in html_parts if part))

    def _lists(self, lists: List[Dict[str, Any]]):
        requirements: List[str] = []
        benefits: List[str] = []
        for section in lists:
            heading = (section.get("text") or "").lower()
            items = self._list_items(section.get("content"))
            if "benefit" in heading or "perk" in heading:
                benefits.extend(items)
            elif "requirement" in heading or "qualification" in heading:
                requirements.extend(items)
        return requirements, benefits

    @staticmethod
    def _salary_text(salary_range: Optional[Dict[str, Any]]) -> Optional[str]:
        if not salary_range:
            return None
        low, high = salary_range.get("min"), salary_range.get("max")
        if low is None and high is None:
            return None
        currency = salary_range.get("currency") or ""
        figures = " - ".join(f"{int(v):,}" for v in (low, high) if v is not None)
        return f"{currency} {figures}".strip()
