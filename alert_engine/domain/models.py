"""Core domain models for criteria, postings, alerts, and deliveries.

This module defines the data structures shared by every engine component:
- Criteria: what an alert owner is looking for
- Posting: a single job listing returned by a source
- Owner: the person an alert belongs to
- Alert: a saved search with a delivery cadence
- DeliveryRecord: the persisted outcome of one completed trigger cycle
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator, model_validator

from alert_engine.utils.timestamps import ensure_utc, utc_now

from .exceptions import CriteriaValidationError


class AlertFrequency(str, Enum):
    """How often an alert may trigger."""

    IMMEDIATE = "immediate"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class DeliveryStatus(str, Enum):
    """Outcome of a dispatch across the attempted channels."""

    SENT = "sent"
    PARTIAL = "partial"
    FAILED = "failed"


class DeliveryChannel(str, Enum):
    """Channels that succeeded during a dispatch."""

    EMAIL = "email"
    PUSH = "push"
    BOTH = "both"
    NONE = "none"


def _normalize_terms(values: List[str]) -> List[str]:
    """Strip, lower-case, and de-duplicate terms while keeping first-seen order."""
    normalized: List[str] = []
    for value in values:
        stripped = value.strip().lower()
        if stripped and stripped not in normalized:
            normalized.append(stripped)
    return normalized


class Criteria(BaseModel):
    """What an alert owner wants to be notified about.

    List fields are case-insensitive sets; they are stored lower-cased and
    de-duplicated. An empty list or a missing value means the dimension is
    unconstrained, not "reject everything".
    """

    keywords: List[str] = Field(default_factory=list, description="Terms to look for")
    exclude_keywords: List[str] = Field(
        default_factory=list, description="Terms that penalise a posting"
    )
    location: Optional[str] = Field(None, description="Desired location or 'remote'")
    salary_min: Optional[int] = Field(None, description="Lowest acceptable salary")
    salary_max: Optional[int] = Field(None, description="Highest expected salary")
    companies: List[str] = Field(default_factory=list, description="Preferred companies")
    job_types: List[str] = Field(default_factory=list, description="e.g. full-time, contract")
    experience_levels: List[str] = Field(
        default_factory=list, description="e.g. junior, senior"
    )

    @field_validator("keywords", "exclude_keywords", "companies", "job_types", "experience_levels")
    @classmethod
    def normalize_terms(cls, v: List[str]) -> List[str]:
        """Normalize terms: strip whitespace, lower-case, drop empties and duplicates."""
        return _normalize_terms(v)

    @field_validator("location")
    @classmethod
    def strip_location(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank locations as unconstrained."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("salary_min", "salary_max")
    @classmethod
    def non_negative_salary(cls, v: Optional[int]) -> Optional[int]:
        """Reject negative salary bounds."""
        if v is not None and v < 0:
            raise ValueError("salary bounds must be non-negative")
        return v

    @model_validator(mode="after")
    def validate_salary_range(self):
        """Reject inverted salary ranges."""
        if (
            self.salary_min is not None
            and self.salary_max is not None
            and self.salary_min > self.salary_max
        ):
            raise ValueError(
                f"salary_min ({self.salary_min}) cannot exceed salary_max ({self.salary_max})"
            )
        return self

    model_config = {"json_schema_extra": {"example": {
        "keywords": ["react", "javascript"],
        "exclude_keywords": ["intern"],
        "location": "San Francisco",
        "salary_min": 80000,
        "salary_max": 120000,
        "companies": [],
        "job_types": ["full-time"],
        "experience_levels": ["senior"],
    }}}


def _format_validation_errors(error: ValidationError) -> List[str]:
    """Flatten pydantic errors into 'field: message' lines."""
    lines = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"]) or "criteria"
        lines.append(f"{field_path}: {item['msg']}")
    return lines


def build_criteria(data: Optional[Mapping[str, Any]]) -> Criteria:
    """Build a Criteria from untrusted input.

    Args:
        data: Mapping of criteria fields (None means fully unconstrained)

    Returns:
        Validated Criteria

    Raises:
        CriteriaValidationError: If any field is structurally invalid
    """
    try:
        return Criteria.model_validate(dict(data or {}))
    except ValidationError as e:
        raise CriteriaValidationError(
            "Invalid alert criteria", errors=_format_validation_errors(e)
        ) from e


def parse_frequency(value: Any) -> AlertFrequency:
    """Parse a frequency string into AlertFrequency.

    Raises:
        CriteriaValidationError: If the value is not a known frequency
    """
    if isinstance(value, AlertFrequency):
        return value
    try:
        return AlertFrequency(str(value).strip().lower())
    except ValueError as e:
        valid = ", ".join(f.value for f in AlertFrequency)
        raise CriteriaValidationError(
            "Invalid alert frequency", errors=[f"frequency must be one of {valid}, got: {value}"]
        ) from e


class Posting(BaseModel):
    """A single job listing as returned by a source.

    The grouping/merging fields (tags, requirements, benefits, confidence,
    scraped_at) default to neutral values for sources that do not provide them.
    """

    id: str = Field(..., description="Source-stable posting identifier")
    title: str = Field(..., description="Job title")
    company: str = Field(..., description="Company name")
    location: Optional[str] = Field(None, description="Job location")
    salary_text: Optional[str] = Field(None, description="Free-form salary text")
    description: str = Field("", description="Job description text")
    url: str = Field(..., description="Canonical per-source URL")
    posted_at: datetime = Field(..., description="When the job was posted (UTC)")
    job_type: Optional[str] = Field(None, description="e.g. full-time")
    experience_level: Optional[str] = Field(None, description="e.g. senior")
    skills: List[str] = Field(default_factory=list, description="Listed skills")
    is_remote: bool = Field(False, description="Whether the job is remote")
    source: Optional[str] = Field(None, description="Name of the source it came from")
    scraped_at: Optional[datetime] = Field(None, description="When the source returned it (UTC)")
    confidence: float = Field(1.0, ge=0.0, le=1.0, description="Extraction confidence")
    tags: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def derive_remote_flag(cls, data: Any) -> Any:
        """Derive is_remote from the location text when not given explicitly."""
        if isinstance(data, dict) and data.get("is_remote") is None:
            location = data.get("location") or ""
            data = {**data, "is_remote": "remote" in str(location).lower()}
        return data

    @field_validator("id", "title", "company", "url")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Strip whitespace from required string fields."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("location", "salary_text", "job_type", "experience_level")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        """Collapse blank optional fields to None."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("posted_at", "scraped_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    model_config = {"json_schema_extra": {"example": {
        "id": "gh-12345",
        "title": "React JavaScript Developer",
        "company": "Example Corp",
        "location": "San Francisco, CA",
        "salary_text": "$100,000",
        "description": "Build product features with React...",
        "url": "https://boards.greenhouse.io/examplecorp/jobs/12345",
        "posted_at": "2025-11-01T12:00:00Z",
        "job_type": "full-time",
        "skills": ["react", "typescript"],
    }}}


class Owner(BaseModel):
    """The user an alert belongs to."""

    id: int = Field(..., description="Owner identifier")
    email: EmailStr = Field(..., description="Address for email delivery")
    name: Optional[str] = Field(None, description="Display name")
    push_enabled: bool = Field(False, description="Whether push delivery is enabled")


class Alert(BaseModel):
    """A saved search with criteria, an owner, and a delivery cadence.

    last_triggered_at only ever moves forward; the store enforces this.
    """

    id: int = Field(..., description="Alert identifier")
    owner_id: int = Field(..., description="Owning user")
    name: str = Field(..., min_length=1, description="Display name")
    description: Optional[str] = Field(None, description="Optional note")
    criteria: Criteria = Field(default_factory=Criteria)
    frequency: AlertFrequency = Field(AlertFrequency.DAILY)
    active: bool = Field(True)
    last_triggered_at: Optional[datetime] = Field(None)
    total_notifications: int = Field(0, ge=0, description="Completed deliveries so far")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("last_triggered_at", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)


class DeliveryRecord(BaseModel):
    """Persisted outcome of one completed trigger cycle."""

    id: Optional[int] = Field(None, description="Assigned by the store")
    alert_id: int
    owner_id: Optional[int] = None
    triggered_at: datetime
    jobs_found: int = Field(..., ge=0)
    status: DeliveryStatus
    channel: DeliveryChannel
    posting_ids: List[str] = Field(default_factory=list, description="First delivered postings")
    error_message: Optional[str] = None

    @field_validator("triggered_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)
