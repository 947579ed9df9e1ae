"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class SourceType(str, Enum):
    """Supported job source types."""

    GREENHOUSE = "greenhouse"
    LEVER = "lever"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class SourceConfig(BaseModel):
    """Configuration for a single job source."""

    name: str = Field(..., min_length=1, description="Human-readable name (used as company)")
    type: SourceType = Field(..., description="Source type (greenhouse, lever)")
    identifier: str = Field(..., min_length=1, description="Board identifier in the source API")
    enabled: bool = Field(True, description="Whether to fetch from this source")

    @field_validator("name", "identifier")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    model_config = {"use_enum_values": True}


class EngineConfig(BaseModel):
    """Alert processing settings."""

    poll_interval: str = Field("5m", description="How often to look for due alerts")
    immediate_min_interval: str = Field(
        "5m", description="Minimum spacing between runs of an 'immediate' alert ('0' disables)"
    )
    max_concurrent_alerts: int = Field(4, ge=1, le=32, description="Alert worker pool size")
    source_timeout_seconds: float = Field(
        30, gt=0, le=300, description="Per-source fetch timeout enforced by the aggregator"
    )
    recency_window_days: int = Field(7, ge=1, le=90, description="Drop postings older than this")
    max_results: int = Field(50, ge=1, le=500, description="Matches kept per alert cycle")
    high_match_threshold: int = Field(
        85, ge=0, le=100, description="Score that earns an individual push notification"
    )
    max_match_notifications: int = Field(
        3, ge=0, le=10, description="Individual push notifications per alert cycle"
    )

    # Computed fields
    poll_interval_seconds: Optional[int] = None
    immediate_min_interval_seconds: Optional[int] = None

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: str) -> str:
        """Poll interval must be between 1 minute and 24 hours."""
        try:
            validate_duration_range(parse_duration(v), 60, 86400, "Poll interval")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("immediate_min_interval")
    @classmethod
    def validate_immediate_interval(cls, v: str) -> str:
        """Immediate spacing may be zero but not longer than an hour."""
        try:
            validate_duration_range(
                parse_duration(v, allow_zero=True), 0, 3600, "Immediate interval"
            )
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_seconds(self):
        """Compute derived second values."""
        self.poll_interval_seconds = parse_duration(self.poll_interval)
        self.immediate_min_interval_seconds = parse_duration(
            self.immediate_min_interval, allow_zero=True
        )
        return self


class EmailConfig(BaseModel):
    """Email delivery settings."""

    use_tls: bool = Field(True, description="Use STARTTLS (port 465 always uses implicit TLS)")
    timeout_seconds: int = Field(30, ge=1, le=300, description="SMTP connection timeout")
    subject_prefix: str = Field("Job Alert", description="Prefix for email subjects")


class PushConfig(BaseModel):
    """Push delivery settings. The gateway URL and token come from the environment."""

    enabled: bool = Field(False, description="Deliver push notifications")
    timeout_seconds: int = Field(10, ge=1, le=120, description="Push gateway request timeout")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="Log output format")

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """HTTP settings for job sources."""

    http_request_timeout: int = Field(
        20, ge=5, le=300, description="Request timeout for source API calls (seconds)"
    )
    user_agent: str = Field("JobAlertEngine/1.0", min_length=1)
    max_jobs_per_source: int = Field(
        1000, ge=0, description="Maximum postings kept per source (0 = unlimited)"
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip whitespace from user agent."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object for the job alert engine."""

    sources: List[SourceConfig] = Field(..., min_length=1, description="Job sources")
    engine: EngineConfig = Field(default_factory=EngineConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

    @model_validator(mode="after")
    def validate_sources(self):
        """Require an enabled source and reject duplicates."""
        if not any(source.enabled for source in self.sources):
            raise ValueError("At least one source must be enabled. All sources have enabled=false.")

        seen = set()
        for source in self.sources:
            key = (source.type, source.identifier)
            if key in seen:
                raise ValueError(
                    f"Duplicate source: {source.type}/{source.identifier} appears multiple times"
                )
            seen.add(key)

        return self

    def get_enabled_sources(self) -> List[SourceConfig]:
        """Get list of enabled sources."""
        return [source for source in self.sources if source.enabled]
