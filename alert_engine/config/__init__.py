"""Configuration management for the job alert engine."""

from .duration import DurationParseError, parse_duration
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config
from .models import (
    AdvancedConfig,
    AppConfig,
    EmailConfig,
    EngineConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PushConfig,
    SourceConfig,
    SourceType,
)

__all__ = [
    "load_config",
    "parse_config",
    "load_environment_config",
    "parse_duration",
    "AppConfig",
    "SourceConfig",
    "EngineConfig",
    "EmailConfig",
    "PushConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    "SourceType",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
    "DurationParseError",
]
