"""Factory for building job sources from configuration."""

from typing import Dict, List, Type

from alert_engine.config.models import AdvancedConfig, SourceConfig
from alert_engine.logging import get_logger

from .base import HTTPJobSource
from .exceptions import SourceConfigurationError
from .greenhouse import GreenhouseSource
from .lever import LeverSource

logger = get_logger(__name__, component="source")

SOURCE_TYPES: Dict[str, Type[HTTPJobSource]] = {
    "greenhouse": GreenhouseSource,
    "lever": LeverSource,
}


def build_source(source_config: SourceConfig, advanced_config: AdvancedConfig) -> HTTPJobSource:
    """Instantiate the source class for a configured source.

    Args:
        source_config: Source configuration with type and identifier
        advanced_config: HTTP timeout, user-agent, and max_jobs settings

    Returns:
        Configured source

    Raises:
        SourceConfigurationError: If the source type is not supported
    """
    source_type = str(source_config.type).lower()
    source_class = SOURCE_TYPES.get(source_type)

    if source_class is None:
        supported = ", ".join(sorted(SOURCE_TYPES))
        raise SourceConfigurationError(
            f"Unknown source type: {source_config.type}. Supported types: {supported}"
        )

    logger.debug(
        "Creating source",
        extra={
            "source_type": source_type,
            "source": source_config.identifier,
            "source_class": source_class.__name__,
        },
    )

    return source_class(
        source_config,
        timeout=advanced_config.http_request_timeout,
        user_agent=advanced_config.user_agent,
        max_jobs=advanced_config.max_jobs_per_source,
    )


def build_sources(
    source_configs: List[SourceConfig], advanced_config: AdvancedConfig
) -> List[HTTPJobSource]:
    """Build every enabled source, in configuration order."""
    return [
        build_source(source_config, advanced_config)
        for source_config in source_configs
        if source_config.enabled
    ]
