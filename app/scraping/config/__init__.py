"""
Config helpers for recorder sources.
"""

from app.scraping.config.loader import (
    DEFAULT_SOURCES_PATH,
    build_source_descriptor,
    descriptor_to_payload,
    load_source_configs,
    validate_source_descriptor,
)
from app.scraping.config.models import (
    AcquisitionStrategy,
    SourceConfig,
    SourceDescriptor,
    TimingConfig,
)

__all__ = [
    "AcquisitionStrategy",
    "DEFAULT_SOURCES_PATH",
    "SourceConfig",
    "SourceDescriptor",
    "TimingConfig",
    "build_source_descriptor",
    "descriptor_to_payload",
    "load_source_configs",
    "validate_source_descriptor",
]
