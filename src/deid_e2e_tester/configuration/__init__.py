"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_configuration
from .runtime_settings import (
    REPORT_FORMATS,
    CleanupSettings,
    HarnessConfiguration,
    LogSettings,
    ReportSettings,
    ServiceSettings,
    StimulusSettings,
    TestDefinition,
)

__all__ = [
    "CleanupSettings",
    "HarnessConfiguration",
    "LogSettings",
    "ReportSettings",
    "ServiceSettings",
    "StimulusSettings",
    "TestDefinition",
    "REPORT_FORMATS",
    "ConfigurationError",
    "load_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
