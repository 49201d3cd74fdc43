"""Configuration management module."""

from .schema import (
    BuilderConfig,
    ClipboardConfig,
    DragDropConfig,
    FormatterConfig,
    LoggingConfig,
    load_config,
    load_defaults,
    validate_builder_config,
)
from .config_loader import (
    configure_logging,
    deep_merge,
    get_builder_config,
    load_builder_config,
)

__all__ = [
    "BuilderConfig",
    "ClipboardConfig",
    "DragDropConfig",
    "FormatterConfig",
    "LoggingConfig",
    "load_config",
    "load_defaults",
    "validate_builder_config",
    "configure_logging",
    "deep_merge",
    "get_builder_config",
    "load_builder_config",
]
