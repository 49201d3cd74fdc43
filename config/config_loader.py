"""Hierarchical configuration loading for the condition builder.

1. Packaged defaults (config/builder_defaults.yml)
2. Optional override file (explicit path or CONDITION_BUILDER_CONFIG)
3. Deep merge, then pydantic validation
"""

import copy
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .schema import BuilderConfig, LoggingConfig, load_defaults, validate_builder_config

CONFIG_ENV_VAR = "CONDITION_BUILDER_CONFIG"


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Values in override take precedence. Nested dicts are merged recursively.

    Args:
        base: Base configuration dictionary
        override: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def load_builder_config(config_path: Optional[Union[str, Path]] = None) -> BuilderConfig:
    """
    Load builder configuration with optional user overrides.

    Args:
        config_path: Override file. Falls back to $CONDITION_BUILDER_CONFIG,
                     then to the packaged defaults alone.

    Returns:
        Validated BuilderConfig
    """
    merged = load_defaults()

    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else None

    if config_path is not None:
        merged = deep_merge(merged, load_yaml_config(Path(config_path)))

    return validate_builder_config(merged)


@lru_cache(maxsize=1)
def get_builder_config() -> BuilderConfig:
    """Process-wide configuration, loaded once."""
    return load_builder_config()


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Apply logging.basicConfig from the logging section."""
    config = config or get_builder_config().logging
    logging.basicConfig(level=getattr(logging, config.level), format=config.format)
