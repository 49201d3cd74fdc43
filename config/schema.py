"""Configuration validation schemas using Pydantic."""

from typing import Literal, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
import yaml
from pathlib import Path


class FormatterConfig(BaseModel):
    """Condition preview formatting."""
    strict_nested_completeness: bool = Field(
        default=False,
        description="Also report incomplete leaves inside nested groups (default: direct children only)",
    )


class DragDropConfig(BaseModel):
    """Drag-and-drop move behaviour."""
    on_target_missing: Literal["abort", "drop"] = Field(
        default="abort",
        description="'abort' leaves the tree unchanged when the drop target group is gone; "
                    "'drop' removes the dragged item without reinserting it",
    )
    compensate_same_group_shift: bool = Field(
        default=True,
        description="Shift the target index down when source and target share a group and the source precedes it",
    )
    activation_distance: int = Field(default=5, ge=0, description="Pointer travel in pixels before a drag starts")


class ClipboardConfig(BaseModel):
    """Per-scope condition clipboard."""
    max_scopes: int = Field(default=256, gt=0, description="Clipboards kept before the least recently used is evicted")


class LoggingConfig(BaseModel):
    """Logging setup for scripts and the API app."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        v = str(v).upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v


class BuilderConfig(BaseModel):
    """Complete condition builder configuration.

    Defaults live in config/builder_defaults.yml; a user file can override
    any subset of keys.
    """
    formatter: FormatterConfig = Field(default_factory=FormatterConfig)
    dnd: DragDropConfig = Field(default_factory=DragDropConfig)
    clipboard: ClipboardConfig = Field(default_factory=ClipboardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def validate_builder_config(config_dict: Optional[Dict[str, Any]]) -> BuilderConfig:
    """Validate and return BuilderConfig object."""
    return BuilderConfig(**(config_dict or {}))


def load_defaults() -> Dict[str, Any]:
    """Load default configuration values."""
    defaults_path = Path(__file__).parent / "builder_defaults.yml"
    return load_config(defaults_path)
