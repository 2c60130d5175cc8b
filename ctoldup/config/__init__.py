"""Configuration store — the settings record and its on-disk YAML form."""

from ctoldup.config.models import (
    CompressionRule,
    Configuration,
    MergeRule,
    ROSTER_FILE,
    SourceConfig,
)
from ctoldup.config.store import load_config, new_config, save_config

__all__ = [
    "CompressionRule",
    "Configuration",
    "MergeRule",
    "ROSTER_FILE",
    "SourceConfig",
    "load_config",
    "new_config",
    "save_config",
]
