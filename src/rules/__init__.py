"""Conversion rules and their configuration."""

from rules.config import (
    ConfigError,
    LayoutConfig,
    NamedArgsConfig,
    apply_overrides,
    load_config,
)
from rules.eligibility import classify_call, is_eligible
from rules.mapping import ManualMapping, MappingError, load_mapping

__all__ = [
    "ConfigError",
    "LayoutConfig",
    "ManualMapping",
    "MappingError",
    "NamedArgsConfig",
    "apply_overrides",
    "classify_call",
    "is_eligible",
    "load_config",
    "load_mapping",
]
