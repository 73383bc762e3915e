from __future__ import annotations

from pathlib import Path
from typing import Any

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "namedargs.toml"


class LayoutConfig(BaseModel):
    """Single-line versus multi-line layout of rewritten calls."""

    model_config = ConfigDict(extra="forbid")

    max_line_length: int = Field(
        default=100,
        ge=1,
        description="Single-line calls longer than this become multi-line",
    )
    max_inline_args: int = Field(
        default=4,
        ge=1,
        description="Calls with more arguments than this become multi-line",
    )
    indent_width: int = Field(
        default=4,
        ge=0,
        description="Extra indentation of arguments in multi-line calls",
    )
    trailing_comma: bool = Field(
        default=False,
        description="Follow the last argument of a multi-line call with a comma",
    )


class NamedArgsConfig(BaseModel):
    """Configuration for a named-argument conversion run."""

    model_config = ConfigDict(extra="forbid")

    min_args: int = Field(
        default=1,
        ge=0,
        description="Minimum positional arguments for a call to be converted",
    )
    dry_run: bool = Field(
        default=False,
        description="Report conversions without writing any source file",
    )
    verbose: bool = Field(
        default=False,
        description="Log the reason for every skipped call",
    )
    backup: bool = Field(
        default=True,
        description="Write <file>.bak with the original text before overwriting",
    )
    mapping_file: str | None = Field(
        default=None,
        description="JSON table of manual parameter names per callee",
    )
    exclude_type_casts: bool = Field(
        default=True,
        description="Skip one-argument calls to contract/interface names",
    )
    strict_parse: bool = Field(
        default=False,
        description="Treat syntax-error nodes in a tree as a parse failure",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all .sol files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    layout: LayoutConfig = Field(
        default_factory=LayoutConfig,
        description="Layout of rewritten calls",
    )

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def validate_patterns(cls, v: Any) -> Any:
        """Accept a single glob string as a one-element list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path, config_path: Path | None = None) -> NamedArgsConfig:
    """Load configuration from namedargs.toml (or ``config_path``) if present.

    An explicit ``config_path`` must exist; the default file is optional.
    """
    if config_path is None:
        config_path = Path(root) / CONFIG_FILENAME
        if not config_path.is_file():
            return NamedArgsConfig()
    elif not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise ConfigError(msg)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return NamedArgsConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e


def apply_overrides(config: NamedArgsConfig, **overrides: Any) -> NamedArgsConfig:
    """Return a copy of ``config`` with every non-None override applied."""
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config
    merged = config.model_dump()
    merged.update(updates)
    try:
        return NamedArgsConfig.model_validate(merged)
    except Exception as e:
        msg = f"Invalid option: {e}"
        raise ConfigError(msg) from e
