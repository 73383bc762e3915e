"""Manual parameter-name overrides.

A mapping file is a JSON object keyed by callee. Keys may be the callee as
written (``"vault.deposit"``), qualified by the receiver's declared type
(``"IVault.deposit"``) or the bare name (``"deposit"``). Values are the
ordered parameter names, either as a list or as ``{"params": [...]}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from pathlib import Path

    from models.calls import CallSite


class MappingError(Exception):
    """Raised when a mapping file exists but cannot be used."""


def _parse_entry(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, dict):
        value = value.get("params")
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"mapping entry {key!r} must be a list of parameter names"
        raise MappingError(msg)
    return tuple(value)


@dataclass(frozen=True)
class ManualMapping:
    """Read-only override table consulted after registry resolution fails."""

    entries: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def candidate_keys(self, call: CallSite) -> list[str]:
        """Keys tried for ``call``, most specific first."""
        keys = [call.display_name]
        for qualifier in (call.receiver_type, call.scope_hint):
            if qualifier:
                keys.append(f"{qualifier}.{call.callee_name}")
        keys.append(call.callee_name)
        return list(dict.fromkeys(key for key in keys if key))

    def lookup(self, call: CallSite) -> tuple[str, ...] | None:
        for key in self.candidate_keys(call):
            names = self.entries.get(key)
            if names is not None:
                return names
        return None


def load_mapping(path: Path | None) -> ManualMapping:
    """Load a mapping file; a missing path yields an empty mapping."""
    if path is None or not path.is_file():
        return ManualMapping()

    try:
        data = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        msg = f"Invalid mapping file {path}: {exc}"
        raise MappingError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Invalid mapping file {path}: expected a JSON object"
        raise MappingError(msg)

    return ManualMapping(
        entries={str(key): _parse_entry(str(key), value) for key, value in data.items()}
    )


__all__ = ["ManualMapping", "MappingError", "load_mapping"]
