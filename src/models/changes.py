"""Planned text replacements."""

from __future__ import annotations

from dataclasses import dataclass, field

from models.spans import SourceSpan


@dataclass(frozen=True)
class VerbatimRegion:
    """Original text ``[source_start, source_end)`` copied into a replacement.

    ``replacement_offset`` is where the copy begins inside the replacement
    text.
    """

    source_start: int
    source_end: int
    replacement_offset: int


@dataclass(frozen=True)
class Change:
    """Replace ``target_span`` of one buffer with ``replacement_text``."""

    target_span: SourceSpan
    original_text: str
    replacement_text: str
    callee_name: str
    parameter_names: tuple[str, ...]
    verbatim_regions: tuple[VerbatimRegion, ...] = field(default=())

    @property
    def start(self) -> int:
        return self.target_span.start

    @property
    def end(self) -> int:
        return self.target_span.end

    @property
    def line(self) -> int:
        return self.target_span.start_line


__all__ = ["Change", "VerbatimRegion"]
