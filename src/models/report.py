"""Report models for a conversion run.

Records serialize with camelCase keys (``calleeName``, ``argumentCount``)
so an exported unresolved-call list can seed a manual mapping file directly.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from contract.report import REPORT_SCHEMA_VERSION

SkipReason = Literal[
    "already_named",
    "no_arguments",
    "below_min_args",
    "reserved_namespace",
    "type_conversion",
    "global_builtin",
    "member_builtin",
    "extraction_failure",
    "ambiguous",
    "unresolved",
    "shape_mismatch",
]

FileErrorKind = Literal["parse_failure", "overlapping_changes", "write_failure"]


class ReportModel(BaseModel):
    """Base for report records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChangeRecord(ReportModel):
    """One converted call."""

    file: str
    line: int
    callee_name: str
    original_text: str
    replacement_text: str


class UnresolvedCallRecord(ReportModel):
    """A call with no matching definition, ready for manual mapping."""

    function: str
    argument_count: int
    file: str
    line: int


class SkipRecord(ReportModel):
    """A call left untouched, with the reason."""

    file: str
    line: int
    callee_name: str
    reason: SkipReason
    detail: str | None = None


class FileError(ReportModel):
    """A file-level failure; the file's conversions were abandoned."""

    file: str
    kind: FileErrorKind
    message: str


class RunSummary(ReportModel):
    """Aggregate counts for a run."""

    total_files: int = 0
    total_calls: int = 0
    resolved_calls: int = 0
    unresolved_calls: int = 0
    ambiguous_skipped: int = 0
    converted_count: int = 0
    excluded_calls: int = 0
    extraction_failures: int = 0
    shape_mismatches: int = 0
    parse_failures: int = 0
    files_changed: int = 0


class ConversionReport(ReportModel):
    """Top-level machine-readable report."""

    schema_version: int = Field(default=REPORT_SCHEMA_VERSION)
    dry_run: bool
    summary: RunSummary
    changes: list[ChangeRecord] = Field(default_factory=list)
    skipped: list[SkipRecord] = Field(default_factory=list)
    unresolved: list[UnresolvedCallRecord] = Field(default_factory=list)
    errors: list[FileError] = Field(default_factory=list)


__all__ = [
    "ChangeRecord",
    "ConversionReport",
    "FileError",
    "FileErrorKind",
    "RunSummary",
    "SkipReason",
    "SkipRecord",
    "UnresolvedCallRecord",
]
