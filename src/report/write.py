"""Report output: JSON files and the console summary."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING

import orjson

from contract.report import REPORT_JSON, UNRESOLVED_JSON

if TYPE_CHECKING:
    from collections.abc import Sequence

    from models.report import ConversionReport, RunSummary, UnresolvedCallRecord
    from rewrite.convert import ConversionResult

PREVIEW_LIMIT = 3
RULE = "=" * 80


def _write_json(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))


def write_report(report: ConversionReport, path: Path | None = None) -> Path:
    """Write the full run report (``named-args-report.json`` by default)."""
    target = path if path is not None else Path(REPORT_JSON)
    _write_json(target, report.model_dump(mode="json", by_alias=True))
    return target


def write_unresolved(
    records: Sequence[UnresolvedCallRecord],
    path: Path | None = None,
) -> Path:
    """Export unresolved calls as a JSON list to seed a manual mapping."""
    target = path if path is not None else Path(UNRESOLVED_JSON)
    _write_json(
        target, [record.model_dump(mode="json", by_alias=True) for record in records]
    )
    return target


def format_summary(summary: RunSummary, *, dry_run: bool = False) -> list[str]:
    """Console lines summarising a run."""
    title = "CONVERSION SUMMARY (dry run)" if dry_run else "CONVERSION SUMMARY"
    lines = [
        RULE,
        title,
        RULE,
        f"Files processed: {summary.total_files}",
        f"Calls found: {summary.total_calls}",
        f"Calls converted: {summary.converted_count}",
        f"Files changed: {summary.files_changed}",
        f"Resolved calls: {summary.resolved_calls}",
        f"Unresolved calls: {summary.unresolved_calls}",
        f"Ambiguous calls skipped: {summary.ambiguous_skipped}",
        f"Excluded calls: {summary.excluded_calls}",
    ]
    if summary.extraction_failures:
        lines.append(f"Extraction failures: {summary.extraction_failures}")
    if summary.shape_mismatches:
        lines.append(f"Shape mismatches: {summary.shape_mismatches}")
    if summary.parse_failures:
        lines.append(f"Parse failures: {summary.parse_failures}")
    lines.append(RULE)
    return lines


def _preview(entries: list[str], heading: str) -> list[str]:
    lines = [f"  {heading} ({len(entries)}):"]
    lines.extend(f"    - {entry}" for entry in entries[:PREVIEW_LIMIT])
    if len(entries) > PREVIEW_LIMIT:
        lines.append(f"    ... and {len(entries) - PREVIEW_LIMIT} more")
    return lines


def format_analysis(result: ConversionResult) -> list[str]:
    """Per-file resolved and unresolved calls, a few of each."""
    unresolved: dict[str, list[str]] = defaultdict(list)
    for record in result.report.unresolved:
        unresolved[record.file].append(
            f"{record.function}({record.argument_count} args) at line {record.line}"
        )

    lines: list[str] = []
    for outcome in result.files:
        resolved = [
            f"{change.callee_name}({len(change.parameter_names)} args) "
            f"at line {change.line}"
            for change in outcome.changes
        ]
        missing = unresolved.get(outcome.display_path, [])
        if not resolved and not missing:
            continue
        lines.append(f"{outcome.display_path}:")
        if resolved:
            lines.extend(_preview(resolved, "Resolved calls"))
        if missing:
            lines.extend(_preview(missing, "Unresolved calls"))
    return lines


__all__ = ["format_analysis", "format_summary", "write_report", "write_unresolved"]
