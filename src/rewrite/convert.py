"""Batch conversion of positional calls to named-argument syntax.

Every file is parsed first and its definitions go into one registry; only
then is each file's call list classified, resolved and rewritten. A call
that fails any step is reported and left as written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from contract.report import backup_path_for, truncate_text
from log import get_logger
from models.report import (
    ChangeRecord,
    ConversionReport,
    FileError,
    FileErrorKind,
    RunSummary,
    SkipReason,
    SkipRecord,
    UnresolvedCallRecord,
)
from parse.name_resolution import Registry, build_registry, resolve_call
from parse.treesitter_calls import extract_calls
from parse.treesitter_definitions import extract_definitions
from parse.treesitter_solidity import ParsedSource, parse_file
from rewrite.apply import apply_changes
from rewrite.arguments import extract_call_arguments
from rewrite.errors import (
    AmbiguousResolution,
    ExtractionFailure,
    OverlappingChanges,
    ParseFailure,
    ShapeMismatch,
    UnresolvedCall,
)
from rewrite.planner import Layout, plan_rewrite
from rules.config import NamedArgsConfig
from rules.eligibility import classify_call
from rules.mapping import ManualMapping

if TYPE_CHECKING:
    from collections.abc import Sequence

    from models.calls import CallSite
    from models.changes import Change
    from models.definitions import Definition
    from parse.name_resolution import TypeDeclaration

logger = get_logger(__name__)


@dataclass
class FileOutcome:
    """Conversion result for one source file."""

    path: Path
    display_path: str
    original: str
    updated: str
    changes: list[Change] = field(default_factory=list)
    abandoned: bool = False

    @property
    def changed(self) -> bool:
        return self.updated != self.original


@dataclass
class ConversionResult:
    report: ConversionReport
    files: list[FileOutcome] = field(default_factory=list)

    @property
    def summary(self) -> RunSummary:
        return self.report.summary

    @property
    def exit_code(self) -> int:
        return 1 if self.report.summary.parse_failures else 0


def display_path(path: Path, root: Path) -> str:
    """Path relative to ``root`` when inside it, else as given (posix)."""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except (OSError, ValueError):
        return path.as_posix()


def lookup_parameter_names(
    call: CallSite,
    registry: Registry,
    mapping: ManualMapping | None = None,
) -> tuple[str, ...]:
    """Parameter names for ``call`` from the registry or the manual mapping.

    The mapping is only consulted when the registry has no unique answer.
    Raises ``AmbiguousResolution``, ``UnresolvedCall`` or, for a mapping
    entry of the wrong length, ``ShapeMismatch``.
    """
    resolution = resolve_call(call, registry)
    definition = resolution.definition
    if definition is not None:
        return definition.parameter_names

    manual = mapping.lookup(call) if mapping is not None else None
    if manual is not None:
        if len(manual) != call.arity:
            msg = (
                f"{call.display_name}: mapping lists {len(manual)} names for "
                f"{call.arity} arguments"
            )
            raise ShapeMismatch(msg)
        return manual

    if resolution.status == "ambiguous":
        names = ", ".join(sorted(d.qualified_name for d in resolution.candidates))
        count = len(resolution.candidates)
        msg = f"{call.display_name} matches {count} definitions: {names}"
        raise AmbiguousResolution(msg)
    msg = f"{call.display_name} with {call.arity} arguments has no definition"
    raise UnresolvedCall(msg)


class _Run:
    """Mutable state of one conversion run."""

    def __init__(
        self,
        config: NamedArgsConfig,
        mapping: ManualMapping | None,
    ) -> None:
        self.config = config
        self.mapping = mapping
        self.layout = Layout.from_config(config.layout)
        self.report = ConversionReport(dry_run=config.dry_run, summary=RunSummary())

    @property
    def summary(self) -> RunSummary:
        return self.report.summary

    def skip(
        self, call: CallSite, reason: SkipReason, detail: str | None = None
    ) -> None:
        self.report.skipped.append(
            SkipRecord(
                file=call.source_file,
                line=call.line,
                callee_name=call.display_name,
                reason=reason,
                detail=detail,
            )
        )
        logger.info(
            "%s:%d: skipped %s (%s)%s",
            call.source_file,
            call.line,
            call.display_name,
            reason,
            f": {detail}" if detail else "",
        )

    def file_error(self, path: str, kind: FileErrorKind, message: str) -> None:
        self.report.errors.append(FileError(file=path, kind=kind, message=message))
        logger.warning("%s: %s", path, message)

    def plan_call(
        self,
        parsed: ParsedSource,
        call: CallSite,
        registry: Registry,
    ) -> Change | None:
        summary = self.summary
        reason = classify_call(
            call,
            min_args=self.config.min_args,
            known_types=registry.type_names,
            exclude_type_casts=self.config.exclude_type_casts,
        )
        if reason is not None:
            summary.excluded_calls += 1
            self.skip(call, reason)
            return None

        if call.extraction_error is not None:
            summary.extraction_failures += 1
            self.skip(call, "extraction_failure", call.extraction_error)
            return None

        try:
            names = lookup_parameter_names(call, registry, self.mapping)
        except AmbiguousResolution as exc:
            summary.ambiguous_skipped += 1
            self.skip(call, "ambiguous", str(exc))
            return None
        except UnresolvedCall as exc:
            summary.unresolved_calls += 1
            self.report.unresolved.append(
                UnresolvedCallRecord(
                    function=call.display_name,
                    argument_count=call.arity,
                    file=call.source_file,
                    line=call.line,
                )
            )
            self.skip(call, "unresolved", str(exc))
            return None
        except ShapeMismatch as exc:
            summary.shape_mismatches += 1
            self.skip(call, "shape_mismatch", str(exc))
            return None

        try:
            arguments = extract_call_arguments(parsed.source, call)
        except ExtractionFailure as exc:
            summary.extraction_failures += 1
            self.skip(call, "extraction_failure", str(exc))
            return None

        try:
            change = plan_rewrite(parsed.source, call, names, arguments, self.layout)
        except ShapeMismatch as exc:
            summary.shape_mismatches += 1
            self.skip(call, "shape_mismatch", str(exc))
            return None
        summary.resolved_calls += 1
        return change

    def convert(
        self, parsed: ParsedSource, registry: Registry, path: Path
    ) -> FileOutcome:
        source = parsed.source
        outcome = FileOutcome(
            path=path,
            display_path=source.path,
            original=source.text,
            updated=source.text,
        )
        calls = extract_calls(parsed)
        self.summary.total_calls += len(calls)

        changes: list[Change] = []
        for call in calls:
            change = self.plan_call(parsed, call, registry)
            if change is not None:
                changes.append(change)
        if not changes:
            return outcome

        try:
            outcome.updated = apply_changes(source.text, changes)
        except OverlappingChanges as exc:
            outcome.abandoned = True
            self.file_error(source.path, "overlapping_changes", str(exc))
            return outcome

        outcome.changes = sorted(changes, key=lambda change: change.start)
        self.summary.converted_count += len(changes)
        self.report.changes.extend(
            ChangeRecord(
                file=source.path,
                line=change.line,
                callee_name=change.callee_name,
                original_text=truncate_text(change.original_text),
                replacement_text=truncate_text(change.replacement_text),
            )
            for change in outcome.changes
        )
        return outcome


def parse_batch(
    paths: Sequence[Path],
    root: Path,
    *,
    strict: bool = False,
) -> tuple[list[tuple[Path, ParsedSource]], list[ParseFailure]]:
    """Parse every file; failures are returned rather than raised."""
    parsed: list[tuple[Path, ParsedSource]] = []
    failures: list[ParseFailure] = []
    for path in paths:
        try:
            source = parse_file(path, display_path(path, root), strict=strict)
        except ParseFailure as exc:
            failures.append(exc)
        else:
            parsed.append((path, source))
    return parsed, failures


def registry_for(parsed: Sequence[ParsedSource]) -> Registry:
    """Registry of every definition and type declared in ``parsed``."""
    definitions: list[Definition] = []
    types: list[TypeDeclaration] = []
    for source in parsed:
        file_definitions, file_types = extract_definitions(source)
        definitions.extend(file_definitions)
        types.extend(file_types)
    registry = build_registry(definitions, types)
    logger.info(
        "registry: %d definitions, %d types", len(registry), len(registry.type_names)
    )
    return registry


def convert_files(
    paths: Sequence[Path],
    root: Path,
    config: NamedArgsConfig | None = None,
    mapping: ManualMapping | None = None,
) -> ConversionResult:
    """Convert every file in ``paths`` and write the results.

    Nothing is written in dry-run mode. Otherwise each changed file is
    overwritten in place, after saving ``<file>.bak`` when backups are on.
    """
    config = config or NamedArgsConfig()
    run = _Run(config, mapping)
    run.summary.total_files = len(paths)

    parsed, failures = parse_batch(paths, root, strict=config.strict_parse)
    for failure in failures:
        run.summary.parse_failures += 1
        run.file_error(failure.path, "parse_failure", failure.reason)

    registry = registry_for([source for _, source in parsed])
    result = ConversionResult(report=run.report)
    for path, source in parsed:
        result.files.append(run.convert(source, registry, path))

    for outcome in result.files:
        if not outcome.changed:
            continue
        run.summary.files_changed += 1
        if config.dry_run:
            continue
        try:
            write_outcome(outcome, backup=config.backup)
        except OSError as exc:
            run.file_error(outcome.display_path, "write_failure", str(exc))
    return result


def write_outcome(outcome: FileOutcome, *, backup: bool = True) -> None:
    """Write the rewritten text, saving the original first when asked."""
    if backup:
        Path(backup_path_for(str(outcome.path))).write_bytes(
            outcome.original.encode("utf-8")
        )
    outcome.path.write_bytes(outcome.updated.encode("utf-8"))


__all__ = [
    "ConversionResult",
    "FileOutcome",
    "convert_files",
    "display_path",
    "lookup_parameter_names",
    "parse_batch",
    "registry_for",
    "write_outcome",
]
