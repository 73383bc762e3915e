"""Argument extraction, rewrite planning and patch application."""

from rewrite.apply import apply_changes
from rewrite.arguments import ExtractedArgument, extract_call_arguments, extract_text
from rewrite.errors import (
    AmbiguousResolution,
    ConversionError,
    ExtractionFailure,
    OverlappingChanges,
    ParseFailure,
    ShapeMismatch,
    UnresolvedCall,
)
from rewrite.planner import Layout, plan_rewrite


def __getattr__(name: str) -> object:
    # the pipeline imports parse, which imports rewrite.errors
    if name in {"ConversionResult", "FileOutcome", "convert_files"}:
        from rewrite.convert import ConversionResult, FileOutcome, convert_files

        return {
            "ConversionResult": ConversionResult,
            "FileOutcome": FileOutcome,
            "convert_files": convert_files,
        }[name]

    msg = f"module 'rewrite' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "AmbiguousResolution",
    "ConversionError",
    "ConversionResult",
    "ExtractedArgument",
    "ExtractionFailure",
    "FileOutcome",
    "Layout",
    "OverlappingChanges",
    "ParseFailure",
    "ShapeMismatch",
    "UnresolvedCall",
    "apply_changes",
    "convert_files",
    "extract_call_arguments",
    "extract_text",
    "plan_rewrite",
]
