"""Model namespace for the named-argument converter."""

from models.calls import CallKind, CallSite
from models.changes import Change, VerbatimRegion
from models.definitions import CONSTRUCTOR_NAME, Definition, DefinitionKind
from models.report import (
    ChangeRecord,
    ConversionReport,
    FileError,
    RunSummary,
    SkipReason,
    SkipRecord,
    UnresolvedCallRecord,
)
from models.spans import SourceSpan, SourceText

__all__ = [
    "CONSTRUCTOR_NAME",
    "CallKind",
    "CallSite",
    "Change",
    "ChangeRecord",
    "ConversionReport",
    "Definition",
    "DefinitionKind",
    "FileError",
    "RunSummary",
    "SkipReason",
    "SkipRecord",
    "SourceSpan",
    "SourceText",
    "UnresolvedCallRecord",
    "VerbatimRegion",
]
