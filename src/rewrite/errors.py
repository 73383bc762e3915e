"""Error kinds raised while converting calls.

Every kind is terminal for the call (or file) it concerns; the pipeline
turns them into skip records and never into a conversion.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for conversion failures."""


class ParseFailure(ConversionError):
    """A file could not be read, decoded or (in strict mode) parsed cleanly."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ExtractionFailure(ConversionError):
    """The balance-scan found no terminator for an argument list."""


class AmbiguousResolution(ConversionError):
    """More than one definition matches a call."""


class UnresolvedCall(ConversionError):
    """No definition or manual mapping matches a call."""


class ShapeMismatch(ConversionError):
    """Parameter names cannot be paired one-to-one with the arguments."""


class OverlappingChanges(ConversionError):
    """Two planned changes partially overlap in one buffer."""


__all__ = [
    "AmbiguousResolution",
    "ConversionError",
    "ExtractionFailure",
    "OverlappingChanges",
    "ParseFailure",
    "ShapeMismatch",
    "UnresolvedCall",
]
