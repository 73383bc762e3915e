"""Call-site model produced by the syntax-tree traversal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from models.spans import SourceSpan

CallKind = Literal["call", "emit", "revert", "new"]


@dataclass(frozen=True)
class CallSite:
    """A positional invocation found in one source file.

    ``enclosing_span`` runs from the start of the callee expression to just
    past the closing parenthesis; for ``emit``/``revert`` statements the
    keyword and trailing semicolon are outside it.

    ``extraction_error`` is set when the call was found but its callee or
    argument list could not be read; such calls are reported, never rewritten.
    """

    callee_name: str
    scope_hint: str | None
    argument_spans: tuple[SourceSpan, ...]
    enclosing_span: SourceSpan
    source_file: str
    kind: CallKind = "call"
    callee_text: str = ""
    receiver_text: str | None = None
    receiver_type: str | None = None
    enclosing_contract: str | None = None
    arguments_open: int = -1
    arguments_close: int | None = None
    named_arguments: bool = False
    extraction_error: str | None = None

    @property
    def arity(self) -> int:
        return len(self.argument_spans)

    @property
    def line(self) -> int:
        return self.enclosing_span.start_line

    @property
    def is_member_call(self) -> bool:
        return self.receiver_text is not None

    @property
    def display_name(self) -> str:
        """Callee as written, used for reports and manual-mapping keys."""
        return self.callee_text or self.callee_name


__all__ = ["CallKind", "CallSite"]
