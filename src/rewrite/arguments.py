"""Verbatim argument extraction.

tree-sitter spans are used when they are trustworthy. When a reported span
does not cover a balanced expression that is followed by ``,`` or ``)``, the
extractor falls back to a balance-scan: a forward character scan with
independent depth counters for ``()``, ``[]`` and ``{}``, a quote state that
honours backslash escapes, and a comment state (``//`` to end of line,
``/* ... */`` unnested). Argument text is kept verbatim in both modes,
newlines included.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rewrite.errors import ExtractionFailure

if TYPE_CHECKING:
    from models.calls import CallSite
    from models.spans import SourceSpan, SourceText

_QUOTES = frozenset("\"'")
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())


@dataclass(frozen=True)
class ExtractedArgument:
    """Exact source text of one argument and the span it came from."""

    span: SourceSpan
    text: str


def _skip_string(text: str, index: int, end: int) -> int:
    """Return the offset just past the string literal opening at ``index``."""
    quote = text[index]
    cursor = index + 1
    while cursor < end:
        char = text[cursor]
        if char == "\\":
            cursor += 2
            continue
        if char == quote:
            return cursor + 1
        cursor += 1
    msg = f"unterminated string literal at offset {index}"
    raise ExtractionFailure(msg)


def _skip_comment(text: str, index: int, end: int) -> int | None:
    """Return the offset after a comment starting at ``index``, or None."""
    if text.startswith("//", index):
        newline = text.find("\n", index, end)
        return end if newline == -1 else newline
    if text.startswith("/*", index):
        close = text.find("*/", index + 2, end)
        if close == -1:
            msg = f"unterminated block comment at offset {index}"
            raise ExtractionFailure(msg)
        return close + 2
    return None


def _skip_trivia(text: str, index: int, end: int) -> int:
    """Skip whitespace and comments."""
    while index < end:
        if text[index].isspace():
            index += 1
            continue
        after = _skip_comment(text, index, end) if text[index] == "/" else None
        if after is None:
            return index
        index = after
    return index


def extract_text(span: SourceSpan, source: SourceText) -> str:
    """Return the exact text of ``span``."""
    return source.text[span.start : span.end]


def balance_scan(text: str, start: int, limit: int | None = None) -> int:
    """Find where the argument beginning at ``start`` ends.

    Returns the offset of the first top-level ``,`` or of the ``)`` closing
    the enclosing argument list, whichever comes first.
    """
    end = len(text) if limit is None else min(limit, len(text))
    paren = bracket = brace = 0
    index = start
    while index < end:
        char = text[index]
        if char in _QUOTES:
            index = _skip_string(text, index, end)
            continue
        if char == "/":
            after = _skip_comment(text, index, end)
            if after is not None:
                index = after
                continue
        if char == "(":
            paren += 1
        elif char == ")":
            if paren == 0:
                if bracket or brace:
                    msg = f"unbalanced delimiters before offset {index}"
                    raise ExtractionFailure(msg)
                return index
            paren -= 1
        elif char == "[":
            bracket += 1
        elif char == "]":
            bracket -= 1
        elif char == "{":
            brace += 1
        elif char == "}":
            brace -= 1
        elif char == "," and paren == 0 and bracket == 0 and brace == 0:
            return index
        if bracket < 0 or brace < 0:
            msg = f"unbalanced {char!r} at offset {index}"
            raise ExtractionFailure(msg)
        index += 1
    msg = f"no terminator for argument starting at offset {start}"
    raise ExtractionFailure(msg)


def match_delimiter(text: str, open_index: int, limit: int | None = None) -> int:
    """Return the offset of the delimiter closing the one at ``open_index``."""
    end = len(text) if limit is None else min(limit, len(text))
    expected = [_OPENERS[text[open_index]]]
    index = open_index + 1
    while index < end:
        char = text[index]
        if char in _QUOTES:
            index = _skip_string(text, index, end)
            continue
        if char == "/":
            after = _skip_comment(text, index, end)
            if after is not None:
                index = after
                continue
        if char in _OPENERS:
            expected.append(_OPENERS[char])
        elif char in _CLOSERS:
            if char != expected[-1]:
                msg = f"mismatched {char!r} at offset {index}"
                raise ExtractionFailure(msg)
            expected.pop()
            if not expected:
                return index
        index += 1
    msg = f"no closing {expected[0]!r} for offset {open_index}"
    raise ExtractionFailure(msg)


def is_balanced(fragment: str) -> bool:
    """True when ``fragment`` is one complete argument expression."""
    try:
        terminator = balance_scan(f"{fragment})", 0)
    except ExtractionFailure:
        return False
    return terminator == len(fragment)


def _trim(text: str, start: int, end: int) -> tuple[int, int]:
    """Narrow ``[start, end)`` to the significant expression text."""
    first: int | None = None
    last = start
    index = start
    while index < end:
        char = text[index]
        if char.isspace():
            index += 1
            continue
        if char == "/":
            after = _skip_comment(text, index, end)
            if after is not None:
                index = after
                continue
        following = _skip_string(text, index, end) if char in _QUOTES else index + 1
        if first is None:
            first = index
        last = following
        index = following
    if first is None:
        return start, start
    return first, last


def find_argument_list(text: str, start: int, limit: int | None = None) -> int:
    """Locate the ``(`` opening the argument list after a callee.

    Call options such as ``{value: amount}`` between the callee and the
    parenthesis are skipped.
    """
    end = len(text) if limit is None else min(limit, len(text))
    index = _skip_trivia(text, start, end)
    while index < end and text[index] == "{":
        index = _skip_trivia(text, match_delimiter(text, index, end) + 1, end)
    if index < end and text[index] == "(":
        return index
    msg = f"no argument list after offset {start}"
    raise ExtractionFailure(msg)


def has_named_arguments(text: str, open_index: int) -> bool:
    """True when the argument list is already ``({name: value, ...})``."""
    index = _skip_trivia(text, open_index + 1, len(text))
    return index < len(text) and text[index] == "{"


def split_arguments(text: str, open_index: int) -> tuple[list[tuple[int, int]], int]:
    """Split the list opened at ``open_index`` into argument bounds.

    Returns the trimmed ``(start, end)`` bounds of each top-level argument
    and the offset of the closing ``)``.
    """
    bounds: list[tuple[int, int]] = []
    index = _skip_trivia(text, open_index + 1, len(text))
    if index < len(text) and text[index] == ")":
        return bounds, index

    index = open_index + 1
    while True:
        terminator = balance_scan(text, index)
        start, end = _trim(text, index, terminator)
        if start == end:
            msg = f"empty argument at offset {index}"
            raise ExtractionFailure(msg)
        bounds.append((start, end))
        if text[terminator] == ")":
            return bounds, terminator
        index = terminator + 1


def extract_argument(
    source: SourceText,
    span: SourceSpan,
    limit: int | None = None,
) -> ExtractedArgument:
    """Return the verbatim text of one argument.

    The reported span is trusted when its text is balanced and the next
    significant character is ``,`` or ``)``; otherwise the balance-scan
    recovers the argument's true end from the reported start.
    """
    text = source.text
    end = len(text) if limit is None else min(limit, len(text))
    fragment = text[span.start : span.end]
    if fragment and fragment == fragment.strip() and is_balanced(fragment):
        following = _skip_trivia(text, span.end, end)
        if following < end and text[following] in ",)":
            return ExtractedArgument(span=span, text=fragment)

    terminator = balance_scan(text, span.start, end)
    start, stop = _trim(text, span.start, terminator)
    if start == stop:
        msg = f"empty argument at line {span.start_line}"
        raise ExtractionFailure(msg)
    recovered = source.span(start, stop)
    return ExtractedArgument(span=recovered, text=text[start:stop])


def _check_separators(
    text: str, call: CallSite, spans: list[SourceSpan], close: int
) -> None:
    """Only whitespace and commas may sit between the arguments."""
    edges = [call.arguments_open + 1]
    for span in spans:
        edges.extend((span.start, span.end))
    edges.append(close)

    for position, (gap_start, gap_end) in enumerate(
        zip(edges[::2], edges[1::2], strict=True)
    ):
        if gap_start > gap_end:
            msg = f"overlapping arguments at line {call.line}"
            raise ExtractionFailure(msg)
        expected = "" if position in (0, len(spans)) else ","
        if "".join(text[gap_start:gap_end].split()) != expected:
            msg = f"comment or stray text between arguments at line {call.line}"
            raise ExtractionFailure(msg)


def extract_call_arguments(
    source: SourceText, call: CallSite
) -> list[ExtractedArgument]:
    """Extract every argument of ``call``; raises ``ExtractionFailure``."""
    if call.arguments_close is None:
        msg = f"unterminated argument list for {call.display_name} at line {call.line}"
        raise ExtractionFailure(msg)

    close = call.arguments_close
    arguments = [
        extract_argument(source, span, close + 1) for span in call.argument_spans
    ]
    _check_separators(
        source.text, call, [argument.span for argument in arguments], close
    )
    return arguments


__all__ = [
    "ExtractedArgument",
    "balance_scan",
    "extract_argument",
    "extract_call_arguments",
    "extract_text",
    "find_argument_list",
    "has_named_arguments",
    "is_balanced",
    "match_delimiter",
    "split_arguments",
]
