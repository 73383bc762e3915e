"""Replacement text for one call: positional arguments become named ones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from models.changes import Change, VerbatimRegion
from rewrite.errors import ShapeMismatch

if TYPE_CHECKING:
    from collections.abc import Sequence

    from models.calls import CallSite
    from models.spans import SourceText
    from rewrite.arguments import ExtractedArgument
    from rules.config import LayoutConfig


@dataclass(frozen=True)
class Layout:
    """Thresholds that switch a rewritten call to one argument per line."""

    max_line_length: int = 100
    max_inline_args: int = 4
    indent_width: int = 4
    trailing_comma: bool = False

    @classmethod
    def from_config(cls, config: LayoutConfig) -> Layout:
        return cls(
            max_line_length=config.max_line_length,
            max_inline_args=config.max_inline_args,
            indent_width=config.indent_width,
            trailing_comma=config.trailing_comma,
        )


class _Builder:
    """Accumulates replacement text and where original text was copied in."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.regions: list[VerbatimRegion] = []
        self.length = 0

    def literal(self, text: str) -> None:
        self.parts.append(text)
        self.length += len(text)

    def verbatim(self, text: str, source_start: int) -> None:
        self.regions.append(
            VerbatimRegion(source_start, source_start + len(text), self.length)
        )
        self.literal(text)

    def text(self) -> str:
        return "".join(self.parts)


def pair_arguments(
    parameter_names: Sequence[str],
    arguments: Sequence[ExtractedArgument],
    callee: str = "<call>",
) -> list[tuple[str, ExtractedArgument]]:
    """Pair each parameter name with the argument in the same position."""
    if len(parameter_names) != len(arguments):
        msg = (
            f"{callee}: {len(parameter_names)} parameter names for "
            f"{len(arguments)} arguments"
        )
        raise ShapeMismatch(msg)
    unnamed = [index for index, name in enumerate(parameter_names) if not name]
    if unnamed:
        msg = f"{callee}: parameter {unnamed[0]} is unnamed"
        raise ShapeMismatch(msg)
    return list(zip(parameter_names, arguments, strict=True))


def _single_line(prefix: str, pairs: list[tuple[str, ExtractedArgument]]) -> str:
    inner = ", ".join(f"{name}: {argument.text}" for name, argument in pairs)
    return f"{prefix}({{{inner}}})"


def plan_rewrite(
    source: SourceText,
    call: CallSite,
    parameter_names: Sequence[str],
    arguments: Sequence[ExtractedArgument],
    layout: Layout | None = None,
) -> Change:
    """Build the change converting ``call`` to named-argument syntax.

    The callee (with any call options) and every argument are copied
    verbatim. The single-line form ``f({a: x, b: y})`` is used unless it is
    longer than ``max_line_length`` or has more than ``max_inline_args``
    arguments; the multi-line form puts each argument on its own line,
    indented ``indent_width`` beyond the line the call starts on, and closes
    with ``})`` at that line's indentation.
    """
    layout = layout or Layout()
    if call.arguments_close is None:
        msg = f"{call.display_name}: argument list has no closing parenthesis"
        raise ShapeMismatch(msg)
    pairs = pair_arguments(parameter_names, arguments, call.display_name)

    start = call.enclosing_span.start
    end = call.arguments_close + 1
    prefix = source.text[start : call.arguments_open]

    builder = _Builder()
    builder.verbatim(prefix, start)
    candidate = _single_line(prefix, pairs)
    inline = len(pairs) <= layout.max_inline_args
    if inline and len(candidate) <= layout.max_line_length:
        builder.literal("({")
        for index, (name, argument) in enumerate(pairs):
            builder.literal(f"{', ' if index else ''}{name}: ")
            builder.verbatim(argument.text, argument.span.start)
        builder.literal("})")
    else:
        indent = source.line_indent(start)
        inner_indent = indent + " " * layout.indent_width
        newline = "\r\n" if "\r\n" in source.text else "\n"
        builder.literal("({" + newline)
        for index, (name, argument) in enumerate(pairs):
            builder.literal(f"{inner_indent}{name}: ")
            builder.verbatim(argument.text, argument.span.start)
            last = index == len(pairs) - 1
            comma = "," if not last or layout.trailing_comma else ""
            builder.literal(comma + newline)
        builder.literal(f"{indent}}})")

    return Change(
        target_span=source.span(start, end),
        original_text=source.text[start:end],
        replacement_text=builder.text(),
        callee_name=call.display_name,
        parameter_names=tuple(parameter_names),
        verbatim_regions=tuple(builder.regions),
    )


__all__ = ["Layout", "pair_arguments", "plan_rewrite"]
