"""Tree-sitter based call-site extraction for Solidity files."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from models.calls import CallKind, CallSite
from parse.context import ScopeStack
from parse.treesitter_definitions import parameter_name, parameter_type
from parse.treesitter_solidity import (
    CONTRACT_NODE_TYPES,
    declaration_name,
    field_child,
    unwrap,
)
from rewrite.arguments import (
    find_argument_list,
    has_named_arguments,
    match_delimiter,
    split_arguments,
)
from rewrite.errors import ExtractionFailure

if TYPE_CHECKING:
    from tree_sitter import Node

    from models.spans import SourceSpan, SourceText
    from parse.treesitter_solidity import ParsedSource

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
_CAST_RECEIVER = re.compile(r"^([A-Za-z_$][\w$]*)\s*\(")
_NEW_KEYWORD = re.compile(r"^new\s+")
_MEMBER_DOT = re.compile(r"\s*\.\s*")

FUNCTION_NODE_TYPES = frozenset(
    {
        "function_definition",
        "modifier_definition",
        "constructor_definition",
        "fallback_receive_definition",
    }
)

VARIABLE_NODE_TYPES = frozenset({"state_variable_declaration", "variable_declaration"})


def split_callee(text: str) -> tuple[str | None, str] | None:
    """Split a callee expression into ``(receiver, name)``.

    Call options (``{value: v}``) are dropped. Returns None when the part
    after the last top-level ``.`` is not a plain identifier.
    """
    depth = 0
    last_dot = -1
    quote: str | None = None
    index = 0
    while index < len(text):
        char = text[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == "{":
            if depth == 0:
                text = text[:index]
                break
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "." and depth == 0:
            last_dot = index
        index += 1

    if last_dot == -1:
        receiver = None
        name = text.strip()
    else:
        receiver = text[:last_dot].strip()
        name = text[last_dot + 1 :].strip()
    if not _IDENTIFIER.match(name) or receiver == "":
        return None
    return receiver, name


def _compact(expr: str) -> str:
    return _MEMBER_DOT.sub(".", " ".join(expr.split()))


def _cast_type(receiver: str) -> str | None:
    """Type named by a receiver such as ``IERC20(token)``, if any."""
    match = _CAST_RECEIVER.match(receiver)
    if match is None or not receiver.endswith(")"):
        return None
    try:
        close = match_delimiter(receiver, match.end() - 1)
    except ExtractionFailure:
        return None
    return match.group(1) if close == len(receiver) - 1 else None


def _has_own_arguments(node: Node) -> bool:
    """True for a ``new_expression`` that holds its own argument list."""
    return node.type == "new_expression" and any(
        child.type == "(" for child in node.children
    )


def _creates_contract(callee: Node) -> bool:
    """True for ``new T`` and ``new T{salt: s}`` callees."""
    if callee.type == "struct_expression":
        target = unwrap(field_child(callee, "type"))
        return target is not None and target.type == "new_expression"
    return callee.type == "new_expression"


class _CallCollector:
    """Walks one tree, tracking scopes, and collects call sites."""

    def __init__(self, source: SourceText) -> None:
        self.source = source
        self.scopes = ScopeStack()
        self.sites: list[CallSite] = []

    def visit(self, node: Node) -> None:
        node_type = node.type

        if node_type in CONTRACT_NODE_TYPES:
            self._visit_contract(node)
            return

        if node_type in FUNCTION_NODE_TYPES:
            self._visit_function(node)
            return

        if node_type in VARIABLE_NODE_TYPES:
            self._bind(node)

        if node_type in ("emit_statement", "revert_statement"):
            self._visit_statement(node)
            return

        if node_type == "call_expression":
            callee = unwrap(field_child(node, "function"))
            if callee is not None and not _has_own_arguments(callee):
                kind: CallKind = "new" if _creates_contract(callee) else "call"
                self._add_site(node, callee, kind)
        elif node_type == "new_expression" and _has_own_arguments(node):
            self._add_site(node, node, "new")

        self._visit_children(node)

    def _visit_children(self, node: Node, skip: Node | None = None) -> None:
        for child in node.children:
            if skip is not None and child == skip:
                continue
            self.visit(child)

    def _visit_contract(self, node: Node) -> None:
        name = declaration_name(node, self.source) or "<contract>"
        with self.scopes.frame("contract", name):
            body = node.child_by_field_name("body")
            if body is None:
                body = node
            for child in body.children:
                if child.type == "state_variable_declaration":
                    self._bind(child)
            self._visit_children(node)

    def _visit_function(self, node: Node) -> None:
        name = declaration_name(node, self.source) or node.type
        with self.scopes.frame("function", name):
            for child in node.children:
                if child.type == "parameter":
                    self._bind(child)
                elif child.type == "return_type_definition":
                    for returned in child.children:
                        if returned.type == "parameter":
                            self._bind(returned)
            for child in node.children:
                # modifier invocations in the header are left as written
                if child.type != "modifier_invocation":
                    self.visit(child)

    def _visit_statement(self, node: Node) -> None:
        kind: CallKind = "emit" if node.type == "emit_statement" else "revert"
        field_name = "name" if kind == "emit" else "error"
        target = unwrap(node.child_by_field_name(field_name))
        if target is None and node.named_child_count:
            first = node.named_children[0]
            if first.type != "call_argument":
                target = unwrap(first)
        if target is None:
            self._visit_children(node)
            return

        if target.type == "call_expression":
            callee = unwrap(target.child_by_field_name("function"))
            if callee is not None:
                self._add_site(target, callee, kind)
            self._visit_children(node, skip=target)
            self._visit_children(target, skip=callee)
            return

        self._add_site(node, target, kind)
        self._visit_children(node, skip=target)

    def _bind(self, node: Node) -> None:
        name = parameter_name(node, self.source)
        if name:
            self.scopes.bind(name, parameter_type(node, self.source))

    def _receiver_context(
        self, receiver: str | None, kind: CallKind
    ) -> tuple[str | None, str | None]:
        """Return ``(scope_hint, receiver_type)`` for a receiver expression."""
        if receiver is None:
            return None, None
        compact = _compact(receiver)
        if _IDENTIFIER.match(compact):
            if compact in ("this", "super") or kind != "call":
                return compact, None
            return compact, self.scopes.lookup(compact)
        cast = _cast_type(compact)
        if cast is not None:
            return cast, cast
        return None, None

    def _add_site(self, node: Node, callee: Node, kind: CallKind) -> None:
        source = self.source
        text = source.text
        callee_start = source.char_offset(callee.start_byte)
        if kind == "new" and callee is node:
            type_node = node.child_by_field_name("name")
            paren = next(child for child in node.children if child.type == "(")
            callee_end = source.char_offset(
                type_node.end_byte if type_node is not None else paren.start_byte
            )
        else:
            callee_end = source.char_offset(callee.end_byte)
        node_end = source.char_offset(node.end_byte)
        tree_spans = [
            source.node_span(child)
            for child in node.children
            if child.type == "call_argument"
        ]

        error: str | None = None
        raw_callee = text[callee_start:callee_end]
        receiver: str | None = None
        scope_hint: str | None = None
        receiver_type: str | None = None
        if kind == "new":
            # salt and value options sit between the type and the arguments
            head = _compact(raw_callee.split("{", 1)[0])
            callee_name = _NEW_KEYWORD.sub("", head)
            scope_hint = callee_name
            callee_text = f"new {callee_name}"
        else:
            parts = split_callee(raw_callee)
            if parts is None:
                callee_name = callee_text = _compact(raw_callee)
                error = f"callee {callee_text} is not a plain or member name"
            else:
                receiver, callee_name = parts
                scope_hint, receiver_type = self._receiver_context(receiver, kind)
                callee_text = callee_name
                if receiver is not None:
                    callee_text = f"{_compact(receiver)}.{callee_name}"

        open_index = -1
        close: int | None = None
        named = False
        spans: list[SourceSpan] = tree_spans
        try:
            open_index = find_argument_list(text, callee_end, node_end)
        except ExtractionFailure as exc:
            error = error or str(exc)
        else:
            named = has_named_arguments(text, open_index)
            try:
                if named:
                    close = match_delimiter(text, open_index)
                else:
                    bounds, close = split_arguments(text, open_index)
                    if len(tree_spans) != len(bounds):
                        spans = [source.span(start, end) for start, end in bounds]
            except ExtractionFailure:
                close = None

        end = close + 1 if close is not None else node_end
        self.sites.append(
            CallSite(
                callee_name=callee_name,
                scope_hint=scope_hint,
                argument_spans=tuple(spans),
                enclosing_span=source.span(callee_start, end),
                source_file=source.path,
                kind=kind,
                callee_text=callee_text,
                receiver_text=receiver,
                receiver_type=receiver_type,
                enclosing_contract=self.scopes.enclosing_contract,
                arguments_open=open_index,
                arguments_close=close,
                named_arguments=named,
                extraction_error=error,
            )
        )



def extract_calls(parsed: ParsedSource) -> list[CallSite]:
    """Extract every call site of one file in source order.

    Covers plain and member calls, ``emit``/``revert`` statements and
    ``new T(...)``. Each site carries the declared type of its receiver as
    bound in the enclosing scopes at the point of the call.
    """
    collector = _CallCollector(parsed.source)
    collector.visit(parsed.root)
    return sorted(collector.sites, key=lambda site: site.enclosing_span.start)


__all__ = ["FUNCTION_NODE_TYPES", "extract_calls", "split_callee"]
