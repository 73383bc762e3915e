"""Tree-sitter parser for Solidity sources and small node helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import tree_sitter_solidity
from tree_sitter import Language, Node, Parser, Tree

from log import get_logger
from models.spans import SourceText
from rewrite.errors import ParseFailure

if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)

_PARSER: Parser | None = None

CONTRACT_NODE_TYPES = frozenset(
    {"contract_declaration", "interface_declaration", "library_declaration"}
)


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with Solidity language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(tree_sitter_solidity.language())
        _PARSER = Parser(lang)

    return _PARSER


@dataclass(frozen=True)
class ParsedSource:
    """One decoded file and its syntax tree."""

    source: SourceText
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def path(self) -> str:
        return self.source.path


def unwrap(node: Node | None) -> Node | None:
    """Descend through ``expression`` wrapper nodes."""
    while node is not None and node.type == "expression" and node.named_child_count:
        node = node.named_children[0]
    return node


def field_child(node: Node, name: str) -> Node | None:
    """Child by field name, else the first named child."""
    child = node.child_by_field_name(name)
    if child is None and node.named_child_count:
        child = node.named_children[0]
    return child


def declaration_name(node: Node, source: SourceText) -> str | None:
    """Name of a contract, function, event or error declaration."""
    name_node = node.child_by_field_name("name")
    if name_node is None:
        name_node = next(
            (child for child in node.named_children if child.type == "identifier"),
            None,
        )
    name = source.node_text(name_node).strip()
    return name or None


def read_source(path: Path, relative_path: str | None = None) -> SourceText:
    """Read and decode a source file; raises ``ParseFailure``."""
    display = relative_path or path.as_posix()
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ParseFailure(display, f"cannot read file: {exc.strerror or exc}") from exc
    try:
        return SourceText.from_bytes(data, display)
    except UnicodeDecodeError as exc:
        raise ParseFailure(display, f"not valid UTF-8: {exc.reason}") from exc


def parse_source(source: SourceText, *, strict: bool = False) -> ParsedSource:
    """Parse decoded source text.

    Syntax-error nodes raise ``ParseFailure`` in strict mode; otherwise they
    are logged and the tree is used as far as it goes.
    """
    tree = _get_parser().parse(source.source_bytes)
    if tree.root_node.has_error:
        if strict:
            raise ParseFailure(source.path, "syntax errors in source")
        logger.warning("%s: syntax errors in source, continuing", source.path)
    return ParsedSource(source=source, tree=tree)


def parse_file(
    path: Path,
    relative_path: str | None = None,
    *,
    strict: bool = False,
) -> ParsedSource:
    return parse_source(read_source(path, relative_path), strict=strict)


__all__ = [
    "CONTRACT_NODE_TYPES",
    "ParsedSource",
    "declaration_name",
    "field_child",
    "parse_file",
    "parse_source",
    "read_source",
    "unwrap",
]
