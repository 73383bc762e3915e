"""Tree-sitter based definition extraction for Solidity files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from models.definitions import CONSTRUCTOR_NAME, Definition, DefinitionKind
from parse.name_resolution import TypeDeclaration
from parse.treesitter_solidity import (
    CONTRACT_NODE_TYPES,
    declaration_name,
    field_child,
)

if TYPE_CHECKING:
    from tree_sitter import Node

    from models.spans import SourceText
    from parse.treesitter_solidity import ParsedSource

_DEFINITION_KINDS: dict[str, DefinitionKind] = {
    "function_definition": "function",
    "modifier_definition": "modifier",
    "constructor_definition": "function",
    "event_definition": "event",
    "error_declaration": "error",
}

PARAMETER_NODE_TYPES = frozenset({"parameter", "event_parameter", "error_parameter"})

_CONTRACT_KINDS = {
    "contract_declaration": "contract",
    "interface_declaration": "interface",
    "library_declaration": "library",
}


def parameter_name(node: Node, source: SourceText) -> str:
    """Name of a parameter node; empty for unnamed parameters."""
    name_node = node.child_by_field_name("name")
    if name_node is None:
        # the type always comes first
        identifiers = [
            child for child in node.named_children[1:] if child.type == "identifier"
        ]
        name_node = identifiers[-1] if identifiers else None
    return source.node_text(name_node).strip()


def parameter_type(node: Node, source: SourceText) -> str:
    return source.node_text(field_child(node, "type")).strip()


def parameter_nodes(node: Node) -> list[Node]:
    """Direct parameter children; return parameters are nested deeper."""
    return [child for child in node.children if child.type in PARAMETER_NODE_TYPES]


def _base_names(node: Node, source: SourceText) -> tuple[str, ...]:
    bases: list[str] = []
    for child in node.children:
        if child.type != "inheritance_specifier":
            continue
        ancestor = child.child_by_field_name("ancestor")
        text = source.node_text(ancestor if ancestor is not None else child)
        name = text.split("(", 1)[0].strip()
        if name:
            bases.append(name)
    return tuple(bases)


def _definition(
    node: Node,
    source: SourceText,
    scope: str | None,
) -> Definition | None:
    kind = _DEFINITION_KINDS[node.type]
    if node.type == "constructor_definition":
        if scope is None:
            return None
        name: str | None = CONSTRUCTOR_NAME
    else:
        name = declaration_name(node, source)
    if not name:
        return None

    return Definition(
        name=name,
        parameter_names=tuple(
            parameter_name(child, source) for child in parameter_nodes(node)
        ),
        scope=scope,
        kind=kind,
        path=source.path,
        line=node.start_point[0] + 1,
    )


def _traverse_definitions(
    node: Node,
    source: SourceText,
    scope: str | None,
    definitions: list[Definition],
    types: list[TypeDeclaration],
) -> None:
    if node.type in CONTRACT_NODE_TYPES:
        name = declaration_name(node, source)
        if name is None:
            return
        types.append(
            TypeDeclaration(
                name=name,
                kind=_CONTRACT_KINDS[node.type],
                bases=_base_names(node, source),
                path=source.path,
            )
        )
        for child in node.children:
            _traverse_definitions(child, source, name, definitions, types)
        return

    if node.type in _DEFINITION_KINDS:
        definition = _definition(node, source, scope)
        if definition is not None:
            definitions.append(definition)
        return

    for child in node.children:
        _traverse_definitions(child, source, scope, definitions, types)


def extract_definitions(
    parsed: ParsedSource,
) -> tuple[list[Definition], list[TypeDeclaration]]:
    """Extract every callable definition and type declaration of one file.

    Functions, modifiers, events and errors keep their parameter names in
    order (unnamed parameters as empty strings). Constructors are recorded
    as functions named ``constructor`` scoped to their contract. Bodies are
    not searched, so nothing declared inside a function is collected.
    """
    definitions: list[Definition] = []
    types: list[TypeDeclaration] = []
    _traverse_definitions(parsed.root, parsed.source, None, definitions, types)
    return definitions, types


__all__ = [
    "PARAMETER_NODE_TYPES",
    "extract_definitions",
    "parameter_name",
    "parameter_nodes",
    "parameter_type",
]
