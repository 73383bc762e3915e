"""Parsing utilities for Solidity sources."""

from parse.context import ScopeStack, VariableTypeBinding
from parse.name_resolution import (
    Registry,
    Resolution,
    TypeDeclaration,
    build_registry,
    resolve_call,
)
from parse.treesitter_calls import extract_calls
from parse.treesitter_definitions import extract_definitions
from parse.treesitter_solidity import ParsedSource, parse_file, parse_source

__all__ = [
    "ParsedSource",
    "Registry",
    "Resolution",
    "ScopeStack",
    "TypeDeclaration",
    "VariableTypeBinding",
    "build_registry",
    "extract_calls",
    "extract_definitions",
    "parse_file",
    "parse_source",
    "resolve_call",
]
