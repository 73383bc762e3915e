"""Lexical context tracked while walking one syntax tree.

A frame is pushed for every contract, interface or library body and for
every function, modifier or constructor inside it. Frames hold the declared
type of each variable visible there; lookups walk the stack from the top so
inner declarations shadow outer ones.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Literal

FrameKind = Literal["contract", "function"]

_TYPE_NAME = re.compile(
    r"^[A-Za-z_$][\w$]*(?:\s*\.\s*[A-Za-z_$][\w$]*)*(?:\s+payable)?$"
)
_MEMBER_DOT = re.compile(r"\s*\.\s*")


@dataclass(frozen=True)
class VariableTypeBinding:
    """A variable name and the type name it was declared with."""

    variable_name: str
    declared_type_name: str


@dataclass
class Frame:
    kind: FrameKind
    name: str
    bindings: dict[str, VariableTypeBinding] = field(default_factory=dict)


def bindable_type(type_text: str) -> str | None:
    """Normalize a declared type, or None for mappings, arrays and tuples.

    Elementary types are kept so ``recipient.transfer(x)`` can be recognised
    on an ``address payable`` variable.
    """
    normalized = " ".join(type_text.split())
    if not normalized or normalized.startswith("mapping") or "[" in normalized:
        return None
    if _TYPE_NAME.match(normalized) is None:
        return None
    return _MEMBER_DOT.sub(".", normalized)


class ScopeStack:
    """Stack of lexical frames for one traversal."""

    def __init__(self) -> None:
        self._frames: list[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, kind: FrameKind, name: str) -> Frame:
        frame = Frame(kind=kind, name=name)
        self._frames.append(frame)
        return frame

    def pop(self) -> Frame:
        return self._frames.pop()

    @contextmanager
    def frame(self, kind: FrameKind, name: str) -> Iterator[Frame]:
        pushed = self.push(kind, name)
        try:
            yield pushed
        finally:
            self.pop()

    def bind(self, variable_name: str, type_text: str) -> VariableTypeBinding | None:
        """Record a declaration in the innermost frame.

        Returns None (and records nothing) outside any frame or when the
        type is not a plain type name.
        """
        type_name = bindable_type(type_text)
        if not self._frames or not variable_name or type_name is None:
            return None
        binding = VariableTypeBinding(variable_name, type_name)
        self._frames[-1].bindings[variable_name] = binding
        return binding

    def lookup(self, variable_name: str) -> str | None:
        for frame in reversed(self._frames):
            binding = frame.bindings.get(variable_name)
            if binding is not None:
                return binding.declared_type_name
        return None

    @property
    def enclosing_contract(self) -> str | None:
        for frame in reversed(self._frames):
            if frame.kind == "contract":
                return frame.name
        return None


__all__ = ["Frame", "FrameKind", "ScopeStack", "VariableTypeBinding", "bindable_type"]
