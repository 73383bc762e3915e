"""Callable definitions collected from every file in a batch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

DefinitionKind = Literal["function", "modifier", "event", "error"]

CONSTRUCTOR_NAME = "constructor"


@dataclass(frozen=True)
class Definition:
    """A function, modifier, event or error declaration.

    ``scope`` is the owning contract, interface or library; ``None`` marks a
    file-level definition. Unnamed parameters are stored as empty strings.
    """

    name: str
    parameter_names: tuple[str, ...]
    scope: str | None
    kind: DefinitionKind
    path: str = ""
    line: int = 0

    @property
    def arity(self) -> int:
        return len(self.parameter_names)

    @property
    def identity(self) -> tuple[str, str | None, str, tuple[str, ...]]:
        """Key under which two declarations are interchangeable."""
        return (self.kind, self.scope, self.name, self.parameter_names)

    @property
    def qualified_name(self) -> str:
        return f"{self.scope}.{self.name}" if self.scope else self.name


__all__ = ["CONSTRUCTOR_NAME", "Definition", "DefinitionKind"]
