"""Batch-wide symbol registry and call resolution."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from models.definitions import CONSTRUCTOR_NAME, Definition, DefinitionKind
from rules.eligibility import is_primitive_type

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.calls import CallSite

ResolutionStatus = Literal["resolved", "ambiguous", "unresolved"]

CALLABLE_KINDS: frozenset[DefinitionKind] = frozenset({"function", "modifier"})
EVENT_KINDS: frozenset[DefinitionKind] = frozenset({"event"})
ERROR_KINDS: frozenset[DefinitionKind] = frozenset({"error"})


@dataclass(frozen=True)
class _Stage:
    strategy: str
    scope: str | None
    authoritative: bool = False
    ancestors_only: bool = False
    include_free: bool = True


@dataclass(frozen=True)
class TypeDeclaration:
    """A contract, interface or library and the names it inherits from."""

    name: str
    kind: str
    bases: tuple[str, ...] = ()
    path: str = ""


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one call site against the registry."""

    status: ResolutionStatus
    candidates: tuple[Definition, ...] = ()
    strategy: str | None = None
    scope: str | None = None

    @property
    def definition(self) -> Definition | None:
        return self.candidates[0] if self.status == "resolved" else None


class Registry:
    """All callable definitions of a batch, keyed by name.

    Built once before any call is resolved and read-only afterwards.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, list[Definition]] = {}
        self._identities: set[tuple[str, str | None, str, tuple[str, ...]]] = set()
        self._types: dict[str, TypeDeclaration] = {}

    def add_definition(self, definition: Definition) -> None:
        if definition.identity in self._identities:
            return
        self._identities.add(definition.identity)
        self._by_name.setdefault(definition.name, []).append(definition)

    def add_type(self, declaration: TypeDeclaration) -> None:
        self._types.setdefault(declaration.name, declaration)

    def has_type(self, name: str | None) -> bool:
        return name is not None and name in self._types

    @property
    def type_names(self) -> frozenset[str]:
        return frozenset(self._types)

    def definitions(self, name: str) -> tuple[Definition, ...]:
        return tuple(self._by_name.get(name, ()))

    def __len__(self) -> int:
        return sum(len(defs) for defs in self._by_name.values())

    def ancestors(self, scope: str) -> list[str]:
        """Base contracts of ``scope``, nearest first, each listed once.

        Solidity lists bases from most base-like to most derived, so direct
        bases are visited right to left.
        """
        seen = {scope}
        order: list[str] = []
        queue: deque[str] = deque([scope])
        while queue:
            current = queue.popleft()
            declaration = self._types.get(current)
            if declaration is None:
                continue
            for base in reversed(declaration.bases):
                if base not in seen:
                    seen.add(base)
                    order.append(base)
                    queue.append(base)
        return order

    def lookup(
        self,
        name: str,
        arity: int,
        scope: str | None = None,
        kinds: frozenset[DefinitionKind] = CALLABLE_KINDS,
        *,
        ancestors_only: bool = False,
        include_free: bool = True,
    ) -> tuple[Definition, ...]:
        """Definitions matching ``name`` and ``arity``.

        Without a scope every matching definition is returned. With a scope,
        the first of ``scope`` and its ancestors that declares a match wins,
        then file-level definitions are the fallback unless ``include_free``
        is off.
        """
        candidates = [
            definition
            for definition in self._by_name.get(name, ())
            if definition.arity == arity and definition.kind in kinds
        ]
        if scope is None:
            return tuple(candidates)

        search = self.ancestors(scope)
        if not ancestors_only:
            search = [scope, *search]
        for current in search:
            matches = tuple(d for d in candidates if d.scope == current)
            if matches:
                return matches

        if not include_free:
            return ()
        return tuple(d for d in candidates if d.scope is None)


def build_registry(
    definitions: Iterable[Definition],
    types: Iterable[TypeDeclaration] = (),
) -> Registry:
    """Build a registry from every definition and type of the batch."""
    registry = Registry()
    for declaration in types:
        registry.add_type(declaration)
    for definition in definitions:
        registry.add_definition(definition)
    return registry


def _kinds_for(call: CallSite) -> frozenset[DefinitionKind]:
    if call.kind == "emit":
        return EVENT_KINDS
    if call.kind == "revert":
        return ERROR_KINDS
    return CALLABLE_KINDS


def _query_plan(call: CallSite, registry: Registry) -> list[_Stage]:
    """Resolution stages for ``call``, most specific first."""
    if call.kind == "new":
        if not call.scope_hint:
            return []
        return [_Stage("receiver_name", call.scope_hint, authoritative=True)]

    stages: list[_Stage] = []
    member = call.is_member_call

    if member:
        receiver_type = call.receiver_type
        if receiver_type and not is_primitive_type(receiver_type):
            stages.append(
                _Stage(
                    "receiver_type",
                    receiver_type,
                    authoritative=registry.has_type(receiver_type),
                    include_free=False,
                )
            )

        receiver = call.scope_hint
        if receiver == "this" and call.enclosing_contract:
            stages.append(
                _Stage(
                    "receiver_name",
                    call.enclosing_contract,
                    authoritative=True,
                    include_free=False,
                )
            )
        elif receiver == "super" and call.enclosing_contract:
            stages.append(
                _Stage(
                    "receiver_name",
                    call.enclosing_contract,
                    authoritative=True,
                    ancestors_only=True,
                    include_free=False,
                )
            )
        elif receiver:
            stages.append(
                _Stage(
                    "receiver_name",
                    receiver,
                    authoritative=registry.has_type(receiver),
                    include_free=False,
                )
            )

    if call.enclosing_contract:
        stages.append(
            _Stage(
                "enclosing_contract",
                call.enclosing_contract,
                include_free=not member,
            )
        )
    stages.append(_Stage("global", None))
    return stages


def resolve_call(call: CallSite, registry: Registry) -> Resolution:
    """Match ``call`` to the unique definition it invokes.

    Stages run in order: the receiver's declared type, the receiver name as
    a type, the enclosing contract, then every definition. The first stage
    with any match decides; more than one match there is ambiguous. A stage
    scoped to a type declared in the batch is authoritative, so an empty
    result ends resolution instead of falling through to looser stages.
    """
    name = CONSTRUCTOR_NAME if call.kind == "new" else call.callee_name
    kinds = _kinds_for(call)

    for stage in _query_plan(call, registry):
        matches = registry.lookup(
            name,
            call.arity,
            stage.scope,
            kinds,
            ancestors_only=stage.ancestors_only,
            include_free=stage.include_free,
        )
        if len(matches) == 1:
            return Resolution("resolved", matches, stage.strategy, stage.scope)
        if matches:
            return Resolution("ambiguous", matches, stage.strategy, stage.scope)
        if stage.authoritative:
            return Resolution("unresolved", (), stage.strategy, stage.scope)

    return Resolution("unresolved")


__all__ = [
    "CALLABLE_KINDS",
    "ERROR_KINDS",
    "EVENT_KINDS",
    "Registry",
    "Resolution",
    "ResolutionStatus",
    "TypeDeclaration",
    "build_registry",
    "resolve_call",
]
