"""Apply planned changes to one source buffer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rewrite.errors import OverlappingChanges

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.changes import Change, VerbatimRegion


@dataclass
class _Node:
    change: Change
    children: list[_Node] = field(default_factory=list)


def _sort_key(change: Change) -> tuple[int, int, str]:
    return (change.start, -change.end, change.replacement_text)


def _region_for(parent: Change, child: Change) -> VerbatimRegion:
    for region in parent.verbatim_regions:
        if region.source_start <= child.start and child.end <= region.source_end:
            return region
    msg = (
        f"change at line {child.line} falls inside rewritten text of the change "
        f"at line {parent.line}"
    )
    raise OverlappingChanges(msg)


def _build_forest(changes: list[Change]) -> list[_Node]:
    roots: list[_Node] = []
    stack: list[_Node] = []
    previous: Change | None = None
    for change in changes:
        if previous is not None and change == previous:
            continue
        if previous is not None and (change.start, change.end) == (
            previous.start,
            previous.end,
        ):
            msg = f"two different changes for the same text at line {change.line}"
            raise OverlappingChanges(msg)
        previous = change

        while stack and stack[-1].change.end <= change.start:
            stack.pop()
        node = _Node(change)
        if stack:
            parent = stack[-1].change
            if change.end > parent.end:
                msg = (
                    f"change at line {change.line} partially overlaps the change "
                    f"at line {parent.line}"
                )
                raise OverlappingChanges(msg)
            _region_for(parent, change)
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def _render(node: _Node) -> str:
    """Replacement text of ``node`` with its nested changes applied."""
    change = node.change
    text = change.replacement_text
    if not node.children:
        return text

    parts: list[str] = []
    cursor = 0
    for child in node.children:
        region = _region_for(change, child.change)
        start = region.replacement_offset + (child.change.start - region.source_start)
        end = start + (child.change.end - child.change.start)
        parts.append(text[cursor:start])
        parts.append(_render(child))
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)


def apply_changes(source: str, changes: Iterable[Change]) -> str:
    """Return ``source`` with every change applied.

    Changes are ordered by a total key first, so the result does not depend
    on the order they are given in; identical duplicates count once. A
    change lying inside text another change copies verbatim is applied to
    that copy. Any other overlap raises ``OverlappingChanges``.
    """
    ordered = sorted(changes, key=_sort_key)
    for change in ordered:
        if source[change.start : change.end] != change.original_text:
            msg = f"change at line {change.line} does not match the source text"
            raise ValueError(msg)

    parts: list[str] = []
    cursor = 0
    for root in _build_forest(ordered):
        parts.append(source[cursor : root.change.start])
        parts.append(_render(root))
        cursor = root.change.end
    parts.append(source[cursor:])
    return "".join(parts)


__all__ = ["apply_changes"]
