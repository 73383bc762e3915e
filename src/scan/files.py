"""Solidity source discovery."""

from __future__ import annotations

import glob
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

from contract.report import SOURCE_SUFFIX

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    GitignoreMatcher = Callable[[str], bool]

_GLOB_CHARS = frozenset("*?[")


def _gitignore_files(root: Path, *, nested: bool) -> list[Path]:
    """The root .gitignore and, when ``nested``, every one below it."""
    candidates = [root / ".gitignore"]
    if nested:
        candidates.extend(root.rglob(".gitignore"))
    found = {path for path in candidates if path.is_file()}
    return sorted(found, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> GitignoreMatcher | None:
    matchers = [
        parse_gitignore(path)
        for path in _gitignore_files(root, nested=nested_gitignore)
    ]
    if not matchers:
        return None

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                # path lies outside this .gitignore's directory
                continue
        return False

    return matches


@dataclass(frozen=True)
class SourceFilter:
    """Which files under ``root`` count as sources for a run."""

    root: Path
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    ignored: GitignoreMatcher | None = None

    @classmethod
    def for_root(
        cls,
        root: Path,
        *,
        include_patterns: Sequence[str] | None = None,
        exclude_patterns: Sequence[str] | None = None,
        nested_gitignore: bool = False,
    ) -> SourceFilter:
        return cls(
            root=root,
            include=tuple(include_patterns or ()),
            exclude=tuple(exclude_patterns or ()),
            ignored=_build_gitignore_matcher(root, nested_gitignore=nested_gitignore),
        )

    def relative(self, path: Path) -> str | None:
        """Posix path of ``path`` below the root; None if it resolves outside."""
        try:
            resolved = path.resolve()
            root_resolved = self.root.resolve()
        except OSError:
            return None
        if not resolved.is_relative_to(root_resolved):
            return None
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return None

    def accepts(self, path: Path) -> bool:
        if path.is_symlink() or not path.is_file():
            return False
        relative = self.relative(path)
        if relative is None:
            return False
        if self.ignored is not None and self.ignored(str(path)):
            return False
        if self.include and not any(fnmatch(relative, p) for p in self.include):
            return False
        return not any(fnmatch(relative, p) for p in self.exclude)


def find_solidity_files(
    directory: Path,
    *,
    include_patterns: Sequence[str] | None = None,
    exclude_patterns: Sequence[str] | None = None,
    nested_gitignore: bool = False,
) -> Iterator[Path]:
    """Find all Solidity files in a directory, respecting .gitignore.

    Args:
        directory: Directory to search for ``.sol`` files
        include_patterns: Optional fnmatch patterns; when given, a file must
            match at least one
        exclude_patterns: Optional fnmatch patterns; a file matching any is
            skipped
        nested_gitignore: Also honour .gitignore files below ``directory``

    Symlinked files, and files reached through a symlinked directory that
    points outside ``directory``, are skipped.

    Yields:
        Paths sorted by their posix path relative to ``directory``.
    """
    source_filter = SourceFilter.for_root(
        directory,
        include_patterns=include_patterns,
        exclude_patterns=exclude_patterns,
        nested_gitignore=nested_gitignore,
    )
    matched = [
        path
        for path in directory.rglob(f"*{SOURCE_SUFFIX}")
        if source_filter.accepts(path)
    ]
    yield from sorted(matched, key=lambda p: p.relative_to(directory).as_posix())


def expand_inputs(
    inputs: Sequence[str],
    root: Path,
    *,
    include_patterns: Sequence[str] | None = None,
    exclude_patterns: Sequence[str] | None = None,
    nested_gitignore: bool = False,
) -> tuple[list[Path], list[str]]:
    """Turn file, directory and glob arguments into a list of source files.

    Relative inputs are taken from ``root``. Directories are searched
    recursively with :func:`find_solidity_files`; globs match ``**``
    recursively. Returns the files, each once and in input order, and the
    inputs that matched nothing.
    """
    files: dict[Path, None] = {}
    missing: list[str] = []
    for raw in inputs:
        candidate = Path(raw)
        if not candidate.is_absolute():
            candidate = root / candidate

        if candidate.is_dir():
            matched = list(
                find_solidity_files(
                    candidate,
                    include_patterns=include_patterns,
                    exclude_patterns=exclude_patterns,
                    nested_gitignore=nested_gitignore,
                )
            )
        elif candidate.is_file():
            matched = [candidate]
        elif _GLOB_CHARS & set(raw):
            matched = sorted(
                Path(path)
                for path in glob.glob(str(candidate), recursive=True)
                if Path(path).is_file()
            )
        else:
            matched = []

        if not matched:
            missing.append(raw)
        for path in matched:
            files.setdefault(path, None)
    return list(files), missing


__all__ = ["SourceFilter", "expand_inputs", "find_solidity_files"]
