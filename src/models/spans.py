"""Source buffers and the spans that address them.

Spans use half-open ``[start, end)`` character offsets into the decoded
buffer. tree-sitter reports UTF-8 byte offsets, so ``SourceText`` keeps the
byte→character mapping needed to translate node positions.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tree_sitter import Node


@dataclass(frozen=True)
class SourceSpan:
    """A range of one source buffer (lines and columns are 1-based)."""

    start: int
    end: int
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, other: SourceSpan) -> bool:
        return self.start <= other.start and other.end <= self.end


class SourceText:
    """Decoded source text plus offset indexes for one file."""

    def __init__(self, text: str, path: str = "<memory>") -> None:
        self.text = text
        self.path = path
        self._line_starts = [0]
        self._line_starts.extend(
            index + 1 for index, char in enumerate(text) if char == "\n"
        )
        self._ascii = text.isascii()
        self._source_bytes: bytes | None = None
        self._byte_to_char: list[int] | None = None

    @classmethod
    def from_bytes(cls, data: bytes, path: str = "<memory>") -> SourceText:
        """Decode UTF-8 source bytes; raises ``UnicodeDecodeError``."""
        return cls(data.decode("utf-8"), path)

    def __len__(self) -> int:
        return len(self.text)

    @property
    def source_bytes(self) -> bytes:
        if self._source_bytes is None:
            self._source_bytes = self.text.encode("utf-8")
        return self._source_bytes

    def char_offset(self, byte_offset: int) -> int:
        """Translate a UTF-8 byte offset into a character offset."""
        if self._ascii:
            return byte_offset
        if self._byte_to_char is None:
            mapping: list[int] = []
            for index, char in enumerate(self.text):
                mapping.extend([index] * len(char.encode("utf-8")))
            mapping.append(len(self.text))
            self._byte_to_char = mapping
        return self._byte_to_char[byte_offset]

    def position(self, offset: int) -> tuple[int, int]:
        """Return the 1-based (line, column) of a character offset."""
        line_index = bisect_right(self._line_starts, offset) - 1
        return line_index + 1, offset - self._line_starts[line_index] + 1

    def span(self, start: int, end: int) -> SourceSpan:
        start_line, start_col = self.position(start)
        end_line, end_col = self.position(end)
        return SourceSpan(
            start=start,
            end=end,
            start_line=start_line,
            start_col=start_col,
            end_line=end_line,
            end_col=end_col,
        )

    def node_span(self, node: Node) -> SourceSpan:
        return self.span(
            self.char_offset(node.start_byte), self.char_offset(node.end_byte)
        )

    def node_text(self, node: Node | None) -> str:
        if node is None:
            return ""
        start = self.char_offset(node.start_byte)
        end = self.char_offset(node.end_byte)
        return self.text[start:end]

    def slice(self, span: SourceSpan) -> str:
        return self.text[span.start : span.end]

    def line_indent(self, offset: int) -> str:
        """Leading whitespace of the line containing ``offset``."""
        line_start = self.text.rfind("\n", 0, offset) + 1
        index = line_start
        while index < len(self.text) and self.text[index] in " \t":
            index += 1
        return self.text[line_start:index]


__all__ = ["SourceSpan", "SourceText"]
