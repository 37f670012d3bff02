"""
Value types shared by the definition crawler.

Positions are zero-based (line, character) pairs, matching what editors and
language servers report. Ranges are half-open.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from lspcontext.config import SNIPPET_SCORE


@dataclass(frozen=True, order=True)
class Position:
    line: int
    character: int

    @classmethod
    def from_lsp(cls, raw: Any) -> "Position":
        if isinstance(raw, dict):
            return cls(line=int(raw["line"]), character=int(raw["character"]))
        return cls(line=int(raw.line), character=int(raw.character))


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_lsp(cls, raw: Any) -> "Range":
        """Build a Range from an LSP-shaped mapping or an object with start/end."""
        if isinstance(raw, dict):
            return cls(
                start=Position.from_lsp(raw["start"]),
                end=Position.from_lsp(raw["end"]),
            )
        return cls(start=Position.from_lsp(raw.start), end=Position.from_lsp(raw.end))

    @classmethod
    def of(cls, start_line: int, start_char: int, end_line: int, end_char: int) -> "Range":
        return cls(Position(start_line, start_char), Position(end_line, end_char))


def intersection(a: Range, b: Range) -> Optional[Range]:
    """Return the overlap of two ranges, or None if they do not overlap."""
    if a == b:
        return a
    start = max(a.start, b.start)
    end = min(a.end, b.end)
    if start < end:
        return Range(start, end)
    return None


@dataclass(frozen=True)
class Location:
    """A range inside a file."""
    filepath: str
    range: Range


@dataclass(frozen=True)
class LocatedContent:
    """A location together with the text it spans."""
    filepath: str
    range: Range
    contents: str

    @property
    def location(self) -> Location:
        return Location(self.filepath, self.range)

    def overlaps(self, other: "LocatedContent") -> bool:
        return self.filepath == other.filepath and intersection(self.range, other.range) is not None


@dataclass(frozen=True)
class Snippet:
    """Completion context handed to the ranking stage."""
    filepath: str
    range: Range
    contents: str
    score: float = SNIPPET_SCORE

    @classmethod
    def from_content(cls, item: LocatedContent, score: float = SNIPPET_SCORE) -> "Snippet":
        return cls(filepath=item.filepath, range=item.range, contents=item.contents, score=score)
