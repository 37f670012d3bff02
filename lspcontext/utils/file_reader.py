"""FileReader over the local filesystem."""

from __future__ import annotations

import asyncio
from pathlib import Path

from lspcontext.core.entities import Range


def slice_range(contents: str, range: Range) -> str:
    """Text of `contents` covered by `range`, clamped to the text's bounds."""
    lines = contents.split("\n")
    if not lines or range.start.line >= len(lines):
        return ""
    end_line = min(range.end.line, len(lines) - 1)
    if end_line < range.start.line:
        return ""
    # past the last line means read to the end of the file
    end_char = range.end.character if range.end.line == end_line else None
    if range.start.line == end_line:
        return lines[end_line][range.start.character : end_char]

    first = lines[range.start.line][range.start.character :]
    middle = lines[range.start.line + 1 : end_line]
    last = lines[end_line][:end_char]
    return "\n".join([first, *middle, last])


class LocalFileReader:
    def __init__(self, root: str | Path | None = None):
        self.root = Path(root) if root is not None else None

    def _path(self, filepath: str) -> Path:
        path = Path(filepath)
        if self.root is not None and not path.is_absolute():
            path = self.root / path
        return path

    def _read(self, filepath: str) -> str:
        return self._path(filepath).read_text(encoding="utf-8", errors="replace")

    async def read_file(self, filepath: str) -> str:
        return await asyncio.to_thread(self._read, filepath)

    async def read_range(self, filepath: str, range: Range) -> str:
        contents = await self.read_file(filepath)
        return slice_range(contents, range)
