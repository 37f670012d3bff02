"""
Finds identifiers in a syntax tree that are worth resolving.

Type references are the interesting ones: a declared type name, or a
capitalized bare identifier sitting inside a parse error (half-typed code often
parses `new Foo(` or `Foo.` that way).
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from lspcontext.core.entities import Position, Range

TYPE_IDENTIFIER = "type_identifier"
IDENTIFIER = "identifier"
ERROR_NODE_TYPES = {"ERROR"}


def node_text(node: Any) -> str:
    text = node.text
    if isinstance(text, bytes):
        return text.decode("utf8", errors="replace")
    return text or ""


def source_lines(contents: str) -> list[bytes]:
    """UTF-8 lines of `contents`, for mapping tree-sitter byte columns back to characters."""
    return contents.encode("utf8").split(b"\n")


def point_position(point: Any, lines: list[bytes]) -> Position:
    """Position of a tree-sitter (row, byte column) point, with the column counted in characters."""
    row, column = point[0], point[1]
    if row < len(lines):
        column = len(lines[row][:column].decode("utf8", errors="replace"))
    return Position(row, column)


def node_range(node: Any, lines: list[bytes]) -> Range:
    return Range(point_position(node.start_point, lines), point_position(node.end_point, lines))


def find_children(
    node: Any,
    predicate: Callable[[Any], bool],
    first_n: Optional[int] = None,
) -> list[Any]:
    """
    Collect nodes under (and including) `node` that satisfy `predicate`, in pre-order.

    With `first_n`, stop after that many matches across the whole traversal.
    """
    if first_n is not None and first_n <= 0:
        return []

    matching: list[Any] = []
    if predicate(node):
        matching.append(node)

    for child in node.children:
        remaining = None if first_n is None else first_n - len(matching)
        if remaining is not None and remaining <= 0:
            break
        matching.extend(find_children(child, predicate, remaining))

    return matching


def is_type_reference(node: Any) -> bool:
    if node.type == TYPE_IDENTIFIER:
        return True
    if node.type != IDENTIFIER:
        return False
    parent = node.parent
    if parent is None or parent.type not in ERROR_NODE_TYPES:
        return False
    text = node_text(node)
    return bool(text) and text[0].isupper()


def find_type_identifiers(node: Any, first_n: Optional[int] = None) -> list[Any]:
    return find_children(node, is_type_reference, first_n)
