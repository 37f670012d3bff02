"""Hover summaries for function calls close to the cursor."""

from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from lspcontext.config import MAX_CALL_DISTANCE
from lspcontext.core.entities import LocatedContent, Position
from lspcontext.core.identifier_extractor import node_range
from lspcontext.core.services import HoverService, Outcome, field_of

CALL_NODE_TYPES = {"call_expression", "call", "method_invocation"}
METHOD_NAME_FIELDS = ("method", "name")
FUNCTION_FIELD = "function"


def call_name_node(node: Any) -> Optional[Any]:
    """The node naming the called function: `bar` in both `bar(x)` and `foo.bar(x)`."""
    for field_name in METHOD_NAME_FIELDS:
        name = node.child_by_field_name(field_name)
        if name is not None:
            return name
    function = node.child_by_field_name(FUNCTION_FIELD)
    if function is None:
        return None
    named = function.named_children
    return named[-1] if named else function


def _first_content(hover: Any) -> Any:
    contents = field_of(hover, "contents")
    if isinstance(contents, (list, tuple)):
        return contents[0] if contents else None
    return contents


async def get_function_info(
    hover_service: HoverService,
    filepath: str,
    position: Position,
) -> str:
    outcome = await Outcome.of(hover_service.hover, filepath, position.line, position.character)
    if not outcome.ok:
        logger.warning(f"Hover failed at {filepath}:{position.line}:{position.character}: {outcome.reason}")
        return ""
    hovers = outcome.value
    if not hovers:
        return ""
    try:
        first = hovers[0]
    except (TypeError, KeyError, IndexError):
        logger.warning(f"Unexpected hover response {hovers!r}")
        return ""
    value = field_of(_first_content(first), "value")
    if isinstance(value, str):
        return value.strip()
    return ""


async def get_call_info(
    node: Any,
    filepath: str,
    cursor: Position,
    lines: list[bytes],
    hover_service: HoverService,
    max_distance: int = MAX_CALL_DISTANCE,
) -> list[LocatedContent]:
    name = call_name_node(node)
    if name is None:
        return []
    name_range = node_range(name, lines)
    distance = abs(name_range.start.line - cursor.line)
    if distance > max_distance:
        logger.trace(f"Skipping call {distance} lines from the cursor")
        return []

    logger.debug("Getting function info for nearby call expression")
    info = await get_function_info(hover_service, filepath, name_range.start)
    if not info:
        return []
    return [LocatedContent(filepath=filepath, range=name_range, contents=info)]
