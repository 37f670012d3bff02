"""
Entry point for completion context: definitions and hover summaries around the cursor.

For a file and cursor offset this:
1. Parses the file and finds the node path from the root down to the cursor
2. Walks the path from the innermost node outwards
3. Asks hover for nearby calls, and crawls the class definitions behind
   constructor calls
4. Returns everything as fixed-score snippets

Nothing here raises to the caller; the worst case is an empty list.
"""

from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from lspcontext.config import CRAWL_DEPTH, CRAWL_TIMEOUT_SECONDS, SNIPPET_SCORE
from lspcontext.core.call_enricher import CALL_NODE_TYPES, get_call_info
from lspcontext.core.crawl_engine import CrawlContext, crawl_types
from lspcontext.core.definition_resolver import DefinitionResolver, LookupKind
from lspcontext.core.entities import LocatedContent, Position, Snippet
from lspcontext.core.identifier_extractor import node_range, node_text, source_lines
from lspcontext.core.lookup_cache import LookupCache
from lspcontext.core.services import FileReader, HoverService, LookupService, Outcome, Parser

CONSTRUCTOR_NODE_TYPES = {"new_expression", "object_creation_expression"}
CONSTRUCTOR_FIELDS = ("constructor", "type")


def cursor_position(contents: str, offset: int) -> Position:
    """Line and character of a character offset into `contents`."""
    offset = max(0, min(offset, len(contents)))
    line = contents.count("\n", 0, offset)
    line_start = contents.rfind("\n", 0, offset) + 1
    return Position(line, offset - line_start)


class ContextProvider:
    def __init__(
        self,
        parser: Parser,
        lookup_service: LookupService,
        hover_service: HoverService,
        file_reader: FileReader,
        cache: Optional[LookupCache] = None,
        crawl_depth: int = CRAWL_DEPTH,
        crawl_timeout: Optional[float] = CRAWL_TIMEOUT_SECONDS,
        score: float = SNIPPET_SCORE,
    ):
        self.parser = parser
        self.hover_service = hover_service
        self.file_reader = file_reader
        self.resolver = DefinitionResolver(lookup_service, cache)
        self.crawl_depth = crawl_depth
        self.crawl_timeout = crawl_timeout
        self.score = score

    async def get_definitions(self, filepath: str, contents: str, cursor_offset: int) -> list[Snippet]:
        try:
            return await self._get_definitions(filepath, contents, cursor_offset)
        except Exception:
            logger.exception(f"Error getting definitions for {filepath}")
            return []

    async def _get_definitions(self, filepath: str, contents: str, cursor_offset: int) -> list[Snippet]:
        logger.debug(f"Getting definitions for {filepath}")
        tree = self.parser.parse(filepath, contents)
        if tree is None:
            return []
        tree_path = self.parser.path_to_cursor(tree, cursor_offset)
        if not tree_path:
            return []
        logger.debug(f"Found {len(tree_path)} nodes in tree path")

        cursor = cursor_position(contents, cursor_offset)
        lines = source_lines(contents)
        context = CrawlContext()
        results: list[LocatedContent] = []
        for node in reversed(tree_path):
            results.extend(await self.get_definitions_for_node(filepath, node, cursor, lines, context))

        logger.info(f"Returning {len(results)} definitions for {filepath}")
        return [Snippet.from_content(item, self.score) for item in results]

    async def get_definitions_for_node(
        self,
        filepath: str,
        node: Any,
        cursor: Position,
        lines: list[bytes],
        context: Optional[CrawlContext] = None,
    ) -> list[LocatedContent]:
        if node.type in CALL_NODE_TYPES:
            return await get_call_info(node, filepath, cursor, lines, self.hover_service)
        if node.type in CONSTRUCTOR_NODE_TYPES:
            return await self._constructed_type_definitions(filepath, node, lines, context or CrawlContext())
        logger.trace(f"Unhandled node type: {node.type}")
        return []

    async def _constructed_type_definitions(
        self,
        filepath: str,
        node: Any,
        lines: list[bytes],
        context: CrawlContext,
    ) -> list[LocatedContent]:
        target = None
        for field_name in CONSTRUCTOR_FIELDS:
            target = node.child_by_field_name(field_name)
            if target is not None:
                break
        if target is None:
            return []
        name = node_text(target)
        if name in context.searched_labels:
            return []
        context.searched_labels.add(name)

        start = node_range(target, lines).start
        locations = await self.resolver.resolve(filepath, start.line, start.character, LookupKind.DEFINITION)
        if not locations:
            return []
        class_def = locations[0]
        outcome = await Outcome.of(self.file_reader.read_range, class_def.filepath, class_def.range)
        if not outcome.ok:
            logger.warning(f"Could not read {class_def.filepath}: {outcome.reason}")
            return []
        seed = LocatedContent(filepath=class_def.filepath, range=class_def.range, contents=outcome.value)

        before = len(context.results)
        if any(existing.overlaps(seed) for existing in context.results):
            return []
        context.results.append(seed)
        await crawl_types(
            seed,
            self.resolver,
            self.parser,
            self.file_reader,
            depth=self.crawl_depth,
            context=context,
            timeout=self.crawl_timeout,
        )
        return context.results[before:]


async def get_definitions_from_lsp(
    filepath: str,
    contents: str,
    cursor_offset: int,
    parser: Parser,
    lookup_service: LookupService,
    hover_service: HoverService,
    file_reader: FileReader,
) -> list[Snippet]:
    """One-shot helper sharing the process-wide lookup cache."""
    provider = ContextProvider(parser, lookup_service, hover_service, file_reader)
    return await provider.get_definitions(filepath, contents, cursor_offset)
