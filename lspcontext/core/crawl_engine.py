"""
Bounded crawl over type references.

Starting from seed locations, repeatedly:
1. Parses each location's text and extracts type references
2. Skips names already resolved during this crawl
3. Resolves the rest to their definitions and reads the definition bodies
4. Keeps definitions that do not overlap anything already collected
5. Expands the newly collected definitions at the next depth level
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from loguru import logger

from lspcontext.config import CRAWL_DEPTH, CRAWL_TIMEOUT_SECONDS
from lspcontext.core.definition_resolver import DefinitionResolver, LookupKind
from lspcontext.core.entities import LocatedContent, Location
from lspcontext.core.identifier_extractor import (
    find_type_identifiers,
    node_text,
    point_position,
    source_lines,
)
from lspcontext.core.services import FileReader, Outcome, Parser

Seed = Union[Location, LocatedContent]


@dataclass
class CrawlContext:
    """State shared by every level of one crawl."""
    results: list[LocatedContent] = field(default_factory=list)
    searched_labels: set[str] = field(default_factory=set)
    lookups: int = 0

    def claim_labels(self, nodes: Iterable[Any]) -> list[Any]:
        """Keep the first node per unseen name and mark those names searched."""
        fresh = []
        for node in nodes:
            text = node_text(node)
            if text in self.searched_labels:
                continue
            self.searched_labels.add(text)
            fresh.append(node)
        return fresh


def merge_unique(
    results: list[LocatedContent],
    candidates: Iterable[Optional[LocatedContent]],
) -> list[LocatedContent]:
    """Append candidates that overlap nothing already in `results`. Returns the ones added."""
    added = []
    for candidate in candidates:
        if candidate is None:
            continue
        if any(existing.overlaps(candidate) for existing in results):
            continue
        results.append(candidate)
        added.append(candidate)
    return added


class TypeCrawler:
    def __init__(
        self,
        resolver: DefinitionResolver,
        parser: Parser,
        file_reader: FileReader,
        context: Optional[CrawlContext] = None,
    ):
        self.resolver = resolver
        self.parser = parser
        self.file_reader = file_reader
        self.context = context if context is not None else CrawlContext()

    async def crawl(self, seeds: list[Seed], depth: int) -> list[LocatedContent]:
        frontier = list(seeds)
        remaining = depth
        while frontier:
            logger.debug(f"Crawling {len(frontier)} locations, depth budget {remaining}")
            added = await asyncio.gather(*(self._expand(seed) for seed in frontier))
            if remaining <= 0:
                break
            remaining -= 1
            frontier = [item for batch in added for item in batch]
        logger.debug(
            f"Crawl finished with {len(self.context.results)} definitions after {self.context.lookups} lookups"
        )
        return self.context.results

    async def _seed_contents(self, seed: Seed) -> Optional[str]:
        if isinstance(seed, LocatedContent):
            return seed.contents
        outcome = await Outcome.of(self.file_reader.read_range, seed.filepath, seed.range)
        if not outcome.ok:
            logger.warning(f"Could not read {seed.filepath}: {outcome.reason}")
            return None
        return outcome.value

    def _parse(self, filepath: str, contents: str) -> Optional[Any]:
        try:
            return self.parser.parse(filepath, contents)
        except Exception as e:
            logger.warning(f"Failed to parse {filepath}: {e}")
            return None

    async def _expand(self, seed: Seed) -> list[LocatedContent]:
        logger.debug(f"Crawling types for {seed.filepath}")
        contents = await self._seed_contents(seed)
        if contents is None:
            return []
        tree = self._parse(seed.filepath, contents)
        if tree is None:
            return []
        lines = source_lines(contents)

        # filter and claim without awaiting; sibling seeds run concurrently
        nodes = self.context.claim_labels(find_type_identifiers(tree.root_node))
        logger.debug(f"Found {len(nodes)} new type identifiers in {seed.filepath}")

        definitions = await asyncio.gather(
            *(self._resolve_node(seed, node, lines) for node in nodes)
        )
        added = merge_unique(self.context.results, definitions)
        logger.debug(f"Added {len(added)} unique definitions from {seed.filepath}")
        return added

    async def _resolve_node(self, seed: Seed, node: Any, lines: list[bytes]) -> Optional[LocatedContent]:
        """
        Look up the definition of `node` and read its body.

        The node position is relative to the seed text, so the seed's start line is
        added to it. The seed's start column is added only on the seed's first row,
        since later rows of the seed begin at column 0 of the file.
        """
        name = node_text(node)
        position = point_position(node.start_point, lines)
        row, column = position.line, position.character
        # TODO: find out why tree-sitter rows for .ts files sometimes land one
        # past the last line, then drop this clamp.
        row = min(row, len(lines) - 1)
        line = seed.range.start.line + row
        character = column + (seed.range.start.character if row == 0 else 0)

        self.context.lookups += 1
        locations = await self.resolver.resolve(seed.filepath, line, character, LookupKind.DEFINITION)
        if not locations:
            logger.debug(f"No definition found for {name}")
            return None
        type_def = locations[0]

        outcome = await Outcome.of(self.file_reader.read_range, type_def.filepath, type_def.range)
        if not outcome.ok:
            logger.warning(f"Could not read definition of {name} in {type_def.filepath}: {outcome.reason}")
            return None
        logger.debug(f"Definition found for {name} in {type_def.filepath}")
        return LocatedContent(filepath=type_def.filepath, range=type_def.range, contents=outcome.value)


async def crawl_types(
    seed: Union[Seed, list[Seed]],
    resolver: DefinitionResolver,
    parser: Parser,
    file_reader: FileReader,
    depth: int = CRAWL_DEPTH,
    context: Optional[CrawlContext] = None,
    timeout: Optional[float] = CRAWL_TIMEOUT_SECONDS,
) -> list[LocatedContent]:
    """
    Collect definitions of the types referenced from `seed`, following them `depth` levels deep.

    `depth=0` resolves the seed's own references only. When `timeout` expires the
    definitions gathered so far are returned.
    """
    seeds = seed if isinstance(seed, list) else [seed]
    crawler = TypeCrawler(resolver, parser, file_reader, context)
    if not timeout:
        return await crawler.crawl(seeds, depth)
    try:
        return await asyncio.wait_for(crawler.crawl(seeds, depth), timeout)
    except asyncio.TimeoutError:
        logger.warning(
            f"Crawl timed out after {timeout}s with {len(crawler.context.results)} definitions"
        )
        return crawler.context.results
