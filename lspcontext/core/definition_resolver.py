"""
Resolves one identifier occurrence to the places that define it.

Each lookup:
1. Checks the LookupCache for the (kind, file, line, character) key
2. On a miss, runs the editor's go-to command for that kind
3. Normalizes LocationLink / Location shaped items into Location records
4. Caches the normalized sequence (failures are not cached)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional
from urllib.parse import unquote, urlparse

from loguru import logger

from lspcontext.config import LOOKUP_TIMEOUT_SECONDS
from lspcontext.core.entities import Location, Range
from lspcontext.core.lookup_cache import LookupCache, LookupKey, default_cache
from lspcontext.core.services import LookupService, Outcome, field_of


class LookupKind(str, Enum):
    DEFINITION = "definition"
    TYPE_DEFINITION = "type_definition"
    DECLARATION = "declaration"
    IMPLEMENTATION = "implementation"
    REFERENCE = "reference"

    @property
    def command(self) -> str:
        return _COMMANDS[self]


_COMMANDS = {
    LookupKind.DEFINITION: "vscode.executeDefinitionProvider",
    LookupKind.TYPE_DEFINITION: "vscode.executeTypeDefinitionProvider",
    LookupKind.DECLARATION: "vscode.executeDeclarationProvider",
    LookupKind.IMPLEMENTATION: "vscode.executeImplementationProvider",
    LookupKind.REFERENCE: "vscode.executeReferenceProvider",
}


def uri_to_path(uri: Any) -> str:
    """Turn a file:// URI (or an object carrying one) into a filesystem path."""
    fs_path = getattr(uri, "fsPath", None) or getattr(uri, "fs_path", None)
    if fs_path:
        return str(fs_path)
    uri = str(uri)
    if uri.startswith("file://"):
        return unquote(urlparse(uri).path)
    return uri


def normalize_location(raw: Any) -> Optional[Location]:
    """
    Map one lookup result to a Location.

    LocationLink items carry targetUri/targetRange, plain Location items carry
    uri/range. Items missing either the file or the range are dropped.
    """
    uri = field_of(raw, "targetUri", "target_uri", "uri")
    range_ = field_of(raw, "targetRange", "target_range", "range")
    if not uri or not range_:
        return None
    try:
        return Location(filepath=uri_to_path(uri), range=Range.from_lsp(range_))
    except (KeyError, AttributeError, TypeError, ValueError) as e:
        logger.debug(f"Dropping malformed lookup result {raw!r}: {e}")
        return None


def normalize_locations(raw_results: Any) -> list[Location]:
    if raw_results is None:
        return []
    locations = []
    for raw in raw_results:
        location = normalize_location(raw)
        if location is not None:
            locations.append(location)
    return locations


class DefinitionResolver:
    def __init__(
        self,
        lookup_service: LookupService,
        cache: Optional[LookupCache] = None,
        timeout: Optional[float] = LOOKUP_TIMEOUT_SECONDS,
    ):
        self.lookup_service = lookup_service
        self.cache = cache if cache is not None else default_cache()
        self.timeout = timeout or None

    async def resolve(
        self,
        filepath: str,
        line: int,
        character: int,
        kind: LookupKind = LookupKind.DEFINITION,
    ) -> list[Location]:
        kind = LookupKind(kind)
        key = LookupKey(kind.value, filepath, line, character)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Using cached result for {kind.value} at {filepath}:{line}:{character}")
            return list(cached)

        outcome = await Outcome.of(
            self.lookup_service.lookup,
            kind.command,
            filepath,
            line,
            character,
            timeout=self.timeout,
        )
        if outcome.ok:
            try:
                locations = normalize_locations(outcome.value)
            except TypeError as e:
                outcome = Outcome(error=e)
        if not outcome.ok:
            logger.warning(
                f"Error executing {kind.command} at {filepath}:{line}:{character}: {outcome.reason}"
            )
            return []

        logger.debug(f"{kind.command} returned {len(locations)} results")
        self.cache.put(key, locations)
        return locations

    async def goto_definition(self, filepath: str, line: int, character: int) -> list[Location]:
        return await self.resolve(filepath, line, character, LookupKind.DEFINITION)

    async def goto_type_definition(self, filepath: str, line: int, character: int) -> list[Location]:
        return await self.resolve(filepath, line, character, LookupKind.TYPE_DEFINITION)

    async def goto_declaration(self, filepath: str, line: int, character: int) -> list[Location]:
        return await self.resolve(filepath, line, character, LookupKind.DECLARATION)

    async def goto_implementation(self, filepath: str, line: int, character: int) -> list[Location]:
        return await self.resolve(filepath, line, character, LookupKind.IMPLEMENTATION)

    async def find_references(self, filepath: str, line: int, character: int) -> list[Location]:
        return await self.resolve(filepath, line, character, LookupKind.REFERENCE)
