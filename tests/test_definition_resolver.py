"""Tests for lookup normalization and cached definition resolution."""

import asyncio
from types import SimpleNamespace

from tests.fakes import FakeLookupService, location_link, lsp_range

from lspcontext.core.definition_resolver import (
    DefinitionResolver,
    LookupKind,
    normalize_location,
    normalize_locations,
    uri_to_path,
)
from lspcontext.core.entities import Location, Range
from lspcontext.core.lookup_cache import LookupCache, LookupKey


def test_uri_to_path():
    assert uri_to_path("file:///repo/src/a%20b.ts") == "/repo/src/a b.ts"
    assert uri_to_path("/already/a/path.ts") == "/already/a/path.ts"
    assert uri_to_path(SimpleNamespace(fsPath="/repo/x.ts")) == "/repo/x.ts"


def test_normalize_prefers_target_fields():
    raw = {
        "targetUri": "file:///repo/b.ts",
        "targetRange": lsp_range(1, 0, 3, 1),
        "uri": "file:///repo/ignored.ts",
        "range": lsp_range(9, 9, 9, 9),
    }
    assert normalize_location(raw) == Location("/repo/b.ts", Range.of(1, 0, 3, 1))


def test_normalize_falls_back_to_source_fields():
    raw = {"uri": "file:///repo/c.ts", "range": lsp_range(2, 0, 2, 5)}
    assert normalize_location(raw) == Location("/repo/c.ts", Range.of(2, 0, 2, 5))


def test_normalize_accepts_objects():
    raw = SimpleNamespace(
        target_uri="file:///repo/d.ts",
        target_range=SimpleNamespace(
            start=SimpleNamespace(line=0, character=0),
            end=SimpleNamespace(line=1, character=0),
        ),
    )
    assert normalize_location(raw) == Location("/repo/d.ts", Range.of(0, 0, 1, 0))


def test_normalize_discards_incomplete_items():
    items = [
        {"targetUri": "file:///repo/a.ts"},
        {"range": lsp_range(0, 0, 0, 1)},
        {"uri": "file:///repo/bad.ts", "range": {"start": {"line": 0}}},
        location_link("/repo/ok.ts", 0, 0, 0, 3),
    ]
    assert normalize_locations(items) == [Location("/repo/ok.ts", Range.of(0, 0, 0, 3))]


def test_lookup_kind_selects_command():
    assert LookupKind.DEFINITION.command == "vscode.executeDefinitionProvider"
    assert LookupKind.REFERENCE.command == "vscode.executeReferenceProvider"
    assert LookupKind("type_definition") is LookupKind.TYPE_DEFINITION


def test_second_resolve_is_a_cache_hit(resolver, lookup_service):
    lookup_service.responses[("/repo/a.ts", 2, 11)] = [location_link("/repo/b.ts", 0, 0, 2, 1)]

    first = asyncio.run(resolver.resolve("/repo/a.ts", 2, 11))
    second = asyncio.run(resolver.resolve("/repo/a.ts", 2, 11))

    assert first == second == [Location("/repo/b.ts", Range.of(0, 0, 2, 1))]
    assert len(lookup_service.calls) == 1
    assert lookup_service.calls[0] == ("vscode.executeDefinitionProvider", "/repo/a.ts", 2, 11)


def test_kinds_are_cached_separately(resolver, lookup_service, cache):
    asyncio.run(resolver.goto_definition("/repo/a.ts", 1, 1))
    asyncio.run(resolver.goto_type_definition("/repo/a.ts", 1, 1))
    asyncio.run(resolver.goto_implementation("/repo/a.ts", 1, 1))
    assert [call[0] for call in lookup_service.calls] == [
        "vscode.executeDefinitionProvider",
        "vscode.executeTypeDefinitionProvider",
        "vscode.executeImplementationProvider",
    ]
    assert LookupKey("type_definition", "/repo/a.ts", 1, 1) in cache


def test_service_failure_yields_empty_and_is_not_cached(cache):
    service = FakeLookupService({("/repo/a.ts", 0, 0): RuntimeError("server crashed")})
    resolver = DefinitionResolver(service, cache)

    assert asyncio.run(resolver.resolve("/repo/a.ts", 0, 0)) == []
    assert asyncio.run(resolver.resolve("/repo/a.ts", 0, 0)) == []
    assert len(service.calls) == 2
    assert len(cache) == 0


def test_malformed_response_yields_empty(cache):
    service = FakeLookupService({("/repo/a.ts", 0, 0): 42})
    resolver = DefinitionResolver(service, cache)
    assert asyncio.run(resolver.resolve("/repo/a.ts", 0, 0)) == []


def test_slow_service_times_out(cache):
    class SlowService:
        async def lookup(self, command, filepath, line, character):
            await asyncio.sleep(10)
            return []

    resolver = DefinitionResolver(SlowService(), cache, timeout=0.01)
    assert asyncio.run(resolver.resolve("/repo/a.ts", 0, 0)) == []
    assert len(cache) == 0


def test_capacity_bounds_resolver_cache(lookup_service):
    cache = LookupCache(capacity=50)
    resolver = DefinitionResolver(lookup_service, cache)

    async def run():
        for line in range(75):
            await resolver.resolve("/repo/a.ts", line, 0)

    asyncio.run(run())
    assert len(cache) == 50
    assert cache.keys()[0] == LookupKey("definition", "/repo/a.ts", 25, 0)
