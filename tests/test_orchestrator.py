"""Tests for the request entry point."""

import asyncio

from tests.fakes import FakeFileReader, FakeHoverService, FakeLookupService, location_link

from lspcontext.core.entities import Position, Range, Snippet
from lspcontext.core.lookup_cache import LookupCache
from lspcontext.core.orchestrator import ContextProvider, cursor_position, get_definitions_from_lsp

CALL_SOURCE = "function foo(x: number): void {}\nfoo(1);\n"
CALL_CURSOR = CALL_SOURCE.index("1)")
SIGNATURE_HOVER = [{"contents": [{"value": "  function foo(x: number): void\n"}]}]

CONSTRUCTOR_SOURCE = "class Foo {\n  bar: Baz;\n}\nconst f = new Foo();\n"
CONSTRUCTOR_CURSOR = CONSTRUCTOR_SOURCE.index("();") + 1


def _provider(parser, lookup=None, hover=None, files=None, **kwargs):
    return ContextProvider(
        parser,
        lookup or FakeLookupService(),
        hover or FakeHoverService(),
        FakeFileReader(files or {}),
        cache=LookupCache(),
        **kwargs,
    )


def test_cursor_position():
    text = "ab\ncd\nef"
    assert cursor_position(text, 0) == Position(0, 0)
    assert cursor_position(text, 3) == Position(1, 0)
    assert cursor_position(text, 4) == Position(1, 1)
    assert cursor_position(text, 100) == Position(2, 2)


def test_call_under_cursor_yields_hover_snippet(parser):
    hover = FakeHoverService({(1, 0): SIGNATURE_HOVER})
    provider = _provider(parser, hover=hover)

    snippets = asyncio.run(provider.get_definitions("/repo/a.ts", CALL_SOURCE, CALL_CURSOR))

    assert snippets == [
        Snippet("/repo/a.ts", Range.of(1, 0, 1, 3), "function foo(x: number): void", 0.8)
    ]


def test_constructor_crawls_class_definition(parser):
    lookup = FakeLookupService({
        ("/repo/a.ts", 3, 14): [location_link("/repo/a.ts", 0, 0, 2, 1)],
        ("/repo/a.ts", 1, 7): [location_link("/repo/baz.ts", 0, 0, 0, 17)],
    })
    files = {"/repo/a.ts": CONSTRUCTOR_SOURCE, "/repo/baz.ts": "interface Baz { }\n"}
    provider = _provider(parser, lookup=lookup, files=files, crawl_depth=1)

    snippets = asyncio.run(provider.get_definitions("/repo/a.ts", CONSTRUCTOR_SOURCE, CONSTRUCTOR_CURSOR))

    assert [s.contents for s in snippets] == ["class Foo {\n  bar: Baz;\n}", "interface Baz { }"]
    assert all(s.score == 0.8 for s in snippets)
    assert len(lookup.calls) == 2


def test_constructor_lookup_uses_character_columns(parser):
    source = "const é = new Foo();\n"
    lookup = FakeLookupService()
    provider = _provider(parser, lookup=lookup)

    asyncio.run(provider.get_definitions("/repo/a.ts", source, source.index("();") + 1))

    assert lookup.calls[0][2:] == (0, source.index("Foo"))


def test_hover_failure_does_not_surface(parser):
    hover = FakeHoverService(default=RuntimeError("hover provider crashed"))
    provider = _provider(parser, hover=hover)

    assert asyncio.run(provider.get_definitions("/repo/a.ts", CALL_SOURCE, CALL_CURSOR)) == []


def test_unsupported_file_yields_nothing(parser):
    provider = _provider(parser)
    assert asyncio.run(provider.get_definitions("/repo/notes.txt", "foo(1)", 4)) == []


def test_parser_errors_never_escape():
    class BrokenParser:
        def parse(self, filepath, contents):
            raise RuntimeError("grammar failed to load")

        def path_to_cursor(self, tree, offset):
            return None

    provider = ContextProvider(BrokenParser(), FakeLookupService(), FakeHoverService(), FakeFileReader())
    assert asyncio.run(provider.get_definitions("/repo/a.ts", CALL_SOURCE, CALL_CURSOR)) == []


def test_missing_tree_path_yields_nothing(parser):
    class NoPathParser:
        def parse(self, filepath, contents):
            return parser.parse(filepath, contents)

        def path_to_cursor(self, tree, offset):
            return None

    provider = _provider(NoPathParser(), hover=FakeHoverService(default=SIGNATURE_HOVER))
    assert asyncio.run(provider.get_definitions("/repo/a.ts", CALL_SOURCE, CALL_CURSOR)) == []


def test_one_shot_helper(parser):
    hover = FakeHoverService({(1, 0): SIGNATURE_HOVER})
    snippets = asyncio.run(
        get_definitions_from_lsp(
            "/repo/a.ts", CALL_SOURCE, CALL_CURSOR, parser, FakeLookupService(), hover, FakeFileReader()
        )
    )
    assert [s.contents for s in snippets] == ["function foo(x: number): void"]
