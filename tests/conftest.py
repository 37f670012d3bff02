"""Pytest fixtures for lspcontext tests."""

import pytest

from lspcontext.core.definition_resolver import DefinitionResolver
from lspcontext.core.lookup_cache import LookupCache
from lspcontext.utils.tree_sitter_parser import TreeSitterParser
from tests.fakes import FakeLookupService


@pytest.fixture
def parser() -> TreeSitterParser:
    return TreeSitterParser()


@pytest.fixture
def cache() -> LookupCache:
    return LookupCache(capacity=50)


@pytest.fixture
def lookup_service() -> FakeLookupService:
    return FakeLookupService()


@pytest.fixture
def resolver(lookup_service: FakeLookupService, cache: LookupCache) -> DefinitionResolver:
    return DefinitionResolver(lookup_service, cache)
