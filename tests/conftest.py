"""Shared test fixtures for triggersearch."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from tests.support import FakeEntityProvider, place_mappings
from triggersearch.index import IndexMappings, InMemoryIndexBackend


@pytest.fixture(autouse=True, scope="session")
def _isolate_env() -> Iterator[None]:
    """Keep TRIGGERSEARCH_* variables from the developer's shell out of the tests."""
    with pytest.MonkeyPatch.context() as mp:
        for key in list(os.environ):
            if key.startswith("TRIGGERSEARCH_"):
                mp.delenv(key, raising=False)
        yield


@pytest.fixture
def mappings() -> IndexMappings:
    return place_mappings()


@pytest.fixture
def backend(mappings: IndexMappings) -> InMemoryIndexBackend:
    return InMemoryIndexBackend(mappings)


@pytest.fixture
def provider() -> FakeEntityProvider:
    return FakeEntityProvider()
