"""Shared test fixtures."""

import asyncio

import pytest

from pebble_tree.core.mutation import MutationEngine
from pebble_tree.core.sync import TreeSync
from pebble_tree.models.item import Connection
from pebble_tree.models.node import ConnectionNode
from tests.unit.fakes import SEED_COLLECTIONS, SEED_DOCUMENTS, SERVER, FakeAdapter, FakeOpener


@pytest.fixture
def connection() -> Connection:
    return Connection(server=SERVER, username="admin", password="secret", name="Localhost")


@pytest.fixture
def adapter() -> FakeAdapter:
    """A remote store holding a small /db tree."""
    fake = FakeAdapter()
    for uri in SEED_COLLECTIONS:
        fake.add_collection(uri)
    for uri, content in SEED_DOCUMENTS.items():
        fake.add_document(uri, content)
    return fake


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def sync(adapter: FakeAdapter, opener: FakeOpener) -> TreeSync:
    return TreeSync(adapter, opener=opener)


@pytest.fixture
def connection_node(sync: TreeSync, connection: Connection) -> ConnectionNode:
    """A connected ConnectionNode (root listing loaded, /db expanded)."""
    node = sync.add_connection(connection)
    result = asyncio.run(sync.connect(node))
    assert result.ok, result.error
    return node


@pytest.fixture
def engine(sync: TreeSync) -> MutationEngine:
    return MutationEngine(sync)
