"""Tests for node construction."""

import pytest

from pebble_tree.core import identity
from pebble_tree.core.sync import TreeSync
from pebble_tree.errors import LogicError
from pebble_tree.models.item import Collection, Connection, Document
from pebble_tree.models.node import (
    CollectionNode,
    ConnectionNode,
    DocumentNode,
    GroupNode,
    SecurityNode,
    UserNode,
    UsersNode,
)
from tests.unit.fakes import FakeAdapter, get, node_id


def test_add_connection_is_its_own_owner(sync: TreeSync, connection: Connection) -> None:
    node = sync.factory.add_connection(connection)

    assert node.id == "admin@http://localhost:8080"
    assert node.connection_id == node.id
    assert node.uri == connection.server
    assert node.name == "Localhost"
    assert node.parent_id == sync.tree.root.id


def test_add_collection_renames_record_below_parent(
    sync: TreeSync, connection_node: ConnectionNode
) -> None:
    db = get(sync, "/db")
    assert isinstance(db, CollectionNode)
    record = Collection(name="/elsewhere/c")

    node = sync.factory.add_collection(db, connection_node.connection, record)

    assert node.uri == "/db/c"
    assert record.name == "/db/c"
    assert node.id == node_id("/db/c")
    assert node.connection_id == connection_node.id
    assert node.link == identity.resource_uri(node.id)


def test_recursive_collection_creates_missing_ancestors(
    sync: TreeSync, connection_node: ConnectionNode, adapter: FakeAdapter
) -> None:
    deeper = sync.factory.add_collection_recursive(connection_node.connection, "/db/a/new/deeper")

    new = get(sync, "/db/a/new")
    assert isinstance(new, CollectionNode)
    assert deeper.parent_id == new.id
    assert new.parent_id == node_id("/db/a")
    assert (new.collection.owner, new.collection.group) == ("admin", "dba")
    assert new.collection.created is not None
    assert adapter.calls_to("load") == []


def test_recursive_collection_returns_existing_node(
    sync: TreeSync, connection_node: ConnectionNode
) -> None:
    existing = get(sync, "/db/a")
    assert sync.factory.add_collection_recursive(connection_node.connection, "/db/a") is existing
    db = sync.factory.add_collection_recursive(connection_node.connection, "/db")
    assert db is get(sync, "/db")


@pytest.mark.parametrize("uri", ["", "/", "db/a", "/db/readme.txt", "/other/x"])
def test_recursive_collection_rejects_invalid_targets(
    sync: TreeSync, connection_node: ConnectionNode, uri: str
) -> None:
    """Relative or empty uris, documents, and a missing top level are caller errors."""
    with pytest.raises(LogicError):
        sync.factory.add_collection_recursive(connection_node.connection, uri)


def test_recursive_document(sync: TreeSync, connection_node: ConnectionNode) -> None:
    node = sync.factory.add_document_recursive(
        connection_node.connection, Document(name="/db/x/y/z.xml"), is_new=True
    )

    assert isinstance(node, DocumentNode)
    assert node.is_new
    assert node.name == "z.xml"
    assert isinstance(get(sync, "/db/x/y"), CollectionNode)
    assert isinstance(get(sync, "/db/x"), CollectionNode)


def test_security_subtree(sync: TreeSync, connection_node: ConnectionNode) -> None:
    connection = connection_node.connection
    assert connection_node.children[0] == connection_node.db_id
    assert connection_node.security_id == identity.security_id(connection)

    security = sync.tree.require(connection_node.security_id, SecurityNode)
    assert security.users_id == identity.users_id(connection)
    assert security.groups_id == identity.groups_id(connection)

    users = sync.tree.children_of(sync.tree.require(security.users_id, UsersNode))
    assert [u.name for u in users] == ["admin", "guest"]
    assert all(isinstance(u, UserNode) for u in users)
    assert users[0].id == identity.user_id(connection, "admin")

    group = sync.tree.get_node(identity.group_id(connection, "dba"))
    assert isinstance(group, GroupNode)
    assert group.uri == "/groups/dba"
