"""Tests for domain models."""

from datetime import datetime

import pytest

from pebble_tree.models.item import (
    Collection,
    Document,
    collection_from_json,
    is_collection,
    item_from_json,
)
from pebble_tree.models.node import CollectionNode, NodeKind, UserNode, is_item


def test_collection_from_json_parses_nested_children() -> None:
    collection = collection_from_json(
        {
            "name": "/db",
            "created": 1700000000000,
            "owner": "admin",
            "collections": [{"name": "/db/a", "collections": [{"name": "/db/a/b"}]}],
            "documents": [
                {"name": "/db/x.bin", "binaryDoc": True, "lastModified": "2024-01-02T03:04:05"}
            ],
        }
    )

    assert collection.created == datetime.fromtimestamp(1700000000)
    assert collection.collections[0].collections[0].name == "/db/a/b"
    document = collection.documents[0]
    assert document.binary_doc
    assert document.last_modified == datetime(2024, 1, 2, 3, 4, 5)
    assert document.created is None


def test_item_from_json_tells_kinds_apart() -> None:
    assert isinstance(item_from_json({"name": "/db", "collections": []}), Collection)
    document = item_from_json({"name": "/db/x", "content": "abc"})
    assert isinstance(document, Document)
    assert document.size == 3


def test_item_from_json_rejects_unknown_shape() -> None:
    with pytest.raises(ValueError, match="Cannot tell item kind"):
        item_from_json({"name": "/db/x"})


def test_is_collection() -> None:
    assert is_collection(Collection(name="/db"))
    assert not is_collection(Document(name="/db/x"))


def test_node_variants() -> None:
    node = CollectionNode(id="x", uri="/db", name="db", collection=Collection(name="/db"))
    user = UserNode(id="u", uri="/users/u", name="u")

    assert node.kind is NodeKind.ITEM
    assert node.is_collection
    assert is_item(node)
    assert not is_item(user)
    assert not is_item(None)


def test_nodes_compare_by_identity() -> None:
    a = CollectionNode(id="x", uri="/db", name="db", collection=Collection(name="/db"))
    b = CollectionNode(id="x", uri="/db", name="db", collection=Collection(name="/db"))
    assert a != b
    assert a == a
