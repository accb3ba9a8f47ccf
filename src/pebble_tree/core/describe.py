"""One-line descriptions of nodes, for status lines and the CLI."""

from typing import assert_never

from pebble_tree.models.item import Item
from pebble_tree.models.node import (
    AnyNode,
    CollectionNode,
    ConnectionNode,
    DocumentNode,
    GroupNode,
    GroupsNode,
    RootNode,
    SecurityNode,
    ToolbarNode,
    UserNode,
    UsersNode,
)


def group_owner(item: Item) -> str:
    return (item.owner or "(n/a)") + ":" + (item.group or "(n/a)")


def describe(node: AnyNode) -> str:
    match node:
        case ConnectionNode():
            connection = node.connection
            state = "connected" if node.loaded else "disconnected"
            return f'"{node.name}" by "{connection.username}" to {connection.server} ({state})'
        case CollectionNode():
            return f"{node.name}/ ({group_owner(node.collection)})"
        case DocumentNode():
            kind = "binary" if node.document.binary_doc else node.document.media_type
            return f"{node.name} [{kind}] ({group_owner(node.document)})"
        case SecurityNode() | UsersNode() | GroupsNode():
            return node.name
        case UserNode():
            return f"user {node.name}"
        case GroupNode():
            return f"group {node.name}"
        case RootNode() | ToolbarNode():
            return ""
        case _:
            assert_never(node)


def describe_selection(nodes: list[AnyNode]) -> str:
    """Status text: the node itself, or a count for multiple nodes."""
    if not nodes:
        return ""
    if len(nodes) > 1:
        return f"selection: {len(nodes)}"
    return describe(nodes[0])
