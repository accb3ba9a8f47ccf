"""Deterministic node ids.

Every id is a pure function of the connection and the node's uri, so a
rename or move yields a new id.
"""

from pebble_tree.config import GUEST_USER, RESOURCE_SCHEME, SEPARATOR
from pebble_tree.models.item import Connection


def connection_id(connection: Connection) -> str:
    """``username@server``, or ``(guest)@server`` without a username."""
    return (connection.username or GUEST_USER) + "@" + connection.server


def item_id(connection: Connection, uri: str) -> str:
    return connection_id(connection) + uri


def security_id(connection: Connection, *parts: str) -> str:
    """Ids of the security subtree: ``security``, ``security/users``, ``security/users/bob``.

    Item uris start with a separator, so these never collide with item ids.
    """
    return connection_id(connection) + SEPARATOR.join(("security", *parts))


def users_id(connection: Connection) -> str:
    return security_id(connection, "users")


def user_id(connection: Connection, user: str) -> str:
    return security_id(connection, "users", user)


def groups_id(connection: Connection) -> str:
    return security_id(connection, "groups")


def group_id(connection: Connection, group: str) -> str:
    return security_id(connection, "groups", group)


def resource_uri(node_id: str) -> str:
    """Uri under which a host viewer or editor resolves a node."""
    return f"{RESOURCE_SCHEME}:{node_id}"
