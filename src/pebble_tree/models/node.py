"""Tree nodes mirroring remote entities and structural groupings."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, TypeGuard

from pebble_tree.models.item import Collection, Connection, Document


class NodeKind(str, Enum):
    ROOT = "root"
    TOOLBAR = "toolbar"
    CONNECTION = "connection"
    ITEM = "item"
    SECURITY = "security"
    USERS = "users"
    USER = "user"
    GROUPS = "groups"
    GROUP = "group"


@dataclass(kw_only=True, eq=False)
class Node:
    """Common part of every node.

    Nodes live in a ``TreeModel`` arena and refer to each other by id.
    ``connection_id`` is the id of the owning ConnectionNode (None above it).
    """

    kind: ClassVar[NodeKind]

    id: str
    uri: str
    name: str
    parent_id: str | None = None
    connection_id: str | None = None
    selected: bool = False
    loading: bool = False
    loaded: bool = False


@dataclass(kw_only=True, eq=False)
class CompositeNode(Node):
    """A node that owns an ordered list of child ids."""

    children: list[str] = field(default_factory=list)
    expanded: bool = False


@dataclass(kw_only=True, eq=False)
class RootNode(CompositeNode):
    kind: ClassVar[NodeKind] = NodeKind.ROOT


@dataclass(kw_only=True, eq=False)
class ToolbarNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.TOOLBAR


@dataclass(kw_only=True, eq=False)
class ConnectionNode(CompositeNode):
    """A remote endpoint; owns the ``db`` collection and the security node once connected."""

    kind: ClassVar[NodeKind] = NodeKind.CONNECTION

    connection: Connection
    db_id: str | None = None
    security_id: str | None = None


@dataclass(kw_only=True, eq=False)
class CollectionNode(CompositeNode):
    kind: ClassVar[NodeKind] = NodeKind.ITEM
    is_collection: ClassVar[bool] = True

    collection: Collection
    link: str = ""


@dataclass(kw_only=True, eq=False)
class DocumentNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.ITEM
    is_collection: ClassVar[bool] = False

    document: Document
    is_new: bool = False
    editor: Any = None


@dataclass(kw_only=True, eq=False)
class SecurityNode(CompositeNode):
    kind: ClassVar[NodeKind] = NodeKind.SECURITY

    users_id: str | None = None
    groups_id: str | None = None


@dataclass(kw_only=True, eq=False)
class UsersNode(CompositeNode):
    kind: ClassVar[NodeKind] = NodeKind.USERS


@dataclass(kw_only=True, eq=False)
class UserNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.USER


@dataclass(kw_only=True, eq=False)
class GroupsNode(CompositeNode):
    kind: ClassVar[NodeKind] = NodeKind.GROUPS


@dataclass(kw_only=True, eq=False)
class GroupNode(Node):
    kind: ClassVar[NodeKind] = NodeKind.GROUP


ItemNode = CollectionNode | DocumentNode

AnyNode = (
    RootNode
    | ToolbarNode
    | ConnectionNode
    | CollectionNode
    | DocumentNode
    | SecurityNode
    | UsersNode
    | UserNode
    | GroupsNode
    | GroupNode
)


def is_item(node: Node | None) -> TypeGuard[ItemNode]:
    return isinstance(node, (CollectionNode, DocumentNode))
