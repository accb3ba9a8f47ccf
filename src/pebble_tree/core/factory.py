"""Construction of nodes, always through the tree's insertion path."""

from datetime import datetime

from loguru import logger

from pebble_tree.config import DEFAULT_GROUP, SEPARATOR, TOOLBAR_ID
from pebble_tree.core import identity
from pebble_tree.core.paths import collection_dir, get_name, parent_collection
from pebble_tree.core.tree import TreeModel
from pebble_tree.errors import LogicError
from pebble_tree.models.item import Collection, Connection, Document
from pebble_tree.models.node import (
    CollectionNode,
    CompositeNode,
    ConnectionNode,
    DocumentNode,
    GroupNode,
    GroupsNode,
    SecurityNode,
    ToolbarNode,
    UserNode,
    UsersNode,
)


class NodeFactory:
    """Builds one node per variant and inserts it into the tree.

    Item records handed to ``add_collection``/``add_document`` are renamed in
    place to the child uri of their collection parent.
    """

    def __init__(self, tree: TreeModel) -> None:
        self._tree = tree

    def add_toolbar(self) -> ToolbarNode:
        toolbar = ToolbarNode(id=TOOLBAR_ID, uri="toolbar", name="Pebble Toolbar")
        return self._tree.add_node(toolbar, self._tree.root)

    def add_connection(
        self,
        connection: Connection,
        *,
        expanded: bool = False,
        index: int | None = None,
    ) -> ConnectionNode:
        node_id = identity.connection_id(connection)
        node = ConnectionNode(
            id=node_id,
            uri=connection.server,
            name=connection.name or node_id,
            connection_id=node_id,
            connection=connection,
            expanded=expanded,
        )
        return self._tree.add_node(node, self._tree.root, index=index)

    def add_collection(
        self,
        parent: CompositeNode,
        connection: Connection,
        collection: Collection,
    ) -> CollectionNode:
        name = get_name(collection.name)
        if isinstance(parent, CollectionNode):
            collection.name = collection_dir(parent.uri, name)
        node_id = identity.item_id(connection, collection.name)
        node = CollectionNode(
            id=node_id,
            uri=collection.name,
            name=name,
            connection_id=parent.connection_id,
            collection=collection,
            link=identity.resource_uri(node_id),
        )
        return self._tree.add_node(node, parent)

    def add_document(
        self,
        parent: CompositeNode,
        connection: Connection,
        document: Document,
        *,
        is_new: bool = False,
    ) -> DocumentNode:
        name = get_name(document.name)
        if isinstance(parent, CollectionNode):
            document.name = collection_dir(parent.uri, name)
        node = DocumentNode(
            id=identity.item_id(connection, document.name),
            uri=document.name,
            name=name,
            connection_id=parent.connection_id,
            document=document,
            is_new=is_new,
        )
        return self._tree.add_node(node, parent)

    def add_collection_recursive(self, connection: Connection, uri: str) -> CollectionNode:
        """Look up the collection node for ``uri``, creating missing ancestors.

        Missing levels get placeholder records (owned by the connection's
        user, group ``dba``); nothing is fetched from the remote store. The
        top-level collection (``/db``) must already exist, it only comes
        from connecting.

        Raises:
            LogicError: ``uri`` is not an absolute collection path, a node at
                ``uri`` is not a collection, or the top level is missing.
        """
        if not uri.startswith(SEPARATOR) or uri == SEPARATOR:
            msg = f"Not an absolute collection uri: {uri!r}"
            raise LogicError(msg)

        node = self._tree.get_node(identity.item_id(connection, uri))
        if node is not None:
            if isinstance(node, CollectionNode):
                return node
            msg = f"Node at {uri!r} is not a collection"
            raise LogicError(msg)

        parent_uri = parent_collection(uri)
        if not parent_uri:
            cid = identity.connection_id(connection)
            msg = f"Top-level collection {uri!r} is not loaded for {cid}"
            raise LogicError(msg)

        parent = self.add_collection_recursive(connection, parent_uri)
        logger.debug("Materializing collection {}", uri)
        return self.add_collection(
            parent,
            connection,
            Collection(
                name=uri,
                created=datetime.now(),
                owner=connection.username,
                group=DEFAULT_GROUP,
            ),
        )

    def add_document_recursive(
        self,
        connection: Connection,
        document: Document,
        *,
        is_new: bool = False,
    ) -> DocumentNode:
        parent = self.add_collection_recursive(connection, parent_collection(document.name))
        return self.add_document(parent, connection, document, is_new=is_new)

    def add_security(
        self,
        connection_node: ConnectionNode,
        users: list[str],
        groups: list[str],
    ) -> SecurityNode:
        """Add the Security node with its Users and Groups subtrees."""
        connection = connection_node.connection
        owner = connection_node.id

        security = self._tree.add_node(
            SecurityNode(
                id=identity.security_id(connection),
                uri="/security",
                name="Security",
                connection_id=owner,
            ),
            connection_node,
        )
        connection_node.security_id = security.id

        users_node = self._tree.add_node(
            UsersNode(
                id=identity.users_id(connection), uri="/users", name="Users", connection_id=owner
            ),
            security,
        )
        for user in users:
            self._tree.add_node(
                UserNode(
                    id=identity.user_id(connection, user),
                    uri="/users/" + user,
                    name=user,
                    connection_id=owner,
                ),
                users_node,
            )
        security.users_id = users_node.id

        groups_node = self._tree.add_node(
            GroupsNode(
                id=identity.groups_id(connection), uri="/groups", name="Groups", connection_id=owner
            ),
            security,
        )
        for group in groups:
            self._tree.add_node(
                GroupNode(
                    id=identity.group_id(connection, group),
                    uri="/groups/" + group,
                    name=group,
                    connection_id=owner,
                ),
                groups_node,
            )
        security.groups_id = groups_node.id

        return security
