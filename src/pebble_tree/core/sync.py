"""Keep the in-memory tree in step with the remote store."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import TypeVar

from loguru import logger

from pebble_tree.config import SEPARATOR
from pebble_tree.core import identity
from pebble_tree.core.factory import NodeFactory
from pebble_tree.core.loading import LoadingGuard
from pebble_tree.core.paths import (
    clean_items,
    clean_mapping,
    collection_dir,
    get_top_dir,
    is_within,
)
from pebble_tree.core.tree import TreeModel
from pebble_tree.errors import AdapterError, BatchResult, LogicError, Result
from pebble_tree.models.item import Collection, Connection, Document, Item
from pebble_tree.models.node import (
    CollectionNode,
    CompositeNode,
    ConnectionNode,
    DocumentNode,
    ItemNode,
    Node,
    is_item,
)
from pebble_tree.protocols import EditorHandle, Opener, RemoteAdapter

T = TypeVar("T")

Confirm = Callable[[T], bool | Awaitable[bool]]


async def confirmed(confirm: Confirm[T] | None, subject: T) -> bool:
    """Ask ``confirm`` (sync or async) about ``subject``; no callback means yes."""
    if confirm is None:
        return True
    answer = confirm(subject)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


def record_of(node: ItemNode) -> Item:
    return node.collection if isinstance(node, CollectionNode) else node.document


class TreeSync:
    """Façade the host view drives: connections, lazy loading, saving, uploads.

    Every operation that reaches the remote adapter returns a ``Result``;
    adapter failures are logged and reported, never raised. ``LogicError``
    is raised for calls that break tree invariants.
    """

    def __init__(
        self,
        adapter: RemoteAdapter,
        *,
        tree: TreeModel | None = None,
        opener: Opener | None = None,
    ) -> None:
        self.adapter = adapter
        self.opener = opener
        self.tree = tree or TreeModel()
        self.factory = NodeFactory(self.tree)
        self.guard = LoadingGuard(self.tree)
        self.factory.add_toolbar()

    def connection_node_of(self, node: Node) -> ConnectionNode:
        if node.connection_id is None:
            msg = f"Node {node.id!r} does not belong to a connection"
            raise LogicError(msg)
        return self.tree.require(node.connection_id, ConnectionNode)

    def connection_of(self, node: Node) -> Connection:
        return self.connection_node_of(node).connection

    @property
    def connections(self) -> list[ConnectionNode]:
        return [n for n in self.tree.children_of(self.tree.root) if isinstance(n, ConnectionNode)]

    # connections

    def add_connection(self, connection: Connection, *, expanded: bool = False) -> ConnectionNode:
        node = self.factory.add_connection(connection, expanded=expanded)
        logger.info("Added connection {} ({})", node.name, node.id)
        return node

    async def connect(self, node: ConnectionNode) -> Result[CollectionNode]:
        """Fetch the root listing and build the ``db`` collection and security nodes."""
        connection = node.connection
        async with self.guard.loading(node) as started:
            if not started:
                return Result.failure(f"Connection {node.id} is already loading")
            try:
                root = await self.adapter.connect(connection)
            except AdapterError as e:
                node.expanded = False
                logger.warning("Cannot connect to {}: {}", connection.server, e)
                return Result.failure(e)
            if not self.tree.is_live(node):
                return Result.failure(f"Connection {node.id} was removed while connecting")

            node.loaded = True
            db = self.factory.add_collection(node, connection, root)
            node.db_id = db.id
            db.loaded = True
            self._insert_children(db, connection, root)
            self.tree.expand_node(db)
            await self._load_security(node)

        logger.info("Connected to {} as {}", connection.server, connection.username or "guest")
        return Result.success(db)

    async def _load_security(self, node: ConnectionNode) -> Result[Node]:
        connection = node.connection
        try:
            users, groups = await asyncio.gather(
                self.adapter.get_users(connection),
                self.adapter.get_groups(connection),
            )
        except AdapterError as e:
            logger.warning("Cannot list users and groups of {}: {}", connection.server, e)
            return Result.failure(e)
        if not self.tree.is_live(node):
            return Result.failure(f"Connection {node.id} was removed while listing users")
        connection.users.extend(users)
        connection.groups.extend(groups)
        return Result.success(self.factory.add_security(node, users, groups))

    def disconnect(self, node: ConnectionNode) -> None:
        """Drop everything loaded below a connection; it reconnects on expansion."""
        self.tree.empty(node)
        node.loaded = False
        node.loading = False
        node.db_id = None
        node.security_id = None
        node.connection.users.clear()
        node.connection.groups.clear()
        self.tree.collapse_node(node)

    async def delete_connection(
        self,
        node: ConnectionNode,
        confirm: Confirm[ConnectionNode] | None = None,
    ) -> bool:
        if not await confirmed(confirm, node):
            self.tree.select_node(node)
            return False
        self.tree.remove_node(node)
        logger.info("Removed connection {}", node.id)
        return True

    async def update_connection(
        self,
        node: ConnectionNode,
        connection: Connection,
    ) -> Result[CollectionNode]:
        """Replace a connection's endpoint or credentials and reconnect.

        The id depends on the credentials, so the node is re-created at the
        same position rather than renamed in place.
        """
        index = self.tree.root.children.index(node.id)
        self.tree.remove_node(node)
        replacement = self.factory.add_connection(connection, index=index)
        return await self.connect(replacement)

    # loading

    def _insert_children(
        self, node: CollectionNode, connection: Connection, listing: Collection
    ) -> None:
        for sub_collection in listing.collections:
            self.factory.add_collection(node, connection, sub_collection)
        for document in listing.documents:
            self.factory.add_document(node, connection, document)

    async def load(self, node: CollectionNode) -> Result[Item]:
        """Populate a collection's children. No remote call when already loaded."""
        if node.loaded:
            return Result.success(node.collection)

        connection = self.connection_of(node)
        async with self.guard.loading(node) as started:
            if not started:
                return Result.failure(f"{node.uri} is already loading")
            try:
                result = await self.adapter.load(connection, node.uri)
            except AdapterError as e:
                node.expanded = False
                logger.warning("Cannot load {}: {}", node.uri, e)
                return Result.failure(e)
            if not self.tree.is_live(node):
                logger.debug("Dropping listing of {}, node left the tree", node.uri)
                return Result.failure(f"{node.uri} was removed while loading")

            if isinstance(result, Collection):
                node.loaded = True
                self._insert_children(node, connection, result)
                node.collection = result
            return Result.success(result)

    async def expand(self, node: CompositeNode) -> Result[object]:
        """Expand a node, connecting or loading it on first expansion."""
        self.tree.expand_node(node)
        if isinstance(node, ConnectionNode) and not node.loaded:
            return await self.connect(node)
        if isinstance(node, CollectionNode) and not node.loaded:
            return await self.load(node)
        return Result.success()

    def collapse(self, node: CompositeNode) -> None:
        self.tree.collapse_node(node)

    async def refresh(self, node: CollectionNode | None = None) -> Result[object]:
        """Reload a collection from the server, or just redraw the view."""
        if node is None:
            self.tree.refresh()
            return Result.success()
        self.tree.collapse_node(node)
        node.loaded = False
        self.tree.empty(node)
        return await self.expand(node)

    async def load_tree(self, node: CollectionNode, depth: int) -> BatchResult[CollectionNode]:
        """Load ``depth`` levels below ``node``.

        Child collections of one listing load concurrently; each touches a
        disjoint subtree.
        """
        result = await self.load(node)
        if not result.ok:
            return BatchResult(failed=[(node.id, result.error or "")])
        if depth <= 1:
            return BatchResult(succeeded=[node])

        children = [c for c in self.tree.children_of(node) if isinstance(c, CollectionNode)]
        outcomes = await asyncio.gather(*(self.load_tree(c, depth - 1) for c in children))
        batch: BatchResult[CollectionNode] = BatchResult(succeeded=[node])
        for outcome in outcomes:
            batch.succeeded.extend(outcome.succeeded)
            batch.failed.extend(outcome.failed)
        return batch

    async def locate(self, node: ConnectionNode, uri: str) -> Result[ItemNode]:
        """Find the item at ``uri``, connecting and loading each collection on the way."""
        if not node.loaded:
            connected = await self.connect(node)
            if not connected.ok:
                return Result.failure(connected.error or "")
        if node.db_id is None:
            return Result.failure(f"Connection {node.id} has no root collection")

        connection = node.connection
        current: ItemNode = self.tree.require(node.db_id, CollectionNode)
        uri = uri.rstrip(SEPARATOR) or SEPARATOR
        if not is_within(uri, current.uri):
            return Result.failure(f"{uri} is outside {current.uri}")

        while current.uri != uri:
            if not isinstance(current, CollectionNode):
                return Result.failure(f"{current.uri} is not a collection")
            loaded = await self.load(current)
            if not loaded.ok:
                return Result.failure(loaded.error or "")
            segment = uri[len(current.uri) :].lstrip(SEPARATOR).split(SEPARATOR)[0]
            child_uri = collection_dir(current.uri, segment)
            child = self.tree.get_node(identity.item_id(connection, child_uri))
            if not is_item(child):
                return Result.failure(f"{child_uri} not found")
            current = child
        return Result.success(current)

    # documents

    async def open_document(self, node: DocumentNode) -> Result[EditorHandle]:
        """Open a document through the host opener, addressed by its resource uri."""
        if self.opener is None:
            return Result.failure("No document opener configured")
        async with self.guard.loading(node) as started:
            if not started:
                return Result.failure(f"{node.uri} is already loading")
            editor = await self.opener.open(identity.resource_uri(node.id))
        node.editor = editor
        node.loaded = True
        return Result.success(editor)

    async def save(self, node: DocumentNode, content: str | bytes) -> Result[bool]:
        connection = self.connection_of(node)
        try:
            saved = await self.adapter.save(
                connection, node.uri, content, binary=node.document.binary_doc
            )
        except AdapterError as e:
            logger.warning("Cannot save {}: {}", node.uri, e)
            return Result.failure(e)
        if not saved:
            return Result.failure(f"Server refused to save {node.uri}")
        node.is_new = False
        node.document.content = content
        node.document.size = len(content)
        self.tree.refresh()
        return Result.success(True)

    async def save_documents(
        self,
        node: CollectionNode,
        files: Mapping[str, bytes],
    ) -> Result[list[Document]]:
        """Upload files below a collection, keyed by path relative to it."""
        connection = self.connection_of(node)
        async with self.guard.loading(node) as started:
            if not started:
                return Result.failure(f"{node.uri} is already loading")
            try:
                documents = await self.adapter.save_documents(connection, node.collection, files)
            except AdapterError as e:
                logger.warning("Upload to {} failed: {}", node.uri, e)
                return Result.failure(e)

            if node.loaded and self.tree.is_live(node):
                self._merge_listing(node, connection, clean_items(list(documents), node.uri))
        logger.info("Uploaded {} documents to {}", len(documents), node.uri)
        return Result.success(documents)

    def _merge_listing(
        self, node: CollectionNode, connection: Connection, items: list[Item]
    ) -> None:
        """Insert new direct children; invalidate collections that gained content."""
        for item in items:
            existing = self.tree.get_node(identity.item_id(connection, item.name))
            if isinstance(item, Collection):
                if isinstance(existing, CollectionNode):
                    if existing.loaded:
                        self.tree.collapse_node(existing)
                        existing.loaded = False
                        self.tree.empty(existing)
                    continue
                self.factory.add_collection(node, connection, item)
            else:
                self.factory.add_document(node, connection, item)

    async def upload(
        self,
        node: CollectionNode,
        files: Mapping[str, bytes],
        roots: list[str] | None = None,
    ) -> Result[list[Document]]:
        """Upload local files, keyed by absolute path.

        Paths are kept relative to the base directory of ``roots``, the files
        and folders the user picked, so a picked folder keeps its name. Without
        ``roots`` the base is the common directory of the files themselves.
        """
        top = get_top_dir(roots or list(files))
        return await self.save_documents(node, clean_mapping(files, top))

    async def change_owner(self, node: ItemNode, owner: str, group: str) -> Result[bool]:
        connection = self.connection_of(node)
        try:
            changed = await self.adapter.chmod(
                connection, node.uri, owner, group, is_collection=node.is_collection
            )
        except AdapterError as e:
            logger.warning("Cannot change owner of {}: {}", node.uri, e)
            return Result.failure(e)
        if not changed:
            return Result.failure(f"Server refused to change owner of {node.uri}")
        record = record_of(node)
        record.owner = owner
        record.group = group
        self.tree.refresh()
        return Result.success(True)
