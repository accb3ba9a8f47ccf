"""Move, copy, rename, delete and create items, remotely and in the tree."""

import asyncio
import inspect
import mimetypes
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from datetime import datetime

from loguru import logger

from pebble_tree.config import DEFAULT_GROUP
from pebble_tree.core.clipboard import Clipboard, can_move_to
from pebble_tree.core.naming import new_name
from pebble_tree.core.paths import collection_dir
from pebble_tree.core.sync import Confirm, TreeSync, confirmed, record_of
from pebble_tree.core.templates import Template
from pebble_tree.errors import (
    AdapterError,
    BatchResult,
    DetachedNodeError,
    LogicError,
    Result,
    describe_error,
)
from pebble_tree.models.item import Collection, Document
from pebble_tree.models.node import CollectionNode, DocumentNode, ItemNode, Node
from pebble_tree.models.operation import MoveOperation

Validator = Callable[[str], bool]
Prompt = Callable[[str, Validator], str | None | Awaitable[str | None]]


class MutationEngine:
    """Structural changes that must reach the remote store and the tree together.

    Batch operations treat each item independently: a failed item is
    reported in ``BatchResult.failed`` and never rolls back the others.
    """

    def __init__(self, sync: TreeSync, clipboard: Clipboard | None = None) -> None:
        self.sync = sync
        self.tree = sync.tree
        self.clipboard = clipboard or Clipboard(sync.tree)

    # move / copy / rename

    async def move(self, operation: MoveOperation) -> BatchResult[ItemNode]:
        """Move or copy each source in order; failed sources are left where they were."""
        if len(operation.source) != len(operation.destination):
            msg = (
                f"{len(operation.source)} sources but "
                f"{len(operation.destination)} destinations"
            )
            raise LogicError(msg)

        batch: BatchResult[ItemNode] = BatchResult()
        for source, destination in zip(operation.source, operation.destination, strict=True):
            try:
                node = await self._move_one(source, destination, operation)
            except (AdapterError, DetachedNodeError) as e:
                logger.warning("Cannot move {} to {}: {}", source.uri, destination, e)
                batch.failed.append((source.id, describe_error(e)))
                continue
            if node is None:
                batch.failed.append((source.id, f"Server refused to move {source.uri}"))
            else:
                batch.succeeded.append(node)
        return batch

    async def _move_one(
        self, source: ItemNode, destination: str, operation: MoveOperation
    ) -> ItemNode | None:
        container = operation.destination_container
        for item in (source, container):
            if not self.tree.is_live(item):
                msg = f"{item.uri} is no longer part of the tree"
                raise DetachedNodeError(msg)

        connection = self.sync.connection_of(source)
        moved = await self.sync.adapter.move(
            connection,
            source.uri,
            destination,
            is_collection=source.is_collection,
            copy=operation.copy,
        )
        if not moved:
            return None

        if not operation.copy and self.tree.is_live(source):
            self.tree.remove_node(source)
        if not self.tree.is_live(container):
            msg = f"{container.uri} was removed while moving {source.uri}"
            raise DetachedNodeError(msg)

        record = replace(record_of(source), name=destination)
        node: ItemNode
        if isinstance(record, Collection):
            node = self.sync.factory.add_collection(container, connection, record)
        else:
            node = self.sync.factory.add_document(container, connection, record)
        logger.debug("{} {} -> {}", "Copied" if operation.copy else "Moved", source.uri, node.uri)
        return node

    async def rename(self, node: ItemNode, name: str) -> Result[ItemNode]:
        """Rename an item inside its collection (a move to a sibling uri).

        Raises:
            LogicError: the item is not inside a collection.
        """
        parent = self.tree.parent_of(node)
        if not isinstance(parent, CollectionNode):
            msg = f"Cannot rename top-level item {node.uri!r}"
            raise LogicError(msg)

        batch = await self.move(
            MoveOperation(
                source=[node],
                destination=[collection_dir(parent.uri, name)],
                destination_container=parent,
            )
        )
        if len(batch) != 1:
            error = batch.failed[0][1] if batch.failed else f"Rename of {node.uri} failed"
            return Result.failure(error)
        renamed = batch.succeeded[0]
        self.tree.select_node(renamed)
        return Result.success(renamed)

    async def update_properties(
        self, node: ItemNode, *, name: str, owner: str, group: str
    ) -> Result[ItemNode]:
        """Apply a properties form: rename if needed, then change owner/group if needed."""
        current = node
        if name != node.name:
            renamed = await self.rename(node, name)
            if not renamed.ok or renamed.value is None:
                return renamed
            current = renamed.value

        record = record_of(current)
        if owner != record.owner or group != record.group:
            changed = await self.sync.change_owner(current, owner, group)
            if not changed.ok:
                return Result.failure(changed.error or "")
        return Result.success(current)

    async def paste(self, collection: Node | None = None) -> BatchResult[ItemNode]:
        """Paste the clipboard into ``collection`` (the selected node by default)."""
        if collection is None:
            selected = self.tree.selected_nodes
            collection = selected[0] if selected else None
        if not isinstance(collection, CollectionNode):
            return BatchResult()

        operation = self.clipboard.paste_operation(collection)
        if not operation.source or not can_move_to(operation.source, collection.uri):
            return BatchResult()
        batch = await self.move(operation)
        if not operation.copy:
            self.clipboard.clear()
        return batch

    # delete

    async def delete(self, confirm: Confirm[list[ItemNode]] | None = None) -> BatchResult[ItemNode]:
        """Delete the top-level selected items after confirmation, concurrently."""
        nodes = self.tree.top_nodes(self.tree.selected_nodes)
        if not nodes:
            return BatchResult()
        if not await confirmed(confirm, nodes):
            self.tree.select_node(nodes[0])
            return BatchResult()

        errors = await asyncio.gather(*(self._delete_one(node) for node in nodes))
        batch: BatchResult[ItemNode] = BatchResult()
        for node, error in zip(nodes, errors, strict=True):
            if error is None:
                batch.succeeded.append(node)
            else:
                batch.failed.append((node.id, error))
        return batch

    async def _delete_one(self, node: ItemNode) -> str | None:
        if not self.sync.guard.start_loading(node):
            return f"{node.uri} is busy"
        connection = self.sync.connection_of(node)
        try:
            done = await self.sync.adapter.remove(
                connection, node.uri, is_collection=node.is_collection
            )
        except AdapterError as e:
            logger.warning("Cannot delete {}: {}", node.uri, e)
            self.sync.guard.end_loading(node)
            return describe_error(e)
        if not done:
            self.sync.guard.end_loading(node)
            return f"Server refused to delete {node.uri}"

        if isinstance(node, DocumentNode) and node.editor is not None:
            node.editor.close_without_saving()
            node.editor = None
        self.tree.remove_node(node)
        logger.info("Deleted {}", node.uri)
        return None

    # create

    def name_validator(self, collection: CollectionNode) -> Validator:
        return lambda name: name != "" and not self.tree.file_exists(name, collection)

    async def new_item(
        self,
        collection: CollectionNode,
        *,
        is_collection: bool = False,
        prompt: Prompt | None = None,
        ext: str | None = None,
    ) -> Result[ItemNode]:
        """Create a collection or document under a default name, optionally confirmed by ``prompt``.

        ``prompt`` receives the proposed name and the validator and returns
        the chosen name, or None to cancel.
        """
        validator = self.name_validator(collection)
        name: str | None = new_name(validator, ext)
        if prompt is not None:
            answer = prompt(name, validator)
            name = await answer if inspect.isawaitable(answer) else answer
            if not name:
                return Result.failure("Cancelled")
        if not validator(name):
            return Result.failure(f"Invalid or existing name {name!r}")

        if is_collection:
            return await self.create_collection(collection, name)
        return await self.create_document(collection, name)

    async def create_collection(self, collection: CollectionNode, name: str) -> Result[ItemNode]:
        connection = self.sync.connection_of(collection)
        uri = collection_dir(collection.uri, name)
        try:
            record = await self.sync.adapter.new_collection(connection, uri)
        except AdapterError as e:
            logger.warning("Cannot create collection {}: {}", uri, e)
            return Result.failure(e)
        if not self.tree.is_live(collection):
            return Result.failure(f"{collection.uri} was removed while creating {name}")
        return Result.success(self.sync.factory.add_collection(collection, connection, record))

    async def create_document(
        self,
        collection: CollectionNode,
        name: str,
        content: str = "",
        *,
        owner: str = "",
        group: str = "",
    ) -> Result[ItemNode]:
        """Insert a new, unsaved document and open it in an editor.

        Non-empty ``content`` is applied to the editor as one full-buffer edit.
        """
        connection = self.sync.connection_of(collection)
        now = datetime.now()
        document = Document(
            name=collection_dir(collection.uri, name),
            content=content,
            media_type=mimetypes.guess_type(name)[0] or "text/plain",
            size=len(content),
            owner=owner or connection.username,
            group=group or DEFAULT_GROUP,
            created=now,
            last_modified=now,
        )
        node = self.sync.factory.add_document(collection, connection, document, is_new=True)

        if self.sync.opener is not None:
            opened = await self.sync.open_document(node)
            if not opened.ok or opened.value is None:
                logger.warning("Created {} but could not open it: {}", node.uri, opened.error)
            elif content:
                opened.value.apply_full_edit(content)
        return Result.success(node)

    async def new_item_from_template(
        self,
        collection: CollectionNode,
        template: Template,
        params: Mapping[str, str],
        *,
        name: str | None = None,
    ) -> Result[ItemNode]:
        validator = self.name_validator(collection)
        name = name or new_name(validator, template.ext)
        if not validator(name):
            return Result.failure(f"Invalid or existing name {name!r}")
        return await self.create_document(collection, name, template.execute(params))
