"""Protocols for the collaborators the tree engine is wired to."""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from pebble_tree.models.item import Collection, Connection, Document, Item


@runtime_checkable
class RemoteAdapter(Protocol):
    """Asynchronous access to a remote document store.

    Implementations raise ``AdapterError`` when the server is unreachable or
    rejects a request.
    """

    async def connect(self, connection: Connection) -> Collection:
        """Open a session and return the root collection listing."""
        ...

    async def load(self, connection: Connection, uri: str) -> Item:
        """Fetch one collection (with its direct children) or document."""
        ...

    async def save(
        self,
        connection: Connection,
        uri: str,
        content: str | bytes,
        *,
        binary: bool = False,
    ) -> bool:
        """Store a document's content."""
        ...

    async def save_documents(
        self,
        connection: Connection,
        collection: Collection,
        files: Mapping[str, bytes],
    ) -> list[Document]:
        """Upload a batch of files below ``collection``, keyed by relative path."""
        ...

    async def move(
        self,
        connection: Connection,
        source: str,
        destination: str,
        *,
        is_collection: bool,
        copy: bool,
    ) -> bool:
        """Move (or copy) an item to a new uri."""
        ...

    async def remove(self, connection: Connection, uri: str, *, is_collection: bool) -> bool:
        """Delete an item."""
        ...

    async def new_collection(self, connection: Connection, uri: str) -> Collection:
        """Create an empty collection."""
        ...

    async def chmod(
        self,
        connection: Connection,
        uri: str,
        owner: str,
        group: str,
        *,
        is_collection: bool,
    ) -> bool:
        """Change owner and group of an item."""
        ...

    async def get_users(self, connection: Connection) -> list[str]:
        """List user names."""
        ...

    async def get_groups(self, connection: Connection) -> list[str]:
        """List group names."""
        ...


@runtime_checkable
class EditorHandle(Protocol):
    """An open editor showing one document."""

    def apply_full_edit(self, content: str) -> None:
        """Replace the whole buffer with ``content`` and mark it dirty."""
        ...

    def close_without_saving(self) -> None:
        """Close the editor, discarding pending edits."""
        ...


@runtime_checkable
class Opener(Protocol):
    """Host component resolving ``pebble:`` resource uris into editors."""

    async def open(self, resource: str) -> EditorHandle:
        """Open the resource and return its editor."""
        ...
