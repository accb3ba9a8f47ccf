"""Remote store records: connections, collections and documents."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Connection:
    """Credentials and endpoint of one remote store session.

    ``users`` and ``groups`` accumulate as the security tree is discovered.
    """

    server: str
    username: str = ""
    password: str = ""
    name: str = ""
    users: list[str] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)


@dataclass
class Collection:
    """A directory-like container, as returned by the remote store.

    ``name`` is the full uri. ``collections`` and ``documents`` hold the
    direct children of a listing before they are inserted into the tree.
    """

    name: str
    created: datetime | None = None
    owner: str = ""
    group: str = ""
    acl: list[Any] = field(default_factory=list)
    collections: list["Collection"] = field(default_factory=list)
    documents: list["Document"] = field(default_factory=list)


@dataclass
class Document:
    """A leaf resource. ``name`` is the full uri."""

    name: str
    content: str | bytes = ""
    media_type: str = "text/plain"
    size: int = 0
    owner: str = ""
    group: str = ""
    acl: list[Any] = field(default_factory=list)
    binary_doc: bool = False
    created: datetime | None = None
    last_modified: datetime | None = None


Item = Collection | Document


def is_collection(item: Item) -> bool:
    return isinstance(item, Collection)


def _parse_date(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000)
    return datetime.fromisoformat(str(value))


def document_from_json(data: dict[str, Any]) -> Document:
    """Parse a document record from the remote JSON representation."""
    content = data.get("content", "")
    return Document(
        name=data["name"],
        content=content,
        media_type=data.get("mediaType", "text/plain"),
        size=int(data.get("size", len(content))),
        owner=data.get("owner", ""),
        group=data.get("group", ""),
        acl=list(data.get("acl", [])),
        binary_doc=bool(data.get("binaryDoc", False)),
        created=_parse_date(data.get("created")),
        last_modified=_parse_date(data.get("lastModified")),
    )


def collection_from_json(data: dict[str, Any]) -> Collection:
    """Parse a collection record, including its nested children."""
    return Collection(
        name=data["name"],
        created=_parse_date(data.get("created")),
        owner=data.get("owner", ""),
        group=data.get("group", ""),
        acl=list(data.get("acl", [])),
        collections=[collection_from_json(c) for c in data.get("collections", [])],
        documents=[document_from_json(d) for d in data.get("documents", [])],
    )


def item_from_json(data: dict[str, Any]) -> Item:
    """Parse either kind of record.

    A payload with ``collections`` or ``documents`` keys is a collection,
    one with ``mediaType`` or ``content`` a document.
    """
    if "collections" in data or "documents" in data:
        return collection_from_json(data)
    if "mediaType" in data or "content" in data or "binaryDoc" in data:
        return document_from_json(data)
    msg = f"Cannot tell item kind from keys: {sorted(data.keys())!r}"
    raise ValueError(msg)
