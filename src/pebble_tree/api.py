"""HTTP remote adapter for a pebble document store."""

import asyncio
import base64
import mimetypes
from collections.abc import Mapping
from typing import Any

import requests
from loguru import logger

from pebble_tree.config import HTTP_TIMEOUT
from pebble_tree.errors import AdapterError
from pebble_tree.models.item import (
    Collection,
    Connection,
    Document,
    Item,
    collection_from_json,
    document_from_json,
    item_from_json,
)


class PebbleApi:
    """Remote adapter speaking JSON over HTTP.

    Every operation is a ``POST {server}/pebble/api/{operation}``; the server
    answers ``{"ok": true, "result": ...}`` or ``{"ok": false, "error": ...}``.
    Blocking requests run in a worker thread so callers can await them.
    """

    def __init__(
        self,
        *,
        timeout: float = HTTP_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.sess = session or requests.Session()
        self.timeout = timeout

    def _url(self, connection: Connection, path: str) -> str:
        return f"{connection.server.rstrip('/')}/pebble/api/{path}"

    @staticmethod
    def _auth(connection: Connection) -> tuple[str, str] | None:
        return (connection.username, connection.password) if connection.username else None

    def _unwrap(self, path: str, response: requests.Response) -> Any:
        response.raise_for_status()
        rv: dict[str, Any] = response.json()
        if not rv.get("ok"):
            msg = f"API call failed: {path!r} -> {rv.get('error')!r}"
            raise AdapterError(msg)
        return rv.get("result")

    def call(self, connection: Connection, path: str, args: dict[str, Any]) -> Any:
        """Invoke an API operation, return its ``result`` payload."""
        logger.debug("Making request: {!r} {}", path, repr(args)[:32])
        try:
            r = self.sess.post(
                self._url(connection, path),
                json=args,
                auth=self._auth(connection),
                timeout=self.timeout,
            )
            return self._unwrap(path, r)
        except requests.RequestException as e:
            msg = f"Request {path!r} to {connection.server} failed: {e}"
            raise AdapterError(msg) from e

    def upload(self, connection: Connection, collection: str, files: Mapping[str, bytes]) -> Any:
        """Send a multipart batch; part names follow ``file-upload-<n>``."""
        parts = [
            (
                f"file-upload-{counter}",
                (name, data, mimetypes.guess_type(name)[0] or "application/octet-stream"),
            )
            for counter, (name, data) in enumerate(files.items(), start=1)
        ]
        logger.debug("Uploading {} files to {}", len(parts), collection)
        try:
            r = self.sess.post(
                self._url(connection, "upload"),
                data={"collection": collection},
                files=parts,
                auth=self._auth(connection),
                timeout=self.timeout,
            )
            return self._unwrap("upload", r)
        except requests.RequestException as e:
            msg = f"Upload to {connection.server}{collection} failed: {e}"
            raise AdapterError(msg) from e

    async def _call(self, connection: Connection, path: str, **args: Any) -> Any:
        return await asyncio.to_thread(self.call, connection, path, args)

    async def connect(self, connection: Connection) -> Collection:
        return collection_from_json(await self._call(connection, "connect"))

    async def load(self, connection: Connection, uri: str) -> Item:
        return item_from_json(await self._call(connection, "load", uri=uri))

    async def save(
        self,
        connection: Connection,
        uri: str,
        content: str | bytes,
        *,
        binary: bool = False,
    ) -> bool:
        if isinstance(content, bytes):
            payload = base64.b64encode(content).decode("ascii")
            binary = True
        elif binary:
            payload = base64.b64encode(content.encode("utf-8")).decode("ascii")
        else:
            payload = content
        return bool(await self._call(connection, "save", uri=uri, content=payload, binary=binary))

    async def save_documents(
        self,
        connection: Connection,
        collection: Collection,
        files: Mapping[str, bytes],
    ) -> list[Document]:
        result = await asyncio.to_thread(self.upload, connection, collection.name, files)
        return [document_from_json(d) for d in result or []]

    async def move(
        self,
        connection: Connection,
        source: str,
        destination: str,
        *,
        is_collection: bool,
        copy: bool,
    ) -> bool:
        return bool(
            await self._call(
                connection,
                "copy" if copy else "move",
                source=source,
                destination=destination,
                collection=is_collection,
            )
        )

    async def remove(self, connection: Connection, uri: str, *, is_collection: bool) -> bool:
        return bool(await self._call(connection, "remove", uri=uri, collection=is_collection))

    async def new_collection(self, connection: Connection, uri: str) -> Collection:
        return collection_from_json(await self._call(connection, "new-collection", uri=uri))

    async def chmod(
        self,
        connection: Connection,
        uri: str,
        owner: str,
        group: str,
        *,
        is_collection: bool,
    ) -> bool:
        return bool(
            await self._call(
                connection, "chmod", uri=uri, owner=owner, group=group, collection=is_collection
            )
        )

    async def get_users(self, connection: Connection) -> list[str]:
        return list(await self._call(connection, "users") or [])

    async def get_groups(self, connection: Connection) -> list[str]:
        return list(await self._call(connection, "groups") or [])
