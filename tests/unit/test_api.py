"""Tests for PebbleApi, the HTTP remote adapter."""

import asyncio
import base64
import json
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from pebble_tree.api import PebbleApi
from pebble_tree.errors import AdapterError
from pebble_tree.models.item import Collection, Connection, Document

CONNECTION = Connection(server="http://localhost:8080/", username="admin", password="secret")


@pytest.fixture
def api_with_mock_session() -> tuple[PebbleApi, MagicMock]:
    """Create a PebbleApi with a mocked requests.Session."""
    with patch("pebble_tree.api.requests.Session") as mock_session_cls:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        api = PebbleApi()

    return api, mock_session


def _make_response(data: dict[str, Any]) -> MagicMock:
    """Create a mock HTTP response with given JSON data."""
    response = MagicMock()
    response.json.return_value = data
    response.text = json.dumps(data)
    return response


def test_call_posts_json_with_auth(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    """call() posts the arguments to the operation url with basic auth."""
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"ok": True, "result": 42})

    assert api.call(CONNECTION, "load", {"uri": "/db"}) == 42

    call_args = mock_session.post.call_args
    assert call_args.args[0] == "http://localhost:8080/pebble/api/load"
    assert call_args.kwargs["json"] == {"uri": "/db"}
    assert call_args.kwargs["auth"] == ("admin", "secret")


def test_guest_connection_sends_no_auth(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"ok": True, "result": None})

    api.call(Connection(server="http://h"), "users", {})

    assert mock_session.post.call_args.kwargs["auth"] is None


def test_call_raises_adapter_error_on_failure_payload(
    api_with_mock_session: tuple[PebbleApi, MagicMock],
) -> None:
    """A response with ok=false becomes an AdapterError naming the operation."""
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"ok": False, "error": "permission denied"})

    with pytest.raises(AdapterError, match="permission denied"):
        api.call(CONNECTION, "remove", {"uri": "/db/a"})


def test_call_wraps_transport_errors(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    """requests exceptions surface as AdapterError."""
    api, mock_session = api_with_mock_session
    mock_session.post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(AdapterError, match="refused"):
        api.call(CONNECTION, "connect", {})


def test_http_status_errors_are_adapter_errors(
    api_with_mock_session: tuple[PebbleApi, MagicMock],
) -> None:
    api, mock_session = api_with_mock_session
    response = _make_response({})
    response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    mock_session.post.return_value = response

    with pytest.raises(AdapterError, match="500"):
        api.call(CONNECTION, "connect", {})


def test_load_parses_collection_listing(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response(
        {
            "ok": True,
            "result": {
                "name": "/db/a",
                "owner": "admin",
                "group": "dba",
                "collections": [{"name": "/db/a/sub"}],
                "documents": [{"name": "/db/a/x.xml", "mediaType": "application/xml", "size": 7}],
            },
        }
    )

    item = asyncio.run(api.load(CONNECTION, "/db/a"))

    assert isinstance(item, Collection)
    assert [c.name for c in item.collections] == ["/db/a/sub"]
    assert item.documents[0].media_type == "application/xml"
    assert item.documents[0].size == 7


def test_save_encodes_bytes_as_base64(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"ok": True, "result": True})

    assert asyncio.run(api.save(CONNECTION, "/db/x.bin", b"\x00\x01"))

    body = mock_session.post.call_args.kwargs["json"]
    assert body["binary"] is True
    assert base64.b64decode(body["content"]) == b"\x00\x01"


def test_save_sends_text_as_is(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"ok": True, "result": True})

    asyncio.run(api.save(CONNECTION, "/db/x.xml", "<x/>"))

    assert mock_session.post.call_args.kwargs["json"] == {
        "uri": "/db/x.xml",
        "content": "<x/>",
        "binary": False,
    }


def test_copy_uses_copy_operation(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"ok": True, "result": True})

    asyncio.run(api.move(CONNECTION, "/db/a", "/db/b/a", is_collection=True, copy=True))

    call_args = mock_session.post.call_args
    assert call_args.args[0].endswith("/pebble/api/copy")
    assert call_args.kwargs["json"] == {
        "source": "/db/a",
        "destination": "/db/b/a",
        "collection": True,
    }


def test_save_documents_sends_numbered_parts(
    api_with_mock_session: tuple[PebbleApi, MagicMock],
) -> None:
    """Uploads are one multipart request with parts file-upload-1..n."""
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response(
        {"ok": True, "result": [{"name": "/db/b/a.txt", "content": ""}]}
    )

    documents = asyncio.run(
        api.save_documents(CONNECTION, Collection(name="/db/b"), {"a.txt": b"A", "d/b.txt": b"B"})
    )

    assert documents == [Document(name="/db/b/a.txt")]
    call_args = mock_session.post.call_args
    assert call_args.args[0].endswith("/pebble/api/upload")
    assert call_args.kwargs["data"] == {"collection": "/db/b"}
    parts = call_args.kwargs["files"]
    assert [name for name, _ in parts] == ["file-upload-1", "file-upload-2"]
    assert parts[1][1][:2] == ("d/b.txt", b"B")


def test_users_and_groups(api_with_mock_session: tuple[PebbleApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"ok": True, "result": ["admin", "guest"]})

    assert asyncio.run(api.get_users(CONNECTION)) == ["admin", "guest"]
    assert mock_session.post.call_args.args[0].endswith("/pebble/api/users")
