"""Tests for connection profiles."""

import json
from pathlib import Path

import pytest

from pebble_tree.config import DEFAULT_SERVER, load_connections, resolve_connection


@pytest.fixture
def profiles(tmp_path: Path) -> list[Path]:
    path = tmp_path / "connections.json"
    path.write_text(
        json.dumps(
            {
                "prod": {"server": "https://prod:8443", "username": "deploy", "password": "pw"},
                "public": {"server": "http://public:8080"},
            }
        )
    )
    return [tmp_path / "missing.json", path]


def test_load_connections_reads_first_existing_file(profiles: list[Path]) -> None:
    connections = load_connections(profiles)

    assert sorted(connections) == ["prod", "public"]
    assert connections["prod"].username == "deploy"
    assert connections["prod"].name == "prod"
    assert connections["public"].username == ""


def test_load_connections_without_file(tmp_path: Path) -> None:
    assert load_connections([tmp_path / "none.json"]) == {}


def test_load_connections_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[]")
    with pytest.raises(ValueError, match="JSON object"):
        load_connections([path])


def test_resolve_connection_overrides_profile(profiles: list[Path]) -> None:
    connection = resolve_connection("prod", password="other", files=profiles)

    assert connection.server == "https://prod:8443"
    assert connection.username == "deploy"
    assert connection.password == "other"


def test_resolve_connection_defaults(tmp_path: Path) -> None:
    connection = resolve_connection(files=[tmp_path / "none.json"])
    assert connection.server == DEFAULT_SERVER
    assert connection.username == "admin"
    assert connection.name == "Localhost"


def test_resolve_connection_unknown_profile(profiles: list[Path]) -> None:
    with pytest.raises(KeyError, match="staging"):
        resolve_connection("staging", files=profiles)
