"""Configuration constants for pebble-tree."""

import json
from pathlib import Path
from typing import Any

from pebble_tree.models.item import Connection

# Path separator used by the remote store.
SEPARATOR = "/"

# Scheme of the resource uris handed to the host editor.
RESOURCE_SCHEME = "pebble"

# Fixed ids of the structural nodes.
ROOT_ID = "pebble-connections-view-root"
TOOLBAR_ID = "pebble-toolbar"

# Identity used when a connection has no username.
GUEST_USER = "(guest)"

# Group assigned to items synthesized locally.
DEFAULT_GROUP = "dba"

# Prefix of generated item names (untitled-1, untitled-2.xml, ...).
UNTITLED_PREFIX = "untitled-"

# Used when a new connection is created without explicit values.
DEFAULT_CONNECTION_NAME = "Localhost"
DEFAULT_SERVER = "http://localhost:8080"
DEFAULT_USERNAME = "admin"

# Seconds before a remote call is abandoned.
HTTP_TIMEOUT: float = 30.0

# Named connection profiles. First file found is used.
CONNECTIONS_FILES: list[Path] = [
    Path("~/.config/pebble-tree/connections.json").expanduser(),
    Path("~/.pebble-tree.json").expanduser(),
]


def load_connections(files: list[Path] | None = None) -> dict[str, Connection]:
    """Load named connection profiles from the first existing profile file.

    The file holds a JSON object mapping profile names to objects with
    ``server``, ``username`` and ``password`` keys.

    Returns:
        Mapping of profile name to Connection (empty when no file exists).
    """
    for candidate in files if files is not None else CONNECTIONS_FILES:
        if candidate.is_file():
            raw: dict[str, Any] = json.loads(candidate.read_text(encoding="utf-8"))
            break
    else:
        return {}

    if not isinstance(raw, dict):
        msg = f"Connection profiles must be a JSON object, got {type(raw).__name__}"
        raise ValueError(msg)

    return {
        name: Connection(
            server=entry["server"],
            username=entry.get("username", ""),
            password=entry.get("password", ""),
            name=name,
        )
        for name, entry in raw.items()
    }


def resolve_connection(
    name: str | None = None,
    *,
    server: str | None = None,
    username: str | None = None,
    password: str | None = None,
    files: list[Path] | None = None,
) -> Connection:
    """Build a Connection from a profile name and/or explicit values.

    Explicit values override the profile; missing values fall back to the
    defaults of a new connection.
    """
    base: Connection | None = None
    if name:
        profiles = load_connections(files)
        base = profiles.get(name)
        if base is None:
            msg = f"Unknown connection profile {name!r}, known: {sorted(profiles)!r}"
            raise KeyError(msg)

    return Connection(
        server=server or (base.server if base else DEFAULT_SERVER),
        username=(
            username if username is not None else (base.username if base else DEFAULT_USERNAME)
        ),
        password=password if password is not None else (base.password if base else ""),
        name=name or DEFAULT_CONNECTION_NAME,
    )
