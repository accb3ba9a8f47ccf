"""Command-line interface: browse and edit a remote store through the tree mirror."""

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from pebble_tree.api import PebbleApi
from pebble_tree.config import resolve_connection
from pebble_tree.core.describe import describe, describe_selection
from pebble_tree.core.mutation import MutationEngine
from pebble_tree.core.paths import get_name, is_within, parent_collection
from pebble_tree.core.sync import TreeSync
from pebble_tree.core.templates import TEMPLATES
from pebble_tree.logging_config import configure_logging
from pebble_tree.models.node import CollectionNode, ConnectionNode, DocumentNode, ItemNode, Node
from pebble_tree.models.operation import MoveOperation
from pebble_tree.protocols import RemoteAdapter

app = typer.Typer(help="pebble-tree: browse and edit a remote document store.")

ConnectionOpt = Annotated[
    str | None, typer.Option("--connection", "-c", help="Named connection profile")
]
ServerOpt = Annotated[str | None, typer.Option("--server", "-s", help="Server url")]
UserOpt = Annotated[str | None, typer.Option("--user", "-u", help="Username")]
PasswordOpt = Annotated[str | None, typer.Option("--password", "-p", help="Password")]


def make_adapter() -> RemoteAdapter:
    return PebbleApi()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _run(coro: Coroutine[Any, Any, int]) -> None:
    code = asyncio.run(coro)
    if code:
        raise typer.Exit(code)


def _open(
    profile: str | None,
    server: str | None,
    user: str | None,
    password: str | None,
) -> tuple[TreeSync, ConnectionNode]:
    try:
        connection = resolve_connection(profile, server=server, username=user, password=password)
    except (KeyError, ValueError) as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    sync = TreeSync(make_adapter())
    return sync, sync.add_connection(connection)


async def _locate(sync: TreeSync, node: ConnectionNode, uri: str) -> ItemNode | None:
    found = await sync.locate(node, uri)
    if not found.ok or found.value is None:
        logger.error("{}", found.error)
        return None
    return found.value


def _print_tree(sync: TreeSync, start: Node, depth: int) -> None:
    base = len(list(sync.tree.ancestors(start)))
    for node in sync.tree.walk(start):
        level = len(list(sync.tree.ancestors(node))) - base
        if level > depth:
            continue
        typer.echo("    " * level + describe(node))  # type: ignore[arg-type]


@app.command()
def tree(
    uri: str = typer.Argument("/db", help="Collection to start from"),
    depth: int = typer.Option(1, "--depth", "-d", help="Levels to load"),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Print the remote tree below a collection."""

    async def run() -> int:
        sync, node = _open(connection, server, user, password)
        start = await _locate(sync, node, uri)
        if start is None:
            return 1
        if isinstance(start, CollectionNode):
            batch = await sync.load_tree(start, depth)
            for node_id, error in batch.failed:
                logger.warning("{}: {}", node_id, error)
        _print_tree(sync, start, depth)
        return 0

    _run(run())


@app.command()
def mkdir(
    uri: str = typer.Argument(..., help="Collection to create"),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Create a collection."""

    async def run() -> int:
        sync, node = _open(connection, server, user, password)
        parent = await _locate(sync, node, parent_collection(uri))
        if not isinstance(parent, CollectionNode):
            logger.error("{} is not a collection", parent_collection(uri))
            return 1
        created = await MutationEngine(sync).create_collection(parent, get_name(uri))
        if not created.ok:
            logger.error("{}", created.error)
            return 1
        typer.echo(f"Created {uri}")
        return 0

    _run(run())


async def _transfer(
    source_uri: str,
    destination_uri: str,
    *,
    copy: bool,
    profile: str | None,
    server: str | None,
    user: str | None,
    password: str | None,
) -> int:
    sync, node = _open(profile, server, user, password)
    source = await _locate(sync, node, source_uri)
    container = await _locate(sync, node, parent_collection(destination_uri))
    if source is None or container is None:
        return 1
    if not isinstance(container, CollectionNode) or is_within(destination_uri, source.uri):
        logger.error("Cannot {} {} to {}", "copy" if copy else "move", source_uri, destination_uri)
        return 1

    batch = await MutationEngine(sync).move(
        MoveOperation(
            source=[source],
            destination=[destination_uri],
            destination_container=container,
            copy=copy,
        )
    )
    for _node_id, error in batch.failed:
        logger.error("{}", error)
    for moved in batch.succeeded:
        typer.echo(f"{source_uri} -> {moved.uri}")
    return 0 if batch.ok else 1


@app.command()
def move(
    source: str = typer.Argument(..., help="Item to move"),
    destination: str = typer.Argument(..., help="New uri"),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Move or rename an item."""
    _run(
        _transfer(
            source,
            destination,
            copy=False,
            profile=connection,
            server=server,
            user=user,
            password=password,
        )
    )


@app.command()
def copy(
    source: str = typer.Argument(..., help="Item to copy"),
    destination: str = typer.Argument(..., help="Uri of the copy"),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Copy an item."""
    _run(
        _transfer(
            source,
            destination,
            copy=True,
            profile=connection,
            server=server,
            user=user,
            password=password,
        )
    )


@app.command()
def rm(
    uris: list[str] = typer.Argument(..., help="Items to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Delete items (nested items of a deleted collection are skipped)."""

    def confirm(nodes: list[ItemNode]) -> bool:
        if yes:
            return True
        names = ", ".join(n.uri for n in nodes)
        return typer.confirm(f"Delete {names}?")

    async def run() -> int:
        sync, node = _open(connection, server, user, password)
        sync.tree.clear_selection()
        for uri in uris:
            found = await _locate(sync, node, uri)
            if found is None:
                return 1
            sync.tree.add_to_selection(found)

        batch = await MutationEngine(sync).delete(confirm)
        for deleted in batch.succeeded:
            typer.echo(f"Deleted {deleted.uri}")
        for _node_id, error in batch.failed:
            logger.error("{}", error)
        return 0 if batch.ok else 1

    _run(run())


def _read_files(paths: list[Path]) -> dict[str, bytes]:
    """Absolute path -> content for every file, expanding directories."""
    files: dict[str, bytes] = {}
    for path in paths:
        path = path.expanduser().resolve()
        if path.is_dir():
            for child in sorted(path.rglob("*")):
                if child.is_file():
                    files[child.as_posix()] = child.read_bytes()
        else:
            files[path.as_posix()] = path.read_bytes()
    return files


@app.command()
def upload(
    paths: list[Path] = typer.Argument(..., help="Local files or directories", exists=True),
    to: str = typer.Option("/db", "--to", "-t", help="Target collection"),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Upload local files and folders; a folder is uploaded under its own name."""

    async def run() -> int:
        sync, node = _open(connection, server, user, password)
        target = await _locate(sync, node, to)
        if not isinstance(target, CollectionNode):
            logger.error("{} is not a collection", to)
            return 1
        roots = [path.expanduser().resolve().as_posix() for path in paths]
        result = await sync.upload(target, _read_files(paths), roots)
        if not result.ok:
            logger.error("{}", result.error)
            return 1
        for document in result.value or []:
            typer.echo(f"Uploaded {document.name}")
        return 0

    _run(run())


def _parse_params(params: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key:
            logger.error("Template parameter {!r} is not key=value", param)
            raise typer.Exit(1)
        values[key] = value
    return values


@app.command()
def new(
    collection: str = typer.Argument(..., help="Collection to create the document in"),
    template: str = typer.Option(
        "restxq", "--template", "-t", help=f"Template: {', '.join(TEMPLATES)}"
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Document name"),
    params: list[str] | None = typer.Option(
        None, "--param", "-P", help="Template parameter as key=value"
    ),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Create a document from a template and save it (named untitled-<n> by default)."""
    if template not in TEMPLATES:
        logger.error("Unknown template {!r}", template)
        raise typer.Exit(1)
    values = _parse_params(params or [])

    async def run() -> int:
        sync, node = _open(connection, server, user, password)
        target = await _locate(sync, node, collection)
        if not isinstance(target, CollectionNode):
            logger.error("{} is not a collection", collection)
            return 1
        loaded = await sync.load(target)
        if not loaded.ok:
            logger.error("{}", loaded.error)
            return 1

        created = await MutationEngine(sync).new_item_from_template(
            target, TEMPLATES[template], values, name=name
        )
        if not created.ok or not isinstance(created.value, DocumentNode):
            logger.error("{}", created.error)
            return 1
        document = created.value
        saved = await sync.save(document, document.document.content)
        if not saved.ok:
            logger.error("{}", saved.error)
            return 1
        typer.echo(f"Created {document.uri}")
        return 0

    _run(run())


@app.command()
def info(
    uris: list[str] = typer.Argument(..., help="Items to describe"),
    connection: ConnectionOpt = None,
    server: ServerOpt = None,
    user: UserOpt = None,
    password: PasswordOpt = None,
) -> None:
    """Describe one item, or count several."""

    async def run() -> int:
        sync, node = _open(connection, server, user, password)
        sync.tree.clear_selection()
        for uri in uris:
            found = await _locate(sync, node, uri)
            if found is None:
                return 1
            sync.tree.add_to_selection(found)
        typer.echo(describe_selection(sync.tree.selected_nodes))  # type: ignore[arg-type]
        return 0

    _run(run())
