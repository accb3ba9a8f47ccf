"""Path algebra over remote store uris.

Pure string functions: no tree or remote access. Uris are absolute
(``/db/apps/x.xml``) and never end with a separator, except for the
directory strings returned by ``get_top_dir``.
"""

from collections.abc import Mapping
from dataclasses import replace
from typing import TypeVar

from pebble_tree.config import SEPARATOR
from pebble_tree.models.item import Collection, Item

T = TypeVar("T")


def get_name(uri: str) -> str:
    """Last segment of a uri (the uri itself when it has no last segment)."""
    return uri.split(SEPARATOR)[-1] or uri


def parent_collection(uri: str) -> str:
    """Uri of the containing collection: ``/db/a/b`` -> ``/db/a``, ``/db`` -> ``""``."""
    parts = uri.split(SEPARATOR)
    parts.pop()
    return SEPARATOR.join(parts)


def collection_dir(parent: str, name: str) -> str:
    """Join a collection uri and a child name with exactly one separator."""
    return parent.rstrip(SEPARATOR) + SEPARATOR + name.lstrip(SEPARATOR)


def is_within(uri: str, ancestor: str) -> bool:
    """True if ``uri`` is ``ancestor`` or lies below it (segment-aware)."""
    if uri == ancestor:
        return True
    return uri.startswith(ancestor.rstrip(SEPARATOR) + SEPARATOR)


def _common_depth(split_paths: list[list[str]]) -> int:
    """Number of leading segments shared by every path.

    Stops before any path would lose its last segment.
    """
    limit = min(len(parts) for parts in split_paths) - 1
    depth = 0
    while depth < limit:
        head = split_paths[0][depth]
        if any(parts[depth] != head for parts in split_paths):
            break
        depth += 1
    return depth


def clean(paths: list[str], top_dir: str = "") -> list[str]:
    """Strip a common prefix from every path.

    With ``top_dir``, that literal prefix is removed. Without it, the longest
    run of leading segments shared by all paths is removed. A single path is
    reduced to its containing directory.

    Examples:
        >>> clean(["/db/a/x", "/db/a/y", "/db/b/z"])
        ['a/x', 'a/y', 'b/z']
        >>> clean(["/db/a/b/c"])
        ['/db/a/b']
    """
    if top_dir:
        return [path.removeprefix(top_dir) for path in paths]
    if not paths:
        return []
    if len(paths) == 1:
        return [parent_collection(paths[0])]

    split_paths = [path.split(SEPARATOR) for path in paths]
    depth = _common_depth(split_paths)
    return [SEPARATOR.join(parts[depth:]) for parts in split_paths]


def get_top_dir(paths: list[str]) -> str:
    """Common base directory of a batch, with a trailing separator.

    Examples:
        >>> get_top_dir(["/db/a/x", "/db/a/y", "/db/b/z"])
        '/db/'
        >>> get_top_dir(["/db/a/b/c"])
        '/db/a/b/'
    """
    if not paths:
        return ""
    if len(paths) == 1:
        return parent_collection(paths[0]) + SEPARATOR

    split_paths = [path.split(SEPARATOR) for path in paths]
    depth = _common_depth(split_paths)
    return "".join(segment + SEPARATOR for segment in split_paths[0][:depth])


def clean_mapping(files: Mapping[str, T], top_dir: str = "") -> dict[str, T]:
    """Re-key an upload batch with ``clean``, keeping the original order."""
    keys = list(files)
    return dict(zip(clean(keys, top_dir), (files[key] for key in keys), strict=True))


def clean_items(items: list[Item], top_dir: str) -> list[Item]:
    """Reduce a flat "all descendants" listing to the direct children of ``top_dir``.

    Documents nested more than one level below ``top_dir`` are replaced by an
    empty Collection placeholder for their first-level ancestor. Entries
    sharing a name are merged, the first one wins.
    """
    result: list[Item] = []
    seen: set[str] = set()

    for item in items:
        if isinstance(item, Collection):
            cleaned: Item = item
        else:
            pos = item.name.find(SEPARATOR, len(top_dir) + 1)
            if pos > 0:
                cleaned = Collection(
                    name=item.name[:pos],
                    created=item.created,
                    owner=item.owner,
                    group=item.group,
                )
            else:
                cleaned = replace(item)

        if cleaned.name in seen:
            continue
        seen.add(cleaned.name)
        result.append(cleaned)

    return result
