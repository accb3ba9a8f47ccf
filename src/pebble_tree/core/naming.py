"""Default names for new items."""

from collections.abc import Callable
from itertools import count

from pebble_tree.config import UNTITLED_PREFIX


def untitled(number: int, ext: str | None = None) -> str:
    return f"{UNTITLED_PREFIX}{number}" + (f".{ext}" if ext else "")


def new_name(accept: Callable[[str], bool], ext: str | None = None) -> str:
    """Lowest-numbered ``untitled-<n>[.ext]`` that ``accept`` allows.

    >>> new_name(lambda name: name not in {"untitled-1", "untitled-2"})
    'untitled-3'
    """
    for number in count(1):
        candidate = untitled(number, ext)
        if accept(candidate):
            return candidate
    raise AssertionError("unreachable")
