"""In-memory tree mirror of a remote document store."""

from pebble_tree.api import PebbleApi
from pebble_tree.core.clipboard import Clipboard, can_move_to
from pebble_tree.core.mutation import MutationEngine
from pebble_tree.core.sync import TreeSync
from pebble_tree.core.tree import TreeModel
from pebble_tree.errors import AdapterError, BatchResult, LogicError, Result
from pebble_tree.protocols import EditorHandle, Opener, RemoteAdapter

__all__ = [
    "AdapterError",
    "BatchResult",
    "Clipboard",
    "EditorHandle",
    "LogicError",
    "MutationEngine",
    "Opener",
    "PebbleApi",
    "RemoteAdapter",
    "Result",
    "TreeModel",
    "TreeSync",
    "can_move_to",
]
