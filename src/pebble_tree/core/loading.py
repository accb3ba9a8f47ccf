"""Per-node loading flags that keep overlapping loads out of one subtree."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pebble_tree.core.tree import TreeModel
from pebble_tree.models.node import Node, is_item


class LoadingGuard:
    """Idle -> Loading -> Idle state machine over ``Node.loading``.

    A node may enter Loading only when it is idle and no item ancestor is
    loading. Every path that sets the flag must clear it again, on success
    and on failure, or the subtree stays locked.
    """

    def __init__(self, tree: TreeModel) -> None:
        self._tree = tree

    def is_blocked(self, node: Node) -> bool:
        if node.loading:
            return True
        for ancestor in self._tree.ancestors(node):
            if not is_item(ancestor):
                break
            if ancestor.loading:
                return True
        return False

    def start_loading(self, node: Node) -> bool:
        """Mark ``node`` as loading. Returns False (and changes nothing) if blocked."""
        if self.is_blocked(node):
            return False
        node.loading = True
        self._tree.refresh()
        return True

    def end_loading(self, node: Node) -> None:
        node.loading = False
        self._tree.refresh()

    @asynccontextmanager
    async def loading(self, node: Node) -> AsyncIterator[bool]:
        """Hold the loading flag for the duration of the block.

        Yields whether the gate was entered; the flag is only cleared if it
        was set here.
        """
        started = self.start_loading(node)
        try:
            yield started
        finally:
            if started:
                self.end_loading(node)
