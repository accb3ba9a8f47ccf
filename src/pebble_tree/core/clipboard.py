"""Cut/copy/paste state and move validity checks."""

from pebble_tree.config import SEPARATOR
from pebble_tree.core.paths import collection_dir, get_name, is_within, parent_collection
from pebble_tree.core.tree import TreeModel
from pebble_tree.models.node import CompositeNode, ItemNode
from pebble_tree.models.operation import MoveOperation


def can_move_to(sources: list[ItemNode], destination_uri: str) -> bool:
    """False if the destination is a source, lies inside one, or already holds one.

    Rejects moving a collection into itself or a descendant, and pasting an
    item back into its own collection.
    """
    for source in sources:
        if is_within(destination_uri, source.uri):
            return False
        if destination_uri == parent_collection(source.uri):
            return False
    return True


class Clipboard:
    """The cut or copied top-level selection."""

    def __init__(self, tree: TreeModel) -> None:
        self._tree = tree
        self.source: list[ItemNode] = []
        self.copy = False

    def set(self, nodes: list[ItemNode], *, copy: bool = False) -> None:
        self.source = list(nodes)
        self.copy = copy

    def cut(self) -> None:
        self.set(self._tree.top_nodes(self._tree.selected_nodes))

    def copy_selection(self) -> None:
        self.set(self._tree.top_nodes(self._tree.selected_nodes), copy=True)

    def clear(self) -> None:
        self.set([])

    def live_source(self) -> list[ItemNode]:
        """Clipboard entries whose node is still in the tree."""
        return [node for node in self.source if self._tree.is_live(node)]

    def can_paste(self) -> bool:
        selected = self._tree.selected_nodes
        destination = selected[0].uri if selected else SEPARATOR
        source = self.live_source()
        return bool(source) and can_move_to(source, destination)

    def paste_operation(self, collection: CompositeNode) -> MoveOperation:
        """Operation pasting every live entry into ``collection`` under its own name."""
        source = self.live_source()
        return MoveOperation(
            source=source,
            destination=[collection_dir(collection.uri, get_name(node.uri)) for node in source],
            destination_container=collection,
            copy=self.copy,
        )
