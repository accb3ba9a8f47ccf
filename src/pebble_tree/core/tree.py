"""In-memory node arena: lookup, structure, selection and view notification."""

from collections.abc import Callable, Iterable, Iterator
from typing import TypeVar

from loguru import logger

from pebble_tree.config import ROOT_ID
from pebble_tree.errors import LogicError
from pebble_tree.models.node import (
    CollectionNode,
    CompositeNode,
    ItemNode,
    Node,
    RootNode,
    ToolbarNode,
    is_item,
)

N = TypeVar("N", bound=Node)

Listener = Callable[[], None]


class TreeModel:
    """Owns every live node, indexed by id.

    Parent and children are stored as ids. All writes happen synchronously;
    listeners are called after each structural change so a view can redraw.
    """

    def __init__(self) -> None:
        self.root = RootNode(id=ROOT_ID, uri="", name="Pebble Connections Root")
        self._nodes: dict[str, Node] = {self.root.id: self.root}
        self._selection: list[str] = []
        self._listeners: list[Listener] = []

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    # lookup

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def is_live(self, node: Node) -> bool:
        """Whether ``node`` itself (not a detached object with its id) is in the tree."""
        return self._nodes.get(node.id) is node

    def require(self, node_id: str, node_type: type[N]) -> N:
        """Return the node with this id, which must exist and be of ``node_type``."""
        node = self._nodes.get(node_id)
        if not isinstance(node, node_type):
            msg = f"Expected {node_type.__name__} at {node_id!r}, found {type(node).__name__}"
            raise LogicError(msg)
        return node

    def parent_of(self, node: Node) -> CompositeNode | None:
        if node.parent_id is None:
            return None
        return self.require(node.parent_id, CompositeNode)

    def children_of(self, node: Node) -> list[Node]:
        if not isinstance(node, CompositeNode):
            return []
        return [self._nodes[child_id] for child_id in node.children]

    def ancestors(self, node: Node) -> Iterator[CompositeNode]:
        """Walk up the parent index, nearest ancestor first."""
        parent = self.parent_of(node)
        while parent is not None:
            yield parent
            parent = self.parent_of(parent)

    def walk(self, node: Node | None = None) -> Iterator[Node]:
        """Pre-order traversal starting at ``node`` (the root by default)."""
        todo: list[Node] = [node or self.root]
        while todo:
            current = todo.pop(0)
            yield current
            todo = self.children_of(current) + todo

    # structure

    def add_node(self, node: N, parent: Node, *, index: int | None = None) -> N:
        """Insert ``node`` among ``parent``'s children (appended by default).

        A live node with the same id is removed first, together with its subtree.
        """
        if not isinstance(parent, CompositeNode):
            msg = f"Cannot add {node.id!r} under non-composite node {parent.id!r}"
            raise LogicError(msg)
        if not self.is_live(parent):
            msg = f"Parent {parent.id!r} is not part of the tree"
            raise LogicError(msg)

        existing = self._nodes.get(node.id)
        if existing is not None:
            logger.debug("Replacing node {}", node.id)
            self._detach(existing)

        node.parent_id = parent.id
        if index is None:
            parent.children.append(node.id)
        else:
            parent.children.insert(index, node.id)
        self._nodes[node.id] = node
        self.refresh()
        return node

    def remove_node(self, node: Node) -> None:
        """Detach ``node`` from its parent and drop its whole subtree."""
        if node is self.root:
            msg = "The root node cannot be removed"
            raise LogicError(msg)
        self._detach(node)
        self.refresh()

    def empty(self, node: CompositeNode) -> None:
        """Remove every child of ``node``."""
        for child_id in reversed(node.children):
            self._detach(self._nodes[child_id])
        self.refresh()

    def _detach(self, node: Node) -> None:
        if self._nodes.get(node.id) is not node:
            return
        parent = self.parent_of(node)
        if parent is not None and node.id in parent.children:
            parent.children.remove(node.id)
        for dropped in list(self.walk(node)):
            del self._nodes[dropped.id]
            if dropped.id in self._selection:
                self._selection.remove(dropped.id)
        node.parent_id = None

    def expand_node(self, node: CompositeNode) -> None:
        node.expanded = True
        self.refresh()

    def collapse_node(self, node: CompositeNode) -> None:
        node.expanded = False
        self.refresh()

    # selection

    @property
    def selected_nodes(self) -> list[Node]:
        return [self._nodes[node_id] for node_id in self._selection]

    def select_node(self, node: Node) -> None:
        """Make ``node`` the only selected node. The toolbar is never selected."""
        if isinstance(node, ToolbarNode):
            return
        self.clear_selection()
        self.add_to_selection(node)

    def add_to_selection(self, node: Node) -> None:
        if isinstance(node, ToolbarNode) or node.id in self._selection:
            return
        node.selected = True
        self._selection.append(node.id)
        self.refresh()

    def clear_selection(self) -> None:
        for node in self.selected_nodes:
            node.selected = False
        self._selection.clear()
        self.refresh()

    def top_nodes(self, nodes: Iterable[Node]) -> list[ItemNode]:
        """Items among ``nodes`` with no selected node in their collection ancestry."""
        result: list[ItemNode] = []
        for node in nodes:
            if not is_item(node):
                continue
            nested = False
            for ancestor in self.ancestors(node):
                if not isinstance(ancestor, CollectionNode):
                    break
                if ancestor.id in self._selection:
                    nested = True
                    break
            if not nested:
                result.append(node)
        return result

    def file_exists(self, name: str, collection: CollectionNode) -> bool:
        return any(child.name == name for child in self.children_of(collection))

    # view

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def refresh(self) -> None:
        for listener in list(self._listeners):
            listener()
