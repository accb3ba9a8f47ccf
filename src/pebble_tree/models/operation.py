"""Drag/paste operation descriptors."""

from dataclasses import dataclass

from pebble_tree.models.node import CompositeNode, ItemNode


@dataclass
class MoveOperation:
    """Move (or copy) each ``source[i]`` to the uri ``destination[i]``.

    New nodes are created inside ``destination_container``.
    """

    source: list[ItemNode]
    destination: list[str]
    destination_container: CompositeNode
    copy: bool = False
