"""
In-memory layout of a ternary mesh tree.

All nodes live in a single append-only list and refer to each other by
position. Children are owned id lists; the parent link is a plain id used
only for walking upward, so the structure has no reference cycles.

The list is laid out bottom-up by construction:

    [leaf 0 .. leaf n-1][padding leaves][layer 1 nodes][layer 2 nodes] ... [root]

so a leaf's node id equals its leaf index.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..types import Bytes32, InvalidIndexError, MissingParentError

NodeId = int
"""Position of a node in the tree's node list."""


@dataclass(slots=True)
class Node:
    """A leaf or internal node."""

    hash: Bytes32
    """Digest of the leaf content, or of the children's digests in order."""

    children: list[NodeId] = field(default_factory=list)
    """Ordered child ids. Empty iff the node is a leaf."""

    is_leaf: bool = True

    parent: NodeId | None = None
    """Back-reference for upward traversal. `None` for the root."""


@dataclass(slots=True)
class TreeState:
    """
    The arrays owned by one tree.

    `leaf_data[i]` holds the raw content of leaf node `i`, including padding
    leaves (which hold `b""`). `leaf_count` counts caller-supplied leaves only.
    """

    nodes: list[Node] = field(default_factory=list)
    leaf_data: list[bytes] = field(default_factory=list)
    root_id: NodeId | None = None
    leaf_count: int = 0

    @property
    def is_built(self) -> bool:
        """Whether a root exists."""
        return self.root_id is not None

    def check_leaf_index(self, leaf_index: int) -> None:
        """Raise `InvalidIndexError` unless `leaf_index` is a logical leaf."""
        if not 0 <= leaf_index < self.leaf_count:
            raise InvalidIndexError(leaf_index, self.leaf_count)

    def node(self, node_id: NodeId) -> Node:
        """Look up a node, raising `InvalidIndexError` for unknown ids."""
        if not 0 <= node_id < len(self.nodes):
            raise InvalidIndexError(node_id, len(self.nodes), kind="node")
        return self.nodes[node_id]

    def position_in_parent(self, node_id: NodeId) -> tuple[NodeId, int] | None:
        """
        Locate a node within its parent's children.

        Returns:
            `(parent_id, position)`, or `None` when the node is the root.

        Raises:
            MissingParentError: If the parent does not list the node as a child.
        """
        parent_id = self.node(node_id).parent
        if parent_id is None:
            return None
        try:
            position = self.node(parent_id).children.index(node_id)
        except ValueError:
            raise MissingParentError(node_id, parent_id) from None
        return parent_id, position

    def ancestors(self, node_id: NodeId) -> list[NodeId]:
        """Ids of every ancestor of `node_id`, from its parent up to the root."""
        path: list[NodeId] = []
        current = self.node(node_id).parent
        while current is not None:
            # A revisit means the parent links form a loop.
            if len(path) >= len(self.nodes):
                raise MissingParentError(node_id, current)
            path.append(current)
            current = self.node(current).parent
        return path

    def height(self) -> int:
        """Number of levels from the root down to the deepest leaf, counting both."""
        if self.root_id is None:
            return 0

        # Iterative depth-first walk.
        best = 0
        stack: list[tuple[NodeId, int]] = [(self.root_id, 1)]
        while stack:
            node_id, depth = stack.pop()
            node = self.node(node_id)
            if node.is_leaf:
                best = max(best, depth)
                continue
            stack.extend((child, depth + 1) for child in node.children)
        return best
