"""
Incremental recomputation after leaf changes.

Changing a leaf invalidates exactly the hashes on its path to the root. A
single update walks that path; a batch update sweeps upward breadth-first
from every touched parent, recomputing each shared ancestor once.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Mapping

from ..hashing import HashEngine
from ..metrics import MetricsCollector
from .node import NodeId, TreeState

logger = logging.getLogger(__name__)


class AncestryUpdater:
    """Mutates leaves in place and restores the hash invariant above them."""

    def __init__(
        self,
        state: TreeState,
        hasher: HashEngine,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.state = state
        self.hasher = hasher
        self.metrics = metrics

    def update(self, leaf_index: int, new_data: bytes) -> None:
        """
        Replace one leaf's content and recompute its ancestors.

        Raises:
            InvalidIndexError: If `leaf_index` is not a logical leaf. Nothing is mutated.
            TypeError: If `new_data` is not bytes-like. Nothing is mutated.
        """
        start = time.perf_counter_ns()
        self.state.check_leaf_index(leaf_index)

        # Resolve the path and the content before touching anything.
        path = self.state.ancestors(leaf_index)
        content = bytes(new_data)

        self._set_leaf(leaf_index, content)
        for node_id in path:
            self.recompute(node_id)

        logger.debug("Updated leaf %d, recomputed %d ancestors", leaf_index, len(path))

        if self.metrics is not None:
            self.metrics.record_update(time.perf_counter_ns() - start)

    def batch_update(self, updates: Mapping[int, bytes]) -> None:
        """
        Replace several leaves at once and recompute every affected ancestor once.

        All indices are validated and all contents converted to bytes before
        any leaf is changed. Once mutation starts it runs to completion. The
        resulting root does not depend on the iteration order of `updates`.

        Raises:
            InvalidIndexError: If any index is not a logical leaf. Nothing is mutated.
            TypeError: If any content is not bytes-like. Nothing is mutated.
        """
        start = time.perf_counter_ns()

        contents: dict[int, bytes] = {}
        for leaf_index, data in updates.items():
            self.state.check_leaf_index(leaf_index)
            contents[leaf_index] = bytes(data)

        for leaf_index, content in contents.items():
            self._set_leaf(leaf_index, content)

        # Seed with the deduplicated direct parents, in ascending id order.
        seeds = sorted(
            {
                parent
                for leaf_index in contents
                if (parent := self.state.nodes[leaf_index].parent) is not None
            }
        )

        queue: deque[NodeId] = deque(seeds)
        done: set[NodeId] = set()
        while queue:
            node_id = queue.popleft()
            if node_id in done:
                continue
            self.recompute(node_id)
            done.add(node_id)
            parent = self.state.nodes[node_id].parent
            if parent is not None:
                queue.append(parent)

        logger.debug("Batch updated %d leaves, recomputed %d nodes", len(updates), len(done))

        if self.metrics is not None:
            self.metrics.record_update(time.perf_counter_ns() - start, leaves=len(updates))

    def recompute(self, node_id: NodeId) -> None:
        """
        Recompute an internal node's hash from its children's current hashes.

        Leaves are left untouched.

        Raises:
            InvalidIndexError: If `node_id` is not in the node list.
        """
        node = self.state.node(node_id)
        if node.is_leaf:
            return
        node.hash = self.hasher.combine([self.state.node(cid).hash for cid in node.children])

    def _set_leaf(self, leaf_index: int, content: bytes) -> None:
        self.state.leaf_data[leaf_index] = content
        self.state.nodes[leaf_index].hash = self.hasher.leaf_hash(content)
