"""
Bottom-up construction of a ternary mesh tree.

### Construction Algorithm

1.  **Leaves**: Each block is hashed (through the build-scoped cache when
    caching is enabled) and appended as a leaf node, in input order.

2.  **Padding**: Empty leaves, carrying the digest of `b""`, are appended until
    the leaf layer length is a multiple of 3. They are structural only and do
    not count towards `leaf_count`.

3.  **Reduction**: The current layer is cut, in order, into consecutive groups
    of up to 3 ids. Each group gets one new internal node whose children are
    the group and whose hash combines the children's hashes in order.

4.  **Termination**: Reduction repeats until a single node remains. That node
    is the root.

Only the leaf layer is padded. An upper layer whose length is not a multiple
of 3 ends with a group of 1 or 2 nodes, and a group of 1 yields an internal
node with a single child whose hash is `combine([child_hash])`.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Sequence

from ..cache import LeafHashCache
from ..config import DEFAULT_CONFIG, TreeConfig
from ..hashing import MAX_CHILDREN, HashEngine
from ..metrics import MetricsCollector, estimate_memory_usage
from ..types import Bytes32, EmptyInputError
from .node import Node, NodeId, TreeState

logger = logging.getLogger(__name__)


def chunk_layer(layer: Sequence[NodeId], size: int = MAX_CHILDREN) -> list[list[NodeId]]:
    """
    Split a layer into consecutive groups of at most `size` ids.

    Examples: 6 ids -> [3, 3]; 7 ids -> [3, 3, 1]; 2 ids -> [2].
    """
    return [list(layer[i : i + size]) for i in range(0, len(layer), size)]


class TreeBuilder:
    """Builds the node and leaf-data arrays from a sequence of blocks."""

    def __init__(
        self,
        hasher: HashEngine,
        config: TreeConfig = DEFAULT_CONFIG,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.hasher = hasher
        self.config = config
        self.metrics = metrics

    def build(self, blocks: Sequence[bytes]) -> TreeState:
        """
        Build a complete tree over `blocks`.

        Args:
            blocks: The leaf contents, in leaf order.

        Returns:
            A fresh `TreeState`. Nothing from any earlier build is reused.

        Raises:
            EmptyInputError: If `blocks` is empty.
        """
        start = time.perf_counter_ns()

        if len(blocks) == 0:
            raise EmptyInputError()

        state = TreeState(leaf_count=len(blocks))

        # Leaves, in input order.
        #
        # The cache is created here and dropped on return, so repeated
        # contents are only deduplicated within this build.
        cache = LeafHashCache(self.config.max_cache_size) if self.config.enable_caching else None
        for block in blocks:
            data = bytes(block)
            digest = (
                cache.get_or_compute(data, self.hasher)
                if cache is not None
                else self.hasher.leaf_hash(data)
            )
            state.nodes.append(Node(hash=digest))
            state.leaf_data.append(data)

        # Pad the leaf layer to a multiple of 3.
        while len(state.nodes) % MAX_CHILDREN != 0:
            state.nodes.append(Node(hash=self.hasher.empty_hash))
            state.leaf_data.append(b"")

        if cache is not None:
            logger.debug(
                "Hashed %d leaves (%d cache hits, %d cached entries)",
                len(blocks),
                cache.hits,
                len(cache),
            )

        # The leaf layer is the widest, so it alone decides whether a pool is needed.
        threshold = self.config.parallel_threshold
        if 0 < threshold <= len(state.nodes):
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                state.root_id = self._reduce(state, executor)
        else:
            state.root_id = self._reduce(state, None)

        logger.debug(
            "Built tree: %d leaves (%d padded), %d nodes, root %s",
            state.leaf_count,
            len(state.leaf_data),
            len(state.nodes),
            state.nodes[state.root_id].hash.hex(),
        )

        if self.metrics is not None:
            self.metrics.record_build(
                time.perf_counter_ns() - start,
                estimate_memory_usage(len(state.nodes), state.leaf_data),
            )

        return state

    def _reduce(self, state: TreeState, executor: Executor | None) -> NodeId:
        """Reduce layer by layer until one node is left and return its id."""
        current: list[NodeId] = list(range(len(state.nodes)))
        while len(current) > 1:
            groups = chunk_layer(current)
            digests = self._combine_groups(state, groups, executor)
            current = [self._append_parent(state, group, d) for group, d in zip(groups, digests)]
        return current[0]

    def _combine_groups(
        self,
        state: TreeState,
        groups: list[list[NodeId]],
        executor: Executor | None = None,
    ) -> list[Bytes32]:
        """
        Compute the parent digest of every group, in group order.

        Layers at or above the parallel threshold fan out over `executor`.
        `Executor.map` yields results in submission order, so parents are
        appended exactly as in the sequential path.
        """
        child_hashes = [[state.nodes[cid].hash for cid in group] for group in groups]

        layer_size = sum(len(group) for group in groups)
        if executor is not None and layer_size >= self.config.parallel_threshold:
            logger.debug("Combining %d groups on a thread pool", len(groups))
            return list(executor.map(self.hasher.combine, child_hashes))

        return [self.hasher.combine(hashes) for hashes in child_hashes]

    @staticmethod
    def _append_parent(state: TreeState, group: list[NodeId], digest: Bytes32) -> NodeId:
        """Append an internal node over `group` and link the children to it."""
        parent_id = len(state.nodes)
        state.nodes.append(Node(hash=digest, children=list(group), is_leaf=False))
        for child_id in group:
            state.nodes[child_id].parent = parent_id
        return parent_id
