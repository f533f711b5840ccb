"""
The ternary mesh tree.

Usage::

    tree = TernaryMeshTree()
    tree.build([b"block1", b"block2", b"block3"])
    assert tree.verify(0, b"block1")

    tree.update(0, b"new_block1")
    proof = tree.generate_proof(0)
    assert tree.verify_proof(proof, b"new_block1")

    restored = TernaryMeshTree.deserialize(tree.serialize())
    assert restored.root_hash == tree.root_hash

A tree has a single owner. Mutating calls (`build`, `update`, `batch_update`)
must not overlap with each other or with reads on the same instance.
"""

from __future__ import annotations

import logging
import time
from typing import Mapping, Sequence

from ..config import DEFAULT_CONFIG, TreeConfig
from ..hashing import HashEngine
from ..metrics import MetricsCollector, TreeMetrics
from ..types import Bytes32, UninitializedError
from . import serializer
from .builder import TreeBuilder
from .node import TreeState
from .proof import MembershipProof, ProofEngine
from .serializer import TreeSnapshot
from .updater import AncestryUpdater

logger = logging.getLogger(__name__)


class TernaryMeshTree:
    """An authenticated tree with fan-out 3 over a sequence of data blocks."""

    def __init__(self, config: TreeConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.hasher = HashEngine(config.hash_algorithm)
        self.metrics = MetricsCollector(enabled=config.enable_metrics)
        self._state = TreeState()

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    def build(self, blocks: Sequence[bytes]) -> None:
        """
        Build the tree over `blocks`, discarding any previous state.

        Raises:
            EmptyInputError: If `blocks` is empty. The previous state is kept.
        """
        builder = TreeBuilder(self.hasher, self.config, self.metrics)
        self._state = builder.build(blocks)

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    def verify(self, leaf_index: int, data: bytes) -> bool:
        """
        Check that `data` is the current content of leaf `leaf_index`.

        Returns:
            False when the content does not match. This is not an error.

        Raises:
            UninitializedError: If the tree has not been built.
            InvalidIndexError: If `leaf_index` is not a logical leaf.
            MissingParentError: If the in-memory ancestry is corrupted.
        """
        start = time.perf_counter_ns()
        if not self._state.is_built:
            raise UninitializedError()
        self._state.check_leaf_index(leaf_index)

        # A leaf mismatch fails without walking the path.
        if self._state.node(leaf_index).hash != self.hasher.leaf_hash(bytes(data)):
            ok = False
        else:
            engine = self._proof_engine()
            ok = engine.verify_proof(engine.generate_proof(leaf_index), data)

        self.metrics.record_verification(time.perf_counter_ns() - start)
        return ok

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update(self, leaf_index: int, new_data: bytes) -> None:
        """
        Replace the content of one leaf.

        Raises:
            InvalidIndexError: If `leaf_index` is not a logical leaf.
        """
        AncestryUpdater(self._state, self.hasher, self.metrics).update(leaf_index, new_data)

    def batch_update(self, updates: Mapping[int, bytes]) -> None:
        """
        Replace the content of several leaves.

        Raises:
            InvalidIndexError: If any index is not a logical leaf. No leaf is changed.
            TypeError: If any content is not bytes-like. No leaf is changed.
        """
        AncestryUpdater(self._state, self.hasher, self.metrics).batch_update(updates)

    # -------------------------------------------------------------------------
    # Proofs
    # -------------------------------------------------------------------------

    def generate_proof(self, leaf_index: int) -> MembershipProof:
        """Build the membership proof of a leaf. See `ProofEngine.generate_proof`."""
        return self._proof_engine().generate_proof(leaf_index)

    def verify_proof(
        self, proof: MembershipProof, leaf_data: bytes, root: Bytes32 | None = None
    ) -> bool:
        """Check a membership proof. See `ProofEngine.verify_proof`."""
        return self._proof_engine().verify_proof(proof, leaf_data, root)

    def calculate_root(self, proof: MembershipProof, leaf_data: bytes) -> Bytes32:
        """Fold a proof into a root, raising on malformed proofs."""
        return self._proof_engine().calculate_root(proof, leaf_data)

    def _proof_engine(self) -> ProofEngine:
        return ProofEngine(self._state, self.hasher)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_snapshot(self) -> TreeSnapshot:
        """Capture the tree as a structural snapshot model."""
        return serializer.to_snapshot(self._state)

    def serialize(self) -> str:
        """Encode the tree as a JSON snapshot."""
        return serializer.serialize(self._state)

    @classmethod
    def from_snapshot(
        cls, snapshot: TreeSnapshot, config: TreeConfig = DEFAULT_CONFIG
    ) -> TernaryMeshTree:
        """Restore a tree from a snapshot model. Hashes are trusted as stored."""
        tree = cls(config)
        tree._state = serializer.from_snapshot(snapshot)
        return tree

    @classmethod
    def deserialize(cls, text: str | bytes, config: TreeConfig = DEFAULT_CONFIG) -> TernaryMeshTree:
        """
        Restore a tree from a JSON snapshot. Hashes are trusted as stored.

        Raises:
            SerializationError: If the text is not a well-formed snapshot.
        """
        tree = cls(config)
        tree._state = serializer.deserialize(text)
        logger.debug(
            "Restored tree: %d nodes, %d leaves", len(tree._state.nodes), tree._state.leaf_count
        )
        return tree

    def validate_structure(self) -> None:
        """
        Re-check every stored hash and parent link.

        Intended for trees restored from untrusted snapshots.

        Raises:
            MissingParentError: If the parent links are inconsistent.
            SerializationError: If a stored hash does not match recomputation.
        """
        serializer.validate_state(self._state, self.hasher)

    # -------------------------------------------------------------------------
    # Getters
    # -------------------------------------------------------------------------

    @property
    def root_hash(self) -> Bytes32 | None:
        """The root digest, or `None` before a build."""
        if self._state.root_id is None:
            return None
        return self._state.nodes[self._state.root_id].hash

    @property
    def root_id(self) -> int | None:
        """Node id of the root, or `None` before a build."""
        return self._state.root_id

    @property
    def leaf_count(self) -> int:
        """Number of caller-supplied leaves. Padding is not counted."""
        return self._state.leaf_count

    @property
    def node_count(self) -> int:
        """Number of nodes, padding leaves included."""
        return len(self._state.nodes)

    def get_height(self) -> int:
        """Number of levels from root to leaves, both included. Zero before a build."""
        return self._state.height()

    def get_leaf_data(self, leaf_index: int) -> bytes:
        """
        Return the stored content of a leaf.

        Raises:
            InvalidIndexError: If `leaf_index` is not a logical leaf.
        """
        self._state.check_leaf_index(leaf_index)
        return self._state.leaf_data[leaf_index]

    def get_metrics(self) -> TreeMetrics:
        """Return a copy of the metrics. All zeros when metrics are disabled."""
        return self.metrics.snapshot()

    def generate_metrics(self) -> bytes:
        """Prometheus text exposition of this tree's metrics."""
        return self.metrics.generate_metrics()
