"""
Membership proofs for ternary mesh trees.

A proof for a leaf lists, level by level from the leaf upward, the hashes of
the walked node's siblings together with their positions under the common
parent. At each level the verifier places the running hash at the walked
node's own position, fills the other positions from the proof, and combines.

For a leaf at position 1 of a three-child parent, the first level reads:

    siblings: (0, h0), (2, h2)
    parent:   combine([h0, H(leaf), h2])

Verification is anchored to a tree: the walked node's position and the
width of each parent are taken from the tree layout, and the final hash is
compared with the tree's current root (or a root the caller trusts).
"""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import Field

from ..hashing import HashEngine
from ..types import (
    Bytes32,
    InvalidIndexError,
    MalformedProofError,
    StrictBaseModel,
    UninitializedError,
)
from .node import TreeState

logger = logging.getLogger(__name__)


class SiblingHash(StrictBaseModel):
    """A sibling digest and its position under the shared parent."""

    position: int = Field(..., ge=0, description="Child slot of the sibling (0, 1 or 2).")

    hash: Bytes32 = Field(..., description="Digest of the sibling.")


class MembershipProof(StrictBaseModel):
    """
    The sibling path from a leaf to the root.

    This object is immutable; once created, its contents cannot be changed.
    """

    leaf_index: int = Field(..., ge=0, description="Index of the proven leaf.")

    sibling_hashes: Sequence[SiblingHash] = Field(
        ..., description="Siblings of every level, leaf first, ascending position within a level."
    )

    path_length: int = Field(..., ge=0, description="Number of levels from the leaf to the root.")


class ProofEngine:
    """Generates and checks membership proofs against one tree's arrays."""

    def __init__(self, state: TreeState, hasher: HashEngine) -> None:
        self.state = state
        self.hasher = hasher

    def generate_proof(self, leaf_index: int) -> MembershipProof:
        """
        Collect the sibling path of a leaf.

        Raises:
            UninitializedError: If the tree has not been built.
            InvalidIndexError: If `leaf_index` is not a logical leaf.
            MissingParentError: If the ancestry is inconsistent.
        """
        if not self.state.is_built:
            raise UninitializedError()
        self.state.check_leaf_index(leaf_index)

        siblings: list[SiblingHash] = []
        path_length = 0
        current = leaf_index

        while (located := self.state.position_in_parent(current)) is not None:
            parent_id, position = located
            for i, child_id in enumerate(self.state.nodes[parent_id].children):
                if i != position:
                    siblings.append(SiblingHash(position=i, hash=self.state.nodes[child_id].hash))
            current = parent_id
            path_length += 1

        return MembershipProof(
            leaf_index=leaf_index,
            sibling_hashes=siblings,
            path_length=path_length,
        )

    def calculate_root(self, proof: MembershipProof, leaf_data: bytes) -> Bytes32:
        """
        Fold a proof and a leaf's content into a root hash.

        This is the error channel of verification: every structural problem
        raises instead of yielding a hash.

        Raises:
            UninitializedError: If the tree has not been built.
            MalformedProofError: If the proof does not fit the tree layout.
        """
        if not self.state.is_built:
            raise UninitializedError()

        try:
            self.state.check_leaf_index(proof.leaf_index)
        except InvalidIndexError as e:
            raise MalformedProofError(e.message) from e

        siblings = proof.sibling_hashes
        current_id = proof.leaf_index
        current_hash = self.hasher.leaf_hash(bytes(leaf_data))
        consumed = 0

        for level in range(proof.path_length):
            located = self.state.position_in_parent(current_id)
            if located is None:
                raise MalformedProofError("path is longer than the tree", level=level)
            parent_id, position = located
            width = len(self.state.nodes[parent_id].children)

            child_hashes: list[Bytes32 | None] = [None] * width
            child_hashes[position] = current_hash

            needed = width - 1
            if consumed + needed > len(siblings):
                raise MalformedProofError(
                    f"expected {needed} siblings, {len(siblings) - consumed} left", level=level
                )
            for sibling in siblings[consumed : consumed + needed]:
                if not 0 <= sibling.position < width:
                    raise MalformedProofError(
                        f"sibling position {sibling.position} out of range for width {width}",
                        level=level,
                    )
                if child_hashes[sibling.position] is not None:
                    raise MalformedProofError(
                        f"sibling position {sibling.position} is already filled", level=level
                    )
                child_hashes[sibling.position] = sibling.hash
            consumed += needed

            current_hash = self.hasher.combine([h for h in child_hashes if h is not None])
            current_id = parent_id

        if consumed != len(siblings):
            raise MalformedProofError(f"{len(siblings) - consumed} unused sibling hashes")

        return current_hash

    def verify_proof(
        self, proof: MembershipProof, leaf_data: bytes, root: Bytes32 | None = None
    ) -> bool:
        """
        Check a proof for `leaf_data` against a root.

        Args:
            proof: The proof to check.
            leaf_data: The content claimed to sit at `proof.leaf_index`.
            root: A trusted root. Defaults to the tree's current root.

        Returns:
            True only if the proof is well formed and folds to the root. A
            malformed proof yields False; call `calculate_root` to see why.

        Raises:
            UninitializedError: If the tree has not been built.
        """
        root_id = self.state.root_id
        if root_id is None:
            raise UninitializedError()
        expected = root if root is not None else self.state.nodes[root_id].hash

        try:
            computed = self.calculate_root(proof, leaf_data)
        except MalformedProofError as e:
            logger.debug("Rejected proof for leaf %d: %s", proof.leaf_index, e.message)
            return False

        return bytes(computed) == bytes(expected)
