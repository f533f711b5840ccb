"""
Structural snapshots of a tree.

A snapshot carries every node record verbatim (id, hash, children, leaf flag,
parent), the full leaf-data array including padding, the root id and the
logical leaf count. JSON is the text encoding; digests and leaf contents are
written as hex strings.

Restoring a snapshot does not recompute any hash. A tampered snapshot is
accepted as-is; use `validate_state` to re-check one explicitly.
"""

from __future__ import annotations

from typing import Sequence

from pydantic import Field, ValidationError, model_validator

from ..hashing import MAX_CHILDREN, HashEngine
from ..types import (
    Bytes32,
    HexBytes,
    SerializationError,
    StrictBaseModel,
)
from .node import Node, TreeState


class NodeRecord(StrictBaseModel):
    """One node as persisted."""

    id: int = Field(..., ge=0)
    hash: Bytes32
    children: Sequence[int] = Field(default_factory=list, max_length=MAX_CHILDREN)
    is_leaf: bool
    parent: int | None = None


class TreeSnapshot(StrictBaseModel):
    """The persisted form of a whole tree."""

    nodes: Sequence[NodeRecord]
    leaf_data: Sequence[HexBytes]
    root_id: int | None = None
    leaf_count: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_ids(self) -> TreeSnapshot:
        """
        Ensures the snapshot has the bottom-up layout.

        Node ids are list positions, references stay in bounds, and every
        leaf-data entry (padding included) has a leaf node at the same id.
        """
        count = len(self.nodes)
        for position, record in enumerate(self.nodes):
            if record.id != position:
                raise ValueError(f"Node at position {position} has id {record.id}")
            refs = [*record.children, *([record.parent] if record.parent is not None else [])]
            if any(not 0 <= ref < count for ref in refs):
                raise ValueError(f"Node {record.id} references a node outside [0, {count})")
        if self.root_id is not None and not 0 <= self.root_id < count:
            raise ValueError(f"Root id {self.root_id} outside [0, {count})")
        if self.leaf_count > len(self.leaf_data):
            raise ValueError(
                f"Leaf count {self.leaf_count} exceeds {len(self.leaf_data)} leaf-data entries"
            )
        if len(self.leaf_data) > count:
            raise ValueError(f"{len(self.leaf_data)} leaf-data entries but only {count} nodes")
        for record in self.nodes[: len(self.leaf_data)]:
            if not record.is_leaf:
                raise ValueError(f"Node {record.id} holds leaf data but is not a leaf")
        return self


def to_snapshot(state: TreeState) -> TreeSnapshot:
    """Capture the arrays of a tree as a snapshot."""
    return TreeSnapshot(
        nodes=[
            NodeRecord(
                id=node_id,
                hash=node.hash,
                children=list(node.children),
                is_leaf=node.is_leaf,
                parent=node.parent,
            )
            for node_id, node in enumerate(state.nodes)
        ],
        leaf_data=list(state.leaf_data),
        root_id=state.root_id,
        leaf_count=state.leaf_count,
    )


def from_snapshot(snapshot: TreeSnapshot) -> TreeState:
    """Rebuild tree arrays from a snapshot, ids and hashes taken verbatim."""
    return TreeState(
        nodes=[
            Node(
                hash=record.hash,
                children=list(record.children),
                is_leaf=record.is_leaf,
                parent=record.parent,
            )
            for record in snapshot.nodes
        ],
        leaf_data=[bytes(data) for data in snapshot.leaf_data],
        root_id=snapshot.root_id,
        leaf_count=snapshot.leaf_count,
    )


def serialize(state: TreeState) -> str:
    """
    Encode a tree as a JSON snapshot.

    Raises:
        SerializationError: If the arrays cannot be encoded.
    """
    try:
        return to_snapshot(state).to_json()
    except (ValidationError, ValueError, TypeError) as e:
        raise SerializationError(str(e)) from e


def deserialize(text: str | bytes) -> TreeState:
    """
    Decode a JSON snapshot into tree arrays.

    Raises:
        SerializationError: If the text is not a well-formed snapshot.
    """
    try:
        snapshot = TreeSnapshot.from_json(text)
    except ValidationError as e:
        raise SerializationError(str(e)) from e
    return from_snapshot(snapshot)


def validate_state(state: TreeState, hasher: HashEngine) -> None:
    """
    Re-check a tree's arrays against the hash and parent invariants.

    Raises:
        MissingParentError: If a parent does not list a node that points to it.
        SerializationError: If a child points to another parent, a stored
            hash differs from its recomputation, or a leaf hash does not
            match its stored content.
    """
    for node_id, node in enumerate(state.nodes):
        if node.parent is not None:
            state.position_in_parent(node_id)

        if node.is_leaf:
            if node.children:
                raise SerializationError(f"leaf {node_id} has children")
            if node_id < len(state.leaf_data):
                expected = hasher.leaf_hash(state.leaf_data[node_id])
                if node.hash != expected:
                    raise SerializationError(f"leaf {node_id} hash does not match its content")
            continue

        if not node.children:
            raise SerializationError(f"internal node {node_id} has no children")
        for child_id in node.children:
            if state.node(child_id).parent != node_id:
                raise SerializationError(f"child {child_id} of node {node_id} points elsewhere")
        expected = hasher.combine([state.nodes[cid].hash for cid in node.children])
        if node.hash != expected:
            raise SerializationError(f"node {node_id} hash does not match its children")
