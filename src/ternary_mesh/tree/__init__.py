"""The tree engine: construction, updates, proofs and snapshots."""

from .builder import TreeBuilder, chunk_layer
from .node import Node, NodeId, TreeState
from .proof import MembershipProof, ProofEngine, SiblingHash
from .serializer import NodeRecord, TreeSnapshot
from .tree import TernaryMeshTree
from .updater import AncestryUpdater

__all__ = [
    "AncestryUpdater",
    "MembershipProof",
    "Node",
    "NodeId",
    "NodeRecord",
    "ProofEngine",
    "SiblingHash",
    "TernaryMeshTree",
    "TreeBuilder",
    "TreeSnapshot",
    "TreeState",
    "chunk_layer",
]
