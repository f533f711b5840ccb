"""
Ternary mesh tree: an authenticated tree with fan-out 3.

Builds a single root digest over a sequence of data blocks, updates it
incrementally, and produces and checks compact membership proofs.
"""

from .config import DEFAULT_CONFIG, TreeConfig, load_config
from .hashing import HashEngine
from .metrics import TreeMetrics
from .tree import MembershipProof, SiblingHash, TernaryMeshTree, TreeSnapshot
from .types import (
    Bytes32,
    EmptyInputError,
    InvalidIndexError,
    MalformedProofError,
    MissingParentError,
    SerializationError,
    TreeError,
    UninitializedError,
)

__all__ = [
    "DEFAULT_CONFIG",
    "TreeConfig",
    "load_config",
    "HashEngine",
    "TreeMetrics",
    "TernaryMeshTree",
    "MembershipProof",
    "SiblingHash",
    "TreeSnapshot",
    "Bytes32",
    # Exceptions
    "TreeError",
    "EmptyInputError",
    "InvalidIndexError",
    "UninitializedError",
    "SerializationError",
    "MissingParentError",
    "MalformedProofError",
]
