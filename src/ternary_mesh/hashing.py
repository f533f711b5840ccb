"""
Hash primitives for leaves and internal nodes.

Leaves are hashed over their raw bytes. An internal node is hashed over the
plain concatenation of its children's digests, in child order:

    leaf_hash(data)        = H(data)
    combine([h0, h1, h2])  = H(h0 || h1 || h2)

No prefix separates leaves from internal nodes or one level from the next.
Changing that would change every root this library has ever produced.
"""

from __future__ import annotations

import hashlib
from typing import Callable, Sequence

import blake3

from .config import HashAlgorithm
from .types import Bytes32

MAX_CHILDREN = 3
"""Fan-out of an internal node."""

DIGEST_SIZE = Bytes32.LENGTH
"""Size in bytes of every digest."""


def _blake3_digest(data: bytes) -> bytes:
    return blake3.blake3(data).digest()


def _sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


_PRIMITIVES: dict[str, Callable[[bytes], bytes]] = {
    "blake3": _blake3_digest,
    "sha256": _sha256_digest,
}


class HashEngine:
    """Wraps a 32-byte hash primitive with leaf and node hashing."""

    def __init__(self, algorithm: HashAlgorithm = "blake3") -> None:
        """
        Select the primitive.

        Raises:
            ValueError: If `algorithm` is not a supported primitive.
        """
        try:
            self._digest = _PRIMITIVES[algorithm]
        except KeyError:
            raise ValueError(f"Unknown hash algorithm: {algorithm}") from None
        self.algorithm = algorithm
        self._empty = Bytes32(self._digest(b""))

    @property
    def empty_hash(self) -> Bytes32:
        """Digest of the empty byte string, carried by padding leaves."""
        return self._empty

    def leaf_hash(self, data: bytes) -> Bytes32:
        """Hash raw leaf content."""
        return Bytes32(self._digest(data))

    def combine(self, digests: Sequence[bytes]) -> Bytes32:
        """
        Hash an ordered group of child digests into their parent's digest.

        Args:
            digests: Between 1 and 3 child digests, in child order.

        Raises:
            ValueError: If the group is empty, too large, or holds a digest
                that is not 32 bytes long.
        """
        if not 1 <= len(digests) <= MAX_CHILDREN:
            raise ValueError(
                f"Cannot combine {len(digests)} digests (expected 1 to {MAX_CHILDREN})"
            )
        for digest in digests:
            if len(digest) != DIGEST_SIZE:
                raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
        return Bytes32(self._digest(b"".join(digests)))
