"""Build-scoped memoization of leaf digests."""

from __future__ import annotations

from .hashing import HashEngine
from .types import Bytes32


class LeafHashCache:
    """
    Maps exact leaf content to its digest.

    A cache lives for one build call. It is bounded by `max_size` and never
    evicts: once full, new contents are hashed but not stored.
    """

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        self.hits = 0
        self.misses = 0
        self._entries: dict[bytes, Bytes32] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, data: object) -> bool:
        return data in self._entries

    def get_or_compute(self, data: bytes, hasher: HashEngine) -> Bytes32:
        """Return the cached digest of `data`, hashing and storing it on a miss."""
        key = bytes(data)
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        digest = hasher.leaf_hash(key)
        if len(self._entries) < self.max_size:
            self._entries[key] = digest
        return digest
