"""Helpers shared by the ternary_mesh tests."""

SCENARIO_BLOCKS = [b"block1", b"block2", b"block3"]
"""Three blocks: the leaf layer needs no padding."""


def make_blocks(count: int, prefix: bytes = b"block") -> list[bytes]:
    """Distinct blocks `prefix0`, `prefix1`, ..."""
    return [prefix + str(i).encode() for i in range(count)]


__all__ = ["SCENARIO_BLOCKS", "make_blocks"]
