"""
Shared pytest fixtures for all ternary_mesh tests.

Provides small trees and configurations used across test modules.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from ternary_mesh import TernaryMeshTree, TreeConfig
from ternary_mesh.hashing import HashEngine
from tests.ternary_mesh.helpers import SCENARIO_BLOCKS


@pytest.fixture
def hasher() -> HashEngine:
    """Default BLAKE3 hash engine."""
    return HashEngine()


@pytest.fixture
def sequential_config() -> TreeConfig:
    """Config with the thread pool disabled."""
    return TreeConfig(parallel_threshold=0)


@pytest.fixture
def tree_factory() -> Callable[..., TernaryMeshTree]:
    """Factory for built trees with configurable blocks and config."""

    def _create(
        blocks: list[bytes] | None = None,
        config: TreeConfig | None = None,
    ) -> TernaryMeshTree:
        tree = TernaryMeshTree(config or TreeConfig())
        tree.build(SCENARIO_BLOCKS if blocks is None else blocks)
        return tree

    return _create


@pytest.fixture
def scenario_tree(tree_factory: Callable[..., TernaryMeshTree]) -> TernaryMeshTree:
    """Tree over block1, block2, block3."""
    return tree_factory()
