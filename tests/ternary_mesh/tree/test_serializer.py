"""Tests for structural snapshots."""

from __future__ import annotations

import json
from collections.abc import Callable

import pytest

from ternary_mesh import (
    MissingParentError,
    SerializationError,
    TernaryMeshTree,
    TreeConfig,
)
from ternary_mesh.tree import NodeRecord, TreeSnapshot
from ternary_mesh.tree.serializer import deserialize, from_snapshot, serialize, to_snapshot
from ternary_mesh.types import Bytes32
from tests.ternary_mesh.helpers import make_blocks


class TestSnapshotShape:
    """The logical content of a snapshot."""

    def test_fields(self, scenario_tree: TernaryMeshTree) -> None:
        data = json.loads(scenario_tree.serialize())
        assert set(data) == {"nodes", "leafData", "rootId", "leafCount"}
        assert data["rootId"] == 3
        assert data["leafCount"] == 3
        assert data["leafData"] == [b"block1".hex(), b"block2".hex(), b"block3".hex()]

        root = data["nodes"][3]
        assert root == {
            "id": 3,
            "hash": scenario_tree.root_hash.hex(),  # type: ignore[union-attr]
            "children": [0, 1, 2],
            "isLeaf": False,
            "parent": None,
        }
        assert data["nodes"][0]["parent"] == 3
        assert data["nodes"][0]["isLeaf"] is True

    def test_padding_is_persisted(self, tree_factory: Callable[..., TernaryMeshTree]) -> None:
        data = json.loads(tree_factory(make_blocks(4)).serialize())
        assert data["leafCount"] == 4
        assert data["leafData"][4:] == ["", ""]
        assert len(data["nodes"]) == 9

    def test_snapshot_model(self, scenario_tree: TernaryMeshTree) -> None:
        snapshot = scenario_tree.to_snapshot()
        assert isinstance(snapshot, TreeSnapshot)
        assert all(isinstance(n, NodeRecord) for n in snapshot.nodes)
        assert snapshot.nodes[1].hash == scenario_tree.to_snapshot().nodes[1].hash


class TestRoundTrip:
    """serialize -> deserialize."""

    @pytest.mark.parametrize("count", [1, 3, 4, 10, 31])
    def test_root_preserved(
        self, tree_factory: Callable[..., TernaryMeshTree], count: int
    ) -> None:
        tree = tree_factory(make_blocks(count))
        restored = TernaryMeshTree.deserialize(tree.serialize())
        assert restored.root_hash == tree.root_hash
        assert restored.leaf_count == tree.leaf_count
        assert restored.get_height() == tree.get_height()
        assert restored.to_snapshot() == tree.to_snapshot()

    def test_restored_tree_is_fully_usable(
        self, tree_factory: Callable[..., TernaryMeshTree]
    ) -> None:
        blocks = make_blocks(7)
        restored = TernaryMeshTree.deserialize(tree_factory(blocks).serialize())
        assert restored.verify(6, blocks[6])

        restored.update(6, b"new")
        fresh = tree_factory([*blocks[:6], b"new"])
        assert restored.root_hash == fresh.root_hash

    def test_non_utf8_leaf_data(self, tree_factory: Callable[..., TernaryMeshTree]) -> None:
        blocks = [b"\xff\xfe\x00", bytes(range(256))]
        restored = TernaryMeshTree.deserialize(tree_factory(blocks).serialize())
        assert restored.get_leaf_data(0) == blocks[0]
        assert restored.get_leaf_data(1) == blocks[1]

    def test_from_snapshot_model(self, scenario_tree: TernaryMeshTree) -> None:
        config = TreeConfig(enable_metrics=False)
        restored = TernaryMeshTree.from_snapshot(scenario_tree.to_snapshot(), config)
        assert restored.root_hash == scenario_tree.root_hash
        assert restored.config == config

    def test_module_functions(self, scenario_tree: TernaryMeshTree) -> None:
        state = from_snapshot(scenario_tree.to_snapshot())
        state = deserialize(serialize(state))
        assert to_snapshot(state) == scenario_tree.to_snapshot()
        assert state.root_id == 3
        assert state.leaf_data[0] == b"block1"


class TestDecodeFailures:
    """Snapshots that cannot be decoded."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not json",
            "[]",
            '{"nodes": []}',
            '{"nodes": [], "leafData": [], "rootId": null, "leafCount": "3"}',
        ],
    )
    def test_garbage(self, text: str) -> None:
        with pytest.raises(SerializationError):
            TernaryMeshTree.deserialize(text)

    def _mutate(self, tree: TernaryMeshTree, edit: Callable[[dict], None]) -> str:
        data = json.loads(tree.serialize())
        edit(data)
        return json.dumps(data)

    def test_short_hash(self, scenario_tree: TernaryMeshTree) -> None:
        text = self._mutate(scenario_tree, lambda d: d["nodes"][0].update(hash="00" * 31))
        with pytest.raises(SerializationError):
            TernaryMeshTree.deserialize(text)

    def test_too_many_children(self, scenario_tree: TernaryMeshTree) -> None:
        text = self._mutate(scenario_tree, lambda d: d["nodes"][3].update(children=[0, 1, 2, 0]))
        with pytest.raises(SerializationError):
            TernaryMeshTree.deserialize(text)

    def test_id_mismatch(self, scenario_tree: TernaryMeshTree) -> None:
        text = self._mutate(scenario_tree, lambda d: d["nodes"][1].update(id=7))
        with pytest.raises(SerializationError, match="has id 7"):
            TernaryMeshTree.deserialize(text)

    def test_dangling_reference(self, scenario_tree: TernaryMeshTree) -> None:
        text = self._mutate(scenario_tree, lambda d: d["nodes"][0].update(parent=42))
        with pytest.raises(SerializationError, match="outside"):
            TernaryMeshTree.deserialize(text)

    def test_root_out_of_range(self, scenario_tree: TernaryMeshTree) -> None:
        text = self._mutate(scenario_tree, lambda d: d.update(rootId=4))
        with pytest.raises(SerializationError, match="Root id 4"):
            TernaryMeshTree.deserialize(text)

    def test_leaf_data_beyond_nodes(self, scenario_tree: TernaryMeshTree) -> None:
        """Seven claimed leaves over a four-node tree."""

        def grow(d: dict) -> None:
            d["leafData"].extend([""] * 5)
            d["leafCount"] = 7

        text = self._mutate(scenario_tree, grow)
        with pytest.raises(SerializationError, match="only 4 nodes"):
            TernaryMeshTree.deserialize(text)

    def test_leaf_data_on_internal_node(self, tree_factory: Callable[..., TernaryMeshTree]) -> None:
        """Leaf count pointing into the internal layers of a 4-block tree."""

        def grow(d: dict) -> None:
            d["leafData"].extend(["", ""])
            d["leafCount"] = 8

        text = self._mutate(tree_factory(make_blocks(4)), grow)
        with pytest.raises(SerializationError, match="Node 6 holds leaf data"):
            TernaryMeshTree.deserialize(text)

    def test_unknown_field(self, scenario_tree: TernaryMeshTree) -> None:
        text = self._mutate(scenario_tree, lambda d: d.update(extra=1))
        with pytest.raises(SerializationError):
            TernaryMeshTree.deserialize(text)


class TestTrustAndValidation:
    """Deserialization trusts hashes; validate_structure re-checks them."""

    def test_tampered_hash_is_trusted(self, scenario_tree: TernaryMeshTree) -> None:
        forged = "ab" * 32
        data = json.loads(scenario_tree.serialize())
        data["nodes"][3]["hash"] = forged
        restored = TernaryMeshTree.deserialize(json.dumps(data))
        assert restored.root_hash == Bytes32(forged)

        with pytest.raises(SerializationError, match="node 3 hash"):
            restored.validate_structure()

    def test_tampered_leaf_content_detected(self, scenario_tree: TernaryMeshTree) -> None:
        data = json.loads(scenario_tree.serialize())
        data["leafData"][1] = b"other".hex()
        restored = TernaryMeshTree.deserialize(json.dumps(data))
        with pytest.raises(SerializationError, match="leaf 1 hash"):
            restored.validate_structure()

    def test_broken_parent_link_detected(self, scenario_tree: TernaryMeshTree) -> None:
        data = json.loads(scenario_tree.serialize())
        data["nodes"][3]["children"] = [0, 1]
        restored = TernaryMeshTree.deserialize(json.dumps(data))
        with pytest.raises(MissingParentError):
            restored.validate_structure()

    def test_clean_snapshot_validates(
        self, tree_factory: Callable[..., TernaryMeshTree]
    ) -> None:
        restored = TernaryMeshTree.deserialize(tree_factory(make_blocks(20)).serialize())
        restored.validate_structure()
