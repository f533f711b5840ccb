"""Tests for per-tree metric collection."""

from __future__ import annotations

import pytest

from ternary_mesh.metrics import (
    APPROX_NODE_BYTES,
    MetricsCollector,
    TreeMetrics,
    estimate_memory_usage,
)


def _sample(collector: MetricsCollector, suffix: str) -> float:
    """Read one sample from the collector's registry."""
    value = collector.registry.get_sample_value(suffix)
    assert value is not None
    return value


def test_memory_estimate() -> None:
    assert estimate_memory_usage(4, [b"ab", b"cde", b""]) == 4 * APPROX_NODE_BYTES + 5


class TestEnabledCollector:
    """Recording with metrics on."""

    def test_starts_at_zero(self) -> None:
        assert MetricsCollector().snapshot() == TreeMetrics()

    def test_record_build(self) -> None:
        collector = MetricsCollector()
        collector.record_build(2_500_000, 1234)
        snap = collector.snapshot()
        assert snap.build_time_ms == pytest.approx(2.5)
        assert snap.memory_usage_bytes == 1234
        assert _sample(collector, "tmt_build_seconds_count") == 1
        assert _sample(collector, "tmt_memory_usage_bytes") == 1234

    def test_record_verification_accumulates(self) -> None:
        collector = MetricsCollector()
        collector.record_verification(100)
        collector.record_verification(300)
        snap = collector.snapshot()
        assert snap.last_verification_time_ns == 300
        assert snap.total_verifications == 2
        assert _sample(collector, "tmt_verifications_total") == 2

    def test_record_update_counts_leaves(self) -> None:
        collector = MetricsCollector()
        collector.record_update(50)
        collector.record_update(70, leaves=4)
        snap = collector.snapshot()
        assert snap.last_update_time_ns == 70
        assert snap.total_updates == 5
        assert _sample(collector, "tmt_leaf_updates_total") == 5

    def test_snapshot_is_immutable(self) -> None:
        snap = MetricsCollector().snapshot()
        with pytest.raises(ValueError):
            snap.total_updates = 3  # type: ignore[misc]


class TestDisabledCollector:
    """Recording with metrics off."""

    def test_everything_reports_zero(self) -> None:
        collector = MetricsCollector(enabled=False)
        collector.record_build(10, 10)
        collector.record_verification(10)
        collector.record_update(10, leaves=3)
        assert collector.snapshot() == TreeMetrics()
        assert collector.registry.get_sample_value("tmt_verifications_total") == 0


class TestPrometheusOutput:
    """Prometheus text format output."""

    def test_generate_metrics_returns_bytes(self) -> None:
        assert isinstance(MetricsCollector().generate_metrics(), bytes)

    def test_output_contains_metric_names(self) -> None:
        output = MetricsCollector().generate_metrics().decode()
        for name in (
            "tmt_build_seconds",
            "tmt_verifications_total",
            "tmt_leaf_updates_total",
            "tmt_memory_usage_bytes",
        ):
            assert name in output

    def test_collectors_do_not_share_registries(self) -> None:
        a = MetricsCollector()
        b = MetricsCollector()
        a.record_verification(1)
        assert _sample(a, "tmt_verifications_total") == 1
        assert b.registry.get_sample_value("tmt_verifications_total") == 0
