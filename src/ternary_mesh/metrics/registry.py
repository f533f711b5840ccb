"""
Per-tree metric collection using prometheus_client.

Each collector owns a dedicated registry, so two trees in one process never
share counters. Exposes metrics in Prometheus text format.
"""

from __future__ import annotations

from pydantic import Field
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from ..types import StrictBaseModel

APPROX_NODE_BYTES = 80
"""Rough per-node overhead used by the memory estimate."""


class TreeMetrics(StrictBaseModel):
    """A point-in-time copy of a tree's metrics."""

    build_time_ms: float = Field(default=0.0, ge=0)
    """Duration of the last build, in milliseconds."""

    last_verification_time_ns: int = Field(default=0, ge=0)
    """Duration of the last verification, in nanoseconds."""

    last_update_time_ns: int = Field(default=0, ge=0)
    """Duration of the last update or batch update, in nanoseconds."""

    total_verifications: int = Field(default=0, ge=0)
    """Number of verifications performed."""

    total_updates: int = Field(default=0, ge=0)
    """Number of leaves updated. A batch counts every leaf it touches."""

    memory_usage_bytes: int = Field(default=0, ge=0)
    """Approximate footprint of the node and leaf-data arrays."""


def estimate_memory_usage(node_count: int, leaf_data: list[bytes]) -> int:
    """Approximate memory held by a tree: fixed per-node overhead plus raw leaf bytes."""
    return APPROX_NODE_BYTES * node_count + sum(len(d) for d in leaf_data)


class MetricsCollector:
    """
    Records timings and counters around tree operations.

    When disabled, every recording call is a no-op and `snapshot` reports zeros.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._metrics = TreeMetrics()

        # Dedicated registry: nothing leaks into the process-wide default one.
        self.registry = CollectorRegistry()

        self.build_duration = Histogram(
            "tmt_build_seconds",
            "Tree build duration",
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
            registry=self.registry,
        )
        self.verifications = Counter(
            "tmt_verifications_total",
            "Total leaf verifications",
            registry=self.registry,
        )
        self.updates = Counter(
            "tmt_leaf_updates_total",
            "Total leaves updated",
            registry=self.registry,
        )
        self.memory_usage = Gauge(
            "tmt_memory_usage_bytes",
            "Approximate tree memory usage",
            registry=self.registry,
        )

    def record_build(self, duration_ns: int, memory_usage_bytes: int) -> None:
        """Record a completed build."""
        if not self.enabled:
            return
        self._metrics = self._metrics.model_copy(
            update={
                "build_time_ms": duration_ns / 1_000_000,
                "memory_usage_bytes": memory_usage_bytes,
            }
        )
        self.build_duration.observe(duration_ns / 1_000_000_000)
        self.memory_usage.set(memory_usage_bytes)

    def record_verification(self, duration_ns: int) -> None:
        """Record a completed verification, whatever its outcome."""
        if not self.enabled:
            return
        self._metrics = self._metrics.model_copy(
            update={
                "last_verification_time_ns": duration_ns,
                "total_verifications": self._metrics.total_verifications + 1,
            }
        )
        self.verifications.inc()

    def record_update(self, duration_ns: int, leaves: int = 1) -> None:
        """Record a completed update touching `leaves` leaves."""
        if not self.enabled:
            return
        self._metrics = self._metrics.model_copy(
            update={
                "last_update_time_ns": duration_ns,
                "total_updates": self._metrics.total_updates + leaves,
            }
        )
        self.updates.inc(leaves)

    def snapshot(self) -> TreeMetrics:
        """Return the current metrics, or all zeros when disabled."""
        if not self.enabled:
            return TreeMetrics()
        return self._metrics

    def generate_metrics(self) -> bytes:
        """
        Generate Prometheus metrics output for this tree.

        Returns:
            Prometheus text format output as bytes.
        """
        return generate_latest(self.registry)
