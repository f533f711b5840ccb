"""
Metrics module for observability.

Provides per-tree timings and counters, exposed both as a `TreeMetrics`
snapshot and in Prometheus text format.
"""

from .registry import (
    APPROX_NODE_BYTES,
    MetricsCollector,
    TreeMetrics,
    estimate_memory_usage,
)

__all__ = [
    "APPROX_NODE_BYTES",
    "MetricsCollector",
    "TreeMetrics",
    "estimate_memory_usage",
]
