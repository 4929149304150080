"""Spatial cache and fire-buffer cluster aggregation."""

from .aggregator import ClusterAggregator, ClusterResult
from .cache import ClusterCache

__all__ = [
    "ClusterCache",
    "ClusterAggregator",
    "ClusterResult",
]
