"""
Nearest Neighbor Module

Correspondence search between source and destination meshes (brute force
with a cache, or through the destination's k-d tree) and matching-error
metrics.
"""

from .base import NearestNeighbor
from .brute_force import BruteForceNearestNeighbor
from .kdtree import KdTreeNearestNeighbor


def create_nearest_neighbor(kind: str = "kd_tree") -> NearestNeighbor:
    """
    Factory for nearest neighbor strategies.

    Args:
        kind: 'brute_force' or 'kd_tree'
    """
    kind = kind.lower()
    if kind == "brute_force":
        return BruteForceNearestNeighbor()
    if kind == "kd_tree":
        return KdTreeNearestNeighbor()
    raise ValueError(f"Unknown nearest neighbor strategy '{kind}'")


__all__ = [
    "NearestNeighbor",
    "BruteForceNearestNeighbor",
    "KdTreeNearestNeighbor",
    "create_nearest_neighbor",
]
