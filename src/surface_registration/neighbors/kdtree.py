"""
Tree-accelerated nearest neighbor search.

Delegates to the destination mesh's k-d tree (see Model.vertex_tree), which
the mesh rebuilds whenever its vertices move. Lookups are sub-linear, so no
correspondence cache is kept.
"""

from __future__ import annotations

import numpy as np

from .base import NearestNeighbor, _check_meshes
from ..mesh.base import AbstractMesh, SpatialIndex


def _tree_of(dest: AbstractMesh) -> SpatialIndex:
    tree = getattr(dest, "vertex_tree", None)
    if tree is None:
        raise TypeError(
            f"{type(dest).__name__} does not provide a vertex_tree; "
            "use BruteForceNearestNeighbor instead."
        )
    return tree


class KdTreeNearestNeighbor(NearestNeighbor):
    """Nearest neighbor search through the destination's spatial index."""

    def get_nearest(self, index: int, source: AbstractMesh, dest: AbstractMesh) -> int:
        _check_meshes(source, dest)
        tree = _tree_of(dest)
        nearest, _ = tree.nearest(source.get_vertex(index).coords)
        return nearest

    def nearest_indices(self, source: AbstractMesh, dest: AbstractMesh) -> np.ndarray:
        _check_meshes(source, dest)
        tree = _tree_of(dest)
        _, indices = tree.query(source.get_points(), k=1)
        return indices.ravel().astype(np.int64)
