"""
Brute-force nearest neighbor search with a correspondence cache.
"""

from __future__ import annotations

from typing import Dict

import numpy as np

from .base import NearestNeighbor, _check_meshes
from ..mesh.base import AbstractMesh


class BruteForceNearestNeighbor(NearestNeighbor):
    """
    Linear scan over all destination vertices per query.

    Results are memoized per source index until clear_cache() is called. The
    cache does not observe either mesh: after moving source or destination
    vertices callers must clear it or they will get stale answers.
    """

    def __init__(self):
        self._cache: Dict[int, int] = {}

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def get_nearest(self, index: int, source: AbstractMesh, dest: AbstractMesh) -> int:
        _check_meshes(source, dest)
        cached = self._cache.get(index)
        if cached is not None:
            return cached

        query = source.get_vertex(index).coords
        diff = dest.get_points() - query
        sq_dist = np.einsum("ij,ij->i", diff, diff)
        # argmin returns the first minimum, so ties go to the lowest index
        nearest = int(np.argmin(sq_dist))
        self._cache[index] = nearest
        return nearest

    def nearest_indices(self, source: AbstractMesh, dest: AbstractMesh) -> np.ndarray:
        _check_meshes(source, dest)
        src = source.get_points()
        dst = dest.get_points()
        out = np.empty(len(src), dtype=np.int64)
        for i, point in enumerate(src):
            cached = self._cache.get(i)
            if cached is None:
                diff = dst - point
                cached = int(np.argmin(np.einsum("ij,ij->i", diff, diff)))
                self._cache[i] = cached
            out[i] = cached
        return out

    def clear_cache(self) -> None:
        self._cache.clear()
