"""
Mesh contract and spatial index.

AbstractMesh is the minimal read/write surface the registration core needs
from any mesh representation. SpatialIndex is the balanced k-d tree a mesh
exposes for tree-accelerated nearest-neighbor search and Poisson-disk
sampling.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np
from sklearn.neighbors import KDTree

from .vertex import Vertex


class SpatialIndex:
    """
    Balanced k-d tree over a fixed set of points.

    Indices returned by every query are row indices into `points`, which for
    a mesh are logical vertex ids.
    """

    def __init__(self, points: np.ndarray, leaf_size: int = 30):
        points = np.asarray(points, dtype=float)
        if points.ndim != 2:
            raise ValueError(f"Expected an N x D array, got shape {points.shape}")
        self._points = points
        self._tree = KDTree(points, leaf_size=leaf_size) if len(points) > 0 else None

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def dim(self) -> int:
        return self._points.shape[1]

    def _require_points(self) -> None:
        if self._tree is None:
            raise ValueError("Spatial index is empty.")

    def query(self, queries: np.ndarray, k: int = 1) -> Tuple[np.ndarray, np.ndarray]:
        """
        k nearest neighbors for each query row.

        Returns:
            Tuple of (distances, indices), both shaped (Q, k).
        """
        self._require_points()
        queries = np.atleast_2d(np.asarray(queries, dtype=float))
        k = min(k, len(self))
        return self._tree.query(queries, k=k)

    def nearest(self, point: np.ndarray) -> Tuple[int, float]:
        """Index of and distance to the point closest to `point`."""
        dist, ind = self.query(point, k=1)
        return int(ind[0, 0]), float(dist[0, 0])

    def k_nearest(self, point: np.ndarray, k: int) -> np.ndarray:
        """Indices of the k points closest to `point`, nearest first."""
        _, ind = self.query(point, k=k)
        return ind[0]

    def within_radius(self, point: np.ndarray, r: float, strict: bool = True) -> np.ndarray:
        """
        Indices of points within distance r of `point`.

        Args:
            point: Query location
            r: Radius
            strict: If True only points strictly closer than r are returned
        """
        self._require_points()
        point = np.atleast_2d(np.asarray(point, dtype=float))
        ind, dist = self._tree.query_radius(point, r=r, return_distance=True)
        ind, dist = ind[0], dist[0]
        if strict:
            ind = ind[dist < r]
        return ind

    def mean_spacing(self) -> float:
        """Average distance from each point to its nearest other point."""
        if len(self) < 2:
            return 0.0
        dist, _ = self.query(self._points, k=2)
        return float(np.mean(dist[:, 1]))


class AbstractMesh(ABC):
    """
    Interface mesh classes implement so they can be used with nearest
    neighbor search and ICP.
    """

    @property
    @abstractmethod
    def n_vertices(self) -> int:
        """Number of logical vertices."""

    def __len__(self) -> int:
        return self.n_vertices

    @abstractmethod
    def get_vertex(self, index: int) -> Vertex:
        """
        All data of vertex `index` (an independent copy).

        Raises:
            IndexError: If no vertex with this index exists
        """

    @abstractmethod
    def set_vertex(self, index: int, coords: np.ndarray, normal: np.ndarray) -> None:
        """
        Change position and normal of a logical vertex and all its base copies.

        Raises:
            IndexError: If no vertex with this index exists
        """

    def get_points(self) -> np.ndarray:
        """All vertex positions as an N x 3 array."""
        if self.n_vertices == 0:
            return np.empty((0, 3))
        return np.array([self.get_vertex(i).coords for i in range(self.n_vertices)], dtype=float)

    def get_average(self) -> np.ndarray:
        """Centroid of all vertex positions."""
        if self.n_vertices == 0:
            raise ValueError("Cannot compute the average of a mesh without vertices.")
        return np.mean(self.get_points(), axis=0)

    def apply_rigid_transform(self, R: np.ndarray, t: np.ndarray) -> None:
        """Apply (x, n) -> (R x + t, R n) to every vertex."""
        for i in range(self.n_vertices):
            vertex = self.get_vertex(i)
            # R^-T == R for rotations, so normals use the same matrix
            self.set_vertex(i, R @ vertex.coords + t, R @ vertex.normal)
        self.refresh()

    def refresh(self) -> None:
        """Update derived data after vertices were modified."""
