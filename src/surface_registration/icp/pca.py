"""
PCA Pre-Alignment

Aligns the principal axes of the source with those of the destination, one
axis per call, without any correspondence search. Two calls fix the
orientation: the third axis is determined (up to handedness) by the first
two, so further calls are no-ops until reset().
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .base import ICP
from ..mesh.base import AbstractMesh
from ..neighbors.base import NearestNeighbor
from ..selection.point_selector import PointSelector
from ..utils.logging import setup_logger
from ..utils.transforms import rotation_angle, rotation_between

logger = setup_logger(__name__)

MAX_ALIGNED_AXES = 2


def principal_axes(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigen-decomposition of the scatter matrix X X^T of centered points.

    Args:
        points: N x 3 array

    Returns:
        Tuple of (eigenvalues descending (3,), eigenvectors as columns (3 x 3)).
    """
    centered = points - np.mean(points, axis=0)
    scatter = centered.T @ centered
    values, vectors = np.linalg.eigh(scatter)
    order = np.argsort(values)[::-1]
    return values[order], vectors[:, order]


class PCAICP(ICP):
    """
    Principal-axis alignment.

    The point selector and selection flags of the base class are unused:
    every vertex contributes to the scatter matrices. If a nearest neighbor
    engine is given its cache is cleared after each applied step.
    """

    def __init__(
        self,
        nearest_neighbor: Optional[NearestNeighbor] = None,
        point_selector: Optional[PointSelector] = None,
        seed: Optional[int] = None,
    ):
        super().__init__(point_selector=point_selector, seed=seed)
        self.nearest_neighbor = nearest_neighbor
        self._index = 0

    @property
    def aligned_axes(self) -> int:
        return self._index

    def reset(self) -> None:
        self._index = 0

    def calc_next_step(self, source: AbstractMesh, dest: AbstractMesh) -> int:
        if self._index >= MAX_ALIGNED_AXES:
            return 0
        if source.n_vertices == 0 or dest.n_vertices == 0:
            raise ValueError("Source and/or destination mesh don't have any vertices!")

        src_points = source.get_points()
        dst_points = dest.get_points()
        src_avg = np.mean(src_points, axis=0)
        dst_avg = np.mean(dst_points, axis=0)

        _, src_axes = principal_axes(src_points)
        _, dst_axes = principal_axes(dst_points)

        src_vec = src_axes[:, self._index]
        dst_vec = dst_axes[:, self._index]
        src_vec = src_vec / np.linalg.norm(src_vec)
        dst_vec = dst_vec / np.linalg.norm(dst_vec)

        # Eigenvectors have no sign; rotate whichever of +v / -v is closer
        angle_pos = np.arccos(np.clip(np.dot(src_vec, dst_vec), -1.0, 1.0))
        angle_neg = np.arccos(np.clip(np.dot(-src_vec, dst_vec), -1.0, 1.0))
        vec = src_vec if angle_pos < angle_neg else -src_vec

        R = rotation_between(vec, dst_vec)
        t = dst_avg - R @ src_avg
        self.apply_to_mesh(source, R, t)
        if self.nearest_neighbor is not None:
            self.nearest_neighbor.clear_cache()

        logger.debug(
            "PCA step %d: rotated %.4f rad onto destination axis.",
            self._index + 1,
            rotation_angle(R),
        )
        self._index += 1
        return source.n_vertices
