"""
Rigid Point-to-Plane ICP

Minimizes the distance from the destination correspondents to the tangent
planes of the selected source points, with the rotation linearized for small
angles. Accurate for the small per-step motions inside an iterative loop; do
not use it for a single large-angle alignment.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .base import CorrespondenceICP
from ..mesh.base import AbstractMesh
from ..utils.logging import setup_logger
from ..utils.transforms import make_transform, rotation_from_euler_xyz

logger = setup_logger(__name__)


class RigidPlaneICP(CorrespondenceICP):
    """Point-to-plane ICP solved as a linear least-squares system."""

    def calc_next_step(self, source: AbstractMesh, dest: AbstractMesh) -> int:
        source_points, nearest_points = self.select_pairs(source, dest)
        if not source_points:
            logger.warning("No valid correspondences found. Source left unchanged.")
            return 0

        p = np.array([v.coords for v in source_points], dtype=float)
        n = np.array([v.normal for v in source_points], dtype=float)
        q = np.array([v.coords for v in nearest_points], dtype=float)

        A, b = self.build_system(p, n, q)
        x = self.solve(A, b)

        transform = self.transform_from_solution(x)
        R = transform[:3, :3]
        t = transform[:3, 3]
        self._finish_step(source, R, t)

        logger.debug(
            "Point-to-plane step: %d pairs, angles=(%.3e, %.3e, %.3e), t=(%.3e, %.3e, %.3e)",
            len(source_points),
            *x,
        )
        return len(source_points)

    @staticmethod
    def build_system(
        points: np.ndarray,
        normals: np.ndarray,
        targets: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Linear system A x = b with one row [p x n, n] and rhs n . (q - p) per pair.

        Returns:
            Tuple of (A (N x 6), b (N,)).
        """
        A = np.hstack([np.cross(points, normals), normals])
        b = np.einsum("ij,ij->i", normals, targets - points)
        return A, b

    @staticmethod
    def solve(A: np.ndarray, b: np.ndarray) -> np.ndarray:
        """
        Least-squares solution through the Moore-Penrose pseudo-inverse.

        Used for square systems as well. Singular values below numpy's default
        cutoff are treated as zero.
        """
        return np.linalg.pinv(A) @ b

    @staticmethod
    def transform_from_solution(x: np.ndarray) -> np.ndarray:
        """4x4 transform from x = (alpha, beta, gamma, tx, ty, tz)."""
        R = rotation_from_euler_xyz(x[0], x[1], x[2])
        return make_transform(R, x[3:6])
