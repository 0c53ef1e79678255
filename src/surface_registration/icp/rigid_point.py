"""
Rigid Point-to-Point ICP

Each step finds nearest-point correspondences for the selected source points
and solves the absolute orientation problem in closed form (SVD of the
cross-covariance matrix), then moves the whole source mesh.
"""

from __future__ import annotations

import numpy as np

from .base import CorrespondenceICP
from ..mesh.base import AbstractMesh
from ..utils.logging import setup_logger
from ..utils.transforms import make_transform, rotation_angle

logger = setup_logger(__name__)


class RigidPointICP(CorrespondenceICP):
    """Point-to-point ICP with closed-form rigid motion estimation."""

    def calc_next_step(self, source: AbstractMesh, dest: AbstractMesh) -> int:
        source_points, nearest_points = self.select_pairs(source, dest)
        if not source_points:
            logger.warning("No valid correspondences found. Source left unchanged.")
            return 0

        src = np.array([p.coords for p in source_points], dtype=float)
        dst = np.array([p.coords for p in nearest_points], dtype=float)
        transform = self.estimate_transformation(src, dst)
        R = transform[:3, :3]
        t = transform[:3, 3]

        self._finish_step(source, R, t)

        logger.debug(
            "Point-to-point step: %d pairs, |t|=%.6e, theta=%.6e rad",
            len(source_points),
            float(np.linalg.norm(t)),
            rotation_angle(R),
        )
        return len(source_points)

    @staticmethod
    def estimate_transformation(
        source_points: np.ndarray,
        target_points: np.ndarray,
    ) -> np.ndarray:
        """
        Estimate optimal rigid transformation between corresponding point sets.

        Args:
            source_points: Source points (N x 3).
            target_points: Corresponding target points (N x 3).

        Returns:
            Transformation matrix (4 x 4).
        """
        source_centroid = np.mean(source_points, axis=0)
        target_centroid = np.mean(target_points, axis=0)

        source_centered = source_points - source_centroid
        target_centered = target_points - target_centroid

        # Cross-covariance matrix
        H = source_centered.T @ target_centered

        U, _, Vt = np.linalg.svd(H)
        R = Vt.T @ U.T

        # Reflection guard: det(R) must be +1
        if np.linalg.det(R) < 0:
            Vt[-1, :] *= -1
            R = Vt.T @ U.T

        t = target_centroid - R @ source_centroid
        return make_transform(R, t)
