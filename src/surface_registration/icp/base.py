"""
ICP Base Classes

Shared state of all alignment strategies (selection flags, percentage and
random generator) and the select -> correspond pipeline used by the
correspondence-based variants.

Engines never test for convergence: each calc_next_step() applies one
update to the source mesh, and the caller decides when to stop, typically by
watching NearestNeighbor.compute_error() between calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..mesh.base import AbstractMesh
from ..mesh.vertex import Vertex
from ..neighbors.base import NearestNeighbor
from ..selection.flags import SelectionFlags
from ..selection.point_selector import PointSelector, select_points, validate_percentage
from ..utils.logging import setup_logger

logger = setup_logger(__name__)


class ICP(ABC):
    """
    Base class for iterative closest point implementations.

    Args:
        point_selector: Optional selection strategy; the built-in flag/percentage
            selection is used when omitted
        seed: Seed for the engine's random generator
    """

    def __init__(
        self,
        point_selector: Optional[PointSelector] = None,
        seed: Optional[int] = None,
    ):
        self.point_selector = point_selector
        self._selection_flags = SelectionFlags()
        self._selection_percentage = 1.0
        self._rng = np.random.default_rng(seed)

    # ------------------------ Configuration ------------------------
    @property
    def selection_flags(self) -> SelectionFlags:
        return self._selection_flags

    @selection_flags.setter
    def selection_flags(self, flags: SelectionFlags) -> None:
        if not isinstance(flags, SelectionFlags):
            raise TypeError(f"Expected SelectionFlags, got {type(flags).__name__}")
        self._selection_flags = flags

    @property
    def selection_percentage(self) -> float:
        return self._selection_percentage

    @selection_percentage.setter
    def selection_percentage(self, percentage: float) -> None:
        self._selection_percentage = validate_percentage(percentage)

    def reseed(self, seed: Optional[int]) -> None:
        self._rng = np.random.default_rng(seed)

    def reset(self) -> None:
        """Reset per-run state. Stateless engines have nothing to reset."""

    # ------------------------ Pipeline ------------------------
    def select_points(self, source: AbstractMesh) -> List[Vertex]:
        """Select the source points used for the next step."""
        if self.point_selector is not None:
            selected = self.point_selector.select(
                source, self._selection_percentage, self._selection_flags
            )
        else:
            # Without a dedicated selector the chosen points are not spread
            # evenly over the surface
            selected = select_points(
                source, self._selection_percentage, self._selection_flags, self._rng
            )
        logger.info("Selected %d points on source mesh.", len(selected))
        return selected

    @staticmethod
    def get_average(points: Sequence[Vertex]) -> np.ndarray:
        """Centroid of the given vertices."""
        if len(points) == 0:
            raise ValueError("Cannot compute the average of an empty point list.")
        return np.mean([p.coords for p in points], axis=0)

    @staticmethod
    def apply_to_mesh(mesh: AbstractMesh, R: np.ndarray, t: np.ndarray) -> None:
        """Apply (x, n) -> (R x + t, R n) to every vertex of `mesh`."""
        mesh.apply_rigid_transform(R, t)

    @abstractmethod
    def calc_next_step(self, source: AbstractMesh, dest: AbstractMesh) -> int:
        """
        Calculate the next step and apply it to `source`.

        Returns:
            Number of points used for the calculation.
        """


class CorrespondenceICP(ICP):
    """ICP variant that pairs selected source points with nearest destination points."""

    def __init__(
        self,
        nearest_neighbor: NearestNeighbor,
        point_selector: Optional[PointSelector] = None,
        seed: Optional[int] = None,
    ):
        super().__init__(point_selector=point_selector, seed=seed)
        self.nearest_neighbor = nearest_neighbor

    def select_pairs(
        self,
        source: AbstractMesh,
        dest: AbstractMesh,
    ) -> Tuple[List[Vertex], List[Vertex]]:
        """
        Selected source points and their destination correspondents.

        With the no_edges flag, pairs whose destination vertex is on the
        boundary are dropped as well.
        """
        source_points = self.select_points(source)
        if not source_points:
            return [], []
        nearest_points = self.nearest_neighbor.get_all_nearest(source_points, source, dest)

        if self._selection_flags.no_edges:
            kept = [
                (s, d) for s, d in zip(source_points, nearest_points) if not d.is_edge
            ]
            source_points = [s for s, _ in kept]
            nearest_points = [d for _, d in kept]

        return source_points, nearest_points

    def _finish_step(self, source: AbstractMesh, R: np.ndarray, t: np.ndarray) -> None:
        self.apply_to_mesh(source, R, t)
        # Source moved, so every cached correspondence is stale
        self.nearest_neighbor.clear_cache()
