"""
Poisson-Disk Sampling

Subsamples a point set so that every pair of kept points is at least r apart
while covering the set nearly uniformly. Candidates are only ever drawn from
the existing points: a random location in the [r, 2r] shell around an active
point is snapped to its nearest point in the spatial index.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from .flags import SelectionFlags
from .point_selector import PointSelector, validate_percentage
from ..mesh.base import AbstractMesh, SpatialIndex
from ..mesh.vertex import Vertex
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

_UNPROCESSED = 0
_ACCEPTED = 1
_ELIMINATED = 2


def estimate_poisson_radius(index: SpatialIndex, percentage: float) -> float:
    """
    Closed-form guess of the minimum separation that keeps about `percentage`
    of the points: r = 3/4 * d + d * (1/p - 1), with d the mean nearest-neighbor
    spacing. This is an approximation; the kept count may over- or undershoot.

    Raises:
        ValueError: If percentage is not in (0, 1]
    """
    percentage = validate_percentage(percentage)
    if percentage == 0.0:
        raise ValueError("Cannot estimate a Poisson radius for a zero percentage.")
    d = index.mean_spacing()
    return 0.75 * d + d * (1.0 / percentage - 1.0)


class PoissonDiskSampler:
    """
    Dart-throwing Poisson-disk sampler over a SpatialIndex.

    Args:
        seed: Seed for the sampler's random generator
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def sample(self, index: SpatialIndex, r: float, k: int = 30) -> np.ndarray:
        """
        Sample points with pairwise distance >= r.

        Args:
            index: Spatial index over the points to sample from
            r: Minimum separation
            k: Candidate attempts around an active point before it is retired

        Returns:
            Indices of the kept points, in acceptance order.

        Raises:
            ValueError: If r <= 0 or k < 1
        """
        if r <= 0:
            raise ValueError(f"Minimum separation must be positive, got {r}")
        if k < 1:
            raise ValueError(f"Candidate limit must be at least 1, got {k}")
        n = len(index)
        if n == 0:
            return np.empty(0, dtype=np.int64)

        points = index.points
        state = np.full(n, _UNPROCESSED, dtype=np.int8)
        accepted: List[int] = []

        for seed_point in self._rng.permutation(n):
            if state[seed_point] != _UNPROCESSED:
                continue
            self._accept(int(seed_point), index, r, state, accepted)
            active = [int(seed_point)]

            while active:
                slot = int(self._rng.integers(0, len(active)))
                center = points[active[slot]]
                for _ in range(k):
                    candidate = self._candidate_around(center, r, index)
                    if state[candidate] != _UNPROCESSED:
                        continue
                    if self._has_conflict(candidate, index, r, state):
                        continue
                    self._accept(candidate, index, r, state, accepted)
                    active.append(candidate)
                    break
                else:
                    # k consecutive failures retire the active point
                    active[slot] = active[-1]
                    active.pop()

        logger.debug("Poisson-disk sampling kept %d of %d points (r=%.4g).", len(accepted), n, r)
        return np.array(accepted, dtype=np.int64)

    def _candidate_around(self, center: np.ndarray, r: float, index: SpatialIndex) -> int:
        direction = self._rng.normal(size=index.dim)
        norm = np.linalg.norm(direction)
        if norm == 0.0:
            direction = np.zeros(index.dim)
            direction[0] = 1.0
        else:
            direction /= norm
        location = center + direction * self._rng.uniform(r, 2.0 * r)
        nearest, _ = index.nearest(location)
        return nearest

    @staticmethod
    def _has_conflict(candidate: int, index: SpatialIndex, r: float, state: np.ndarray) -> bool:
        close = index.within_radius(index.points[candidate], r, strict=True)
        return bool(np.any(state[close] == _ACCEPTED))

    @staticmethod
    def _accept(
        point: int,
        index: SpatialIndex,
        r: float,
        state: np.ndarray,
        accepted: List[int],
    ) -> None:
        state[point] = _ACCEPTED
        accepted.append(point)
        close = index.within_radius(index.points[point], r, strict=True)
        close = close[state[close] == _UNPROCESSED]
        state[close] = _ELIMINATED


class PoissonDiskPointSelector(PointSelector):
    """
    Point selector backed by Poisson-disk sampling of the mesh's k-d tree.

    The separation is estimated from the requested percentage, so the number
    of returned points only approximates percentage * n_vertices. The
    no_edges flag is honored; other filters do not apply to spatial sampling.
    """

    def __init__(self, seed: Optional[int] = None, k: int = 30):
        self.sampler = PoissonDiskSampler(seed)
        self.k = k

    def select(
        self,
        mesh: AbstractMesh,
        percentage: float = 1.0,
        flags: Optional[SelectionFlags] = None,
    ) -> List[Vertex]:
        percentage = validate_percentage(percentage)
        flags = flags or SelectionFlags()
        if mesh.n_vertices == 0 or percentage == 0.0:
            return []

        index = getattr(mesh, "vertex_tree", None)
        if index is None:
            index = SpatialIndex(mesh.get_points())

        r = estimate_poisson_radius(index, percentage)
        if r <= 0.0:
            # All points coincide (or there is only one); nothing to thin out
            chosen = np.arange(mesh.n_vertices)
        else:
            chosen = self.sampler.sample(index, r, self.k)

        selected = [mesh.get_vertex(int(i)) for i in chosen]
        if flags.no_edges:
            selected = [v for v in selected if not v.is_edge]

        logger.debug("Selected points: %d (r=%.4g)", len(selected), r)
        return selected
