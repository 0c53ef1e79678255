"""
Point Selection Utilities

Filter + percentage selection of source vertices for an ICP step, and the
PointSelector interface that lets callers plug in other strategies (see
poisson_disk.PoissonDiskPointSelector).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from .flags import SelectionFlags
from ..mesh.base import AbstractMesh
from ..mesh.vertex import Vertex
from ..utils.logging import setup_logger

logger = setup_logger(__name__)


def validate_percentage(percentage: float) -> float:
    percentage = float(percentage)
    if not 0.0 <= percentage <= 1.0:
        raise ValueError(f"Selection percentage must be in [0, 1], got {percentage}")
    return percentage


def passes_filters(
    vertex: Vertex,
    index: int,
    flags: SelectionFlags,
    rng: np.random.Generator,
) -> bool:
    """
    Evaluate the flag filters for one candidate, in fixed order.

    The random filter only draws for candidates that survived the edge filter.
    """
    if flags.no_edges and vertex.is_edge:
        return False
    if flags.random and rng.integers(0, 2) == 0:
        return False
    for stride in flags.strides:
        if index % stride == 0:
            return False
    return True


def subsample_in_order(
    candidates: List[Vertex],
    percentage: float,
    rng: np.random.Generator,
) -> List[Vertex]:
    """
    Keep about `percentage` of the candidates in a single ordered pass.

    Each candidate is accepted with probability needed / left, so the expected
    number kept equals percentage * len(candidates) and the relative order is
    preserved.
    """
    if percentage >= 1.0:
        return list(candidates)
    needed = len(candidates) * percentage
    kept = []
    total = len(candidates)
    for position, vertex in enumerate(candidates):
        left = total - position
        probability = needed / left
        if rng.random() <= probability:
            kept.append(vertex)
            needed -= 1
    return kept


def select_points(
    mesh: AbstractMesh,
    percentage: float = 1.0,
    flags: Optional[SelectionFlags] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[Vertex]:
    """
    Select vertices of `mesh` for an ICP step.

    Args:
        mesh: Mesh to select from
        percentage: Fraction in [0, 1] of the filtered candidates to keep
        flags: Filters applied per vertex before subsampling
        rng: Random generator used by the random filter and subsampling

    Returns:
        Ordered list of vertex copies. Empty for an empty mesh.

    Raises:
        ValueError: If percentage is outside [0, 1]
    """
    percentage = validate_percentage(percentage)
    flags = flags or SelectionFlags()
    rng = rng if rng is not None else np.random.default_rng()

    candidates = []
    for i in range(mesh.n_vertices):
        vertex = mesh.get_vertex(i)
        if passes_filters(vertex, i, flags, rng):
            candidates.append(vertex)

    return subsample_in_order(candidates, percentage, rng)


def get_selection_statistics(
    total_points: int,
    selected_points: int,
    flags: Optional[SelectionFlags] = None,
    percentage: float = 1.0,
) -> dict:
    """Summary of a selection for logging and validation."""
    flags = flags or SelectionFlags()
    share = (selected_points / total_points * 100.0) if total_points > 0 else 0.0
    return {
        "total_points": total_points,
        "selected_points": selected_points,
        "percentage": share,
        "requested_percentage": percentage * 100.0,
        "filter_description": flags.describe(),
    }


class PointSelector(ABC):
    """Interface for point selection strategies."""

    @abstractmethod
    def select(
        self,
        mesh: AbstractMesh,
        percentage: float = 1.0,
        flags: Optional[SelectionFlags] = None,
    ) -> List[Vertex]:
        """Select about `percentage` of the points of `mesh`, honoring `flags`."""


class RandomPointSelector(PointSelector):
    """Flag filters followed by ordered random subsampling."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def select(
        self,
        mesh: AbstractMesh,
        percentage: float = 1.0,
        flags: Optional[SelectionFlags] = None,
    ) -> List[Vertex]:
        selected = select_points(mesh, percentage, flags, self._rng)
        logger.debug("Selected %d of %d points.", len(selected), mesh.n_vertices)
        return selected
