"""
ICP Alignment Module

Three rigid alignment strategies sharing one selection/correspondence
pipeline: point-to-point (closed-form SVD), point-to-plane (linearized least
squares) and principal-axis pre-alignment.
"""

from typing import Optional

from .base import ICP, CorrespondenceICP
from .rigid_point import RigidPointICP
from .rigid_plane import RigidPlaneICP
from .pca import PCAICP, principal_axes
from ..neighbors.base import NearestNeighbor
from ..selection.point_selector import PointSelector


def create_icp(
    algorithm: str,
    nearest_neighbor: Optional[NearestNeighbor] = None,
    point_selector: Optional[PointSelector] = None,
    seed: Optional[int] = None,
) -> ICP:
    """
    Factory for ICP strategies.

    Args:
        algorithm: 'point', 'plane' or 'pca'
        nearest_neighbor: Correspondence search (required for 'point' and 'plane')
        point_selector: Optional selection strategy
        seed: Seed for the engine's random generator
    """
    algorithm = algorithm.lower()
    if algorithm == "pca":
        return PCAICP(nearest_neighbor, point_selector=point_selector, seed=seed)
    if algorithm not in ("point", "plane"):
        raise ValueError(f"Unknown ICP algorithm '{algorithm}'")
    if nearest_neighbor is None:
        raise ValueError(f"ICP algorithm '{algorithm}' needs a nearest neighbor strategy")
    cls = RigidPointICP if algorithm == "point" else RigidPlaneICP
    return cls(nearest_neighbor, point_selector=point_selector, seed=seed)


__all__ = [
    "ICP",
    "CorrespondenceICP",
    "RigidPointICP",
    "RigidPlaneICP",
    "PCAICP",
    "principal_axes",
    "create_icp",
]
