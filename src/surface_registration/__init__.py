"""
Surface Registration Package

Rigid point-cloud and surface-mesh registration. A moving source mesh is
brought into alignment with a fixed destination mesh by repeated ICP steps:
nearest-neighbor correspondence search, closed-form rigid motion estimation
(point-to-point or point-to-plane) and principal-axis pre-alignment.
Boundary vertices are detected from mesh adjacency so they can be kept out
of the correspondence set.
"""

__version__ = "0.1.0"

from .mesh import Vertex, AbstractMesh, SpatialIndex, Model, classify_boundary_vertices
from .neighbors import (
    NearestNeighbor,
    BruteForceNearestNeighbor,
    KdTreeNearestNeighbor,
    create_nearest_neighbor,
)
from .selection import (
    SelectionFlags,
    PointSelector,
    RandomPointSelector,
    PoissonDiskSampler,
    PoissonDiskPointSelector,
    select_points,
    estimate_poisson_radius,
)
from .icp import ICP, RigidPointICP, RigidPlaneICP, PCAICP, create_icp

__all__ = [
    "mesh",
    "neighbors",
    "selection",
    "icp",
    "utils",
    "Vertex",
    "AbstractMesh",
    "SpatialIndex",
    "Model",
    "classify_boundary_vertices",
    "NearestNeighbor",
    "BruteForceNearestNeighbor",
    "KdTreeNearestNeighbor",
    "create_nearest_neighbor",
    "SelectionFlags",
    "PointSelector",
    "RandomPointSelector",
    "PoissonDiskSampler",
    "PoissonDiskPointSelector",
    "select_points",
    "estimate_poisson_radius",
    "ICP",
    "RigidPointICP",
    "RigidPlaneICP",
    "PCAICP",
    "create_icp",
]
