"""
Mesh Module

Vertex record, the mesh contract consumed by the registration core, a
concrete triangle-mesh model and the boundary vertex classifier.
"""

from .vertex import Vertex
from .base import AbstractMesh, SpatialIndex
from .topology import classify_boundary_vertices, is_boundary_vertex
from .model import Model, compute_vertex_normals

__all__ = [
    "Vertex",
    "AbstractMesh",
    "SpatialIndex",
    "Model",
    "compute_vertex_normals",
    "classify_boundary_vertices",
    "is_boundary_vertex",
]
