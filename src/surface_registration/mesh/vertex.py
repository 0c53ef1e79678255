"""
Vertex record shared by meshes, nearest-neighbor search and ICP.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Set

import numpy as np


@dataclass
class Vertex:
    """
    All data of a logical vertex needed for nearest-neighbor search and ICP.

    Attributes:
        id: Index of the vertex; stable only until the mesh topology is rebuilt
        coords: Position (3,)
        normal: Unit normal (3,), zero when the mesh carries no normals
        neighbors: Ids of adjacent logical vertices (symmetric relation)
        base_vertices: Ids in the underlying representation that collapse onto
            this vertex (e.g. copies made to render hard edges)
        is_edge: True if the vertex lies on the open border of the surface
    """

    id: int
    coords: np.ndarray
    normal: np.ndarray
    neighbors: Set[int] = field(default_factory=set)
    base_vertices: Set[int] = field(default_factory=set)
    is_edge: bool = False

    def copy(self) -> "Vertex":
        return Vertex(
            id=self.id,
            coords=np.array(self.coords, dtype=float),
            normal=np.array(self.normal, dtype=float),
            neighbors=set(self.neighbors),
            base_vertices=set(self.base_vertices),
            is_edge=self.is_edge,
        )
