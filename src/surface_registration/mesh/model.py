"""
Triangle Mesh Model

Concrete AbstractMesh backed by numpy arrays. The "base" arrays hold the
underlying representation (which may duplicate vertices, e.g. to render hard
edges); analyze() collapses coincident base vertices into logical vertices,
builds adjacency from the faces, tags boundary vertices and builds the k-d
tree used for tree-accelerated nearest-neighbor search.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Set

import numpy as np
from sklearn.neighbors import KDTree

from .base import AbstractMesh, SpatialIndex
from .topology import classify_boundary_vertices
from .vertex import Vertex
from ..utils.logging import setup_logger
from ..utils.transforms import (
    normalize_rows,
    random_rotation,
    rotation_between,
)

logger = setup_logger(__name__)


def compute_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """
    Area-weighted vertex normals from triangle faces.

    Vertices not referenced by any face get a zero normal.
    """
    normals = np.zeros_like(vertices, dtype=float)
    if len(faces) == 0:
        return normals
    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    # Cross product length is twice the area, which gives the weighting for free
    face_normals = np.cross(v1 - v0, v2 - v0)
    for corner in range(3):
        np.add.at(normals, faces[:, corner], face_normals)
    return normalize_rows(normals)


class Model(AbstractMesh):
    """
    Triangle mesh with duplicate-position merging and boundary tagging.

    Args:
        vertices: K x 3 base vertex positions
        faces: F x 3 triangle indices into `vertices` (may be empty)
        normals: Optional K x 3 base normals; computed from faces if omitted
        merge_tolerance: Base vertices closer than this collapse into one logical vertex
        seed: Seed for the perturbation helpers (noise, holes, random motion)
    """

    def __init__(
        self,
        vertices: np.ndarray,
        faces: Optional[np.ndarray] = None,
        normals: Optional[np.ndarray] = None,
        merge_tolerance: float = 1e-4,
        seed: Optional[int] = None,
    ):
        vertices = np.asarray(vertices, dtype=float)
        if vertices.ndim != 2 or (len(vertices) > 0 and vertices.shape[1] != 3):
            raise ValueError(f"Expected K x 3 vertex array, got shape {vertices.shape}")
        vertices = vertices.reshape(-1, 3)

        if faces is None:
            faces = np.empty((0, 3), dtype=np.int64)
        faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
        if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
            raise ValueError("Face indices reference vertices that do not exist.")

        if normals is None:
            normals = compute_vertex_normals(vertices, faces)
        normals = np.asarray(normals, dtype=float).reshape(-1, 3)
        if len(normals) != len(vertices):
            raise ValueError(
                f"Normals ({len(normals)}) and vertices ({len(vertices)}) differ in length."
            )

        self._base_vertices = vertices.copy()
        self._base_normals = normals.copy()
        self._faces = faces.copy()
        self.merge_tolerance = merge_tolerance
        self._rng = np.random.default_rng(seed)

        self._coords = np.empty((0, 3))
        self._normals = np.empty((0, 3))
        self._neighbors: List[Set[int]] = []
        self._base_groups: List[List[int]] = []
        self._base_to_model = np.empty(0, dtype=np.int64)
        self._is_edge = np.empty(0, dtype=bool)
        self._tree: Optional[SpatialIndex] = None

        self.analyze()

    # ------------------------ Construction ------------------------
    @classmethod
    def grid(
        cls,
        nx: int,
        ny: int,
        spacing: float = 1.0,
        height_fn: Optional[Callable[[np.ndarray, np.ndarray], np.ndarray]] = None,
        seed: Optional[int] = None,
    ) -> "Model":
        """
        Rectangular nx x ny vertex patch, each cell split into two triangles.

        Args:
            nx: Vertices along x
            ny: Vertices along y
            spacing: Grid spacing
            height_fn: Optional z = f(x, y) evaluated on the grid; flat if omitted
            seed: Seed for the perturbation helpers
        """
        if nx < 2 or ny < 2:
            raise ValueError(f"Grid needs at least 2 x 2 vertices, got {nx} x {ny}")
        x = np.arange(nx) * spacing
        y = np.arange(ny) * spacing
        X, Y = np.meshgrid(x, y, indexing="xy")
        Z = np.zeros_like(X) if height_fn is None else np.asarray(height_fn(X, Y), dtype=float)
        vertices = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

        faces = []
        for j in range(ny - 1):
            for i in range(nx - 1):
                a = j * nx + i
                b = a + 1
                c = a + nx
                d = c + 1
                faces.append((a, b, d))
                faces.append((a, d, c))
        return cls(vertices, np.array(faces, dtype=np.int64), seed=seed)

    @classmethod
    def from_points(
        cls,
        points: np.ndarray,
        normals: Optional[np.ndarray] = None,
        seed: Optional[int] = None,
    ) -> "Model":
        """Point cloud without connectivity; normals default to zero."""
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        if normals is None:
            normals = np.zeros_like(points)
        return cls(points, None, normals, seed=seed)

    def copy(self, seed: Optional[int] = None) -> "Model":
        """Independent copy of the current geometry."""
        return Model(
            self._base_vertices,
            self._faces,
            self._base_normals,
            merge_tolerance=self.merge_tolerance,
            seed=seed,
        )

    # ------------------------ Analysis ------------------------
    def analyze(self) -> None:
        """Rebuild logical vertices, adjacency, boundary tags and the k-d tree."""
        base = self._base_vertices
        n_base = len(base)

        base_to_model = np.full(n_base, -1, dtype=np.int64)
        groups: List[List[int]] = []
        if n_base > 0:
            tree = KDTree(base)
            close = tree.query_radius(base, r=self.merge_tolerance)
            for i in range(n_base):
                earlier = [j for j in close[i] if j < i]
                if earlier:
                    target = base_to_model[min(earlier)]
                    base_to_model[i] = target
                    groups[target].append(i)
                else:
                    base_to_model[i] = len(groups)
                    groups.append([i])

        coords = np.array([base[g[0]] for g in groups], dtype=float).reshape(-1, 3)
        summed = np.array(
            [self._base_normals[g].sum(axis=0) for g in groups], dtype=float
        ).reshape(-1, 3)
        normals = normalize_rows(summed)

        neighbors: List[Set[int]] = [set() for _ in groups]
        for face in base_to_model[self._faces] if len(self._faces) else []:
            a, b, c = (int(v) for v in face)
            for u, w in ((a, b), (b, c), (c, a)):
                if u != w:
                    neighbors[u].add(w)
                    neighbors[w].add(u)

        self._base_to_model = base_to_model
        self._base_groups = groups
        self._coords = coords
        self._normals = normals
        self._neighbors = neighbors
        self._is_edge = classify_boundary_vertices(coords, neighbors, normals)
        self._tree = None

        logger.debug(
            "Analyzed mesh: %d base vertices -> %d logical vertices, %d boundary.",
            n_base,
            len(groups),
            int(self._is_edge.sum()),
        )

    # ------------------------ Mesh contract ------------------------
    @property
    def n_vertices(self) -> int:
        return len(self._coords)

    @property
    def faces(self) -> np.ndarray:
        return self._faces

    @property
    def base_vertices(self) -> np.ndarray:
        return self._base_vertices

    @property
    def base_normals(self) -> np.ndarray:
        return self._base_normals

    @property
    def edge_mask(self) -> np.ndarray:
        return self._is_edge.copy()

    def base_index_to_vertex(self, base_index: int) -> int:
        return int(self._base_to_model[base_index])

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= self.n_vertices:
            raise IndexError(f"Vertex number out of bounds: {index}")

    def get_vertex(self, index: int) -> Vertex:
        self._check_index(index)
        return Vertex(
            id=index,
            coords=self._coords[index].copy(),
            normal=self._normals[index].copy(),
            neighbors=set(self._neighbors[index]),
            base_vertices=set(self._base_groups[index]),
            is_edge=bool(self._is_edge[index]),
        )

    def set_vertex(self, index: int, coords: np.ndarray, normal: np.ndarray) -> None:
        self._check_index(index)
        coords = np.asarray(coords, dtype=float)
        normal = np.asarray(normal, dtype=float)

        old_normal = self._normals[index].copy()
        self._coords[index] = coords
        self._normals[index] = normal

        group = self._base_groups[index]
        self._base_vertices[group] = coords
        if np.linalg.norm(old_normal) < 1e-12 or np.linalg.norm(normal) < 1e-12:
            # No rotation relates a zero normal to another one
            self._base_normals[group] = normal
        else:
            rot = rotation_between(old_normal, normal)
            self._base_normals[group] = self._base_normals[group] @ rot.T
        self._tree = None

    def get_points(self) -> np.ndarray:
        return self._coords.copy()

    def get_normals(self) -> np.ndarray:
        return self._normals.copy()

    def get_average(self) -> np.ndarray:
        if self.n_vertices == 0:
            raise ValueError("Cannot compute the average of a mesh without vertices.")
        return np.mean(self._coords, axis=0)

    def apply_rigid_transform(self, R: np.ndarray, t: np.ndarray) -> None:
        """Vectorized (x, n) -> (R x + t, R n) for logical and base vertices."""
        R = np.asarray(R, dtype=float)
        t = np.asarray(t, dtype=float)
        self._coords = self._coords @ R.T + t
        self._normals = self._normals @ R.T
        self._base_vertices = self._base_vertices @ R.T + t
        self._base_normals = self._base_normals @ R.T
        self._tree = None

    def refresh(self) -> None:
        self._tree = None

    @property
    def vertex_tree(self) -> SpatialIndex:
        """Balanced k-d tree over logical vertex positions, rebuilt after moves."""
        if self._tree is None:
            self._tree = SpatialIndex(self._coords)
        return self._tree

    # ------------------------ Perturbation ------------------------
    def transform(self, R: np.ndarray, t: np.ndarray) -> None:
        self.apply_rigid_transform(R, t)

    def add_noise(self, amplitude: float = 0.05) -> None:
        """Move every vertex along its normal by a uniform offset in [-amplitude, amplitude]."""
        for i in range(self.n_vertices):
            vertex = self.get_vertex(i)
            coeff = self._rng.uniform(-amplitude, amplitude)
            self.set_vertex(i, vertex.coords + coeff * vertex.normal, vertex.normal)

    def remove_vertex(self, index: int) -> None:
        """
        Remove a logical vertex with all its base copies and incident faces.

        Indices of the remaining vertices are regenerated.
        """
        self._check_index(index)
        removed = np.zeros(len(self._base_vertices), dtype=bool)
        removed[self._base_groups[index]] = True

        keep_faces = ~removed[self._faces].any(axis=1) if len(self._faces) else np.empty(0, dtype=bool)
        remap = np.cumsum(~removed) - 1
        faces = remap[self._faces[keep_faces]] if len(self._faces) else self._faces

        self._base_vertices = self._base_vertices[~removed]
        self._base_normals = self._base_normals[~removed]
        self._faces = faces.reshape(-1, 3)
        self.analyze()

    def add_hole(self) -> int:
        """Remove a random vertex; returns the removed index."""
        if self.n_vertices == 0:
            raise ValueError("Cannot add a hole to a mesh without vertices.")
        index = int(self._rng.integers(0, self.n_vertices))
        self.remove_vertex(index)
        return index

    def rotate_random(self, max_angle: float, min_angle: float = 0.0) -> np.ndarray:
        """
        Rotate about the origin by a random axis and an angle in [min_angle, max_angle].

        Returns:
            The applied 3x3 rotation.
        """
        R = random_rotation(self._rng, max_angle, min_angle)
        self.apply_rigid_transform(R, np.zeros(3))
        return R

    def translate_random(self, max_translation: float) -> np.ndarray:
        """Translate by a random direction scaled to max_translation; returns the translation."""
        direction = self._rng.normal(size=3)
        direction /= np.linalg.norm(direction)
        t = direction * max_translation
        self.apply_rigid_transform(np.eye(3), t)
        return t
