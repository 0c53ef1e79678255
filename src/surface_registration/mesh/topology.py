"""
Boundary Vertex Classification

Classifies mesh vertices as boundary ("edge") or interior using only the
neighbor adjacency graph and vertex positions, independent of any file format.

A vertex v is interior if its neighbor ring closes: starting at some neighbor
s, we can walk from ring vertex to ring vertex (each step moving to a vertex
adjacent to both v and the current one) and come back to s, sweeping at least
a full turn around v without using any ring vertex twice. Open fans, as found
on the border of a surface patch, never close.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

import numpy as np

from ..utils.logging import setup_logger

logger = setup_logger(__name__)

FULL_TURN = 2.0 * np.pi
# Walks sweeping more than two turns only occur on non-manifold fans
MAX_SWEEP = 4.0 * np.pi
# Tolerance on the full turn for rounding in the accumulated angle
ANGLE_EPS = 1e-6
# Hard cap on explored walk states per (vertex, start) pair
MAX_EXPANSIONS = 20000


def _tangent_directions(
    origin: np.ndarray,
    normal: Optional[np.ndarray],
    ring_coords: np.ndarray,
) -> np.ndarray:
    """Unit directions from origin to ring vertices, projected into the tangent plane."""
    dirs = ring_coords - origin
    if normal is not None:
        n_len = np.linalg.norm(normal)
        if n_len > 1e-12:
            n = normal / n_len
            projected = dirs - np.outer(dirs @ n, n)
            # Keep the raw direction where projection collapses it
            keep = np.linalg.norm(projected, axis=1) > 1e-12
            dirs = np.where(keep[:, None], projected, dirs)
    norms = np.linalg.norm(dirs, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return dirs / norms


def _ring_angles(directions: np.ndarray) -> np.ndarray:
    """Pairwise unsigned angles between ring directions."""
    cos = np.clip(directions @ directions.T, -1.0, 1.0)
    return np.arccos(cos)


def _closes_from(
    start: int,
    ring_adjacency: List[List[int]],
    angles: np.ndarray,
) -> bool:
    """
    Explicit-stack DFS over ring positions starting at `start`.

    Returns True as soon as a walk returns to `start` (not straight back
    along the step it came from) with at least a full turn swept.
    """
    # State: (current, previous, consumed ring positions, swept angle)
    stack = [(start, -1, frozenset((start,)), 0.0)]
    expansions = 0
    while stack:
        current, previous, consumed, swept = stack.pop()
        expansions += 1
        if expansions > MAX_EXPANSIONS:
            return False
        for nxt in ring_adjacency[current]:
            step = swept + angles[current, nxt]
            if nxt == start:
                if previous != -1 and nxt != previous and step >= FULL_TURN - ANGLE_EPS:
                    return True
                continue
            if nxt in consumed or step > MAX_SWEEP:
                continue
            stack.append((nxt, current, consumed | {nxt}, step))
    return False


def is_boundary_vertex(
    index: int,
    coords: np.ndarray,
    neighbors: Sequence[Set[int]],
    normals: Optional[np.ndarray] = None,
) -> bool:
    """
    Classify a single vertex.

    Args:
        index: Vertex to classify
        coords: N x 3 vertex positions
        neighbors: Adjacency sets, one per vertex
        normals: Optional N x 3 normals used to define the tangent plane

    Returns:
        True if the vertex lies on a boundary. Isolated vertices are not boundary.
    """
    ring = sorted(neighbors[index])
    if not ring:
        return False

    position = {vid: pos for pos, vid in enumerate(ring)}
    ring_set = set(ring)
    ring_adjacency = [
        sorted(position[w] for w in neighbors[vid] if w in ring_set)
        for vid in ring
    ]
    normal = normals[index] if normals is not None else None
    directions = _tangent_directions(coords[index], normal, coords[ring])
    angles = _ring_angles(directions)

    for start in range(len(ring)):
        # A failed start does not prove the vertex is on the boundary
        if _closes_from(start, ring_adjacency, angles):
            return False
    return True


def classify_boundary_vertices(
    coords: np.ndarray,
    neighbors: Sequence[Set[int]],
    normals: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Tag every vertex as boundary (True) or interior (False).

    Must be rerun whenever connectivity changes or vertices are merged.

    Args:
        coords: N x 3 vertex positions
        neighbors: Adjacency sets, one per vertex (symmetric)
        normals: Optional N x 3 vertex normals

    Returns:
        Boolean array of length N.
    """
    coords = np.asarray(coords, dtype=float)
    n = len(coords)
    is_edge = np.zeros(n, dtype=bool)
    for i in range(n):
        is_edge[i] = is_boundary_vertex(i, coords, neighbors, normals)
    logger.debug("Classified %d of %d vertices as boundary.", int(is_edge.sum()), n)
    return is_edge
