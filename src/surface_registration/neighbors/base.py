"""
Nearest Neighbor Interface

Correspondence search between a source and a destination mesh plus the
matching-error metrics used to judge an alignment.

The error is one-directional (source -> destination): swapping the meshes
recomputes correspondences from the other side and generally gives a
different value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple, Union

import numpy as np

from ..mesh.base import AbstractMesh
from ..mesh.vertex import Vertex


def _check_meshes(source: AbstractMesh, dest: AbstractMesh) -> None:
    if source.n_vertices <= 0 or dest.n_vertices <= 0:
        raise ValueError("Source and/or destination mesh don't have any vertices!")


class NearestNeighbor(ABC):
    """Base class for nearest neighbor search strategies."""

    @abstractmethod
    def get_nearest(self, index: int, source: AbstractMesh, dest: AbstractMesh) -> int:
        """
        Index of the destination vertex closest to source vertex `index`.

        Raises:
            ValueError: If either mesh has no vertices
            IndexError: If `index` is out of range
        """

    def clear_cache(self) -> None:
        """Forget cached correspondences. Call whenever either mesh moved."""

    def nearest_indices(self, source: AbstractMesh, dest: AbstractMesh) -> np.ndarray:
        """Nearest destination index for every source vertex."""
        _check_meshes(source, dest)
        return np.array(
            [self.get_nearest(i, source, dest) for i in range(source.n_vertices)],
            dtype=np.int64,
        )

    def get_all_nearest(
        self,
        points: Sequence[Vertex],
        source: AbstractMesh,
        dest: AbstractMesh,
    ) -> List[Vertex]:
        """Destination correspondents for a list of source vertices, in order."""
        return [dest.get_vertex(self.get_nearest(p.id, source, dest)) for p in points]

    def compute_error(
        self,
        source: AbstractMesh,
        dest: AbstractMesh,
        pairs: Union[Sequence[int], np.ndarray, None] = None,
        return_matches: bool = False,
    ) -> Union[float, Tuple[float, int]]:
        """
        Mean squared distance between source vertices and their correspondents.

        Without `pairs` the correspondent is the nearest destination vertex.
        With `pairs` (a ground-truth destination index per source vertex) the
        error uses those instead; this is meant for offline evaluation only.

        Args:
            source: Source mesh
            dest: Destination mesh
            pairs: Optional ground-truth correspondence, one destination index per source vertex
            return_matches: With `pairs`, also return how many nearest-neighbor
                answers agree with the ground truth

        Returns:
            The error, or (error, n_matches) when return_matches is True.

        Raises:
            ValueError: If either mesh has no vertices or `pairs` has the wrong length
        """
        _check_meshes(source, dest)
        src = source.get_points()
        dst = dest.get_points()

        if pairs is None:
            if return_matches:
                raise ValueError("return_matches requires ground-truth pairs.")
            nearest = self.nearest_indices(source, dest)
            diff = src - dst[nearest]
            return float(np.mean(np.einsum("ij,ij->i", diff, diff)))

        pairs = np.asarray(pairs, dtype=np.int64)
        if pairs.shape != (source.n_vertices,):
            raise ValueError(
                f"Expected {source.n_vertices} ground-truth pairs, got shape {pairs.shape}"
            )
        if pairs.size and (pairs.min() < 0 or pairs.max() >= dest.n_vertices):
            raise IndexError("Ground-truth pairs reference destination vertices that do not exist.")

        diff = src - dst[pairs]
        error = float(np.mean(np.einsum("ij,ij->i", diff, diff)))
        if not return_matches:
            return error
        nearest = self.nearest_indices(source, dest)
        return error, int(np.count_nonzero(nearest == pairs))
