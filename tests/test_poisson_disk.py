"""
Tests for Poisson-disk sampling and the Poisson-disk point selector.
"""

from pathlib import Path
import sys

import numpy as np
import pytest

# Ensure src is importable
sys.path.append(str(Path(__file__).parent.parent / "src"))

from surface_registration.mesh import Model, SpatialIndex
from surface_registration.selection import (
    PoissonDiskPointSelector,
    PoissonDiskSampler,
    SelectionFlags,
    estimate_poisson_radius,
)


def _make_grid_points(nx: int, ny: int, spacing: float = 1.0) -> np.ndarray:
    x, y = np.meshgrid(np.arange(nx) * spacing, np.arange(ny) * spacing)
    return np.column_stack([x.ravel(), y.ravel(), np.zeros(nx * ny)])


def _pairwise(points: np.ndarray) -> np.ndarray:
    d = np.linalg.norm(points[:, None] - points[None], axis=2)
    return d[np.triu_indices(len(points), k=1)]


def test_radius_larger_than_set_keeps_one_point():
    index = SpatialIndex(_make_grid_points(8, 8))
    kept = PoissonDiskSampler(seed=0).sample(index, r=100.0)
    assert len(kept) == 1


def test_radius_below_spacing_keeps_all_points():
    index = SpatialIndex(_make_grid_points(8, 8))
    kept = PoissonDiskSampler(seed=0).sample(index, r=1.0)
    assert sorted(kept.tolist()) == list(range(64))


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_minimum_separation_and_coverage(seed):
    points = _make_grid_points(12, 12)
    index = SpatialIndex(points)
    r = 2.5
    kept = PoissonDiskSampler(seed=seed).sample(index, r=r)

    assert len(set(kept.tolist())) == len(kept)
    assert np.all(_pairwise(points[kept]) >= r)
    # Every point is within r of some kept point
    d = np.linalg.norm(points[:, None] - points[kept][None], axis=2)
    assert np.all(d.min(axis=1) < r)


def test_two_dimensional_points():
    x, y = np.meshgrid(np.arange(3.0), np.arange(3.0))
    points = np.column_stack([x.ravel(), y.ravel()])
    index = SpatialIndex(points)
    kept = PoissonDiskSampler(seed=5).sample(index, r=1.1)

    assert 1 <= len(kept) <= 5
    assert np.all(_pairwise(points[kept]) >= 1.1)


def test_empty_index():
    index = SpatialIndex(np.empty((0, 3)))
    kept = PoissonDiskSampler().sample(index, r=1.0)
    assert kept.shape == (0,)


def test_invalid_arguments():
    index = SpatialIndex(_make_grid_points(3, 3))
    sampler = PoissonDiskSampler()
    with pytest.raises(ValueError):
        sampler.sample(index, r=0.0)
    with pytest.raises(ValueError):
        sampler.sample(index, r=1.0, k=0)


def test_estimate_radius():
    index = SpatialIndex(_make_grid_points(5, 5))
    assert estimate_poisson_radius(index, 1.0) == pytest.approx(0.75)
    assert estimate_poisson_radius(index, 0.5) == pytest.approx(1.75)
    with pytest.raises(ValueError):
        estimate_poisson_radius(index, 0.0)


def test_selector_thins_mesh():
    mesh = Model.grid(20, 20)
    selected = PoissonDiskPointSelector(seed=3).select(mesh, 0.25)
    r = estimate_poisson_radius(mesh.vertex_tree, 0.25)

    assert 0 < len(selected) < mesh.n_vertices
    coords = np.array([v.coords for v in selected])
    assert np.all(_pairwise(coords) >= r)


def test_selector_honors_no_edges():
    mesh = Model.grid(15, 15)
    selected = PoissonDiskPointSelector(seed=1).select(mesh, 0.5, SelectionFlags(no_edges=True))
    assert selected
    assert all(not v.is_edge for v in selected)


def test_selector_trivial_cases():
    selector = PoissonDiskPointSelector(seed=0)
    mesh = Model.grid(4, 4)
    assert selector.select(mesh, 0.0) == []
    assert selector.select(Model.from_points(np.empty((0, 3))), 0.5) == []

    single = Model.from_points(np.array([[1.0, 2.0, 3.0]]))
    assert [v.id for v in selector.select(single, 0.5)] == [0]
