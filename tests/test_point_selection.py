"""
Tests for selection flags and flag/percentage point selection.
"""

from pathlib import Path
import sys

import numpy as np
import pytest

# Ensure src is importable
sys.path.append(str(Path(__file__).parent.parent / "src"))

from surface_registration.mesh import Model
from surface_registration.selection import (
    RandomPointSelector,
    SelectionFlags,
    get_selection_statistics,
    select_points,
)
from surface_registration.selection.flags import EVERY_THIRD, NO_EDGES, RANDOM


def _make_line_cloud(n: int) -> Model:
    points = np.column_stack([np.arange(n, dtype=float), np.zeros(n), np.zeros(n)])
    return Model.from_points(points)


def _ids(vertices):
    return [v.id for v in vertices]


class TestSelectionFlags:
    def test_bitmask_round_trip(self):
        flags = SelectionFlags.from_bitmask(NO_EDGES | EVERY_THIRD)
        assert flags.no_edges and flags.every_third
        assert not flags.random and not flags.every_second
        assert flags.to_bitmask() == NO_EDGES | EVERY_THIRD

    def test_invalid_bitmask(self):
        with pytest.raises(ValueError):
            SelectionFlags.from_bitmask(1 << 6)
        with pytest.raises(ValueError):
            SelectionFlags.from_bitmask(-1)

    def test_describe(self):
        assert SelectionFlags().describe() == "NONE"
        assert SelectionFlags(no_edges=True, every_second=True).describe() == "NO_EDGES | EVERY_SECOND"
        assert SelectionFlags.from_bitmask(RANDOM).describe() == "RANDOM"

    def test_strides(self):
        flags = SelectionFlags(every_fifth=True, every_second=True)
        assert flags.strides == (2, 5)


def test_full_selection_keeps_all_in_order():
    mesh = _make_line_cloud(25)
    selected = select_points(mesh, 1.0, SelectionFlags(), np.random.default_rng(0))
    assert _ids(selected) == list(range(25))


def test_zero_percentage_selects_nothing():
    mesh = _make_line_cloud(25)
    assert select_points(mesh, 0.0, rng=np.random.default_rng(0)) == []


def test_invalid_percentage_raises():
    mesh = _make_line_cloud(5)
    with pytest.raises(ValueError):
        select_points(mesh, 1.5)
    with pytest.raises(ValueError):
        select_points(mesh, -0.1)


def test_empty_mesh_selects_nothing():
    mesh = Model.from_points(np.empty((0, 3)))
    assert select_points(mesh, 0.5) == []


def test_stride_filters_drop_divisible_indices():
    mesh = _make_line_cloud(30)
    rng = np.random.default_rng(0)

    second = select_points(mesh, 1.0, SelectionFlags(every_second=True), rng)
    assert _ids(second) == list(range(1, 30, 2))

    combined = select_points(mesh, 1.0, SelectionFlags(every_second=True, every_third=True), rng)
    assert _ids(combined) == [i for i in range(30) if i % 2 != 0 and i % 3 != 0]


def test_no_edges_drops_boundary_vertices():
    mesh = Model.grid(6, 6)
    selected = select_points(mesh, 1.0, SelectionFlags(no_edges=True), np.random.default_rng(0))

    assert len(selected) == 16
    assert all(not v.is_edge for v in selected)


def test_random_filter_keeps_about_half():
    mesh = _make_line_cloud(1000)
    selected = select_points(mesh, 1.0, SelectionFlags(random=True), np.random.default_rng(3))
    assert 400 < len(selected) < 600


def test_percentage_mean_count():
    """Average selection size over many trials should be p * N."""
    rng = np.random.default_rng(42)
    mesh = _make_line_cloud(100)
    counts = []
    for _ in range(400):
        selected = select_points(mesh, 0.3, rng=rng)
        ids = _ids(selected)
        assert ids == sorted(ids)
        counts.append(len(selected))

    assert np.mean(counts) == pytest.approx(0.3 * 100, abs=0.5)


def test_random_selector_is_reproducible():
    mesh = _make_line_cloud(200)
    flags = SelectionFlags(random=True)

    a = RandomPointSelector(seed=7).select(mesh, 0.5, flags)
    b = RandomPointSelector(seed=7).select(mesh, 0.5, flags)
    assert _ids(a) == _ids(b)


def test_selection_statistics():
    stats = get_selection_statistics(200, 50, SelectionFlags(no_edges=True), 0.25)
    assert stats["total_points"] == 200
    assert stats["selected_points"] == 50
    assert stats["percentage"] == pytest.approx(25.0)
    assert stats["requested_percentage"] == pytest.approx(25.0)
    assert stats["filter_description"] == "NO_EDGES"

    assert get_selection_statistics(0, 0)["percentage"] == 0.0
