"""
Tests for the triangle mesh model.

Covers duplicate-position merging, the get/set vertex contract, vertex
removal and the random perturbation helpers.
"""

from pathlib import Path
import sys

import numpy as np
import pytest

# Ensure src is importable
sys.path.append(str(Path(__file__).parent.parent / "src"))

from surface_registration.mesh import Model, compute_vertex_normals


def _make_split_quad() -> Model:
    """Unit square made of two triangles whose shared corners are duplicated."""
    vertices = np.array([
        [0.0, 0.0, 0.0],  # 0
        [1.0, 0.0, 0.0],  # 1
        [0.0, 1.0, 0.0],  # 2
        [1.0, 0.0, 0.0],  # 3 duplicate of 1
        [0.0, 1.0, 0.0],  # 4 duplicate of 2
        [1.0, 1.0, 0.0],  # 5
    ])
    faces = np.array([[0, 1, 2], [3, 5, 4]])
    return Model(vertices, faces)


def test_duplicate_positions_are_merged():
    model = _make_split_quad()

    assert model.n_vertices == 4
    assert len(model) == 4
    assert model.get_vertex(1).base_vertices == {1, 3}
    assert model.get_vertex(2).base_vertices == {2, 4}
    assert model.base_index_to_vertex(5) == 3


def test_neighbors_are_symmetric():
    model = _make_split_quad()

    assert model.get_vertex(1).neighbors == {0, 2, 3}
    for i in range(model.n_vertices):
        for j in model.get_vertex(i).neighbors:
            assert i in model.get_vertex(j).neighbors


def test_normals_computed_from_faces():
    model = _make_split_quad()
    for i in range(model.n_vertices):
        np.testing.assert_allclose(model.get_vertex(i).normal, [0.0, 0.0, 1.0])


def test_compute_vertex_normals_unreferenced_vertex_is_zero():
    vertices = np.array([[0.0, 0, 0], [1, 0, 0], [0, 1, 0], [5, 5, 5]])
    normals = compute_vertex_normals(vertices, np.array([[0, 1, 2]]))
    np.testing.assert_allclose(normals[3], 0.0)
    np.testing.assert_allclose(normals[0], [0.0, 0.0, 1.0])


def test_set_vertex_updates_all_base_copies():
    model = _make_split_quad()
    new_coords = np.array([2.0, 0.5, 0.3])
    new_normal = np.array([1.0, 0.0, 0.0])

    model.set_vertex(1, new_coords, new_normal)

    vertex = model.get_vertex(1)
    np.testing.assert_allclose(vertex.coords, new_coords)
    np.testing.assert_allclose(vertex.normal, new_normal)
    np.testing.assert_allclose(model.base_vertices[[1, 3]], [new_coords, new_coords])
    # Base normals are rotated by the same rotation as the logical normal
    np.testing.assert_allclose(model.base_normals[[1, 3]], [new_normal, new_normal], atol=1e-12)
    # Other vertices are untouched
    np.testing.assert_allclose(model.base_vertices[0], [0.0, 0.0, 0.0])


def test_get_vertex_returns_independent_copy():
    model = _make_split_quad()
    vertex = model.get_vertex(0)
    vertex.coords[:] = 99.0
    vertex.neighbors.add(42)

    assert np.all(model.get_vertex(0).coords == 0.0)
    assert 42 not in model.get_vertex(0).neighbors


def test_out_of_range_vertex_raises():
    model = _make_split_quad()
    with pytest.raises(IndexError):
        model.get_vertex(4)
    with pytest.raises(IndexError):
        model.set_vertex(-1, np.zeros(3), np.zeros(3))


def test_invalid_faces_raise():
    with pytest.raises(ValueError):
        Model(np.zeros((3, 3)), np.array([[0, 1, 3]]))


def test_grid_layout_and_average():
    model = Model.grid(4, 3, spacing=2.0)

    assert model.n_vertices == 12
    assert len(model.faces) == 2 * 3 * 2
    np.testing.assert_allclose(model.get_average(), [3.0, 2.0, 0.0])


def test_empty_model_average_raises():
    model = Model.from_points(np.empty((0, 3)))
    assert model.n_vertices == 0
    with pytest.raises(ValueError):
        model.get_average()


def test_point_cloud_has_no_boundary():
    rng = np.random.default_rng(0)
    model = Model.from_points(rng.normal(size=(50, 3)))
    assert not model.edge_mask.any()
    assert all(not model.get_vertex(i).neighbors for i in range(model.n_vertices))


def test_remove_interior_vertex_creates_boundary():
    model = Model.grid(7, 7, spacing=1.0)
    center = 3 * 7 + 3
    ring_positions = [model.get_vertex(j).coords for j in model.get_vertex(center).neighbors]
    far_interior = model.get_vertex(1 * 7 + 1).coords
    assert not model.get_vertex(center).is_edge

    model.remove_vertex(center)

    assert model.n_vertices == 48
    tree = model.vertex_tree
    for position in ring_positions:
        index, dist = tree.nearest(position)
        assert dist == pytest.approx(0.0)
        assert model.get_vertex(index).is_edge
    index, _ = tree.nearest(far_interior)
    assert not model.get_vertex(index).is_edge


def test_add_hole_removes_one_vertex():
    model = Model.grid(5, 5, seed=3)
    removed = model.add_hole()
    assert 0 <= removed < 25
    assert model.n_vertices == 24


def test_copy_is_independent():
    model = Model.grid(3, 3)
    clone = model.copy()
    clone.set_vertex(0, np.array([10.0, 10.0, 10.0]), np.array([0.0, 0.0, 1.0]))

    np.testing.assert_allclose(model.get_vertex(0).coords, [0.0, 0.0, 0.0])


def test_rotate_random_preserves_distances():
    model = Model.grid(4, 4, seed=5)
    before = model.get_points()
    R = model.rotate_random(np.deg2rad(30.0), np.deg2rad(10.0))
    after = model.get_points()

    np.testing.assert_allclose(after, before @ R.T, atol=1e-12)
    d_before = np.linalg.norm(before[:, None] - before[None], axis=2)
    d_after = np.linalg.norm(after[:, None] - after[None], axis=2)
    np.testing.assert_allclose(d_after, d_before, atol=1e-10)
    assert np.linalg.det(R) == pytest.approx(1.0)


def test_translate_random_moves_centroid_by_requested_length():
    model = Model.grid(4, 4, seed=6)
    before = model.get_average()
    t = model.translate_random(0.7)

    assert np.linalg.norm(t) == pytest.approx(0.7)
    np.testing.assert_allclose(model.get_average() - before, t, atol=1e-12)


def test_add_noise_moves_along_normals_only():
    model = Model.grid(5, 5, seed=7)
    before = model.get_points()
    model.add_noise(0.05)
    after = model.get_points()

    # Flat grid: normals are +z
    np.testing.assert_allclose(after[:, :2], before[:, :2])
    assert np.all(np.abs(after[:, 2] - before[:, 2]) <= 0.05)


def test_vertex_tree_tracks_moves():
    model = Model.grid(3, 3)
    index, _ = model.vertex_tree.nearest(np.array([100.0, 100.0, 0.0]))
    assert index == 8

    model.set_vertex(0, np.array([200.0, 200.0, 0.0]), np.array([0.0, 0.0, 1.0]))
    index, _ = model.vertex_tree.nearest(np.array([100.0, 100.0, 0.0]))
    assert index == 0


def test_set_vertex_on_point_without_normal_survives_copy():
    model = Model.from_points(np.eye(3))
    model.set_vertex(0, np.array([1.0, 0.0, 0.0]), np.array([0.0, 0.0, 1.0]))

    np.testing.assert_allclose(model.base_normals[0], [0.0, 0.0, 1.0])
    np.testing.assert_allclose(model.copy().get_vertex(0).normal, [0.0, 0.0, 1.0])


def test_set_vertex_zero_normal_clears_base_copies():
    model = _make_split_quad()
    model.set_vertex(1, np.array([1.0, 0.0, 0.0]), np.zeros(3))

    np.testing.assert_allclose(model.base_normals[[1, 3]], 0.0)
    np.testing.assert_allclose(model.copy().get_vertex(1).normal, 0.0)


def test_rotate_random_rotates_normals():
    model = Model.grid(3, 3, seed=8)
    R = model.rotate_random(np.deg2rad(45.0), np.deg2rad(20.0))

    expected = np.tile(R @ np.array([0.0, 0.0, 1.0]), (9, 1))
    np.testing.assert_allclose(model.get_normals(), expected, atol=1e-12)


def test_vertex_tree_k_nearest():
    model = Model.grid(4, 2, spacing=1.0)
    nearest = model.vertex_tree.k_nearest(np.array([0.1, 0.0, 0.0]), 3)

    assert nearest[0] == 0
    assert set(nearest[1:].tolist()) == {1, 4}
    # k is clamped to the number of points
    assert len(model.vertex_tree.k_nearest(np.zeros(3), 50)) == 8
