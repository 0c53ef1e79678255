"""
Rigid Transform Helpers

Small numpy helpers shared by the mesh and ICP code: elementary rotations,
the minimal rotation between two directions and 4x4 homogeneous transforms.
All rotation matrices act on column vectors (x' = R @ x); point arrays are
N x 3 and are transformed as points @ R.T + t.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


def rotation_x(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rotation_y(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rotation_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def rotation_from_euler_xyz(alpha: float, beta: float, gamma: float) -> np.ndarray:
    """Composition Rx(alpha) @ Ry(beta) @ Rz(gamma)."""
    return rotation_x(alpha) @ rotation_y(beta) @ rotation_z(gamma)


def axis_angle_rotation(axis: np.ndarray, angle: float) -> np.ndarray:
    """
    Rotation of `angle` radians about `axis` (Rodrigues' formula).

    Args:
        axis: 3-vector, need not be normalized
        angle: Rotation angle in radians

    Returns:
        3x3 rotation matrix. Identity if the axis has zero length.
    """
    axis = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(axis)
    if norm == 0.0:
        return np.eye(3)
    k = axis / norm
    K = np.array([
        [0.0, -k[2], k[1]],
        [k[2], 0.0, -k[0]],
        [-k[1], k[0], 0.0],
    ])
    return np.eye(3) + np.sin(angle) * K + (1.0 - np.cos(angle)) * (K @ K)


def rotation_between(a: np.ndarray, b: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """
    Minimal rotation carrying direction `a` onto direction `b`.

    Zero-length inputs yield the identity. Antiparallel inputs rotate by pi
    about an arbitrary axis orthogonal to `a`.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    na = np.linalg.norm(a)
    nb = np.linalg.norm(b)
    if na < eps or nb < eps:
        return np.eye(3)
    a = a / na
    b = b / nb

    cos_theta = float(np.clip(np.dot(a, b), -1.0, 1.0))
    axis = np.cross(a, b)
    sin_theta = float(np.linalg.norm(axis))

    if sin_theta < eps:
        if cos_theta > 0.0:
            return np.eye(3)
        # Antiparallel: any axis orthogonal to a will do
        helper = np.array([1.0, 0.0, 0.0]) if abs(a[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
        ortho = np.cross(a, helper)
        return axis_angle_rotation(ortho, np.pi)

    return axis_angle_rotation(axis, float(np.arctan2(sin_theta, cos_theta)))


def random_rotation(
    rng: np.random.Generator,
    max_angle: float,
    min_angle: float = 0.0,
) -> np.ndarray:
    """
    Rotation about a uniformly random axis by an angle drawn from [min_angle, max_angle]
    with a random sign.
    """
    axis = rng.normal(size=3)
    angle = rng.uniform(min_angle, max_angle)
    if rng.random() < 0.5:
        angle = -angle
    return axis_angle_rotation(axis, angle)


def make_transform(R: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Build a 4x4 homogeneous transform from rotation and translation."""
    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = t
    return T


def apply_transformation(
    points: np.ndarray,
    transform: np.ndarray,
    rotate_only: bool = False,
) -> np.ndarray:
    """
    Apply a 4x4 transform to an N x 3 array.

    Args:
        points: Points (or normals) N x 3
        transform: 4x4 homogeneous transform
        rotate_only: If True, ignore translation (use for normals)

    Returns:
        Transformed N x 3 array.
    """
    if points.size == 0:
        return points
    R = transform[:3, :3]
    out = points @ R.T
    if not rotate_only:
        out = out + transform[:3, 3]
    return out


def rotation_angle(R: np.ndarray) -> float:
    """Rotation angle (radians) of a 3x3 rotation matrix."""
    cos_theta = max(min((float(np.trace(R)) - 1.0) * 0.5, 1.0), -1.0)
    return float(np.arccos(cos_theta))


def normalize_rows(vectors: np.ndarray, eps: Optional[float] = 1e-12) -> np.ndarray:
    """Normalize each row; rows shorter than eps are left as zeros."""
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    out = np.zeros_like(vectors, dtype=float)
    mask = norms[:, 0] > eps
    out[mask] = vectors[mask] / norms[mask]
    return out
