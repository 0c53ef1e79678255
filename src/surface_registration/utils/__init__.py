"""
Utility Functions Module

Common helpers used across the registration package:
- Logging setup
- Rigid transform helpers
- Typed configuration (import from .config; not re-exported here)
"""

from .logging import setup_logger, set_package_level
from .transforms import (
    rotation_x,
    rotation_y,
    rotation_z,
    rotation_from_euler_xyz,
    axis_angle_rotation,
    rotation_between,
    random_rotation,
    make_transform,
    apply_transformation,
    rotation_angle,
)

__all__ = [
    "setup_logger",
    "set_package_level",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "rotation_from_euler_xyz",
    "axis_angle_rotation",
    "rotation_between",
    "random_rotation",
    "make_transform",
    "apply_transformation",
    "rotation_angle",
]
