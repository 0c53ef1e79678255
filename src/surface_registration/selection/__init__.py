"""
Point Selection Module

Chooses which source vertices take part in an ICP step: named flag filters,
ordered percentage subsampling and Poisson-disk spatial subsampling.
"""

from .flags import SelectionFlags
from .point_selector import (
    PointSelector,
    RandomPointSelector,
    select_points,
    get_selection_statistics,
)
from .poisson_disk import (
    PoissonDiskSampler,
    PoissonDiskPointSelector,
    estimate_poisson_radius,
)

__all__ = [
    "SelectionFlags",
    "PointSelector",
    "RandomPointSelector",
    "select_points",
    "get_selection_statistics",
    "PoissonDiskSampler",
    "PoissonDiskPointSelector",
    "estimate_poisson_radius",
]
