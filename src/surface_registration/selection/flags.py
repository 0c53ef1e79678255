"""
Point selection flags.

Named boolean filters applied per candidate vertex during point selection.
The legacy integer encoding is kept for configuration files that still
store a bitmask.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

NO_EDGES = 1 << 0
RANDOM = 1 << 1
EVERY_SECOND = 1 << 2
EVERY_THIRD = 1 << 3
EVERY_FOURTH = 1 << 4
EVERY_FIFTH = 1 << 5

_BITS = {
    "no_edges": NO_EDGES,
    "random": RANDOM,
    "every_second": EVERY_SECOND,
    "every_third": EVERY_THIRD,
    "every_fourth": EVERY_FOURTH,
    "every_fifth": EVERY_FIFTH,
}

# Stride filters keep indices that are NOT divisible by the stride
STRIDES = {
    "every_second": 2,
    "every_third": 3,
    "every_fourth": 4,
    "every_fifth": 5,
}


@dataclass(frozen=True)
class SelectionFlags:
    """
    Filters composed during point selection, evaluated in field order.

    Attributes:
        no_edges: Drop vertices classified as boundary
        random: Keep each candidate with probability 0.5
        every_second: Keep indices not divisible by 2
        every_third: Keep indices not divisible by 3
        every_fourth: Keep indices not divisible by 4
        every_fifth: Keep indices not divisible by 5
    """

    no_edges: bool = False
    random: bool = False
    every_second: bool = False
    every_third: bool = False
    every_fourth: bool = False
    every_fifth: bool = False

    @classmethod
    def from_bitmask(cls, mask: int) -> "SelectionFlags":
        if mask < 0:
            raise ValueError(f"Selection bitmask must be non-negative, got {mask}")
        unknown = mask & ~sum(_BITS.values())
        if unknown:
            raise ValueError(f"Unknown selection flag bits: {unknown:#x}")
        return cls(**{name: bool(mask & bit) for name, bit in _BITS.items()})

    def to_bitmask(self) -> int:
        mask = 0
        for name, bit in _BITS.items():
            if getattr(self, name):
                mask |= bit
        return mask

    @property
    def strides(self) -> tuple:
        """Active stride divisors in evaluation order."""
        return tuple(d for name, d in STRIDES.items() if getattr(self, name))

    def describe(self) -> str:
        """Human-readable flag list, e.g. 'NO_EDGES | EVERY_SECOND'."""
        active = [f.name.upper() for f in fields(self) if getattr(self, f.name)]
        return " | ".join(active) if active else "NONE"
