"""
Argument checks shared by the selectors and the packing solver.

All checks are stateless functions that return the normalised value or
raise InvalidParameterError.
"""

from __future__ import annotations

import math
from numbers import Integral, Real

from cultist_circle.core.errors import InvalidParameterError


def check_threshold(threshold: float) -> float:
    """Threshold must be a finite number >= 0."""
    if isinstance(threshold, bool) or not isinstance(threshold, Real):
        raise InvalidParameterError(f"threshold must be a number, got {threshold!r}")
    if not math.isfinite(threshold) or threshold < 0:
        raise InvalidParameterError(f"threshold must be finite and >= 0, got {threshold}")
    return float(threshold)


def check_max_items(max_items: int) -> int:
    """max_items must be an integer >= 0 (0 is valid and selects nothing)."""
    if isinstance(max_items, bool) or not isinstance(max_items, Integral):
        raise InvalidParameterError(f"max_items must be an integer, got {max_items!r}")
    if max_items < 0:
        raise InvalidParameterError(f"max_items must be >= 0, got {max_items}")
    return int(max_items)


def check_grid(grid_width: int, grid_height: int) -> None:
    """Grid dimensions must be positive integers."""
    for name, v in (("grid_width", grid_width), ("grid_height", grid_height)):
        if isinstance(v, bool) or not isinstance(v, Integral) or v < 1:
            raise InvalidParameterError(f"{name} must be an integer >= 1, got {v!r}")
