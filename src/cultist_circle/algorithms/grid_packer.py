"""
Grid packing feasibility: can these footprints share the circle grid?

Algorithm:
  1. Reject any item wider or taller than the grid (no rotation), and any
     set whose total footprint exceeds the grid area; no search is run.
  2. Backtrack over items in input order.  For item i, scan origins
     row-major (y top to bottom, x left to right); when the footprint is free,
     place it and recurse into item i+1; on failure undo and try the next
     origin.
  3. The first complete arrangement wins.  This answers yes/no with a
     witness; it does not look for the most compact layout.

Whether a multiset of items fits does not depend on input order because the
search is exhaustive; the arrangement returned may.

Usage:
    result = fits(items)               # 9x6 by default
    if result.fit:
        for p in result.placements: ...
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from cultist_circle.algorithms.validation import check_grid
from cultist_circle.config import GRID_HEIGHT, GRID_WIDTH
from cultist_circle.core.budget import SearchBudget
from cultist_circle.core.models import FitResult, Item, Placement

logger = logging.getLogger(__name__)

REASON_TOO_LARGE = "{label} too big for {w}x{h} grid"
REASON_AREA = "items cover more cells than the grid"
REASON_NO_ARRANGEMENT = "no arrangement found"
REASON_BUDGET = "search budget exhausted"


class OccupancyGrid:
    """
    Cell occupancy of the placement grid.

    Internally a 2D int array (rows = y, columns = x) where 0 marks an empty
    cell and ``k + 1`` marks a cell covered by item ``k``.
    """

    __slots__ = ("width", "height", "cells", "placements")

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.cells: np.ndarray = np.zeros((height, width), dtype=np.int32)
        self.placements: list[Placement] = []

    # ── Queries ──────────────────────────────────────────────────────────

    def can_place(self, x: int, y: int, w: int, h: int) -> bool:
        """True when the footprint is inside the grid and every cell is free."""
        if x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            return False
        return not self.cells[y:y + h, x:x + w].any()

    def free_cells(self) -> int:
        return int(np.count_nonzero(self.cells == 0))

    # ── Mutation ─────────────────────────────────────────────────────────

    def place(self, placement: Placement) -> None:
        p = placement
        self.cells[p.y:p.y_max, p.x:p.x_max] = p.item_index + 1
        self.placements.append(p)

    def remove_last(self) -> Placement:
        p = self.placements.pop()
        self.cells[p.y:p.y_max, p.x:p.x_max] = 0
        return p

    def copy(self) -> "OccupancyGrid":
        clone = OccupancyGrid(self.width, self.height)
        clone.cells = self.cells.copy()
        clone.placements = list(self.placements)  # Placement is frozen
        return clone

    def __repr__(self) -> str:
        return (
            f"OccupancyGrid({self.width}x{self.height}, "
            f"items={len(self.placements)}, free={self.free_cells()})"
        )


def fits(
    items: Sequence[Item],
    grid_width: int = GRID_WIDTH,
    grid_height: int = GRID_HEIGHT,
    *,
    budget: Optional[SearchBudget] = None,
    with_grid: bool = False,
) -> FitResult:
    """
    Decide whether every item can be placed in the grid without overlap.

    Args:
        items: Items to place; only ``width``/``height``/``label`` are used.
        grid_width: Grid columns.
        grid_height: Grid rows.
        budget: Optional budget; one tick per placement attempt.
        with_grid: Also return the occupancy array on success.

    Returns:
        FitResult with placements on success, or a reason on failure.
    """
    check_grid(grid_width, grid_height)

    for it in items:
        if it.width > grid_width or it.height > grid_height:
            return FitResult(
                fit=False,
                reason=REASON_TOO_LARGE.format(label=it.label, w=grid_width, h=grid_height),
            )
    if sum(it.area for it in items) > grid_width * grid_height:
        return FitResult(fit=False, reason=REASON_AREA)

    grid = OccupancyGrid(grid_width, grid_height)
    tried = 0
    out_of_budget = False

    def backtrack(i: int) -> bool:
        nonlocal tried, out_of_budget
        if i == len(items):
            return True
        it = items[i]
        for y in range(grid_height - it.height + 1):
            for x in range(grid_width - it.width + 1):
                if budget is not None and not budget.tick():
                    out_of_budget = True
                    return False
                tried += 1
                if grid.can_place(x, y, it.width, it.height):
                    grid.place(Placement(x, y, it.width, it.height, i, it.label))
                    if backtrack(i + 1):
                        return True
                    if out_of_budget:
                        return False
                    grid.remove_last()
        return False

    solved = backtrack(0)
    logger.debug("Grid packing of %d items: fit=%s after %d attempts", len(items), solved, tried)

    if solved:
        return FitResult(
            fit=True,
            placements=tuple(grid.placements),
            grid=grid.cells.copy() if with_grid else None,
            tried_count=tried,
        )
    if out_of_budget:
        logger.warning("Grid packing budget exhausted after %d attempts", tried)
        return FitResult(fit=False, tried_count=tried, reason=REASON_BUDGET, partial=True)
    return FitResult(fit=False, tried_count=tried, reason=REASON_NO_ARRANGEMENT)


def items_fit(
    items: Sequence[Item],
    grid_width: int = GRID_WIDTH,
    grid_height: int = GRID_HEIGHT,
) -> bool:
    """Boolean shortcut for :func:`fits`."""
    return fits(items, grid_width, grid_height).fit


def render_grid(result: FitResult, grid_width: int = GRID_WIDTH, grid_height: int = GRID_HEIGHT) -> str:
    """
    Draw a fit result as text, one line per row.

    Empty cells are ``.``; covered cells show the item index (0-9, then a-z).
    """
    symbols = "0123456789abcdefghijklmnopqrstuvwxyz"
    rows = [["."] * grid_width for _ in range(grid_height)]
    for p in result.placements:
        mark = symbols[p.item_index % len(symbols)]
        for y in range(p.y, p.y_max):
            for x in range(p.x, p.x_max):
                rows[y][x] = mark
    return "\n".join("".join(r) for r in rows)
