"""Core data models for subset selection and grid packing."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from cultist_circle.core.errors import InvalidParameterError


@dataclass(frozen=True)
class Item:
    """
    An inventory item that can be offered to the circle.

    Attributes:
        id:     Unique identifier.  Repeated entries with the same id are
                separate copies of the same item.
        value:  Amount counted toward the threshold (base value).
        cost:   Amount to minimise (market price).
        width:  Grid footprint in cells along x.
        height: Grid footprint in cells along y.
        name:   Display label, only used for output.
    """

    id: str
    value: float
    cost: float
    width: int = 1
    height: int = 1
    name: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidParameterError("Item.id must be non-empty")
        for attr in ("value", "cost"):
            v = getattr(self, attr)
            if not isinstance(v, (int, float)) or not math.isfinite(v) or v < 0:
                raise InvalidParameterError(
                    f"Item[{self.id}] {attr} must be a finite number >= 0, got {v!r}"
                )
        for attr in ("width", "height"):
            v = getattr(self, attr)
            if isinstance(v, bool) or not isinstance(v, int) or v < 1:
                raise InvalidParameterError(
                    f"Item[{self.id}] {attr} must be an integer >= 1, got {v!r}"
                )

    @property
    def label(self) -> str:
        return self.name or self.id

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "value": self.value,
                "cost": self.cost, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "Item":
        """Build an item, treating a missing or null width/height as 1."""
        width = d.get("width")
        height = d.get("height")
        return cls(
            id=str(d["id"]),
            value=float(d["value"]),
            cost=float(d["cost"]),
            width=1 if width is None else int(width),
            height=1 if height is None else int(height),
            name=str(d.get("name") or ""),
        )

    def __repr__(self) -> str:
        return (
            f"Item(id={self.id!r}, value={self.value:g}, cost={self.cost:g}, "
            f"{self.width}x{self.height})"
        )


@dataclass(frozen=True)
class InventoryEntry:
    """An item together with how many copies the player holds."""

    item: Item
    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise InvalidParameterError(
                f"InventoryEntry[{self.item.id}] count must be >= 0, got {self.count}"
            )


@dataclass(frozen=True)
class Placement:
    """
    One item's rectangle inside the grid.

    Attributes:
        x, y:       Top-left cell of the footprint.
        width:      Footprint width in cells.
        height:     Footprint height in cells.
        item_index: Index of the item in the list passed to the solver.
        name:       Item label, for debug output.
    """

    x: int
    y: int
    width: int
    height: int
    item_index: int
    name: str = ""

    @property
    def x_max(self) -> int:
        return self.x + self.width

    @property
    def y_max(self) -> int:
        return self.y + self.height

    def overlaps(self, other: "Placement") -> bool:
        """True when the two rectangles share at least one cell."""
        return (
            self.x < other.x_max and other.x < self.x_max
            and self.y < other.y_max and other.y < self.y_max
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width,
                "height": self.height, "item_index": self.item_index,
                "name": self.name}


@dataclass(frozen=True)
class SelectionResult:
    """
    Outcome of a subset selection.

    Attributes:
        subset:          Chosen items, in the order they appeared in the pool.
        total_value:     Sum of ``value`` over the subset.
        total_cost:      Sum of ``cost`` over the subset.
        threshold:       Threshold the search aimed for.
        strategy:        Name of the strategy that produced the result.
        meets_threshold: False only for a below-threshold fallback.
        partial:         True when a search budget ran out before completion.
        nodes_visited:   Search nodes expanded (0 for the DP).
    """

    subset: tuple[Item, ...]
    total_value: float
    total_cost: float
    threshold: float
    strategy: str
    meets_threshold: bool = True
    partial: bool = False
    nodes_visited: int = 0

    @classmethod
    def from_items(
        cls,
        items: list[Item] | tuple[Item, ...],
        threshold: float,
        strategy: str,
        **kwargs: Any,
    ) -> "SelectionResult":
        subset = tuple(items)
        total_value = sum(it.value for it in subset)
        kwargs.setdefault("meets_threshold", total_value >= threshold)
        return cls(
            subset=subset,
            total_value=total_value,
            total_cost=sum(it.cost for it in subset),
            threshold=threshold,
            strategy=strategy,
            **kwargs,
        )

    @property
    def item_ids(self) -> list[str]:
        return [it.id for it in self.subset]

    def to_dict(self) -> dict:
        return {
            "items": [it.to_dict() for it in self.subset],
            "total_value": self.total_value,
            "total_cost": self.total_cost,
            "threshold": self.threshold,
            "strategy": self.strategy,
            "meets_threshold": self.meets_threshold,
            "partial": self.partial,
            "nodes_visited": self.nodes_visited,
        }


@dataclass(frozen=True)
class FitResult:
    """
    Verdict of the grid packing solver.

    Attributes:
        fit:         Whether every item was placed.
        placements:  One placement per item when ``fit`` is True.
        grid:        Occupancy grid (rows = y), 0 = empty, k+1 = item k.
                     Only filled in on request.
        tried_count: Number of placement attempts made.
        reason:      Why the items do not fit (None on success).
        partial:     True when the search budget ran out.
    """

    fit: bool
    placements: tuple[Placement, ...] = ()
    grid: np.ndarray | None = field(default=None, compare=False, repr=False)
    tried_count: int = 0
    reason: str | None = None
    partial: bool = False

    def __bool__(self) -> bool:
        return self.fit

    def to_dict(self) -> dict:
        return {
            "fit": self.fit,
            "placements": [p.to_dict() for p in self.placements],
            "tried_count": self.tried_count,
            "reason": self.reason,
            "partial": self.partial,
        }
