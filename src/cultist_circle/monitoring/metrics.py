"""Metrics tracking and export for optimizer runs.

Provides a dataclass describing one selection run and utilities for
exporting it to JSON and rendering a console summary.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cultist_circle.core.models import FitResult, SelectionResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunMetrics:
    """Metrics for a single selection run.

    Attributes:
        strategy: Strategy requested for the run.
        pool_size: Number of items offered to the selector.
        threshold: Value the selection had to reach.
        max_items: Maximum subset size.
        found: Whether a subset reaching the threshold was found.
        total_value: Value of the chosen subset.
        total_cost: Cost of the chosen subset.
        item_ids: Ids of the chosen items.
        strategy_used: Strategy that produced the result.
        nodes_visited: Search nodes expanded (branch-and-bound only).
        partial: Whether a search budget ran out.
        fit: Grid check verdict (None when not checked).
        fit_reason: Why the subset does not fit, if it does not.
        runtime_seconds: Wall-clock runtime.
        started_at: Run start timestamp.
    """

    strategy: str
    pool_size: int
    threshold: float
    max_items: int
    found: bool = False
    total_value: float = 0.0
    total_cost: float = 0.0
    item_ids: list[str] = field(default_factory=list)
    strategy_used: str | None = None
    nodes_visited: int = 0
    partial: bool = False
    fit: bool | None = None
    fit_reason: str | None = None
    runtime_seconds: float = 0.0
    started_at: datetime = field(default_factory=_utcnow)

    def record_selection(self, result: SelectionResult | None) -> None:
        """Copy the outcome of a selection into the metrics.

        Args:
            result: Selector output; None means nothing reached the threshold.

        Example:
            >>> m = RunMetrics("auto", 4, 100.0, 2)
            >>> m.record_selection(None)
            >>> m.found
            False
        """
        if result is None:
            self.found = False
            return
        self.found = result.meets_threshold
        self.total_value = result.total_value
        self.total_cost = result.total_cost
        self.item_ids = result.item_ids
        self.strategy_used = result.strategy
        self.nodes_visited = result.nodes_visited
        self.partial = result.partial

    def record_fit(self, result: FitResult) -> None:
        """Copy a grid check verdict into the metrics."""
        self.fit = result.fit
        self.fit_reason = result.reason
        self.partial = self.partial or result.partial

    def mark_complete(self) -> None:
        """Calculate the runtime since ``started_at``."""
        self.runtime_seconds = (_utcnow() - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamp.

        Returns:
            Dictionary representation with started_at as ISO string.

        Example:
            >>> m = RunMetrics("auto", 4, 100.0, 2)
            >>> d = m.to_dict()
            >>> d["pool_size"]
            4
        """
        d = asdict(self)
        d["started_at"] = self.started_at.isoformat()
        return d


def export_to_json(
    metrics: RunMetrics,
    output_path: Path | str,
    selection: SelectionResult | None = None,
    fit: FitResult | None = None,
) -> None:
    """Export run metrics, plus the full selection and fit results, to JSON.

    Args:
        metrics: RunMetrics instance to export.
        output_path: Path to output JSON file.
        selection: Selection to include in full (items and totals).
        fit: Grid check to include in full (placements).
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {"metrics": metrics.to_dict()}
    data["selection"] = selection.to_dict() if selection is not None else None
    data["fit"] = fit.to_dict() if fit is not None else None

    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def print_summary(metrics: RunMetrics) -> str:
    """Generate human-readable summary of a run.

    Args:
        metrics: RunMetrics instance to summarize.

    Returns:
        Formatted multi-line summary string.

    Example:
        >>> m = RunMetrics("auto", 4, 100.0, 2)
        >>> "Strategy: auto" in print_summary(m)
        True
    """
    if metrics.fit is None:
        fit_line = "not checked"
    elif metrics.fit:
        fit_line = "fits"
    else:
        fit_line = f"does not fit ({metrics.fit_reason})"

    lines = [
        "=" * 60,
        f"Strategy: {metrics.strategy}"
        + (f" -> {metrics.strategy_used}" if metrics.strategy_used else ""),
        f"Pool: {metrics.pool_size} items, max {metrics.max_items} per circle",
        "=" * 60,
        f"Threshold: {metrics.threshold:,.0f}",
        f"Result: {'found' if metrics.found else 'not found'}"
        + (" (partial search)" if metrics.partial else ""),
    ]
    if metrics.item_ids:
        lines += [
            f"  Items: {', '.join(metrics.item_ids)}",
            f"  Value: {metrics.total_value:,.0f}",
            f"  Cost:  {metrics.total_cost:,.0f}",
        ]
    lines += [
        f"Nodes visited: {metrics.nodes_visited}",
        f"Grid: {fit_line}",
        "",
        f"Runtime: {metrics.runtime_seconds:.3f} seconds",
        f"Started: {metrics.started_at.isoformat()}",
        "=" * 60,
    ]
    return "\n".join(lines)
