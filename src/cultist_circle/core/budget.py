"""Node-count and wall-clock budget shared by the backtracking searches."""

from __future__ import annotations

import time

from cultist_circle.core.errors import InvalidParameterError


class SearchBudget:
    """
    Caps how much work a search may do.

    Each visited search node calls :meth:`tick`.  Once either limit is hit the
    budget stays exhausted and every further ``tick`` returns False, so the
    recursion can unwind and hand back its best result so far.

    Args:
        max_nodes: Maximum number of nodes to visit (None = unlimited).
        time_limit: Wall-clock limit in seconds (None = unlimited).
    """

    __slots__ = ("max_nodes", "time_limit", "nodes", "exhausted", "_started")

    def __init__(
        self,
        max_nodes: int | None = None,
        time_limit: float | None = None,
    ) -> None:
        if max_nodes is not None and max_nodes < 0:
            raise InvalidParameterError(f"max_nodes must be >= 0, got {max_nodes}")
        if time_limit is not None and time_limit < 0:
            raise InvalidParameterError(f"time_limit must be >= 0, got {time_limit}")
        self.max_nodes = max_nodes
        self.time_limit = time_limit
        self.nodes = 0
        self.exhausted = False
        self._started = time.perf_counter()

    @classmethod
    def from_limits(
        cls,
        node_budget: int | None,
        time_limit_ms: float | None,
    ) -> "SearchBudget | None":
        """Build a budget from settings values; None when both are unset."""
        if node_budget is None and time_limit_ms is None:
            return None
        seconds = None if time_limit_ms is None else time_limit_ms / 1000.0
        return cls(max_nodes=node_budget, time_limit=seconds)

    def tick(self) -> bool:
        """Count one node.  Returns False once the budget is used up."""
        if self.exhausted:
            return False
        if self.max_nodes is not None and self.nodes >= self.max_nodes:
            self.exhausted = True
            return False
        # The clock is only read every 256 nodes.
        if self.time_limit is not None and (self.nodes & 0xFF) == 0:
            if self.elapsed() > self.time_limit:
                self.exhausted = True
                return False
        self.nodes += 1
        return True

    def elapsed(self) -> float:
        """Seconds since the budget was created."""
        return time.perf_counter() - self._started

    def __repr__(self) -> str:
        return (
            f"SearchBudget(nodes={self.nodes}/{self.max_nodes}, "
            f"time_limit={self.time_limit}, exhausted={self.exhausted})"
        )
