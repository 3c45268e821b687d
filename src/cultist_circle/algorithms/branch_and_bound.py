"""
Branch-and-bound selector for large or expanded pools.

Algorithm:
  1. Trim the pool to a bounded candidate set (see ``pool.trim_pool``).
  2. Order candidates by value, highest first; copies of the same item sit
     next to each other and are expanded as a multiset, so five identical
     copies do not produce five identical branches.
  3. Depth-first search over increasing candidate indices:
       - a node at or above the threshold is a solution and is never
         extended (extra items only add cost);
       - a node below the threshold is a fallback candidate and is extended
         while slots remain.
  4. Prune a candidate when the running cost plus its cost cannot beat the
     best solution kept so far, and stop scanning once the largest
     remaining values can no longer reach the threshold.

Results are optimal over the trimmed pool only.  A SearchBudget caps the
work; on exhaustion the best result so far is returned flagged ``partial``.
"""

from __future__ import annotations

import heapq
import logging
import random
from itertools import accumulate
from typing import Optional, Sequence

from cultist_circle.algorithms.pool import (
    expand_inventory,
    reward_tier_upper_bound,
    trim_pool,
)
from cultist_circle.algorithms.validation import check_max_items, check_threshold
from cultist_circle.config import MAX_POOL_SIZE
from cultist_circle.core.budget import SearchBudget
from cultist_circle.core.models import InventoryEntry, Item, SelectionResult

logger = logging.getLogger(__name__)

STRATEGY_NAME = "branch_and_bound"


def branch_and_bound_select(
    items: Sequence[Item],
    threshold: float,
    max_items: int,
    *,
    pool_cap: int = MAX_POOL_SIZE,
    upper_bound: Optional[float] = None,
    rng: Optional[random.Random] = None,
    variety: int = 1,
    budget: Optional[SearchBudget] = None,
) -> Optional[SelectionResult]:
    """
    Search for the cheapest subset of at most ``max_items`` items reaching
    ``threshold``.

    Args:
        items: Candidate pool (may hold repeated entries).  Never mutated.
        threshold: Value the subset must reach.
        max_items: Maximum subset size.
        pool_cap: Size the pool is trimmed to before searching.
        upper_bound: Totals at or above this are rejected (reward bracket).
        rng: With ``variety > 1``, sample one of the cheapest distinct
            solutions instead of returning the first minimum.
        variety: Number of cheapest solutions kept for sampling.
        budget: Optional node/time budget.

    Returns:
        The best solution; if none reaches the threshold, the highest-value
        subset found with ``meets_threshold=False``; None when not even one
        item with positive value can be chosen.
    """
    threshold = check_threshold(threshold)
    max_items = check_max_items(max_items)
    if not items or max_items == 0:
        return None

    first_pos: dict[int, int] = {}
    for pos, it in enumerate(items):
        first_pos.setdefault(id(it), pos)

    pool = trim_pool(list(items), cap=pool_cap)
    group: dict[str, int] = {}
    for it in pool:
        group.setdefault(it.id, len(group))
    order = sorted(pool, key=lambda it: (-it.value, group[it.id]))

    n = len(order)
    values = [it.value for it in order]
    costs = [it.cost for it in order]
    prefix = [0.0, *accumulate(values)]
    keep = variety if (rng is not None and variety > 1) else 1

    # Max-heap of kept solutions: (-cost, -seq, ids, indices).
    kept: list[tuple[float, int, tuple[str, ...], tuple[int, ...]]] = []
    seen_ids: set[tuple[str, ...]] = set()
    best_below: tuple[float, tuple[int, ...]] = (0.0, ())
    chosen: list[int] = []
    nodes = 0
    seq = 0

    def cost_limit() -> float:
        return -kept[0][0] if len(kept) >= keep else float("inf")

    def record_solution(cost: float) -> None:
        nonlocal seq
        ids = tuple(order[i].id for i in chosen)
        if ids in seen_ids:
            return
        seen_ids.add(ids)
        seq += 1
        entry = (-cost, -seq, ids, tuple(chosen))
        if len(kept) < keep:
            heapq.heappush(kept, entry)
        else:
            _, _, old_ids, _ = heapq.heappushpop(kept, entry)
            seen_ids.discard(old_ids)

    def record_fallback(total: float, indices: tuple[int, ...]) -> None:
        nonlocal best_below
        if total > best_below[0]:
            best_below = (total, indices)

    def dfs(start: int, total: float, cost: float) -> bool:
        """Returns False once the budget is exhausted."""
        nonlocal nodes
        if budget is not None and not budget.tick():
            return False
        nodes += 1

        if chosen and total >= threshold:
            if upper_bound is None or total < upper_bound:
                if cost < cost_limit():
                    record_solution(cost)
            return True

        record_fallback(total, tuple(chosen))
        slots = max_items - len(chosen)
        if slots == 0:
            return True

        for i in range(start, n):
            reach = prefix[min(n, i + slots)] - prefix[i]
            if total + reach < threshold:
                # Values only shrink from here on; the best this branch can
                # do is take the next `slots` candidates.
                record_fallback(total + reach, (*chosen, *range(i, min(n, i + slots))))
                break
            if i > start and order[i] == order[i - 1]:
                continue
            if cost + costs[i] >= cost_limit():
                continue
            chosen.append(i)
            ok = dfs(i + 1, total + values[i], cost + costs[i])
            chosen.pop()
            if not ok:
                return False
        return True

    dfs(0, 0.0, 0.0)
    partial = budget is not None and budget.exhausted
    if partial:
        logger.warning(
            "Branch-and-bound budget exhausted after %d nodes; returning best so far",
            nodes,
        )
    logger.debug("Branch-and-bound: %d candidates, %d nodes, %d solutions kept",
                 n, nodes, len(kept))

    def to_result(indices: tuple[int, ...], meets: bool) -> SelectionResult:
        subset = sorted((order[i] for i in indices), key=lambda it: first_pos[id(it)])
        return SelectionResult.from_items(
            subset, threshold, STRATEGY_NAME,
            meets_threshold=meets, partial=partial, nodes_visited=nodes,
        )

    if kept:
        ranked = sorted(kept, key=lambda e: (-e[0], -e[1]))
        pick = ranked[rng.randrange(len(ranked))] if keep > 1 else ranked[0]
        return to_result(pick[3], True)

    if best_below[1]:
        return to_result(best_below[1], False)
    return None


def pick_inventory_combo(
    entries: Sequence[InventoryEntry],
    threshold: float,
    max_items: int,
    *,
    use_reward_tiers: bool = True,
    **kwargs,
) -> Optional[SelectionResult]:
    """
    Choose a combination from counted inventory.

    Expands the counts into repeated entries and runs branch-and-bound,
    keeping the total inside the threshold's reward bracket when
    ``use_reward_tiers`` is set.  Falls back to the highest-value subset
    when nothing reaches the threshold.
    """
    max_items = check_max_items(max_items)
    if not entries or max_items == 0:
        return None
    expanded = expand_inventory(entries, max_items)
    if use_reward_tiers:
        kwargs.setdefault("upper_bound", reward_tier_upper_bound(threshold))
    return branch_and_bound_select(expanded, threshold, max_items, **kwargs)
