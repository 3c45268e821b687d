"""
Pool preparation for the branch-and-bound selector.

Counted inventory is expanded into repeated entries and large pools are
trimmed to a fixed-size candidate set before searching.  Trimming is an
approximation: the search is only optimal over the trimmed pool.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Mapping

from cultist_circle.config import (
    MAX_POOL_SIZE,
    POOL_BOTTOM,
    POOL_MIDDLE,
    POOL_TOP,
    REWARD_TIER_BOUNDS,
)
from cultist_circle.core.errors import InvalidParameterError
from cultist_circle.core.models import InventoryEntry, Item

logger = logging.getLogger(__name__)


def build_inventory(
    items: Iterable[Item],
    counts: Mapping[str, int],
    overrides: Mapping[str, int] | None = None,
) -> list[InventoryEntry]:
    """
    Attach held counts to known items.

    Args:
        items: Known items; ids not present here are ignored.
        counts: Detected count per item id.
        overrides: Manual counts that replace (or add to) the detected ones.

    Returns:
        Entries with a positive count, highest value first.
    """
    by_id = {it.id: it for it in items}
    merged: dict[str, int] = dict(counts)
    if overrides:
        merged.update(overrides)

    inventory = [
        InventoryEntry(item=by_id[item_id], count=int(count))
        for item_id, count in merged.items()
        if item_id in by_id and count > 0
    ]
    inventory.sort(key=lambda e: e.item.value, reverse=True)
    return inventory


def expand_inventory(entries: Iterable[InventoryEntry], max_items: int) -> list[Item]:
    """
    Repeat each item once per held copy.

    No subset can use more than ``max_items`` copies, so counts are capped
    there.
    """
    expanded: list[Item] = []
    for entry in entries:
        expanded.extend([entry.item] * min(entry.count, max_items))
    return expanded


def trim_pool(
    items: list[Item],
    cap: int = MAX_POOL_SIZE,
    top: int = POOL_TOP,
    middle: int = POOL_MIDDLE,
    bottom: int = POOL_BOTTOM,
) -> list[Item]:
    """
    Bound the candidate pool to at most ``cap`` items.

    Pools within the cap are returned unchanged (as a new list).  Larger
    pools are sorted by value, highest first, and reduced to the ``top``
    highest, the ``middle`` that follow, and the ``bottom`` lowest.

    Args:
        items: Candidate pool.
        cap: Maximum pool size kept.
        top, middle, bottom: Sizes of the three bands.

    Returns:
        The trimmed pool, highest value first when trimming happened.
    """
    if cap < 1:
        raise InvalidParameterError(f"cap must be >= 1, got {cap}")
    if len(items) <= cap:
        return list(items)

    ranked = sorted(items, key=lambda it: it.value, reverse=True)
    head = ranked[:top + middle]
    tail_start = max(len(head), len(ranked) - bottom)
    combined = head + ranked[tail_start:]
    logger.debug("Trimmed pool from %d to %d candidates", len(items), min(cap, len(combined)))
    return combined[:cap]


def reward_tier_upper_bound(threshold: float) -> float:
    """Exclusive upper bound of the reward bracket that ``threshold`` falls in."""
    for bound in REWARD_TIER_BOUNDS:
        if threshold < bound:
            return float(bound)
    return math.inf
