"""
Exact selector: bounded 0/1 knapsack DP over value buckets.

Algorithm:
  1. Bucket every item value to ``value * value_scale``; the target is
     ``threshold * value_scale`` and the table covers ``0 .. target + slack``.
     Both must be whole numbers at that scale, otherwise the table would
     round values and lose feasible subsets; such input is rejected.
  2. ``dp[c][b]`` = cheapest way to reach bucket ``b`` with exactly ``c``
     distinct items.  Sums beyond the last bucket are clamped into it, so
     large overshoots are still counted.
  3. Items are folded in one at a time; every count row is updated from the
     previous row in a single vectorised step, which keeps each item used
     at most once.
  4. The answer is the cheapest cell with ``c >= 1`` and ``b >= target``.
     Ties go to fewer items, then the lower bucket.
  5. The subset is rebuilt backwards from one "improved" bit per
     (item, count, bucket), stored packed.

Time and space are O(items x max_items x (threshold + slack)); only use
this for small slot counts and value ranges up to a few hundred thousand.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Optional, Sequence

import numpy as np

from cultist_circle.algorithms.validation import check_max_items, check_threshold
from cultist_circle.config import DEFAULT_DP_SLACK
from cultist_circle.core.errors import InvalidParameterError
from cultist_circle.core.models import Item, SelectionResult

logger = logging.getLogger(__name__)

STRATEGY_NAME = "knapsack_dp"


def table_cells(
    threshold: float,
    max_items: int,
    slack: int = DEFAULT_DP_SLACK,
    value_scale: int = 1,
) -> int:
    """Number of cells the DP table needs for these parameters."""
    return max_items * (math.ceil(threshold * value_scale) + slack + 1)


def to_bucket(value: float, value_scale: int = 1) -> Optional[int]:
    """``value * value_scale`` as an int, or None when it is not whole."""
    scaled = value * value_scale
    nearest = round(scaled)
    if abs(scaled - nearest) > 1e-9 * max(1.0, abs(scaled)):
        return None
    return int(nearest)


def dp_supports(items: Sequence[Item], threshold: float, value_scale: int = 1) -> bool:
    """True when the threshold and every value are whole at ``value_scale``."""
    return to_bucket(threshold, value_scale) is not None and all(
        to_bucket(it.value, value_scale) is not None for it in items
    )


def knapsack_dp_select(
    items: Sequence[Item],
    threshold: float,
    max_items: int,
    *,
    slack: int = DEFAULT_DP_SLACK,
    rng: Optional[random.Random] = None,
    variety: int = 5,
    max_cells: Optional[int] = None,
    value_scale: int = 1,
) -> Optional[SelectionResult]:
    """
    Pick the cheapest subset of at most ``max_items`` items whose value
    reaches ``threshold``.

    Args:
        items: Candidate pool.  Never mutated.
        threshold: Value the subset must reach.
        max_items: Maximum subset size.
        slack: Buckets kept above the target before clamping.
        rng: When given, one of the ``variety`` cheapest table cells is
            sampled instead of always returning the first minimum.
        variety: Number of cheapest cells to sample from (with ``rng``).
        max_cells: Refuse tables larger than this many cells.
        value_scale: Buckets per unit of value (10 for one decimal place).

    Returns:
        SelectionResult, or None when no subset reaches the threshold.

    Raises:
        InvalidParameterError: On a negative slack, a table over
            ``max_cells``, or a threshold or value that is not whole at
            ``value_scale``.
    """
    threshold = check_threshold(threshold)
    max_items = check_max_items(max_items)
    if slack < 0:
        raise InvalidParameterError(f"slack must be >= 0, got {slack}")
    if value_scale < 1:
        raise InvalidParameterError(f"value_scale must be >= 1, got {value_scale}")
    if not items or max_items == 0:
        return None

    target = to_bucket(threshold, value_scale)
    if target is None:
        raise InvalidParameterError(
            f"threshold {threshold} is not whole at value_scale={value_scale}"
        )
    buckets = []
    for it in items:
        b = to_bucket(it.value, value_scale)
        if b is None:
            raise InvalidParameterError(
                f"Item[{it.id}] value {it.value} is not whole at value_scale={value_scale}"
            )
        buckets.append(b)
    cap = target + slack

    # Zero-value items never lower the cost of reaching a positive target.
    usable = [
        (idx, b) for idx, b in enumerate(buckets)
        if target == 0 or b > 0
    ]
    if not usable:
        return None

    rows = min(max_items, len(usable))
    if max_cells is not None and rows * (cap + 1) > max_cells:
        raise InvalidParameterError(
            f"DP table of {rows}x{cap + 1} cells exceeds max_cells={max_cells}"
        )
    logger.debug("DP table: %d items, %d rows x %d buckets", len(usable), rows, cap + 1)

    dp = np.full((rows + 1, cap + 1), np.inf)
    dp[0, 0] = 0.0
    taken: list[np.ndarray] = []
    cap_source = np.zeros((len(usable), rows), dtype=np.int64)
    row_idx = np.arange(rows)

    for k, (idx, value) in enumerate(usable):
        cost = float(items[idx].cost)
        prev = dp[:-1]
        cand = np.full((rows, cap + 1), np.inf)
        if value < cap:
            cand[:, value:cap] = prev[:, :cap - value] + cost
        # Last bucket: best source among everything that lands at or above it.
        lo = max(0, cap - value)
        seg = prev[:, lo:]
        best = seg.argmin(axis=1)
        cand[:, cap] = seg[row_idx, best] + cost
        cap_source[k] = lo + best

        improved = cand < dp[1:]
        dp[1:] = np.where(improved, cand, dp[1:])
        taken.append(np.packbits(improved, axis=1))

    region = dp[1:, target:]
    if not np.isfinite(region).any():
        logger.debug("DP: no subset of <= %d items reaches %s", max_items, threshold)
        return None

    if rng is None or variety <= 1:
        flat = int(np.argmin(region))
        c_off, b_off = divmod(flat, region.shape[1])
    else:
        cells = np.argwhere(np.isfinite(region))
        costs = region[cells[:, 0], cells[:, 1]]
        order = np.lexsort((cells[:, 1], cells[:, 0], costs))[:variety]
        c_off, b_off = (int(v) for v in cells[order[rng.randrange(len(order))]])

    chosen = _reconstruct(usable, taken, cap_source, c_off + 1, target + b_off, cap)
    subset = [items[i] for i in sorted(chosen)]
    return SelectionResult.from_items(
        subset, threshold, STRATEGY_NAME, meets_threshold=True,
    )


def _reconstruct(
    usable: list[tuple[int, int]],
    taken: list[np.ndarray],
    cap_source: np.ndarray,
    count: int,
    bucket: int,
    cap: int,
) -> list[int]:
    """Walk the improvement bits backwards and return the chosen item indices."""
    chosen: list[int] = []
    for k in range(len(usable) - 1, -1, -1):
        if count == 0:
            break
        packed = taken[k]
        # packbits is big-endian within each byte.
        if (packed[count - 1, bucket >> 3] >> (7 - (bucket & 7))) & 1:
            idx, value = usable[k]
            chosen.append(idx)
            if bucket == cap:
                bucket = int(cap_source[k, count - 1])
            else:
                bucket -= value
            count -= 1
    if count != 0 or bucket != 0:
        raise RuntimeError(
            f"DP reconstruction ended at count={count}, bucket={bucket}"
        )
    return chosen
