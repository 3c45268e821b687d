"""
Selector registry and the ``select()`` entry point.

Strategies are plain functions with the signature

    fn(items, threshold, max_items, *, settings, rng, budget) -> SelectionResult | None

registered under a name with ``@register_selector("name")``.  ``select()``
validates its arguments, resolves ``"auto"`` to a concrete strategy and
turns a below-threshold fallback into ``None`` unless asked otherwise.
"""

from __future__ import annotations

import logging
import random
from itertools import combinations
from typing import Callable, Dict, Optional, Sequence

from cultist_circle.algorithms.branch_and_bound import branch_and_bound_select
from cultist_circle.algorithms.knapsack_dp import dp_supports, knapsack_dp_select, table_cells
from cultist_circle.algorithms.pool import reward_tier_upper_bound
from cultist_circle.algorithms.validation import check_max_items, check_threshold
from cultist_circle.config import SolverSettings
from cultist_circle.core.budget import SearchBudget
from cultist_circle.core.models import Item, SelectionResult

logger = logging.getLogger(__name__)

SelectorFn = Callable[..., Optional[SelectionResult]]

SELECTOR_REGISTRY: Dict[str, SelectorFn] = {}


def register_selector(name: str) -> Callable[[SelectorFn], SelectorFn]:
    """Function decorator: registers a selection strategy under *name*."""
    def wrap(fn: SelectorFn) -> SelectorFn:
        SELECTOR_REGISTRY[name] = fn
        return fn
    return wrap


def get_selector(name: str) -> SelectorFn:
    """Look up a selection strategy by name."""
    if name not in SELECTOR_REGISTRY:
        available = ", ".join(sorted(SELECTOR_REGISTRY.keys()))
        raise ValueError(f"Unknown selection strategy '{name}'.  Available: [{available}]")
    return SELECTOR_REGISTRY[name]


@register_selector("knapsack_dp")
def _run_knapsack_dp(items, threshold, max_items, *, settings, rng, budget):
    return knapsack_dp_select(
        items, threshold, max_items,
        slack=settings.dp_slack, rng=rng, variety=settings.variety,
        max_cells=settings.dp_max_cells, value_scale=settings.dp_value_scale,
    )


@register_selector("branch_and_bound")
def _run_branch_and_bound(items, threshold, max_items, *, settings, rng, budget):
    upper = reward_tier_upper_bound(threshold) if settings.use_reward_tiers else None
    return branch_and_bound_select(
        items, threshold, max_items,
        pool_cap=settings.pool_cap, upper_bound=upper,
        rng=rng, variety=settings.variety, budget=budget,
    )


def choose_strategy(pool_size: int, threshold: float, max_items: int,
                    settings: SolverSettings, whole_values: bool = True) -> str:
    """
    Pick the exact DP when its table is small enough and every value is a
    whole number of buckets, else branch-and-bound.
    """
    cells = table_cells(threshold, max_items, settings.dp_slack, settings.dp_value_scale)
    if (
        whole_values
        and pool_size <= settings.dp_max_pool
        and cells <= settings.dp_max_cells
    ):
        return "knapsack_dp"
    return "branch_and_bound"


def select(
    items: Sequence[Item],
    threshold: float,
    max_items: int,
    *,
    strategy: Optional[str] = None,
    settings: Optional[SolverSettings] = None,
    rng: Optional[random.Random] = None,
    budget: Optional[SearchBudget] = None,
    include_fallback: bool = False,
) -> Optional[SelectionResult]:
    """
    Choose a minimum-cost subset of at most ``max_items`` items whose total
    value reaches ``threshold``.

    Args:
        items: Candidate pool.  Never mutated.
        threshold: Value the subset must reach (>= 0).
        max_items: Maximum subset size (>= 0).
        strategy: ``"auto"``, ``"knapsack_dp"`` or ``"branch_and_bound"``;
            defaults to ``settings.strategy``.
        settings: Tuning knobs; defaults to ``SolverSettings()``.
        rng: Injected randomness for varied tie-breaking.  When omitted and
            ``settings.seed`` is set, a seeded generator is created.
        budget: Search budget for branch-and-bound.  When omitted one is
            built from ``settings.node_budget`` / ``settings.time_limit_ms``.
        include_fallback: Return the best below-threshold subset (flagged
            ``meets_threshold=False``) instead of None.

    Returns:
        SelectionResult, or None when nothing reaches the threshold.

    Raises:
        InvalidParameterError: On a negative/non-finite threshold or a
            negative max_items; from ``"knapsack_dp"`` also when its table
            would exceed ``settings.dp_max_cells`` or a value is not whole
            at ``settings.dp_value_scale``.
        ValueError: On an unknown strategy name.
    """
    threshold = check_threshold(threshold)
    max_items = check_max_items(max_items)
    settings = settings or SolverSettings()
    name = strategy or settings.strategy

    if not items or max_items == 0:
        return None

    if name == "auto":
        whole = dp_supports(items, threshold, settings.dp_value_scale)
        name = choose_strategy(len(items), threshold, max_items, settings, whole)
    fn = get_selector(name)

    if rng is None and settings.seed is not None:
        rng = random.Random(settings.seed)
    if budget is None:
        budget = SearchBudget.from_limits(settings.node_budget, settings.time_limit_ms)

    logger.info(
        "Selecting from %d items: threshold=%s max_items=%d strategy=%s",
        len(items), threshold, max_items, name,
    )
    result = fn(items, threshold, max_items, settings=settings, rng=rng, budget=budget)

    if result is not None and not result.meets_threshold and not include_fallback:
        logger.info("No subset reaches %s; best attempt %s", threshold, result.total_value)
        return None
    return result


@register_selector("brute_force")
def _run_brute_force(items, threshold, max_items, **_):
    return brute_force_select(items, threshold, max_items)


def brute_force_select(
    items: Sequence[Item],
    threshold: float,
    max_items: int,
) -> Optional[SelectionResult]:
    """
    Exhaustive reference selector for small pools.

    Enumerates every subset of at most ``max_items`` items; used to check
    the other strategies.  Exponential, so keep pools to a dozen items.
    """
    threshold = check_threshold(threshold)
    max_items = check_max_items(max_items)
    best: Optional[tuple[float, tuple[int, ...]]] = None
    for k in range(1, min(max_items, len(items)) + 1):
        for combo in combinations(range(len(items)), k):
            if sum(items[i].value for i in combo) < threshold:
                continue
            cost = sum(items[i].cost for i in combo)
            if best is None or cost < best[0]:
                best = (cost, combo)
    if best is None:
        return None
    return SelectionResult.from_items([items[i] for i in best[1]], threshold, "brute_force")

