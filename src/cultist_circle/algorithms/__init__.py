"""Selection and packing algorithms.

Provides the two threshold selectors (exact DP and branch-and-bound), the
pool helpers they share, the strategy registry behind ``select()`` and the
grid packing feasibility solver.
"""

from .branch_and_bound import branch_and_bound_select, pick_inventory_combo
from .grid_packer import OccupancyGrid, fits, items_fit, render_grid
from .knapsack_dp import knapsack_dp_select
from .pool import build_inventory, expand_inventory, reward_tier_upper_bound, trim_pool
from .selector import (
    SELECTOR_REGISTRY,
    brute_force_select,
    get_selector,
    register_selector,
    select,
)

__all__ = [
    # Selection
    "select",
    "knapsack_dp_select",
    "branch_and_bound_select",
    "brute_force_select",
    "pick_inventory_combo",
    "SELECTOR_REGISTRY",
    "register_selector",
    "get_selector",
    # Pool
    "build_inventory",
    "expand_inventory",
    "trim_pool",
    "reward_tier_upper_bound",
    # Packing
    "OccupancyGrid",
    "fits",
    "items_fit",
    "render_grid",
]
