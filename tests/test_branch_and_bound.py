"""
Tests for the branch-and-bound selector and counted-inventory entry point.

Tests cover:
- Cheapest combination on stash-style pools (cost == value)
- Below-threshold fallback
- Reward tier upper bound
- Duplicate copies explored as a multiset
- Budget exhaustion returns the best so far flagged partial
- Agreement with exhaustive search on small pools
"""

import random

import pytest

from cultist_circle.algorithms.branch_and_bound import (
    branch_and_bound_select,
    pick_inventory_combo,
)
from cultist_circle.algorithms.selector import brute_force_select
from cultist_circle.core.budget import SearchBudget
from cultist_circle.core.models import InventoryEntry, Item


# ---------------------------------------------------------------------------
# Known answers
# ---------------------------------------------------------------------------

class TestKnownAnswers:

    def test_smallest_overshoot_when_cost_is_value(self, stash_pool):
        res = branch_and_bound_select(stash_pool, 400_000, 4)
        assert res.meets_threshold
        assert res.total_value == 440_000
        assert len(res.subset) == 3
        assert res.item_ids == ["v200", "v150", "v90"]

    def test_fallback_when_threshold_unreachable(self):
        pool = [Item(id=f"v{v}", value=v * 1000, cost=v * 1000) for v in (50, 40, 30)]
        res = branch_and_bound_select(pool, 400_000, 4)
        assert not res.meets_threshold
        assert res.total_value == 120_000
        assert len(res.subset) == 3

    def test_fallback_respects_max_items(self):
        pool = [Item(id=f"v{v}", value=v * 1000, cost=1) for v in (50, 40, 30)]
        res = branch_and_bound_select(pool, 400_000, 2)
        assert not res.meets_threshold
        assert res.item_ids == ["v50", "v40"]

    def test_nothing_to_offer(self):
        pool = [Item(id="zero", value=0, cost=1)]
        assert branch_and_bound_select(pool, 100, 3) is None

    def test_two_cheap_items(self, circle_pool):
        res = branch_and_bound_select(circle_pool, 400_000, 2)
        assert res.item_ids == ["a", "b"]
        assert res.total_cost == 10

    def test_empty_pool_and_zero_slots(self, circle_pool):
        assert branch_and_bound_select([], 100, 5) is None
        assert branch_and_bound_select(circle_pool, 100, 0) is None

    def test_upper_bound_rejects_overshoot(self):
        pool = [
            Item(id="A", value=100_000, cost=1),
            Item(id="B", value=60_000, cost=10),
            Item(id="C", value=35_000, cost=10),
        ]
        assert branch_and_bound_select(pool, 90_000, 5).item_ids == ["A"]
        bounded = branch_and_bound_select(pool, 90_000, 5, upper_bound=100_000)
        assert bounded.item_ids == ["B", "C"]
        assert bounded.total_value == 95_000


# ---------------------------------------------------------------------------
# Counted inventory
# ---------------------------------------------------------------------------

class TestInventory:

    def test_copies_of_one_item(self):
        item = Item(id="ledx", value=200_000, cost=7)
        res = pick_inventory_combo([InventoryEntry(item, 3)], 400_000, 5)
        assert res.item_ids == ["ledx", "ledx"]
        assert res.total_cost == 14

    def test_duplicate_copies_do_not_multiply_search(self):
        item = Item(id="bolt", value=10, cost=1)
        res = pick_inventory_combo([InventoryEntry(item, 5)], 30, 5, use_reward_tiers=False)
        assert res.item_ids == ["bolt"] * 3
        # One branch per depth: root plus three levels.
        assert res.nodes_visited == 4

    def test_reward_tier_applied(self):
        entries = [
            InventoryEntry(Item(id="A", value=100_000, cost=1), 1),
            InventoryEntry(Item(id="B", value=60_000, cost=10), 1),
            InventoryEntry(Item(id="C", value=35_000, cost=10), 1),
        ]
        assert pick_inventory_combo(entries, 90_000, 5).item_ids == ["B", "C"]
        assert pick_inventory_combo(entries, 90_000, 5, use_reward_tiers=False).item_ids == ["A"]

    def test_empty_inventory(self):
        assert pick_inventory_combo([], 1000, 5) is None


# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------

class TestBudget:

    def test_exhausted_budget_returns_best_so_far(self):
        pool = [
            Item(id="a", value=500, cost=10),
            Item(id="b", value=400, cost=5),
            Item(id="c", value=300, cost=1),
        ]
        res = branch_and_bound_select(pool, 300, 1, budget=SearchBudget(max_nodes=2))
        assert res.partial
        assert res.meets_threshold
        assert res.item_ids == ["a"]

    def test_unlimited_budget_is_complete(self):
        pool = [
            Item(id="a", value=500, cost=10),
            Item(id="b", value=400, cost=5),
            Item(id="c", value=300, cost=1),
        ]
        res = branch_and_bound_select(pool, 300, 1, budget=SearchBudget())
        assert not res.partial
        assert res.item_ids == ["c"]


# ---------------------------------------------------------------------------
# Optimality and sampling
# ---------------------------------------------------------------------------

class TestOptimality:

    @pytest.mark.parametrize("seed", range(12))
    def test_matches_exhaustive_search(self, make_pool, seed):
        rng = random.Random(2000 + seed)
        pool = make_pool(seed, size=rng.randint(4, 10))
        threshold = rng.randint(1, 250)
        max_items = rng.randint(1, 4)

        res = branch_and_bound_select(pool, threshold, max_items)
        ref = brute_force_select(pool, threshold, max_items)

        if ref is None:
            assert res is None or not res.meets_threshold
            return
        assert res.meets_threshold
        assert res.total_cost == pytest.approx(ref.total_cost)
        assert len(res.subset) <= max_items

    def test_sampling_returns_one_of_the_cheapest(self):
        pool = [Item(id=str(i), value=50 + i, cost=10 + i) for i in range(6)]
        costs = set()
        for seed in range(10):
            res = branch_and_bound_select(pool, 100, 2, rng=random.Random(seed), variety=3)
            assert res.meets_threshold
            costs.add(res.total_cost)
        # Cheapest pairs: (0,1)=21, (0,2)=22, (0,3)/(1,2)=23
        assert costs <= {21, 22, 23}

    def test_trimmed_pool_still_finds_top_items(self):
        pool = [Item(id=f"f{i}", value=1_000 + i, cost=1_000) for i in range(300)]
        pool.append(Item(id="star", value=500_000, cost=1))
        res = branch_and_bound_select(pool, 400_000, 5)
        assert res.item_ids == ["star"]
