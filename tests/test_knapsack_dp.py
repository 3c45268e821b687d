"""
Tests for the exact knapsack DP selector.

Tests cover:
- Minimal cost against exhaustive enumeration on small pools
- Overshoot clamping (slack = 0 is still exact)
- Each item used at most once
- Tie-breaking: deterministic by default, sampled with an injected rng
"""

import random

import pytest

from cultist_circle.algorithms.knapsack_dp import (
    dp_supports,
    knapsack_dp_select,
    table_cells,
    to_bucket,
)
from cultist_circle.algorithms.selector import brute_force_select
from cultist_circle.core.errors import InvalidParameterError
from cultist_circle.core.models import Item


# ---------------------------------------------------------------------------
# Known answers
# ---------------------------------------------------------------------------

class TestKnownAnswers:

    def test_two_cheap_items(self, circle_pool):
        res = knapsack_dp_select(circle_pool, 400_000, 2)
        assert res.item_ids == ["a", "b"]
        assert res.total_cost == 10
        assert res.total_value == 400_000

    def test_single_item_far_above_threshold(self):
        big = Item(id="big", value=500_000, cost=10)
        res = knapsack_dp_select([big], 400_000, 1)
        assert res.subset == (big,)
        assert res.total_cost == 10

    def test_infeasible(self):
        assert knapsack_dp_select([Item(id="x", value=1, cost=1)], 100, 5) is None

    def test_all_zero_values(self):
        pool = [Item(id=str(i), value=0, cost=1) for i in range(4)]
        assert knapsack_dp_select(pool, 10, 4) is None

    def test_zero_threshold_picks_cheapest_single_item(self):
        pool = [Item(id="x", value=5, cost=3), Item(id="y", value=0, cost=1)]
        res = knapsack_dp_select(pool, 0, 2)
        assert res.item_ids == ["y"]

    def test_prefers_cheap_overshoot(self):
        pool = [
            Item(id="exact1", value=50, cost=40),
            Item(id="exact2", value=50, cost=40),
            Item(id="over", value=1_000, cost=10),
        ]
        res = knapsack_dp_select(pool, 100, 2, slack=0)
        assert res.item_ids == ["over"]

    def test_item_used_once(self):
        # Reusing "a" would be cheapest; it must not happen.
        pool = [Item(id="a", value=60, cost=1), Item(id="b", value=60, cost=50)]
        res = knapsack_dp_select(pool, 100, 2)
        assert res.item_ids == ["a", "b"]
        assert res.total_cost == 51

    def test_respects_max_items(self):
        pool = [Item(id=str(i), value=30, cost=1) for i in range(5)]
        assert knapsack_dp_select(pool, 100, 3) is None
        assert len(knapsack_dp_select(pool, 100, 4).subset) == 4

    def test_subset_in_input_order(self):
        pool = [
            Item(id="z", value=40, cost=1),
            Item(id="y", value=10, cost=100),
            Item(id="x", value=70, cost=1),
        ]
        assert knapsack_dp_select(pool, 100, 2).item_ids == ["z", "x"]

    def test_does_not_mutate_input(self, circle_pool):
        before = list(circle_pool)
        knapsack_dp_select(circle_pool, 400_000, 2)
        assert circle_pool == before


# ---------------------------------------------------------------------------
# Minimality
# ---------------------------------------------------------------------------

class TestMinimality:

    @pytest.mark.parametrize("seed", range(12))
    @pytest.mark.parametrize("slack", [0, 25])
    def test_matches_exhaustive_search(self, make_pool, seed, slack):
        rng = random.Random(1000 + seed)
        pool = make_pool(seed, size=rng.randint(4, 10))
        threshold = rng.randint(1, 250)
        max_items = rng.randint(1, 4)

        dp = knapsack_dp_select(pool, threshold, max_items, slack=slack)
        ref = brute_force_select(pool, threshold, max_items)

        if ref is None:
            assert dp is None
            return
        assert dp is not None
        assert dp.total_cost == pytest.approx(ref.total_cost)
        assert dp.total_value >= threshold
        assert len(dp.subset) <= max_items
        assert all(any(it is p for p in pool) for it in dp.subset)

    @pytest.mark.parametrize("seed", range(8))
    def test_fractional_values_match_exhaustive_search(self, seed):
        # Quarter values are exact in binary, so float sums agree with buckets.
        rng = random.Random(3000 + seed)
        pool = [
            Item(id=f"q{i}", value=rng.randint(0, 400) / 4, cost=rng.randint(1, 50))
            for i in range(rng.randint(4, 9))
        ]
        threshold = rng.randint(1, 800) / 4
        max_items = rng.randint(1, 4)

        dp = knapsack_dp_select(pool, threshold, max_items, value_scale=4)
        ref = brute_force_select(pool, threshold, max_items)

        if ref is None:
            assert dp is None
            return
        assert dp is not None
        assert dp.total_cost == pytest.approx(ref.total_cost)
        assert dp.total_value >= threshold


# ---------------------------------------------------------------------------
# Value scaling
# ---------------------------------------------------------------------------

class TestValueScale:

    def test_half_values_reach_threshold(self):
        pool = [Item(id="a", value=1.5, cost=1), Item(id="b", value=1.5, cost=1)]
        res = knapsack_dp_select(pool, 3, 2, value_scale=2)
        assert res.item_ids == ["a", "b"]

    def test_values_below_one(self):
        res = knapsack_dp_select([Item(id="a", value=0.7, cost=1)], 0.5, 1, value_scale=10)
        assert res.item_ids == ["a"]

    @pytest.mark.parametrize("pool,threshold", [
        ([Item(id="a", value=1.5, cost=1)], 1),
        ([Item(id="a", value=2, cost=1)], 0.5),
    ])
    def test_values_not_whole_at_scale_rejected(self, pool, threshold):
        with pytest.raises(InvalidParameterError, match="not whole"):
            knapsack_dp_select(pool, threshold, 1)

    def test_to_bucket(self):
        assert to_bucket(0.7, 10) == 7
        assert to_bucket(0.75, 10) is None
        assert to_bucket(400_000.0) == 400_000

    def test_dp_supports(self):
        pool = [Item(id="a", value=0.5, cost=1)]
        assert not dp_supports(pool, 1)
        assert dp_supports(pool, 1, value_scale=2)
        assert not dp_supports([Item(id="b", value=2, cost=1)], 1.5)

    def test_invalid_scale(self, circle_pool):
        with pytest.raises(InvalidParameterError):
            knapsack_dp_select(circle_pool, 100, 2, value_scale=0)


# ---------------------------------------------------------------------------
# Parameters and tie-breaking
# ---------------------------------------------------------------------------

class TestParameters:

    def test_negative_slack_rejected(self, circle_pool):
        with pytest.raises(InvalidParameterError):
            knapsack_dp_select(circle_pool, 100, 2, slack=-1)

    def test_max_cells_guard(self, circle_pool):
        with pytest.raises(InvalidParameterError):
            knapsack_dp_select(circle_pool, 400_000, 2, max_cells=1000)

    def test_table_cells(self):
        assert table_cells(100, 5, slack=0) == 505
        assert table_cells(99.5, 1, slack=10) == 111
        assert table_cells(2.5, 1, slack=0, value_scale=2) == 6

    def test_deterministic_without_rng(self, make_pool):
        pool = make_pool(3, size=10)
        first = knapsack_dp_select(pool, 150, 3)
        assert knapsack_dp_select(pool, 150, 3) == first

    def test_sampled_tie_breaking_stays_sound(self):
        pool = [Item(id=str(i), value=50 + i, cost=10) for i in range(6)]
        picks = set()
        for seed in range(20):
            res = knapsack_dp_select(pool, 100, 3, rng=random.Random(seed), variety=5)
            assert res.total_value >= 100
            assert res.total_cost == 20
            picks.add(tuple(res.item_ids))
        assert len(picks) > 1

    def test_seeded_rng_is_reproducible(self, make_pool):
        pool = make_pool(5, size=10)
        a = knapsack_dp_select(pool, 120, 3, rng=random.Random(42), variety=4)
        b = knapsack_dp_select(pool, 120, 3, rng=random.Random(42), variety=4)
        assert a == b
