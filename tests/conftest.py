"""Shared fixtures for the optimizer test suite."""

import os
import random
import sys

import pytest

# Allow running the suite from a checkout without installing the package
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cultist_circle.core.models import Item


@pytest.fixture
def circle_pool():
    """Two cheap 200k items and one expensive low-value item."""
    return [
        Item(id="a", value=200_000, cost=5),
        Item(id="b", value=200_000, cost=5),
        Item(id="c", value=10_000, cost=100),
    ]


@pytest.fixture
def stash_pool():
    """Cost equals value, so the cheapest answer is the smallest overshoot."""
    return [
        Item(id=f"v{v}", value=v * 1000, cost=v * 1000)
        for v in (200, 150, 100, 90)
    ]


@pytest.fixture
def make_pool():
    """Factory for small seeded pools with integer values."""
    def build(seed, size=8, max_value=100, max_cost=50):
        rng = random.Random(seed)
        return [
            Item(id=f"r{i}", value=rng.randint(0, max_value), cost=rng.randint(1, max_cost))
            for i in range(size)
        ]
    return build
