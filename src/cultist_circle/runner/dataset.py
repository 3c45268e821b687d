"""Item pools for optimizer runs: JSON loading and synthetic generation.

JSON format (one array of objects):
    [{"id": "...", "name": "...", "value": <number>, "cost": <number>,
      "width": <int>, "height": <int>, "count": <int>}, ...]

``name``, ``width``, ``height`` and ``count`` are optional; missing
dimensions default to 1 and a missing count to 1.
"""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Any

from cultist_circle.config import GRID_HEIGHT, GRID_WIDTH
from cultist_circle.core.errors import SchemaError
from cultist_circle.core.models import InventoryEntry, Item


def _read_array(path: Path | str) -> list[Any]:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SchemaError(f"{path}: failed to read/parse JSON: {e}") from e

    if not isinstance(data, list):
        raise SchemaError(f"{path}: expected a JSON array.")
    return data


def _parse_item(obj: Any, where: str) -> Item:
    if not isinstance(obj, dict):
        raise SchemaError(f"{where}: expected an object.")
    for key in ("id", "value", "cost"):
        if key not in obj:
            raise SchemaError(f"{where}: missing required key '{key}'")
    try:
        return Item.from_dict(obj)
    except (TypeError, ValueError) as e:
        raise SchemaError(f"{where}: {e}") from e


def load_items_json(path: Path | str) -> list[Item]:
    """
    Load an item pool from a JSON array.

    A ``count`` field is ignored here; use :func:`load_inventory_json` for
    counted inventory.

    Args:
        path: JSON file to read.

    Returns:
        Items in file order.

    Raises:
        SchemaError: If the file cannot be parsed or an element is invalid.
    """
    data = _read_array(path)
    return [_parse_item(obj, f"{path}[{idx}]") for idx, obj in enumerate(data, start=1)]


def load_inventory_json(path: Path | str) -> list[InventoryEntry]:
    """
    Load counted inventory from a JSON array.

    Args:
        path: JSON file to read.

    Returns:
        One InventoryEntry per element, ``count`` defaulting to 1.

    Raises:
        SchemaError: If the file cannot be parsed, an element is invalid or
            a count is not a non-negative integer.
    """
    entries: list[InventoryEntry] = []
    for idx, obj in enumerate(_read_array(path), start=1):
        where = f"{path}[{idx}]"
        item = _parse_item(obj, where)
        count = obj.get("count", 1)
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise SchemaError(f"{where}: count must be a non-negative integer, got {count!r}")
        entries.append(InventoryEntry(item=item, count=count))
    return entries


def generate_items(
    count: int = 100,
    seed: int | None = None,
    max_width: int = 3,
    max_height: int = 3,
) -> list[Item]:
    """
    Generate random items for experimentation.

    Args:
        count: Number of items to generate.
        seed: Random seed for reproducibility (default: None).
        max_width: Largest footprint width (capped to the grid).
        max_height: Largest footprint height (capped to the grid).

    Returns:
        Items with values of 5k-150k, costs of 40-160% of value, and small
        footprints.
    """
    rng = random.Random(seed)
    max_width = min(max_width, GRID_WIDTH)
    max_height = min(max_height, GRID_HEIGHT)

    items = []
    for i in range(count):
        value = float(rng.randrange(5_000, 150_001, 500))
        cost = float(round(value * rng.uniform(0.4, 1.6)))
        items.append(Item(
            id=f"item_{i:03d}",
            value=value,
            cost=cost,
            width=rng.randint(1, max_width),
            height=rng.randint(1, max_height),
        ))
    return items
