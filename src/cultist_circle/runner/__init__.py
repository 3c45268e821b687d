"""Runner module: auto-select workflow, item loading and the CLI."""

from .auto_select import AutoSelectResult, auto_select
from .dataset import generate_items, load_inventory_json, load_items_json

__all__ = [
    "AutoSelectResult",
    "auto_select",
    "generate_items",
    "load_items_json",
    "load_inventory_json",
]
