"""Cultist Circle optimizer.

Chooses a cheap set of items whose combined value reaches a threshold and
checks that the set fits the circle's placement grid.
"""

from .algorithms import fits, items_fit, select
from .config import SolverSettings, load_settings
from .core import (
    CultistCircleError,
    FitResult,
    InvalidParameterError,
    InventoryEntry,
    Item,
    Placement,
    SearchBudget,
    SelectionResult,
)
from .runner import auto_select

__version__ = "0.1.0"

__all__ = [
    "select",
    "fits",
    "items_fit",
    "auto_select",
    "SolverSettings",
    "load_settings",
    "Item",
    "InventoryEntry",
    "Placement",
    "SelectionResult",
    "FitResult",
    "SearchBudget",
    "CultistCircleError",
    "InvalidParameterError",
]
