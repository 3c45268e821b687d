"""Core data models, errors and search budgets."""

from .budget import SearchBudget
from .errors import (
    ConfigError,
    CultistCircleError,
    InvalidParameterError,
    SchemaError,
)
from .models import FitResult, InventoryEntry, Item, Placement, SelectionResult

__all__ = [
    # Models
    "Item",
    "InventoryEntry",
    "Placement",
    "SelectionResult",
    "FitResult",
    # Budget
    "SearchBudget",
    # Errors
    "CultistCircleError",
    "InvalidParameterError",
    "SchemaError",
    "ConfigError",
]
