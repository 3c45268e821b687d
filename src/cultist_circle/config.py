"""
Central configuration for the Cultist Circle optimizer.

All modules import their tunables from here so the selector, the packing
solver and the runner agree on grid size, slot count and search limits.

Contents:
    constants        : grid size, slot count, DP slack, pool trimming split
    GridConfig       : the circle's placement grid
    SolverSettings   : every tuneable parameter of a run (pydantic model)
    load_settings()  : read SolverSettings from a YAML file
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cultist_circle.core.errors import ConfigError, InvalidParameterError


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

GRID_WIDTH = 9
GRID_HEIGHT = 6

# Number of item slots in the circle.
MAX_ITEMS = 5

# Overshoot allowance above the threshold covered by the DP table.
DEFAULT_DP_SLACK = 5000

# Above either limit "auto" switches from the DP to branch-and-bound.
DP_MAX_POOL = 150
DP_MAX_CELLS = 4_000_000

# Pool trimming for branch-and-bound: top 80 by value, next 20, lowest 20.
MAX_POOL_SIZE = 120
POOL_TOP = 80
POOL_MIDDLE = 20
POOL_BOTTOM = 20

DEFAULT_TIME_LIMIT_MS = 100.0

# Reward brackets; a total must stay below the bound of the threshold's bracket.
REWARD_TIER_BOUNDS: Tuple[float, ...] = (
    10_000, 25_000, 50_000, 100_000, 200_000, 350_000, 400_000,
)

# Auto-select candidate filtering.
MIN_VALUE_FRACTION = 0.1
CANDIDATE_CAP = 100
SINGLE_SLOT_WINDOWS: Tuple[float, ...] = (5_000, 15_000)

STRATEGY_NAMES = ("auto", "knapsack_dp", "branch_and_bound")


# ─────────────────────────────────────────────────────────────────────────────
# Grid
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GridConfig:
    """
    Size of the placement grid in cells.

    Attributes:
        width:  Cells along x (columns).
        height: Cells along y (rows).
    """
    width: int = GRID_WIDTH
    height: int = GRID_HEIGHT

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise InvalidParameterError(
                f"Grid must be at least 1x1, got {self.width}x{self.height}"
            )

    @property
    def cells(self) -> int:
        """Total number of cells."""
        return self.width * self.height

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "GridConfig":
        return cls(**d)


# ─────────────────────────────────────────────────────────────────────────────
# Run settings
# ─────────────────────────────────────────────────────────────────────────────

class SolverSettings(BaseModel):
    """
    All tuneable parameters for a selection run.

    Validated on construction; unknown keys are rejected so typos in a
    settings file surface immediately.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    threshold: float = Field(default=400_000, ge=0)
    max_items: int = Field(default=MAX_ITEMS, ge=0)
    strategy: str = "auto"

    # Knapsack DP
    dp_slack: int = Field(default=DEFAULT_DP_SLACK, ge=0)
    dp_max_pool: int = Field(default=DP_MAX_POOL, ge=0)
    dp_max_cells: int = Field(default=DP_MAX_CELLS, ge=0)
    # Buckets per unit of value; 100 handles two decimal places
    dp_value_scale: int = Field(default=1, ge=1)

    # Branch-and-bound
    pool_cap: int = Field(default=MAX_POOL_SIZE, ge=1)
    use_reward_tiers: bool = False

    # Search limits (None = unlimited)
    node_budget: Optional[int] = Field(default=None, ge=0)
    time_limit_ms: Optional[float] = Field(default=DEFAULT_TIME_LIMIT_MS, ge=0)

    # Tie-breaking: variety > 1 with a seed samples among the cheapest results
    variety: int = Field(default=1, ge=1)
    seed: Optional[int] = None

    # Grid
    grid_width: int = Field(default=GRID_WIDTH, ge=1)
    grid_height: int = Field(default=GRID_HEIGHT, ge=1)

    # Auto-select
    value_bonus_pct: float = Field(default=0.0, ge=0)
    min_value_fraction: float = Field(default=MIN_VALUE_FRACTION, ge=0, le=1)
    candidate_cap: int = Field(default=CANDIDATE_CAP, ge=1)
    single_slot_windows: Tuple[float, ...] = SINGLE_SLOT_WINDOWS
    excluded_names: List[str] = Field(default_factory=list)

    @field_validator("strategy")
    @classmethod
    def _known_strategy(cls, v: str) -> str:
        if v not in STRATEGY_NAMES:
            raise ValueError(f"strategy must be one of {STRATEGY_NAMES}, got {v!r}")
        return v

    @field_validator("single_slot_windows")
    @classmethod
    def _non_negative_windows(cls, v: Tuple[float, ...]) -> Tuple[float, ...]:
        if any(w < 0 or not math.isfinite(w) for w in v):
            raise ValueError("single_slot_windows must be finite and >= 0")
        return v

    @property
    def grid(self) -> GridConfig:
        return GridConfig(width=self.grid_width, height=self.grid_height)

    def to_dict(self) -> dict:
        return self.model_dump()

    @classmethod
    def from_dict(cls, d: dict) -> "SolverSettings":
        """Validate a plain mapping, raising ConfigError on bad input."""
        try:
            return cls.model_validate(d)
        except ValidationError as exc:
            raise ConfigError(f"Invalid solver settings: {exc}") from exc


def load_settings(path: Path | str) -> SolverSettings:
    """
    Read SolverSettings from a YAML file.

    An empty file yields the defaults.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, is not a
            mapping, or fails validation.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"{path}: cannot read settings: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return SolverSettings.from_dict(data)
