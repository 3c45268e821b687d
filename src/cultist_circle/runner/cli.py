"""Command-line runner: pick a cheap circle combination from an item file."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from typing import Optional, Sequence

from cultist_circle.algorithms.branch_and_bound import pick_inventory_combo
from cultist_circle.algorithms.grid_packer import fits, render_grid
from cultist_circle.algorithms.selector import select
from cultist_circle.config import STRATEGY_NAMES, SolverSettings, load_settings
from cultist_circle.core.budget import SearchBudget
from cultist_circle.core.errors import CultistCircleError
from cultist_circle.monitoring.metrics import RunMetrics, export_to_json, print_summary
from cultist_circle.runner.dataset import load_inventory_json, load_items_json

logger = logging.getLogger(__name__)

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cultist-run",
        description="Find the cheapest item combination that reaches a circle threshold",
    )
    parser.add_argument("--items", required=True, help="JSON file with the item pool")
    parser.add_argument(
        "--threshold", type=float, default=None,
        help="Value the combination must reach (default: from settings, 400000)",
    )
    parser.add_argument(
        "--max-items", type=int, default=None,
        help="Maximum number of items in the combination (default: 5)",
    )
    parser.add_argument(
        "--strategy", choices=STRATEGY_NAMES, default=None,
        help="Selection strategy (default: auto)",
    )
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument(
        "--inventory", action="store_true",
        help="Treat the item file as counted inventory (uses the 'count' field)",
    )
    parser.add_argument(
        "--check-fit", action="store_true",
        help="Check that the chosen items fit the placement grid",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for tie-breaking")
    parser.add_argument("--output", default=None, help="Write a JSON report to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def resolve_settings(args: argparse.Namespace) -> SolverSettings:
    """Load the settings file (if any) and apply command-line overrides."""
    settings = load_settings(args.config) if args.config else SolverSettings()
    overrides = {
        "threshold": args.threshold,
        "max_items": args.max_items,
        "strategy": args.strategy,
        "seed": args.seed,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not overrides:
        return settings
    return SolverSettings.from_dict({**settings.to_dict(), **overrides})


def start_budget(settings: SolverSettings) -> Optional[SearchBudget]:
    """Search budget for one run; its clock starts here, once the pool is loaded."""
    return SearchBudget.from_limits(settings.node_budget, settings.time_limit_ms)


def run(args: argparse.Namespace) -> int:
    settings = resolve_settings(args)
    rng = random.Random(settings.seed) if settings.seed is not None else None

    if args.inventory:
        entries = load_inventory_json(args.items)
        budget = start_budget(settings)
        pool_size = sum(e.count for e in entries)
        metrics = RunMetrics(settings.strategy, pool_size, settings.threshold, settings.max_items)
        result = pick_inventory_combo(
            entries, settings.threshold, settings.max_items,
            use_reward_tiers=settings.use_reward_tiers,
            pool_cap=settings.pool_cap, rng=rng, variety=settings.variety,
            budget=budget,
        )
    else:
        items = load_items_json(args.items)
        budget = start_budget(settings)
        metrics = RunMetrics(settings.strategy, len(items), settings.threshold, settings.max_items)
        result = select(
            items, settings.threshold, settings.max_items,
            settings=settings, rng=rng, budget=budget,
        )
    metrics.record_selection(result)

    fit = None
    if args.check_fit and result is not None:
        fit = fits(list(result.subset), settings.grid_width, settings.grid_height)
        metrics.record_fit(fit)

    metrics.mark_complete()
    print(print_summary(metrics))
    if fit is not None and fit.fit:
        print(render_grid(fit, settings.grid_width, settings.grid_height))

    if args.output:
        export_to_json(metrics, args.output, selection=result, fit=fit)
        logger.info("Saved report to %s", args.output)

    return EXIT_FOUND if metrics.found else EXIT_NOT_FOUND


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entry point for ``cultist-run``.

    Returns:
        0 when a combination reaching the threshold was found, 1 when none
        was, 2 on invalid input or settings.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return run(args)
    except CultistCircleError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
