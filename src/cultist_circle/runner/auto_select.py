"""
Slot-based auto-select: fill the free circle slots around pinned items.

Flow:
    1. Apply the value bonus to every item.
    2. Rank candidates by value per unit of cost, dropping free items,
       low-value items, excluded names and anything already pinned.
    3. Subtract the pinned value from the threshold.
    4. With one free slot, pick the cheapest single item whose value lands
       just above the remainder (rerolls rotate through those candidates).
       With more, run ``select()`` on the ranked candidates.
    5. Optionally check that the final slots fit the grid.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from cultist_circle.algorithms.grid_packer import fits
from cultist_circle.algorithms.selector import select
from cultist_circle.algorithms.validation import check_threshold
from cultist_circle.config import SolverSettings
from cultist_circle.core.errors import InvalidParameterError
from cultist_circle.core.models import FitResult, Item, SelectionResult

logger = logging.getLogger(__name__)

REASON_NO_SLOTS = "no free slot left for remaining value {remaining:g}"
REASON_NO_SINGLE = "no single item covers remaining value {remaining:g} within +{window:g}"
REASON_NO_COMBO = "no combination reaches remaining value {remaining:g}"


@dataclass(frozen=True)
class AutoSelectResult:
    """
    Outcome of an auto-select run.

    Attributes:
        slots:      New slot contents; pinned slots are unchanged.
        selection:  Selection made for the free slots (None for the
                    single-slot resolver or when nothing was needed).
        remaining:  Threshold left after subtracting pinned values.
        success:    Whether the slots now reach the threshold.
        reason:     Why auto-select failed (None on success).
        fit:        Grid check of the final slots, when requested.
    """

    slots: tuple[Optional[Item], ...]
    selection: Optional[SelectionResult]
    remaining: float
    success: bool
    reason: Optional[str] = None
    fit: Optional[FitResult] = None

    @property
    def items(self) -> list[Item]:
        return [it for it in self.slots if it is not None]


def apply_value_bonus(item: Item, bonus_pct: float) -> Item:
    """Return ``item`` with its value raised by ``bonus_pct`` percent (floored)."""
    if not bonus_pct:
        return item
    return dataclasses.replace(item, value=float(math.floor(item.value * (1 + bonus_pct / 100))))


def rank_candidates(
    items: Sequence[Item],
    threshold: float,
    free_slots: int,
    settings: SolverSettings,
    exclude_ids: frozenset[str] = frozenset(),
) -> list[Item]:
    """
    Filter and order the candidate pool by value per unit of cost.

    Items with no cost, value below ``threshold * min_value_fraction``, an
    excluded name or an id in ``exclude_ids`` are dropped.  The ranking is
    capped at ``candidate_cap`` when more than one slot is free.
    """
    excluded = {n.lower() for n in settings.excluded_names}
    floor_value = threshold * settings.min_value_fraction
    ranked = [
        it for it in items
        if it.cost > 0
        and it.value >= floor_value
        and it.label.lower() not in excluded
        and it.id not in exclude_ids
    ]
    ranked.sort(key=lambda it: it.value / it.cost, reverse=True)
    if free_slots > 1:
        ranked = ranked[:settings.candidate_cap]
    return ranked


def single_slot_candidates(
    candidates: Sequence[Item],
    remaining: float,
    windows: Sequence[float],
) -> tuple[list[Item], float]:
    """
    Items whose value lies in ``[remaining, remaining + window]``, cheapest
    first, for the first window that yields any.

    Returns the candidates and the window that produced them.
    """
    window = 0.0
    for window in windows:
        found = [it for it in candidates if remaining <= it.value <= remaining + window]
        if found:
            return sorted(found, key=lambda it: it.cost), window
    return [], window


def auto_select(
    pool: Sequence[Item],
    threshold: float,
    slots: Sequence[Optional[Item]],
    pinned: Optional[Sequence[bool]] = None,
    *,
    settings: Optional[SolverSettings] = None,
    rng: Optional[random.Random] = None,
    check_fit: bool = False,
) -> AutoSelectResult:
    """
    Fill every unpinned slot so the circle reaches ``threshold``.

    Args:
        pool: All items available for selection.
        threshold: Total value the circle must reach.
        slots: Current slot contents (None for an empty slot).
        pinned: Per-slot flags; pinned slots are kept as they are.
        settings: Tuning knobs; defaults to ``SolverSettings()``.
        rng: Passed through to ``select()`` for varied tie-breaking.
        check_fit: Run the grid packing check on the final slot contents.

    Returns:
        AutoSelectResult.  Failures are reported through ``success`` and
        ``reason``; the slots are returned unchanged in that case.

    Raises:
        InvalidParameterError: On a bad threshold or when ``pinned`` and
            ``slots`` differ in length.
    """
    threshold = check_threshold(threshold)
    settings = settings or SolverSettings()
    slots = list(slots)
    pinned = list(pinned) if pinned is not None else [False] * len(slots)
    if len(pinned) != len(slots):
        raise InvalidParameterError(
            f"pinned has {len(pinned)} flags for {len(slots)} slots"
        )

    bonus = settings.value_bonus_pct
    originals: dict[int, Item] = {}
    boosted: list[Item] = []
    for it in pool:
        b = apply_value_bonus(it, bonus)
        originals[id(b)] = it
        boosted.append(b)

    pinned_items = [it for it, p in zip(slots, pinned) if p and it is not None]
    pinned_value = sum(apply_value_bonus(it, bonus).value for it in pinned_items)
    remaining = max(0.0, threshold - pinned_value)
    free = [i for i, p in enumerate(pinned) if not p]

    def finish(new_slots, selection, success, reason=None) -> AutoSelectResult:
        fit = None
        if check_fit:
            fit = fits(
                [it for it in new_slots if it is not None],
                settings.grid_width, settings.grid_height,
            )
        if reason:
            logger.info("Auto-select failed: %s", reason)
        return AutoSelectResult(
            slots=tuple(new_slots), selection=selection, remaining=remaining,
            success=success, reason=reason, fit=fit,
        )

    if remaining == 0:
        logger.debug("Pinned items already reach %s", threshold)
        return finish(slots, None, True)
    if not free:
        return finish(slots, None, False, REASON_NO_SLOTS.format(remaining=remaining))

    candidates = rank_candidates(
        boosted, threshold, len(free), settings,
        exclude_ids=frozenset(it.id for it in pinned_items),
    )
    logger.info(
        "Auto-select: %d candidates, %d free slots, remaining %s",
        len(candidates), len(free), remaining,
    )

    if len(free) == 1:
        found, window = single_slot_candidates(
            candidates, remaining, settings.single_slot_windows,
        )
        if not found:
            return finish(
                slots, None, False,
                REASON_NO_SINGLE.format(remaining=remaining, window=window),
            )
        target = free[0]
        current = slots[target]
        ids = [it.id for it in found]
        # Reroll: move on to the candidate after the one already in the slot.
        nxt = 0
        if current is not None and current.id in ids:
            nxt = (ids.index(current.id) + 1) % len(found)
        new_slots = list(slots)
        new_slots[target] = originals[id(found[nxt])]
        return finish(new_slots, None, True)

    selection = select(candidates, remaining, len(free), settings=settings, rng=rng)
    if selection is None:
        return finish(slots, None, False, REASON_NO_COMBO.format(remaining=remaining))

    chosen = [originals[id(it)] for it in selection.subset]
    new_slots = list(slots)
    for pos, slot_index in enumerate(free):
        new_slots[slot_index] = chosen[pos] if pos < len(chosen) else None
    return finish(new_slots, selection, True)
