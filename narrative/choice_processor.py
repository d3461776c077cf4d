"""Apply a selected choice's roll and effects to the game state.

The caller owns gating, the undo stack and the branch transition; this
module resolves the roll, applies stat and inventory deltas, journals them
and reports non-fatal issues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional

from .formatting import format_signed
from .game_state import GameState
from .rolls import RandomSource, RollResult, run_roll
from .stats import StatChange
from .story_schema import Choice, InventoryEffect, StatEffect

logger = logging.getLogger(__name__)

RollPresenter = Callable[[RollResult, List[StatChange]], Awaitable[None]]

JOURNAL_ARROW = "→"


@dataclass
class ChoiceOutcome:
    next_branch_id: Optional[str]
    roll: Optional[RollResult] = None
    applied_stats: List[StatChange] = field(default_factory=list)
    applied_inventory: List[InventoryEffect] = field(default_factory=list)
    journal_entry: Optional[str] = None
    issues: List[str] = field(default_factory=list)


def unknown_stats_message(names: List[str]) -> str:
    ordered = sorted(names, key=lambda name: (name.lower(), name))
    suffix = "s" if len(ordered) > 1 else ""
    return f"Unknown stat{suffix} encountered: {', '.join(ordered)}. Update the stat config."


def build_journal_entry(
    text: str,
    applied_stats: List[StatChange],
    applied_inventory: List[InventoryEffect],
    roll: Optional[RollResult] = None,
) -> str:
    summaries = []
    if roll is not None:
        summaries.append("Roll: Success" if roll.success else "Roll: Failure")
    if applied_stats:
        labels = ", ".join(f"{change.stat} {format_signed(change.delta)}" for change in applied_stats)
        summaries.append(f"Stats: {labels}")
    if applied_inventory:
        labels = ", ".join(f"{effect.item} {format_signed(effect.delta)}" for effect in applied_inventory)
        summaries.append(f"Inventory: {labels}")
    if not summaries:
        return text
    return f"{text} {JOURNAL_ARROW} {' | '.join(summaries)}"


async def process_choice(
    choice: Choice,
    state: GameState,
    *,
    rng: Optional[RandomSource] = None,
    roll_presenter: Optional[RollPresenter] = None,
) -> ChoiceOutcome:
    """Resolve ``choice`` against ``state`` and return where it leads.

    Stat effects on a rolled choice always apply, using the roll as their
    dynamic context; inventory effects only apply when the roll succeeds.
    Unknown stat names and unresolved dynamic values end up in
    ``state.system_error`` without stopping the choice.
    """
    unknown: List[str] = []
    issues: List[str] = []

    def evaluate(effects: Iterable[StatEffect], roll_result: Optional[RollResult] = None) -> List[StatChange]:
        allowed, names = state.partition_stat_effects(effects)
        for name in names:
            if name not in unknown:
                unknown.append(name)
        evaluation = state.evaluate_stat_effects(allowed, roll_result)
        issues.extend(evaluation.issues)
        return evaluation.evaluated

    roll_result: Optional[RollResult] = None
    if choice.roll is not None:
        roll_result = run_roll(choice.roll, state.get_stat_value, rng)
        logger.debug(
            "Roll for %s: %s = %s vs %s (%s)",
            choice.id,
            roll_result.rolls,
            roll_result.total,
            choice.roll.target,
            "success" if roll_result.success else "failure",
        )
        evaluated = evaluate(choice.stats, roll_result)
        staged_inventory = list(choice.inventory) if roll_result.success else []
        state.last_roll = roll_result
        if roll_presenter is not None:
            try:
                await roll_presenter(roll_result, evaluated)
            except Exception:
                logger.warning("Roll presenter failed for choice %s", choice.id, exc_info=True)
        next_branch_id = choice.roll.ok if roll_result.success else choice.roll.fail
    else:
        evaluated = evaluate(choice.stats)
        staged_inventory = list(choice.inventory)
        next_branch_id = choice.next

    applied_stats = state.apply_evaluated_stat_effects(evaluated) if evaluated else []
    applied_inventory = state.apply_inventory_effects(staged_inventory) if staged_inventory else []

    journal_entry = None
    if applied_stats or applied_inventory:
        journal_entry = build_journal_entry(choice.text, applied_stats, applied_inventory, roll_result)
        state.append_journal(journal_entry)

    messages = []
    if unknown:
        messages.append(unknown_stats_message(unknown))
        logger.warning("Unknown stats on choice %s: %s", choice.id, ", ".join(unknown))
    if issues:
        messages.append(" | ".join(issues))
        logger.warning("Dynamic stat issues on choice %s: %s", choice.id, " | ".join(issues))
    if messages:
        state.system_error = " | ".join(messages)

    return ChoiceOutcome(
        next_branch_id=next_branch_id or None,
        roll=roll_result,
        applied_stats=applied_stats,
        applied_inventory=applied_inventory,
        journal_entry=journal_entry,
        issues=messages,
    )
