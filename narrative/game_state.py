"""Mutable per-session game state."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from . import snapshot as snapshots
from .conditions import evaluate_condition
from .inventory import apply_inventory_effects, has_item
from .journal import append_journal
from .rolls import RollResult
from .stats import EffectEvaluation, StatChange, StatsManager
from .story_schema import Condition, InventoryEffect, StatEffect
from .tracking import Transition, has_transition, has_visited, mark_transition, mark_visited

DEFAULT_MAX_JOURNAL_ENTRIES = 8


class GameState:
    """Stats, inventory, journal and history for one playthrough.

    Stat keys are restricted to the configured registry and inventory counts
    are always positive. ``reset`` marks the start branch as visited.
    """

    def __init__(self, max_journal_entries: int = DEFAULT_MAX_JOURNAL_ENTRIES) -> None:
        self.max_journal_entries = max_journal_entries
        self.stats_manager = StatsManager()
        self.reset()

    def reset(self, start_branch_id: Optional[str] = None) -> None:
        self.stats: Dict[str, float] = self.stats_manager.clone_defaults()
        self.inventory: Dict[str, int] = {}
        self.journal: List[str] = []
        self.visited_branches: Set[str] = set()
        self.visited_transitions: Set[Transition] = set()
        self.current_branch_id: Optional[str] = None
        self.last_roll: Optional[RollResult] = None
        self.system_error: Optional[str] = None
        if start_branch_id:
            self.set_current_branch(start_branch_id)

    def configure_stats(self, defaults: Optional[Dict[str, float]]) -> None:
        self.stats_manager.configure(defaults)
        self.stats = self.stats_manager.clone_defaults()

    def set_max_journal_entries(self, value: int) -> None:
        self.max_journal_entries = value
        if value and value > 0 and len(self.journal) > value:
            del self.journal[: len(self.journal) - value]

    # ---------- Location ----------
    def set_current_branch(self, branch_id: Optional[str]) -> None:
        if isinstance(branch_id, str) and branch_id.strip():
            self.current_branch_id = branch_id.strip()
            mark_visited(self.visited_branches, self.current_branch_id)
        else:
            self.current_branch_id = None

    def has_visited(self, branch_id: str) -> bool:
        return has_visited(self.visited_branches, branch_id)

    def mark_transition(self, origin: Optional[str], target: Optional[str]) -> None:
        mark_transition(self.visited_transitions, origin, target)

    def has_transition(self, origin: str, target: str) -> bool:
        return has_transition(self.visited_transitions, origin, target)

    # ---------- Conditions, stats, inventory ----------
    def has_item(self, item: str) -> bool:
        return has_item(self.inventory, item)

    def evaluate_condition(self, condition: Optional[Condition]) -> bool:
        return evaluate_condition(condition, visited=self.visited_branches, inventory=self.inventory)

    def partition_stat_effects(self, effects: Iterable[StatEffect]) -> Tuple[List[StatEffect], List[str]]:
        return self.stats_manager.partition_effects(effects)

    def evaluate_stat_effects(
        self, effects: Iterable[StatEffect], roll_result: Optional[RollResult] = None
    ) -> EffectEvaluation:
        return self.stats_manager.evaluate_effects(effects, roll_result, self.last_roll)

    def apply_evaluated_stat_effects(self, evaluated: Iterable[StatChange]) -> List[StatChange]:
        return self.stats_manager.apply_evaluated_effects(self.stats, evaluated)

    def apply_inventory_effects(self, effects: Iterable[InventoryEffect]) -> List[InventoryEffect]:
        return apply_inventory_effects(self.inventory, effects)

    def get_stat_value(self, stat: str) -> float:
        return self.stats_manager.get_value(self.stats, stat)

    def append_journal(self, text: str) -> None:
        append_journal(self.journal, text, self.max_journal_entries)

    # ---------- Snapshots ----------
    def create_snapshot(self) -> Dict[str, Any]:
        return snapshots.create_snapshot(
            branch_id=self.current_branch_id,
            stats=self.stats,
            inventory=self.inventory,
            journal=self.journal,
            visited=self.visited_branches,
            transitions=self.visited_transitions,
        )

    def restore_snapshot(self, snapshot: Any) -> None:
        """Replace the live state with ``snapshot``; clears ``last_roll`` and ``system_error``."""
        restored = snapshots.restore_from_snapshot(
            snapshot,
            stats_manager=self.stats_manager,
            max_journal_entries=self.max_journal_entries,
        )
        self.stats = restored.stats
        self.inventory = restored.inventory
        self.journal = restored.journal
        self.visited_branches = restored.visited
        self.visited_transitions = restored.transitions
        self.set_current_branch(restored.branch_id)
        self.last_roll = None
        self.system_error = None
