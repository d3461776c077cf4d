"""Serializable copies of the mutable game state.

A snapshot is a plain JSON-ready dict; nothing in it aliases live state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from .journal import normalize_journal
from .stats import StatsManager
from .tracking import (
    Transition,
    restore_transitions,
    restore_visited,
    snapshot_transitions,
    snapshot_visited,
)


class SnapshotError(ValueError):
    """Raised when a snapshot payload is not usable."""


@dataclass
class RestoredState:
    stats: Dict[str, float]
    inventory: Dict[str, int]
    journal: List[str]
    visited: Set[str]
    transitions: Set[Transition]
    branch_id: Optional[str]


def create_snapshot(
    *,
    branch_id: Optional[str],
    stats: Dict[str, float],
    inventory: Dict[str, int],
    journal: Iterable[str],
    visited: Iterable[str],
    transitions: Iterable[Transition],
) -> Dict[str, Any]:
    return {
        "currentBranchId": branch_id or None,
        "stats": dict(stats),
        "inventory": dict(inventory),
        "journal": list(journal or []),
        "visitedBranches": snapshot_visited(visited),
        "visitedTransitions": snapshot_transitions(transitions),
    }


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def restore_from_snapshot(
    snapshot: Any, *, stats_manager: StatsManager, max_journal_entries: Optional[int]
) -> RestoredState:
    """Normalize ``snapshot`` into clean state fragments.

    Stats outside the configured registry are dropped; stats that are missing
    or not numeric keep their defaults. Inventory entries are kept when their
    count is positive.
    """
    if not isinstance(snapshot, dict):
        raise SnapshotError("Invalid save snapshot payload.")

    stats = stats_manager.clone_defaults()
    raw_stats = snapshot.get("stats")
    if isinstance(raw_stats, dict):
        for name, value in raw_stats.items():
            if not isinstance(name, str):
                continue
            key = name.strip().lower()
            if not key or key not in stats:
                continue
            number = _number(value)
            if number is not None:
                stats[key] = number

    inventory: Dict[str, int] = {}
    raw_inventory = snapshot.get("inventory")
    if isinstance(raw_inventory, dict):
        for item, value in raw_inventory.items():
            if not isinstance(item, str) or not item.strip():
                continue
            number = _number(value)
            if number is not None and number > 0:
                inventory[item.strip()] = number

    branch_id = snapshot.get("currentBranchId")
    branch_id = branch_id.strip() if isinstance(branch_id, str) and branch_id.strip() else None

    return RestoredState(
        stats=stats,
        inventory=inventory,
        journal=normalize_journal(snapshot.get("journal"), max_journal_entries),
        visited=restore_visited(snapshot.get("visitedBranches")),
        transitions=restore_transitions(snapshot.get("visitedTransitions")),
        branch_id=branch_id,
    )
