"""Choice gating conditions."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from .inventory import has_item
from .story_schema import (
    INVENTORY_ALL,
    INVENTORY_ANY,
    VISITED_ALL,
    VISITED_ANY,
    VISITED_NONE,
    Condition,
)
from .tracking import has_visited

REQUIREMENT_LABELS = {
    VISITED_ALL: "Visited",
    VISITED_ANY: "Visited any of",
    VISITED_NONE: "Not yet visited",
    INVENTORY_ALL: "Requires",
    INVENTORY_ANY: "Requires one of",
}


def evaluate_condition(
    condition: Optional[Condition],
    *,
    visited: Iterable[str],
    inventory: Dict[str, int],
) -> bool:
    """Return whether ``condition`` holds. A missing condition always holds.

    A condition without values never holds, whatever its kind.
    """
    if condition is None:
        return True

    values = [v.strip() for v in condition.values or () if isinstance(v, str) and v.strip()]
    if not values:
        return False

    visited = set(visited or ())
    kind = condition.kind
    if kind == VISITED_ALL:
        return all(has_visited(visited, v) for v in values)
    if kind == VISITED_ANY:
        return any(has_visited(visited, v) for v in values)
    if kind == VISITED_NONE:
        return not any(has_visited(visited, v) for v in values)
    if kind == INVENTORY_ALL:
        return all(has_item(inventory, v) for v in values)
    if kind == INVENTORY_ANY:
        return any(has_item(inventory, v) for v in values)
    return False


def describe_condition(condition: Optional[Condition]) -> str:
    if condition is None:
        return "None"
    label = REQUIREMENT_LABELS.get(condition.kind, condition.kind)
    return f"{label}: {', '.join(condition.values)}"
