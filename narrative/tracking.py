"""Visited-branch and traversed-transition bookkeeping.

Transitions record edges the player actually walked, which is distinct from
the edges that merely exist in the story graph.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Set, Tuple

Transition = Tuple[str, str]

TRANSITION_KEY_DELIMITER = ">>>"


def _clean_id(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


# ---------- Visited branches ----------
def mark_visited(visited: Set[str], branch_id: Optional[str]) -> None:
    branch_id = _clean_id(branch_id)
    if branch_id:
        visited.add(branch_id)


def has_visited(visited: Set[str], branch_id: Optional[str]) -> bool:
    branch_id = _clean_id(branch_id)
    return bool(branch_id) and branch_id in visited


def snapshot_visited(visited: Iterable[str]) -> List[str]:
    return sorted(visited or [])


def restore_visited(entries: Any) -> Set[str]:
    visited: Set[str] = set()
    if not isinstance(entries, (list, tuple, set)):
        return visited
    for entry in entries:
        mark_visited(visited, entry)
    return visited


# ---------- Transitions ----------
def transition_key(origin: str, target: str) -> str:
    return f"{origin}{TRANSITION_KEY_DELIMITER}{target}"


def parse_transition_key(key: Any) -> Optional[Transition]:
    if not isinstance(key, str) or TRANSITION_KEY_DELIMITER not in key:
        return None
    origin, _, target = key.partition(TRANSITION_KEY_DELIMITER)
    origin, target = origin.strip(), target.strip()
    if not origin or not target:
        return None
    return origin, target


def mark_transition(transitions: Set[Transition], origin: Optional[str], target: Optional[str]) -> None:
    origin, target = _clean_id(origin), _clean_id(target)
    if origin and target:
        transitions.add((origin, target))


def has_transition(transitions: Set[Transition], origin: str, target: str) -> bool:
    return (_clean_id(origin), _clean_id(target)) in transitions


def snapshot_transitions(transitions: Iterable[Transition]) -> List[dict]:
    return [{"from": origin, "to": target} for origin, target in sorted(transitions or [])]


def restore_transitions(entries: Any) -> Set[Transition]:
    """Rebuild a transition set from ``{"from", "to"}`` objects or ``"a>>>b"`` keys."""
    restored: Set[Transition] = set()
    if not isinstance(entries, (list, tuple)):
        return restored
    for entry in entries:
        if isinstance(entry, str):
            parsed = parse_transition_key(entry)
            if parsed:
                restored.add(parsed)
        elif isinstance(entry, dict):
            mark_transition(restored, entry.get("from"), entry.get("to"))
    return restored
