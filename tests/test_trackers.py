import pytest

from narrative.conditions import describe_condition, evaluate_condition
from narrative.formatting import chunk_paragraphs, format_label, format_signed
from narrative.inventory import apply_inventory_effects, format_inventory, has_item
from narrative.journal import append_journal, normalize_journal
from narrative.story_schema import (
    INVENTORY_ALL,
    INVENTORY_ANY,
    VISITED_ALL,
    VISITED_ANY,
    VISITED_NONE,
    Condition,
    InventoryEffect,
)
from narrative.tracking import (
    mark_transition,
    mark_visited,
    restore_transitions,
    restore_visited,
    snapshot_transitions,
    transition_key,
)


@pytest.mark.parametrize(
    ("kind", "values", "expected"),
    [
        (VISITED_ALL, ("a", "b"), True),
        (VISITED_ALL, ("a", "c"), False),
        (VISITED_ANY, ("c", "b"), True),
        (VISITED_ANY, ("c", "d"), False),
        (VISITED_NONE, ("c", "d"), True),
        (VISITED_NONE, ("c", "a"), False),
        (INVENTORY_ALL, ("rope", "lantern"), True),
        (INVENTORY_ALL, ("rope", "key"), False),
        (INVENTORY_ANY, ("key", "rope"), True),
        (INVENTORY_ANY, ("key", "map"), False),
    ],
)
def test_evaluate_condition(kind: str, values: tuple, expected: bool) -> None:
    condition = Condition(kind=kind, values=values)
    result = evaluate_condition(condition, visited={"a", "b"}, inventory={"rope": 1, "lantern": 2})
    assert result is expected


@pytest.mark.parametrize("kind", [VISITED_ALL, VISITED_ANY, VISITED_NONE, INVENTORY_ALL, INVENTORY_ANY])
def test_conditions_without_values_never_hold(kind: str) -> None:
    assert evaluate_condition(Condition(kind=kind, values=()), visited={"a"}, inventory={"x": 1}) is False
    assert evaluate_condition(Condition(kind=kind, values=("  ",)), visited={"a"}, inventory={"x": 1}) is False


def test_missing_condition_always_holds() -> None:
    assert evaluate_condition(None, visited=set(), inventory={}) is True


def test_describe_condition() -> None:
    assert describe_condition(Condition(kind=INVENTORY_ALL, values=("rope", "lantern"))) == "Requires: rope, lantern"
    assert describe_condition(Condition(kind=VISITED_NONE, values=("tower",))) == "Not yet visited: tower"


def test_inventory_removes_items_at_zero() -> None:
    inventory = {"rope": 1}
    applied = apply_inventory_effects(
        inventory,
        [
            InventoryEffect("rope", -1),
            InventoryEffect("coin", 3),
            InventoryEffect("lantern", -2),
            InventoryEffect("  ", 1),
            InventoryEffect("map", 0),
        ],
    )

    assert inventory == {"coin": 3}
    assert [(e.item, e.delta) for e in applied] == [("rope", -1), ("coin", 3), ("lantern", -2)]
    assert not has_item(inventory, "rope")
    assert has_item(inventory, " coin ")


def test_format_inventory() -> None:
    assert format_inventory({}) == "—"
    assert format_inventory({"rope": 1, "coin": 2}) == "coin x2, rope x1"


def test_journal_keeps_most_recent_entries() -> None:
    journal = []
    for number in range(12):
        append_journal(journal, f"entry {number}", 8)
    assert journal == [f"entry {number}" for number in range(4, 12)]
    append_journal(journal, "", 8)
    assert len(journal) == 8


def test_normalize_journal() -> None:
    assert normalize_journal(["a", " ", 3, "b ", "c"], 2) == ["b", "c"]
    assert normalize_journal("oops", 8) == []


def test_visited_tracking() -> None:
    visited = set()
    mark_visited(visited, " forest ")
    mark_visited(visited, "forest")
    mark_visited(visited, "")
    mark_visited(visited, None)
    assert visited == {"forest"}
    assert restore_visited(["b", " a ", "", 7]) == {"a", "b"}
    assert restore_visited("nope") == set()


def test_transition_round_trip_accepts_keys_and_objects() -> None:
    transitions = set()
    mark_transition(transitions, "b", "c")
    mark_transition(transitions, "a", "b")
    mark_transition(transitions, "a", "")

    snapshot = snapshot_transitions(transitions)
    assert snapshot == [{"from": "a", "to": "b"}, {"from": "b", "to": "c"}]
    assert restore_transitions(snapshot) == transitions
    assert restore_transitions([transition_key("x", "y"), "broken", {"from": "x"}]) == {("x", "y")}


def test_formatting_helpers() -> None:
    assert format_signed(3) == "+3"
    assert format_signed(0) == "+0"
    assert format_signed(-2) == "-2"
    assert format_label("silver_coin") == "Silver Coin"
    assert chunk_paragraphs("one\n\n\ntwo\n  more\n\n") == ["one", "", "two\n  more"]
