import pytest

from narrative.directives import (
    StoryParseError,
    parse_bracket_value,
    parse_condition,
    parse_dice,
    parse_item_effect,
    parse_number,
    parse_roll_effect,
    parse_stat_effect,
)
from narrative.story_schema import (
    INVENTORY_ALL,
    INVENTORY_ANY,
    ROLL_DICE,
    ROLL_STAT,
    ROLL_TOTAL,
    VISITED_ALL,
    VISITED_ANY,
    VISITED_NONE,
)


def test_bracket_values_are_unwrapped_once() -> None:
    assert parse_bracket_value("  [ forest ] ") == "forest"
    assert parse_bracket_value("forest") == "forest"
    assert parse_bracket_value("[[x]]") == "[x]"
    assert parse_bracket_value(None) == ""


@pytest.mark.parametrize(
    ("raw", "item", "delta"),
    [
        ("rope+", "rope", 1),
        ("rope-", "rope", -1),
        ("gold coin+3", "gold coin", 3),
        ("torch-2", "torch", -2),
    ],
)
def test_item_effects(raw: str, item: str, delta: int) -> None:
    effect = parse_item_effect(raw, 1)
    assert effect.item == item
    assert effect.delta == delta


@pytest.mark.parametrize("raw", ["rope", "rope+0", "+2"])
def test_item_effects_reject_bad_input(raw: str) -> None:
    with pytest.raises(StoryParseError):
        parse_item_effect(raw, 3)


def test_stat_effect_keeps_original_label() -> None:
    effect = parse_stat_effect("Luck+5", 1)
    assert effect.stat == "luck"
    assert effect.label == "Luck"
    assert effect.delta == 5
    assert effect.dynamic is None


def test_stat_effect_accepts_parenthesised_and_fractional_amounts() -> None:
    assert parse_stat_effect("luck-(2)", 1).delta == -2
    assert parse_stat_effect("luck+1.5", 1).delta == 1.5


def test_stat_names_may_contain_hyphens() -> None:
    effect = parse_stat_effect("well-being+2", 1)
    assert effect.stat == "well-being"
    assert effect.delta == 2


@pytest.mark.parametrize(
    ("raw", "kind", "scale"),
    [
        ("gold+roll", ROLL_TOTAL, 1),
        ("gold+X", ROLL_TOTAL, 1),
        ("gold-roll_total", ROLL_TOTAL, -1),
        ("gold+dice", ROLL_DICE, 1),
        ("gold+dice-total", ROLL_DICE, 1),
        ("gold-modifier", ROLL_STAT, -1),
        ("gold+Roll Stat", ROLL_STAT, 1),
    ],
)
def test_dynamic_stat_keywords(raw: str, kind: str, scale: int) -> None:
    effect = parse_stat_effect(raw, 1)
    assert effect.stat == "gold"
    assert effect.dynamic.type == kind
    assert effect.dynamic.scale == scale


@pytest.mark.parametrize("raw", ["luck", "luck+", "luck+lots"])
def test_stat_effect_rejects_bad_amounts(raw: str) -> None:
    with pytest.raises(StoryParseError):
        parse_stat_effect(raw, 7)


@pytest.mark.parametrize(("raw", "count", "sides"), [("6", 1, 6), ("2d6", 2, 6), ("3D8", 3, 8)])
def test_dice(raw: str, count: int, sides: int) -> None:
    dice = parse_dice(raw, 1)
    assert (dice.count, dice.sides) == (count, sides)


@pytest.mark.parametrize("raw", ["0d6", "2d0", "d", "two"])
def test_dice_rejects_bad_input(raw: str) -> None:
    with pytest.raises(StoryParseError):
        parse_dice(raw, 1)


def test_roll_effect_defaults() -> None:
    roll = parse_roll_effect("target=4, ok=win, fail=lose", 1)
    assert roll.stat is None
    assert (roll.dice.count, roll.dice.sides) == (1, 6)
    assert roll.target == 4


def test_roll_effect_bare_stat_and_none() -> None:
    assert parse_roll_effect("strength, target=4, ok=a, fail=b", 1).stat == "strength"
    assert parse_roll_effect("stat=none, target=4, ok=a, fail=b", 1).stat is None


@pytest.mark.parametrize(
    ("raw", "match"),
    [
        ("strength, agility, target=4, ok=a, fail=b", "conflicting"),
        ("dice=2d6, ok=a, fail=b", "target"),
        ("target=4, ok=a", "ok and fail"),
        ("target=high, ok=a, fail=b", "must be a number"),
        ("target=4, ok=a, fail=b, bonus=2", "Unknown roll token"),
    ],
)
def test_roll_effect_errors(raw: str, match: str) -> None:
    with pytest.raises(StoryParseError, match=match):
        parse_roll_effect(raw, 1)


@pytest.mark.parametrize(
    ("raw", "kind"),
    [
        ("visited(a)", VISITED_ALL),
        ("visited_any(a, b)", VISITED_ANY),
        ("not-visited(a)", VISITED_NONE),
        ("has(rope)", INVENTORY_ALL),
        ("HasAny(rope, lantern)", INVENTORY_ANY),
    ],
)
def test_condition_keywords(raw: str, kind: str) -> None:
    assert parse_condition(raw, 1, "valid").kind == kind


def test_condition_arguments_are_trimmed_and_unwrapped() -> None:
    condition = parse_condition("hasany( [rope] , lantern )", 1, "optional")
    assert condition.values == ("rope", "lantern")


@pytest.mark.parametrize(("raw", "match"), [("has()", "at least one"), ("owns(x)", "Unknown condition"), ("has", "pattern")])
def test_condition_errors(raw: str, match: str) -> None:
    with pytest.raises(StoryParseError, match=match):
        parse_condition(raw, 1, "valid")


@pytest.mark.parametrize(("raw", "expected"), [("3", 3), ("-2", -2), ("1.5", 1.5), (".5", 0.5), ("1e2", 100)])
def test_parse_number_accepts_plain_decimals(raw: str, expected: float) -> None:
    assert parse_number(raw) == expected


@pytest.mark.parametrize("raw", ["1_000", "٣", "inf", "nan", "1e400", "0x10", ""])
def test_parse_number_rejects_other_forms(raw: str) -> None:
    assert parse_number(raw) is None


@pytest.mark.parametrize("raw", ["luck+1_000", "luck+٣"])
def test_stat_effect_rejects_digit_separators_and_foreign_digits(raw: str) -> None:
    with pytest.raises(StoryParseError):
        parse_stat_effect(raw, 2)


@pytest.mark.parametrize("raw", ["rope+٣", "rope+1_0"])
def test_item_effect_counts_are_ascii_digits(raw: str) -> None:
    with pytest.raises(StoryParseError):
        parse_item_effect(raw, 2)
