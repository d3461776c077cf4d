"""Parsers for the values found on ``Choice:`` lines of a story script."""

from __future__ import annotations

import math
import re
from typing import Dict, List, Optional, Tuple

from .story_schema import (
    INVENTORY_ALL,
    INVENTORY_ANY,
    ROLL_DICE,
    ROLL_STAT,
    ROLL_TOTAL,
    VISITED_ALL,
    VISITED_ANY,
    VISITED_NONE,
    Choice,
    Condition,
    DiceSpec,
    DynamicValue,
    InventoryEffect,
    RollDirective,
    StatEffect,
)


class StoryParseError(ValueError):
    """Raised when a story script cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.line_number = line_number


DYNAMIC_TOKENS: Dict[str, str] = {
    "roll": ROLL_TOTAL,
    "result": ROLL_TOTAL,
    "total": ROLL_TOTAL,
    "rolltotal": ROLL_TOTAL,
    "x": ROLL_TOTAL,
    "value": ROLL_TOTAL,
    "rolldice": ROLL_DICE,
    "dice": ROLL_DICE,
    "dicetotal": ROLL_DICE,
    "rollstat": ROLL_STAT,
    "stat": ROLL_STAT,
    "modifier": ROLL_STAT,
}

CONDITION_KEYWORDS: Dict[str, str] = {
    "visited": VISITED_ALL,
    "visitedall": VISITED_ALL,
    "visited-all": VISITED_ALL,
    "visited_all": VISITED_ALL,
    "visitedany": VISITED_ANY,
    "visited-any": VISITED_ANY,
    "visited_any": VISITED_ANY,
    "visitednone": VISITED_NONE,
    "visited-none": VISITED_NONE,
    "visited_none": VISITED_NONE,
    "notvisited": VISITED_NONE,
    "not-visited": VISITED_NONE,
    "unvisited": VISITED_NONE,
    "has": INVENTORY_ALL,
    "hasall": INVENTORY_ALL,
    "inventory": INVENTORY_ALL,
    "inventoryall": INVENTORY_ALL,
    "inventory-all": INVENTORY_ALL,
    "inventory_all": INVENTORY_ALL,
    "hasany": INVENTORY_ANY,
    "has-any": INVENTORY_ANY,
    "has_any": INVENTORY_ANY,
    "inventoryany": INVENTORY_ANY,
    "inventory-any": INVENTORY_ANY,
    "inventory_any": INVENTORY_ANY,
}

ITEM_PATTERN = re.compile(r"^(.+?)([+-])([0-9]+)?$")
DICE_PATTERN = re.compile(r"^(?:([0-9]+)\s*d)?\s*([0-9]+)$")
NUMBER_PATTERN = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")
CONDITION_PATTERN = re.compile(r"^([a-z][\w-]*)\s*\((.*)\)$", re.IGNORECASE | re.DOTALL)
_DYNAMIC_STRIP = re.compile(r"[\s_-]+")


def parse_bracket_value(raw: Optional[str]) -> str:
    """Strip surrounding whitespace and one optional pair of square brackets."""
    trimmed = raw.strip() if isinstance(raw, str) else ""
    if trimmed.startswith("[") and trimmed.endswith("]"):
        return trimmed[1:-1].strip()
    return trimmed


def parse_number(raw: str) -> Optional[float]:
    """Return ``raw`` as an int or float, or None if it is not a finite number."""
    token = raw.strip()
    if not NUMBER_PATTERN.match(token):
        return None
    try:
        return int(token)
    except ValueError:
        pass
    try:
        value = float(token)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def parse_item_effect(raw: str, line_number: int) -> InventoryEffect:
    match = ITEM_PATTERN.match(raw.strip())
    if not match:
        raise StoryParseError(
            f'Item effect "{raw}" on line {line_number} must end with + or - '
            "(optionally with a count).",
            line_number,
        )
    item = match.group(1).strip()
    if not item:
        raise StoryParseError(
            f"Item effect on line {line_number} is missing the item name.", line_number
        )
    sign = 1 if match.group(2) == "+" else -1
    quantity = int(match.group(3)) if match.group(3) else 1
    if quantity <= 0:
        raise StoryParseError(
            f'Item effect "{raw}" on line {line_number} must use a positive quantity.',
            line_number,
        )
    return InventoryEffect(item=item, delta=sign * quantity)


def _dynamic_type(token: str) -> Optional[str]:
    return DYNAMIC_TOKENS.get(_DYNAMIC_STRIP.sub("", token.lower()))


def _clean_amount(token: str) -> str:
    token = token.strip()
    if token.startswith("(") and token.endswith(")"):
        token = token[1:-1].strip()
    return token


def parse_stat_effect(raw: str, line_number: int) -> StatEffect:
    text = raw.strip()
    saw_sign = False
    for index, char in enumerate(text):
        if char not in "+-" or index == 0:
            continue
        saw_sign = True
        name = text[:index].strip()
        amount = _clean_amount(text[index + 1 :])
        if not name or not amount:
            continue
        sign = 1 if char == "+" else -1
        numeric = parse_number(amount)
        if numeric is not None:
            return StatEffect(stat=name.lower(), delta=sign * numeric, label=name)
        dynamic_type = _dynamic_type(amount)
        if dynamic_type is not None:
            return StatEffect(
                stat=name.lower(),
                delta=0,
                label=name,
                dynamic=DynamicValue(type=dynamic_type, scale=sign, token=amount),
            )

    if not saw_sign:
        raise StoryParseError(
            f'Stat effect "{raw}" on line {line_number} must follow the pattern '
            "statName+/-value (e.g., strength+1).",
            line_number,
        )
    raise StoryParseError(
        f'Stat effect "{raw}" on line {line_number} uses an invalid or unsupported amount.',
        line_number,
    )


def parse_dice(raw: str, line_number: int) -> DiceSpec:
    match = DICE_PATTERN.match(raw.strip().lower())
    if not match:
        raise StoryParseError(
            f'Dice definition "{raw}" on line {line_number} must be like "6" or "2d6" '
            "(count optional).",
            line_number,
        )
    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    if count <= 0 or sides <= 0:
        raise StoryParseError(
            f'Dice definition "{raw}" on line {line_number} must contain positive integers.',
            line_number,
        )
    return DiceSpec(count=count, sides=sides)


def parse_roll_effect(raw: str, line_number: int) -> RollDirective:
    tokens = [token.strip() for token in raw.split(",") if token.strip()]
    if not tokens:
        raise StoryParseError(f"Roll effect on line {line_number} is empty.", line_number)

    stat: Optional[str] = None
    dice = DiceSpec()
    target = None
    ok = None
    fail = None

    for token in tokens:
        if "=" not in token:
            label = parse_bracket_value(token)
            if not label or label.lower() == "none":
                stat = None
            elif stat and stat != label:
                raise StoryParseError(
                    f'Roll on line {line_number} defines conflicting stat labels '
                    f'("{stat}" vs "{label}").',
                    line_number,
                )
            else:
                stat = label
            continue

        key_raw, _, value_raw = token.partition("=")
        key = key_raw.strip().lower()
        if not key:
            raise StoryParseError(
                f'Malformed roll token "{token}" on line {line_number}.', line_number
            )
        value = parse_bracket_value(value_raw)

        if key in ("stat", "roll"):
            stat = value if value and value.lower() != "none" else None
        elif key == "dice":
            dice = parse_dice(value, line_number)
        elif key == "target":
            target = parse_number(value)
            if target is None:
                raise StoryParseError(
                    f'Roll target "{value}" on line {line_number} must be a number.',
                    line_number,
                )
        elif key == "ok":
            ok = value
        elif key == "fail":
            fail = value
        else:
            raise StoryParseError(
                f'Unknown roll token "{token}" on line {line_number}.', line_number
            )

    if target is None:
        raise StoryParseError(
            f"Roll on line {line_number} is missing its target value.", line_number
        )
    if not ok or not fail:
        raise StoryParseError(
            f"Roll on line {line_number} requires both ok and fail branches.", line_number
        )
    return RollDirective(target=target, ok=ok, fail=fail, stat=stat, dice=dice)


def parse_condition(raw: str, line_number: int, directive: str) -> Condition:
    value = raw.strip() if isinstance(raw, str) else ""
    if not value:
        raise StoryParseError(
            f'Choice on line {line_number} is missing a value for "{directive}".',
            line_number,
        )
    match = CONDITION_PATTERN.match(value)
    if not match:
        raise StoryParseError(
            f'Condition "{value}" on line {line_number} must follow the pattern '
            "name(arg1, arg2, ...).",
            line_number,
        )
    keyword = match.group(1).lower()
    args = tuple(
        arg for arg in (parse_bracket_value(token) for token in match.group(2).split(",")) if arg
    )
    if not args:
        raise StoryParseError(
            f'Condition "{value}" on line {line_number} must include at least one argument.',
            line_number,
        )
    kind = CONDITION_KEYWORDS.get(keyword)
    if kind is None:
        raise StoryParseError(
            f'Unknown condition "{keyword}" on line {line_number}.', line_number
        )
    return Condition(kind=kind, values=args, raw=value)


def _split_segments(payload: str, line_number: int) -> List[Tuple[str, str, str]]:
    segments = [segment.strip() for segment in payload.split(";") if segment.strip()]
    if not segments:
        raise StoryParseError(f"Choice on line {line_number} has no directives.", line_number)
    parsed = []
    for segment in segments:
        key, sep, value = segment.partition("=")
        key = key.strip().lower()
        if not sep or not key:
            raise StoryParseError(
                f'Malformed directive "{segment}" on line {line_number}.', line_number
            )
        parsed.append((key, parse_bracket_value(value), segment))
    return parsed


def parse_choice(branch_id: str, payload: str, line_number: int, choice_id: str = "") -> Choice:
    """Parse the ``key=value; ...`` payload of a ``Choice:`` line.

    ``choice_id`` is usually left empty here and assigned once the owning
    branch is complete.
    """
    text = ""
    next_branch: Optional[str] = None
    stats: List[StatEffect] = []
    inventory: List[InventoryEffect] = []
    roll: Optional[RollDirective] = None
    visibility: Optional[Condition] = None
    validity: Optional[Condition] = None

    def once(key: str, current: object) -> None:
        if current:
            raise StoryParseError(
                f'Choice on line {line_number} defines "{key}" more than once.', line_number
            )

    for key, value, segment in _split_segments(payload, line_number):
        if key == "display":
            once(key, text)
            text = value
        elif key == "next":
            once(key, next_branch)
            next_branch = value or None
        elif key == "item":
            inventory.append(parse_item_effect(value, line_number))
        elif key == "stat":
            stats.append(parse_stat_effect(value, line_number))
        elif key == "roll":
            if roll is not None:
                raise StoryParseError(
                    f"Choice on line {line_number} includes multiple roll directives.",
                    line_number,
                )
            roll = parse_roll_effect(value, line_number)
        elif key == "optional":
            once(key, visibility)
            visibility = parse_condition(value, line_number, "optional")
        elif key == "valid":
            once(key, validity)
            validity = parse_condition(value, line_number, "valid")
        else:
            raise StoryParseError(
                f'Unsupported directive "{segment}" on line {line_number}.', line_number
            )

    if not text:
        raise StoryParseError(
            f"Choice on line {line_number} is missing its display text.", line_number
        )
    if not next_branch and roll is None:
        raise StoryParseError(
            f'Choice "{text}" in branch "{branch_id}" needs either a next branch or a '
            "roll outcome.",
            line_number,
        )

    return Choice(
        id=choice_id,
        text=text,
        next=next_branch,
        stats=tuple(stats),
        inventory=tuple(inventory),
        roll=roll,
        visibility_condition=visibility,
        valid_condition=validity,
    )
