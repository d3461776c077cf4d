"""Data model for parsed story scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

ROLL_TOTAL = "roll-total"
ROLL_DICE = "roll-dice"
ROLL_STAT = "roll-stat"
DYNAMIC_TYPES = (ROLL_TOTAL, ROLL_DICE, ROLL_STAT)

VISITED_ALL = "visited-all"
VISITED_ANY = "visited-any"
VISITED_NONE = "visited-none"
INVENTORY_ALL = "inventory-all"
INVENTORY_ANY = "inventory-any"
CONDITION_KINDS = (VISITED_ALL, VISITED_ANY, VISITED_NONE, INVENTORY_ALL, INVENTORY_ANY)


@dataclass(frozen=True)
class DynamicValue:
    """A stat delta that is read from the most recent roll."""

    type: str
    scale: int = 1
    token: Optional[str] = None


@dataclass(frozen=True)
class StatEffect:
    stat: str
    delta: float = 0
    label: str = ""
    dynamic: Optional[DynamicValue] = None

    @property
    def display_name(self) -> str:
        return self.label or self.stat


@dataclass(frozen=True)
class InventoryEffect:
    item: str
    delta: int


@dataclass(frozen=True)
class DiceSpec:
    count: int = 1
    sides: int = 6

    def __str__(self) -> str:
        if self.count == 1:
            return f"d{self.sides}"
        return f"{self.count}d{self.sides}"


@dataclass(frozen=True)
class RollDirective:
    target: float
    ok: str
    fail: str
    stat: Optional[str] = None
    dice: DiceSpec = field(default_factory=DiceSpec)


@dataclass(frozen=True)
class Condition:
    kind: str
    values: Tuple[str, ...]
    raw: str = ""


@dataclass(frozen=True)
class Choice:
    id: str
    text: str
    next: Optional[str] = None
    stats: Tuple[StatEffect, ...] = ()
    inventory: Tuple[InventoryEffect, ...] = ()
    roll: Optional[RollDirective] = None
    visibility_condition: Optional[Condition] = None
    valid_condition: Optional[Condition] = None

    def destinations(self) -> Tuple[str, ...]:
        """Branch ids this choice can lead to, in authoring order."""
        if self.roll is not None:
            return (self.roll.ok, self.roll.fail)
        if self.next:
            return (self.next,)
        return ()


@dataclass(frozen=True)
class Branch:
    id: str
    title: str
    description: str
    choices: Tuple[Choice, ...] = ()

    def find_choice(self, choice_id: str) -> Optional[Choice]:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None


@dataclass(frozen=True)
class Story:
    start: str
    branches: Dict[str, Branch]

    def get(self, branch_id: Optional[str]) -> Optional[Branch]:
        if not branch_id:
            return None
        return self.branches.get(branch_id)

    def __contains__(self, branch_id: object) -> bool:
        return branch_id in self.branches
