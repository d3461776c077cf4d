"""Dice rolls for choices that branch on success or failure."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from .formatting import format_label, format_signed
from .story_schema import RollDirective

_DEFAULT_RNG = random.Random()


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True)
class RollResult:
    directive: RollDirective
    stat_value: float
    rolls: List[int]
    dice_total: int
    total: float
    success: bool


def run_roll(
    directive: RollDirective,
    get_stat_value: Optional[Callable[[str], float]] = None,
    rng: Optional[RandomSource] = None,
) -> RollResult:
    rng = rng or _DEFAULT_RNG
    stat_value = 0
    if directive.stat and get_stat_value is not None:
        stat_value = get_stat_value(directive.stat) or 0

    rolls = [rng.randint(1, directive.dice.sides) for _ in range(directive.dice.count)]
    dice_total = sum(rolls)
    total = stat_value + dice_total
    return RollResult(
        directive=directive,
        stat_value=stat_value,
        rolls=rolls,
        dice_total=dice_total,
        total=total,
        success=total >= directive.target,
    )


def build_roll_summary(result: RollResult) -> str:
    parts = []
    directive = result.directive
    if directive.stat:
        parts.append(f"{format_label(directive.stat)} {format_signed(result.stat_value)}")
    if result.rolls:
        parts.append(f"{directive.dice}: {', '.join(str(r) for r in result.rolls)}")
    parts.append(f"Total {result.total} vs {directive.target}")
    parts.append("Success" if result.success else "Failure")
    return " | ".join(parts)
