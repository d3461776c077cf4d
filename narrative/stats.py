"""Stat registry, effect evaluation and application."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .rolls import RollResult
from .story_schema import ROLL_DICE, ROLL_STAT, ROLL_TOTAL, DynamicValue, StatEffect


@dataclass(frozen=True)
class StatChange:
    stat: str
    delta: float
    label: str = ""


@dataclass
class EffectEvaluation:
    """Deltas ready to apply, plus non-fatal issues found while computing them."""

    evaluated: List[StatChange] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)


def _finite(value: object) -> Optional[float]:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return value if isinstance(value, int) and not isinstance(value, bool) else number


class StatsManager:
    """Hold the configured stats and turn stat effects into deltas.

    Stat names are case-folded; only names present in the registry can ever
    be written to a stats map.
    """

    def __init__(self, defaults: Optional[Mapping[str, float]] = None) -> None:
        self.defaults: Dict[str, float] = {}
        if defaults:
            self.configure(defaults)

    def configure(self, defaults: Optional[Mapping[str, float]]) -> None:
        self.defaults = {}
        for name, value in (defaults or {}).items():
            if not isinstance(name, str) or not name.strip():
                continue
            number = _finite(value)
            self.defaults[name.strip().lower()] = number if number is not None else 0

    def clone_defaults(self) -> Dict[str, float]:
        return dict(self.defaults)

    def knows(self, name: str) -> bool:
        return isinstance(name, str) and name.strip().lower() in self.defaults

    def partition_effects(
        self, effects: Iterable[StatEffect]
    ) -> Tuple[List[StatEffect], List[str]]:
        """Split effects into configured ones and the distinct unknown names."""
        allowed: List[StatEffect] = []
        unknown: List[str] = []
        for effect in effects or []:
            original = (effect.label or effect.stat or "").strip()
            if not original:
                continue
            if self.knows(effect.stat or original):
                allowed.append(effect)
            elif original not in unknown:
                unknown.append(original)
        return allowed, unknown

    def evaluate_effects(
        self,
        effects: Iterable[StatEffect],
        roll_result: Optional[RollResult] = None,
        last_roll: Optional[RollResult] = None,
    ) -> EffectEvaluation:
        """Compute deltas without touching any stats map.

        Dynamic effects read ``roll_result`` first and ``last_roll`` second;
        with neither available they are skipped and reported as issues.
        """
        evaluation = EffectEvaluation()
        for effect in effects or []:
            key = (effect.stat or "").strip().lower()
            if key not in self.defaults:
                continue
            label = effect.display_name
            if effect.dynamic is not None:
                delta = self.resolve_dynamic_effect(effect.dynamic, roll_result, last_roll)
                if delta is None:
                    evaluation.issues.append(
                        f'Unable to resolve dynamic value for stat "{label}".'
                    )
                    continue
            else:
                delta = _finite(effect.delta)
                if delta is None:
                    continue
            evaluation.evaluated.append(StatChange(stat=key, delta=delta, label=label))
        return evaluation

    def apply_evaluated_effects(
        self, stats: Dict[str, float], evaluated: Iterable[StatChange]
    ) -> List[StatChange]:
        applied: List[StatChange] = []
        for change in evaluated or []:
            key = change.stat.strip().lower()
            if key not in self.defaults or not change.delta:
                continue
            base = _finite(stats.get(key, self.defaults[key]))
            stats[key] = (base if base is not None else 0) + change.delta
            applied.append(StatChange(stat=key, delta=change.delta, label=change.label))
        return applied

    def apply_effects(
        self,
        stats: Dict[str, float],
        effects: Iterable[StatEffect],
        roll_result: Optional[RollResult] = None,
        last_roll: Optional[RollResult] = None,
    ) -> Tuple[List[StatChange], List[str]]:
        evaluation = self.evaluate_effects(effects, roll_result, last_roll)
        return self.apply_evaluated_effects(stats, evaluation.evaluated), evaluation.issues

    def get_value(self, stats: Mapping[str, float], name: str) -> float:
        if not isinstance(name, str) or not name.strip():
            return 0
        key = name.strip().lower()
        current = _finite(stats.get(key)) if stats else None
        if current is not None:
            return current
        return self.defaults.get(key, 0)

    @staticmethod
    def resolve_dynamic_effect(
        dynamic: DynamicValue,
        roll_result: Optional[RollResult] = None,
        last_roll: Optional[RollResult] = None,
    ) -> Optional[float]:
        reference = roll_result or last_roll
        if reference is None:
            return None
        if dynamic.type == ROLL_TOTAL:
            base = reference.total
        elif dynamic.type == ROLL_DICE:
            base = reference.dice_total
        elif dynamic.type == ROLL_STAT:
            base = reference.stat_value
        else:
            return None
        scale = dynamic.scale if dynamic.scale in (1, -1) else 1
        return scale * base
