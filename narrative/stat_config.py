"""Reader for the stat configuration file.

Each non-comment line declares one stat and its default value::

    # core stats
    strength = 3
    agility: 2
    stamina 10
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Optional

from .directives import parse_number

COMMENT_PREFIX = "#"
_SEPARATED = re.compile(r"^([^=:]+?)\s*[:=]\s*(.+)$")
_LINE_SPLIT = re.compile(r"\r?\n")


class StatConfigError(ValueError):
    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.line_number = line_number


def parse_stat_config(raw: str) -> Dict[str, float]:
    if not isinstance(raw, str):
        raise TypeError("Stat config parser expected a string payload.")

    defaults: Dict[str, float] = {}
    for index, line in enumerate(_LINE_SPLIT.split(raw), start=1):
        content = line.split(COMMENT_PREFIX, 1)[0].strip()
        if not content:
            continue

        match = _SEPARATED.match(content)
        if match:
            name, value_part = match.group(1).strip(), match.group(2).strip()
        else:
            segments = content.split()
            if len(segments) < 2:
                raise StatConfigError(
                    f'Invalid stat entry on line {index}. Expected "name = value".', index
                )
            name, value_part = segments[0], " ".join(segments[1:])

        key = name.lower()
        if not key:
            raise StatConfigError(f"Stat name missing on line {index}.", index)
        if key in defaults:
            raise StatConfigError(f'Duplicate stat "{name}" on line {index}.', index)

        token = value_part.split()[0]
        value = parse_number(token)
        if value is None:
            raise StatConfigError(
                f'Invalid default value "{token}" for stat "{name}" on line {index}.', index
            )
        defaults[key] = value

    return defaults


def load_stat_config(path: Optional[Path | str]) -> Dict[str, float]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        return parse_stat_config(handle.read())
