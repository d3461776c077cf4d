"""Small text helpers shared by the engine and the terminal front end."""

from __future__ import annotations

import re
from typing import List

_LABEL_SPLIT = re.compile(r"[_\s-]+")


def format_signed(value: float) -> str:
    return f"+{value}" if value >= 0 else f"{value}"


def format_label(value: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in _LABEL_SPLIT.split(value) if part)


def chunk_paragraphs(text: str) -> List[str]:
    """Split a description into paragraphs.

    Runs of blank lines collapse into a single ``""`` marker; indented lines
    continue the previous paragraph.
    """
    paragraphs: List[str] = []
    for line in (text or "").splitlines():
        if not line.strip():
            if paragraphs and paragraphs[-1] != "":
                paragraphs.append("")
            continue
        content = line.rstrip()
        if paragraphs and paragraphs[-1] and line[:1].isspace():
            paragraphs[-1] = f"{paragraphs[-1]}\n{content}"
        else:
            paragraphs.append(content)
    while paragraphs and paragraphs[-1] == "":
        paragraphs.pop()
    return paragraphs
