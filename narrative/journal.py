"""Bounded journal of applied choice effects."""

from __future__ import annotations

from typing import Iterable, List, Optional


def append_journal(journal: List[str], text: str, max_entries: Optional[int]) -> None:
    """Append ``text`` and drop the oldest entries beyond ``max_entries``."""
    if not text:
        return
    journal.append(text)
    if max_entries and max_entries > 0 and len(journal) > max_entries:
        del journal[: len(journal) - max_entries]


def normalize_journal(entries: Iterable[object], max_entries: Optional[int]) -> List[str]:
    if not isinstance(entries, (list, tuple)):
        return []
    cleaned = [entry.strip() for entry in entries if isinstance(entry, str) and entry.strip()]
    if max_entries and max_entries > 0 and len(cleaned) > max_entries:
        return cleaned[len(cleaned) - max_entries :]
    return cleaned
