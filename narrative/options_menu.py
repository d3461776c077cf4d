"""Interactive settings menu for the terminal player."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Tuple

from .settings import MAX_JOURNAL_LIMIT, MAX_TEXT_SPEED, SETTINGS_PATH, Settings, save_settings

MenuCallback = Callable[[Settings], None | Awaitable[None]]
InputFunc = Callable[[str], str | Awaitable[str]]
PrintFunc = Callable[[str], None]


@dataclass(frozen=True)
class MenuEntry:
    field: str
    label: str
    kind: str
    step: float = 0
    minimum: float = 0
    maximum: float = 0


ENTRIES = (
    MenuEntry("max_journal_entries", "Journal Size", "count", 1, 1, MAX_JOURNAL_LIMIT),
    MenuEntry("text_speed", "Text Speed", "text_speed", 0.25, 0.0, MAX_TEXT_SPEED),
    MenuEntry("ui_scale", "UI Scale", "scale", 0.1, 0.5, 2.0),
    MenuEntry("high_contrast", "High Contrast", "toggle"),
    MenuEntry("reduce_animations", "Reduce Animations", "toggle"),
)


async def options_menu(
    current_settings: Settings,
    *,
    settings_path: Path | str = SETTINGS_PATH,
    apply_callback: Optional[MenuCallback] = None,
    input_func: InputFunc = input,
    print_func: PrintFunc = print,
) -> Tuple[Settings, bool]:
    """Run the options loop and return ``(settings, changed)``.

    Changed settings are written to ``settings_path`` when the menu closes.
    """
    working = current_settings.copy()
    selection = 0
    changed = False

    while True:
        print_func("")
        print_func("=== Options ===")
        for idx, entry in enumerate(ENTRIES):
            prefix = ">" if idx == selection else " "
            print_func(f"{prefix} {entry.label}: {format_value(getattr(working, entry.field), entry.kind)}")
        print_func("Use W/S to move, A/D to adjust, Enter to edit, R to reset, Esc to go back.")

        raw = await _resolve_input(input_func, "Options> ")
        command = (raw or "").strip().lower() or "enter"

        if command in {"esc", "escape", "\x1b", "q"}:
            break
        if command in {"w", "up", "k"}:
            selection = (selection - 1) % len(ENTRIES)
            continue
        if command in {"s", "down", "j"}:
            selection = (selection + 1) % len(ENTRIES)
            continue

        entry = ENTRIES[selection]
        if command in {"a", "left", "h", "-"}:
            updated = adjust_entry(working, entry, -1)
        elif command in {"d", "right", "l", "+"}:
            updated = adjust_entry(working, entry, 1)
        elif command == "enter":
            updated = await _activate_entry(working, entry, input_func, print_func)
        elif command in {"r", "reset"}:
            updated = reset_entry(working, entry)
        else:
            print_func("Unrecognised input. Try W/S, A/D, Enter, R, or Esc.")
            continue

        if updated:
            changed = True
            await _apply_callback(apply_callback, working)

    if changed:
        saved = save_settings(working, settings_path)
        print_func(f"[Settings] Saved to {Path(settings_path).name}.")
        return saved, True

    print_func("[Settings] No changes made.")
    return current_settings, False


async def _apply_callback(callback: Optional[MenuCallback], settings: Settings) -> None:
    if callback is None:
        return
    result = callback(settings.copy())
    if inspect.isawaitable(result):
        await result


async def _resolve_input(input_func: InputFunc, prompt: str) -> str | None:
    result = input_func(prompt)
    if inspect.isawaitable(result):
        return await result
    return result


def format_value(value, kind: str) -> str:
    if kind == "toggle":
        return "On" if bool(value) else "Off"
    if kind == "scale":
        return f"{float(value):.2f}x"
    if kind == "text_speed":
        speed = float(value)
        return "Instant" if speed <= 0 else f"{speed:.2f}x"
    if kind == "count":
        return f"{int(value)} entries"
    return str(value)


def adjust_entry(settings: Settings, entry: MenuEntry, direction: int) -> bool:
    previous = getattr(settings, entry.field)
    if entry.kind == "toggle":
        setattr(settings, entry.field, not bool(previous))
    else:
        value = previous + entry.step * direction
        setattr(settings, entry.field, max(entry.minimum, min(entry.maximum, value)))
    settings.clamp()
    return getattr(settings, entry.field) != previous


def reset_entry(settings: Settings, entry: MenuEntry) -> bool:
    before = getattr(settings, entry.field)
    setattr(settings, entry.field, getattr(Settings(), entry.field))
    settings.clamp()
    return getattr(settings, entry.field) != before


async def _activate_entry(
    settings: Settings,
    entry: MenuEntry,
    input_func: InputFunc,
    print_func: PrintFunc,
) -> bool:
    if entry.kind == "toggle":
        return adjust_entry(settings, entry, 1)

    prompt = f"Enter {entry.label.lower()} ({entry.minimum:g}-{entry.maximum:g}, blank to cancel): "
    raw = await _resolve_input(input_func, prompt)
    stripped = (raw or "").strip()
    if not stripped:
        return False
    try:
        value = float(stripped)
    except ValueError:
        print_func("Invalid number.")
        return False

    before = getattr(settings, entry.field)
    setattr(settings, entry.field, max(entry.minimum, min(entry.maximum, value)))
    settings.clamp()
    return getattr(settings, entry.field) != before
