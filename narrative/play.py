#!/usr/bin/env python3
"""
Terminal player for branching story scripts.
- Choices hidden by an ``optional`` gate are not shown; choices failing a
  ``valid`` gate are listed but disabled.
- Rolls, stat and inventory changes and engine warnings are echoed inline.
- Undo, restart, journal, save slots and settings are one key away.
Usage: python3 -m narrative.play [story.txt] [--stats stats.config]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    from narrative.engine import ChoiceView, StoryEngine
    from narrative.formatting import chunk_paragraphs, format_label, format_signed
    from narrative.inventory import format_inventory
    from narrative.options_menu import options_menu
    from narrative.rolls import RollResult, build_roll_summary
    from narrative.save_manager import SaveError, SaveManager
    from narrative.settings import SETTINGS_PATH, Settings, load_settings
    from narrative.stats import StatChange
else:
    from .engine import ChoiceView, StoryEngine
    from .formatting import chunk_paragraphs, format_label, format_signed
    from .inventory import format_inventory
    from .options_menu import options_menu
    from .rolls import RollResult, build_roll_summary
    from .save_manager import SaveError, SaveManager
    from .settings import SETTINGS_PATH, Settings, load_settings
    from .stats import StatChange

REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_STORY_PATH = REPO_ROOT / "assets" / "story.txt"
DEFAULT_STATS_PATH = REPO_ROOT / "assets" / "stats.config"
BASE_LINE_WIDTH = 80
MIN_LINE_WIDTH = 50
MAX_LINE_WIDTH = 120
BASE_TEXT_DELAY = 0.02

COMMANDS = (
    "U. Undo",
    "J. Journal",
    "I. Status",
    "S. Quick Save",
    "L. Quick Load",
    "P. Pause",
    "R. Restart",
    "Q. Quit",
)


def emit_print(*args, **kwargs) -> None:
    print(*args, **kwargs)


async def read_input(prompt: str = "") -> str:
    return await asyncio.to_thread(input, prompt)


@dataclass
class Session:
    engine: StoryEngine
    settings: Settings
    settings_path: Path

    @property
    def line_width(self) -> int:
        return compute_line_width(self.settings)


def compute_line_width(settings: Settings) -> int:
    try:
        scale = float(getattr(settings, "ui_scale", 1.0))
    except (TypeError, ValueError):
        scale = 1.0
    width = int(round(BASE_LINE_WIDTH * scale))
    return max(MIN_LINE_WIDTH, min(MAX_LINE_WIDTH, width))


def compute_text_delay(settings: Settings) -> float:
    try:
        speed = float(getattr(settings, "text_speed", 1.0))
    except (TypeError, ValueError):
        speed = 1.0
    if getattr(settings, "reduce_animations", False):
        return 0.0
    if speed <= 0:
        return 0.0
    return BASE_TEXT_DELAY / max(speed, 0.1)


async def emit_line(text: str, settings: Settings, *, allow_delay: bool = True) -> None:
    delay = compute_text_delay(settings) if allow_delay else 0.0
    if delay <= 0:
        emit_print(text)
        return
    for char in text:
        emit_print(char, end="", flush=True)
        await asyncio.sleep(delay)
    emit_print("")


def format_heading(text: str, settings: Settings) -> str:
    return text.upper() if getattr(settings, "high_contrast", False) else text


def separator(width: int, settings: Settings, *, primary: bool) -> str:
    if getattr(settings, "high_contrast", False):
        char = "#" if primary else "="
    else:
        char = "=" if primary else "-"
    return char * width


def format_stats(stats) -> str:
    if not stats:
        return "—"
    return ", ".join(f"{format_label(name)} {value}" for name, value in sorted(stats.items()))


def format_changes(stats: List[StatChange], inventory) -> List[str]:
    lines = []
    if stats:
        lines.append("Stats: " + ", ".join(f"{format_label(c.stat)} {format_signed(c.delta)}" for c in stats))
    if inventory:
        lines.append("Inventory: " + ", ".join(f"{e.item} {format_signed(e.delta)}" for e in inventory))
    return lines


def describe_choice(view: ChoiceView, index: int, settings: Settings) -> str:
    text = view.choice.text
    if not view.enabled:
        text = f"[{view.requirement}] {text} (unavailable)"
    if getattr(settings, "high_contrast", False):
        return f"  [{index}] {text.upper()}"
    return f"  {index}. {text}"


async def render_branch(session: Session) -> List[ChoiceView]:
    engine = session.engine
    settings = session.settings
    branch = engine.current_branch
    width = session.line_width
    emit_print("\n" + separator(width, settings, primary=True))
    emit_print(format_heading(branch.title, settings))
    emit_print(separator(width, settings, primary=False))

    for paragraph in chunk_paragraphs(branch.description):
        if not paragraph:
            emit_print("")
            continue
        for line in textwrap.wrap(paragraph.replace("\n", " "), width=width):
            await emit_line(line, settings, allow_delay=True)

    emit_print("")
    summary = f"Stats: {format_stats(engine.state.stats)} | Items: {format_inventory(engine.state.inventory)}"
    if getattr(settings, "high_contrast", False):
        summary = f"STATUS: {summary}"
    for line in textwrap.wrap(summary, width=width):
        emit_print(line)
    if engine.state.system_error:
        emit_print(f"[!] {engine.state.system_error}")
    emit_print(separator(width, settings, primary=False))

    visible = engine.list_choices()
    for idx, view in enumerate(visible, start=1):
        emit_print(describe_choice(view, idx, settings))
    if visible:
        if getattr(settings, "high_contrast", False):
            emit_print("  COMMANDS: " + " | ".join(COMMANDS))
        else:
            emit_print("  " + "    ".join(COMMANDS))
    return visible


def make_roll_presenter(session: Session):
    async def present(result: RollResult, stat_changes: List[StatChange]) -> None:
        await emit_line(f"[Roll] {build_roll_summary(result)}", session.settings, allow_delay=False)

    return present


async def show_journal(engine: StoryEngine) -> None:
    if not engine.state.journal:
        emit_print("The journal is empty.")
        return
    emit_print("\n=== Journal ===")
    for idx, entry in enumerate(engine.state.journal, start=1):
        emit_print(f"{idx}. {entry}")


def show_status(engine: StoryEngine) -> None:
    emit_print("Stats:", format_stats(engine.state.stats))
    emit_print("Inventory:", format_inventory(engine.state.inventory))
    emit_print("Visited:", f"{len(engine.state.visited_branches)} of {len(engine.story.branches)} branches")


def show_slot_overview(save_manager: SaveManager) -> None:
    slots = save_manager.list_slots()
    if not slots:
        emit_print("No manual saves recorded yet.")
        return
    emit_print("Available saves:")
    for meta in slots:
        details = []
        if meta.branch_title:
            details.append(f"@ {meta.branch_title}")
        if meta.saved_at:
            details.append(meta.saved_at)
        info = " ".join(details)
        emit_print(f"  - {meta.slot}: {info}" if info else f"  - {meta.slot}")


async def prompt_slot_name(action: str, save_manager: SaveManager) -> Optional[str]:
    show_slot_overview(save_manager)
    raw = (await read_input(f"Enter slot name to {action} (blank to cancel): ")).strip()
    if not raw:
        emit_print(f"{action.title()} cancelled.")
        return None
    return raw


async def open_options(session: Session) -> None:
    def apply(new_settings: Settings) -> None:
        session.settings = new_settings
        session.engine.state.set_max_journal_entries(new_settings.max_journal_entries)

    updated, changed = await options_menu(
        session.settings,
        settings_path=session.settings_path,
        apply_callback=apply,
        input_func=read_input,
        print_func=emit_print,
    )
    if changed:
        apply(updated)


async def pause_menu(session: Session, save_manager: SaveManager) -> str:
    while True:
        emit_print("\n=== Pause Menu ===")
        emit_print("1. Save Game")
        emit_print("2. Load Game")
        emit_print("3. Options")
        emit_print("R. Resume")
        emit_print("Q. Quit")
        choice = (await read_input("> ")).strip().lower()

        if choice in {"r", "resume"}:
            return "resume"
        if choice in {"q", "quit"}:
            return "quit"
        if choice == "1":
            slot = await prompt_slot_name("save", save_manager)
            if not slot:
                continue
            try:
                save_manager.save(slot)
            except SaveError as exc:
                emit_print(f"[!] {exc}")
            continue
        if choice == "2":
            slot = await prompt_slot_name("load", save_manager)
            if not slot:
                continue
            try:
                if await save_manager.load(slot):
                    return "loaded"
            except SaveError as exc:
                emit_print(f"[!] {exc}")
            continue
        if choice == "3":
            await open_options(session)
            continue
        emit_print("Pick a valid pause option.")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play a branching story script in the terminal.")
    parser.add_argument("story", nargs="?", default=str(DEFAULT_STORY_PATH))
    parser.add_argument("--stats", default=str(DEFAULT_STATS_PATH), help="Stat config file.")
    parser.add_argument("--saves", default="saves", help="Directory for save slots.")
    parser.add_argument("--settings", default=str(SETTINGS_PATH), help="Settings JSON file.")
    parser.add_argument("--seed", type=int, default=None, help="Seed the dice for a repeatable run.")
    parser.add_argument("--verbose", action="store_true", help="Log engine activity to stderr.")
    return parser.parse_args(argv)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    settings_path = Path(args.settings)
    settings = load_settings(settings_path)
    rng = random.Random(args.seed) if args.seed is not None else None
    engine = StoryEngine(rng=rng, max_journal_entries=settings.max_journal_entries)
    try:
        engine.load(args.story, args.stats or None)
    except (OSError, ValueError) as exc:
        emit_print(f"[!] Could not load story: {exc}")
        return 1

    session = Session(engine=engine, settings=settings, settings_path=settings_path)
    engine.roll_presenter = make_roll_presenter(session)
    save_manager = SaveManager(engine, base_path=args.saves, input_func=read_input, print_func=emit_print)
    save_manager.autosave()

    while True:
        branch = engine.current_branch
        if branch is None:
            emit_print(f"[!] Missing branch '{engine.state.current_branch_id}'. Exiting.")
            return 1

        visible = await render_branch(session)
        save_manager.autosave()

        if engine.is_depleted():
            emit_print("\n*** Your stamina is spent. The story ends here. ***")
            return 0
        if not branch.choices:
            emit_print(f"\n*** The End: {branch.title} ***")
            return 0

        raw_choice = (await read_input("> ")).strip()
        choice = raw_choice.lower()
        if choice == "q":
            return 0
        if choice == "u":
            if not engine.undo_last_choice():
                emit_print("[!] Nothing to undo.")
            continue
        if choice == "r":
            engine.restart()
            continue
        if choice == "j":
            await show_journal(engine)
            continue
        if choice == "i":
            show_status(engine)
            continue
        if choice == "s":
            try:
                save_manager.save(save_manager.QUICK_SLOT, label="Quick Save")
            except SaveError as exc:
                emit_print(f"[!] {exc}")
            continue
        if choice == "l":
            await save_manager.load(save_manager.QUICK_SLOT)
            continue
        if choice == "p":
            if await pause_menu(session, save_manager) == "quit":
                return 0
            continue
        if not choice.isdigit():
            emit_print("Enter a number or U/J/I/S/L/P/R/Q.")
            continue
        idx = int(choice)
        if not (1 <= idx <= len(visible)):
            emit_print("Pick a valid choice number.")
            continue

        resolution = await engine.handle_choice(visible[idx - 1].choice.id)
        if resolution.status == "rejected":
            emit_print(f"[!] {resolution.message}")
            continue
        if resolution.outcome is not None and resolution.committed:
            for line in format_changes(resolution.outcome.applied_stats, resolution.outcome.applied_inventory):
                await emit_line(f"[+] {line}", session.settings, allow_delay=False)


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        emit_print("\n[Interrupted] Bye.")


if __name__ == "__main__":
    run()
