#!/usr/bin/env python3
"""Validate a story script for common authoring mistakes."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_STORY = REPO_ROOT / "assets" / "story.txt"
DEFAULT_STATS = REPO_ROOT / "assets" / "stats.config"

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from narrative.stat_config import StatConfigError, load_stat_config
from narrative.story_graph import missing_destinations, unreachable_branches
from narrative.story_parser import StoryParseError, load_story
from narrative.story_schema import Story


def check_story(story: Story, stat_defaults: Optional[Dict[str, float]] = None) -> Tuple[List[str], List[str]]:
    """Return ``(errors, warnings)`` for a parsed story.

    Unknown stats are only reported when ``stat_defaults`` is given.
    """
    errors = [
        f'{edge.choice_id}: destination "{edge.target}" does not exist'
        for edge in missing_destinations(story)
    ]

    warnings: List[str] = []
    if stat_defaults is not None:
        for branch in story.branches.values():
            for choice in branch.choices:
                for effect in choice.stats:
                    if effect.stat not in stat_defaults:
                        warnings.append(f'{choice.id}: unknown stat "{effect.display_name}"')
                if choice.roll is not None and choice.roll.stat:
                    if choice.roll.stat.strip().lower() not in stat_defaults:
                        warnings.append(f'{choice.id}: roll uses unknown stat "{choice.roll.stat}"')
    for branch_id in unreachable_branches(story):
        warnings.append(f"{branch_id}: unreachable from start branch \"{story.start}\"")
    return errors, warnings


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate a story script.")
    parser.add_argument(
        "story_path",
        nargs="?",
        default=str(DEFAULT_STORY),
        help="Path to the story script.",
    )
    parser.add_argument("--stats", default=None, help="Stat config used to check stat names.")
    return parser.parse_args(argv)


def main(argv: Sequence[str]) -> None:
    args = parse_args(argv[1:])
    story_path = Path(args.story_path).resolve()
    try:
        story = load_story(story_path)
    except StoryParseError as exc:
        print(f"Failed to parse {story_path}: {exc}")
        sys.exit(1)
    except OSError as exc:
        print(f"Failed to read {story_path}: {exc}")
        sys.exit(1)

    stat_defaults = None
    if args.stats:
        try:
            stat_defaults = load_stat_config(args.stats)
        except (OSError, StatConfigError) as exc:
            print(f"Failed to read stat config {args.stats}: {exc}")
            sys.exit(1)

    errors, warnings = check_story(story, stat_defaults)
    if errors:
        print("Validation failed (choice: message):")
        for err in errors:
            print(f" - {err}")
        sys.exit(1)

    if warnings:
        print("Warnings (location: message):")
        for warning in warnings:
            print(f" - {warning}")

    print(f"Validation passed for {story_path}.")


if __name__ == "__main__":
    main(sys.argv)
