#!/usr/bin/env python3
"""Write the branch graph of a story script as a Mermaid flowchart."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_STORY = REPO_ROOT / "assets" / "story.txt"
DEFAULT_OUTPUT = REPO_ROOT / "assets" / "story-flow.md"

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from narrative.story_graph import build_mermaid_definition
from narrative.story_parser import StoryParseError, load_story


def render_document(story_path: Path, definition: str) -> str:
    return f"# Story Flow ({story_path.name})\n\n```mermaid\n{definition}\n```\n"


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a story script as a Mermaid flowchart.")
    parser.add_argument("story_path", nargs="?", default=str(DEFAULT_STORY))
    parser.add_argument("--output", "-o", default=str(DEFAULT_OUTPUT), help="Markdown file to write.")
    parser.add_argument("--labels", action="store_true", help="Label each edge with its choice text.")
    return parser.parse_args(argv)


def main(argv: Sequence[str]) -> None:
    args = parse_args(argv[1:])
    story_path = Path(args.story_path)
    try:
        story = load_story(story_path)
    except StoryParseError as exc:
        print(f"Failed to parse {story_path}: {exc}")
        sys.exit(1)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    definition = build_mermaid_definition(story, edge_labels=args.labels)
    output.write_text(render_document(story_path, definition), encoding="utf-8")
    print(f"Wrote Mermaid flowchart: {output}")


if __name__ == "__main__":
    main(sys.argv)
