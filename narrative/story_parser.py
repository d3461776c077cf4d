"""Line-oriented parser that turns a story script into a branch graph.

A script is a sequence of branches::

    # comments start with a hash
    Title: The Crossroads
    Branch: [start]
    Description: Two roads part beneath a leaning signpost.

    Rain has turned the western road to mud.
    Choice: display=[Walk west]; next=[mud]; stat=stamina-1
    Choice: display=[Climb the sign]; roll=[agility, dice=2d6, target=8, ok=view, fail=fall]

Branches may point at branches defined later in the file; destinations are
only checked when a choice is resolved.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional

from .directives import StoryParseError, parse_bracket_value, parse_choice
from .story_schema import Branch, Choice, Story

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"
DIRECTIVES = ("title", "branch", "description", "choice")
_LINE_SPLIT = re.compile(r"\r?\n")

__all__ = ["StoryParseError", "parse_story", "load_story"]


@dataclass
class BranchDraft:
    title: str
    line_number: int
    id: Optional[str] = None
    description_lines: List[str] = field(default_factory=list)
    choices: List[Choice] = field(default_factory=list)


@dataclass
class ParseContext:
    current: Optional[BranchDraft] = None
    description_active: bool = False
    drafts: List[BranchDraft] = field(default_factory=list)

    def finalize(self) -> None:
        draft = self.current
        if draft is None:
            return
        if not draft.id:
            raise StoryParseError(
                f'Branch "{draft.title}" (line {draft.line_number}) is missing its Branch id.',
                draft.line_number,
            )
        self.drafts.append(draft)
        self.current = None
        self.description_active = False


def _directive_of(line: str) -> Optional[str]:
    head, sep, _ = line.partition(":")
    if not sep:
        return None
    name = head.strip().lower()
    return name if name in DIRECTIVES else None


def _directive_value(line: str, label: str, line_number: int, *, allow_empty: bool = False) -> str:
    value = line.partition(":")[2].strip()
    if not value and not allow_empty:
        raise StoryParseError(
            f"{label} definition on line {line_number} is missing its value.", line_number
        )
    return value


def _build_story(drafts: List[BranchDraft]) -> Story:
    if not drafts:
        raise StoryParseError("No branches were discovered in the story file.")

    branches: Dict[str, Branch] = {}
    for draft in drafts:
        if draft.id in branches:
            raise StoryParseError(
                f'Duplicate branch id "{draft.id}" encountered on line {draft.line_number}.',
                draft.line_number,
            )
        description = "\n".join(draft.description_lines).strip()
        if not description:
            raise StoryParseError(
                f'Branch "{draft.id}" (line {draft.line_number}) is missing a description.',
                draft.line_number,
            )
        branches[draft.id] = Branch(
            id=draft.id,
            title=draft.title,
            description=description,
            choices=tuple(
                replace(choice, id=f"{draft.id}:{number}")
                for number, choice in enumerate(draft.choices, start=1)
            ),
        )
    return Story(start=drafts[0].id, branches=branches)


def parse_story(raw: str) -> Story:
    if not isinstance(raw, str):
        raise TypeError("Story parser expected a string payload.")

    context = ParseContext()
    for index, line in enumerate(_LINE_SPLIT.split(raw)):
        line_number = index + 1
        trimmed = line.strip()

        if not trimmed:
            if context.current is not None and context.description_active:
                context.current.description_lines.append("")
            continue
        if trimmed.startswith(COMMENT_PREFIX):
            continue

        directive = _directive_of(trimmed)
        if directive == "title":
            context.finalize()
            context.current = BranchDraft(
                title=_directive_value(trimmed, "Title", line_number), line_number=line_number
            )
            continue

        if context.current is None:
            raise StoryParseError(
                f"Unexpected content before the first branch on line {line_number}. "
                'Start branches with "Title:".',
                line_number,
            )
        draft = context.current

        if directive == "branch":
            branch_id = parse_bracket_value(_directive_value(trimmed, "Branch", line_number))
            if not branch_id:
                raise StoryParseError(
                    f"Branch id on line {line_number} cannot be empty.", line_number
                )
            draft.id = branch_id
            context.description_active = False
        elif directive == "description":
            first = _directive_value(trimmed, "Description", line_number, allow_empty=True)
            draft.description_lines = [first]
            context.description_active = True
        elif directive == "choice":
            payload = _directive_value(trimmed, "Choice", line_number)
            draft.choices.append(parse_choice(draft.id or "", payload, line_number))
            context.description_active = False
        elif context.description_active:
            draft.description_lines.append(trimmed)
        else:
            raise StoryParseError(
                f'Unrecognised directive on line {line_number}: "{line}".', line_number
            )

    context.finalize()
    story = _build_story(context.drafts)
    logger.debug("Parsed %d branches (start=%s).", len(story.branches), story.start)
    return story


def load_story(path: Path | str) -> Story:
    with open(path, "r", encoding="utf-8") as handle:
        return parse_story(handle.read())
