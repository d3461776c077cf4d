from pathlib import Path

import pytest

from narrative.story_parser import StoryParseError, load_story, parse_story
from narrative.story_schema import ROLL_TOTAL, VISITED_NONE

REPO_ROOT = Path(__file__).resolve().parents[1]

BASIC_STORY = """\
# opening comment
Title: Start Here
Branch: [a]
Description: First paragraph.

Second paragraph.
Choice: display=[Go on]; next=[b]; stat=luck+5; item=rope+

Title: The End
Branch: b
Description:
Nothing more to see.
"""


def test_parse_story_builds_branches_in_order() -> None:
    story = parse_story(BASIC_STORY)

    assert story.start == "a"
    assert list(story.branches) == ["a", "b"]
    first = story.branches["a"]
    assert first.title == "Start Here"
    assert first.description == "First paragraph.\n\nSecond paragraph."
    assert story.branches["b"].description == "Nothing more to see."


def test_choices_get_branch_scoped_ids() -> None:
    story = parse_story(BASIC_STORY)
    choice = story.branches["a"].choices[0]

    assert choice.id == "a:1"
    assert choice.text == "Go on"
    assert choice.next == "b"
    assert choice.stats[0].stat == "luck"
    assert choice.stats[0].delta == 5
    assert choice.inventory[0].item == "rope"
    assert choice.inventory[0].delta == 1


def test_parsing_is_deterministic() -> None:
    assert parse_story(BASIC_STORY) == parse_story(BASIC_STORY)


def test_forward_references_are_allowed() -> None:
    story = parse_story(
        "Title: One\nBranch: one\nDescription: x\nChoice: display=Later; next=nowhere\n"
    )
    assert story.branches["one"].choices[0].next == "nowhere"


def test_windows_line_endings_are_accepted() -> None:
    story = parse_story("Title: One\r\nBranch: one\r\nDescription: text\r\n")
    assert story.branches["one"].description == "text"


def test_directives_are_case_insensitive() -> None:
    story = parse_story("TITLE: One\nbranch: one\ndescription: text\n")
    assert story.start == "one"


def test_roll_and_conditions_are_parsed() -> None:
    story = parse_story(
        "Title: One\nBranch: one\nDescription: x\n"
        "Choice: display=Leap; roll=[agility, dice=2d6, target=9, ok=two, fail=one]; "
        "stat=agility-roll; optional=unvisited(two)\n"
        "Title: Two\nBranch: two\nDescription: y\n"
    )
    choice = story.branches["one"].choices[0]

    assert choice.roll.stat == "agility"
    assert choice.roll.dice.count == 2
    assert choice.roll.dice.sides == 6
    assert choice.roll.target == 9
    assert choice.destinations() == ("two", "one")
    assert choice.stats[0].dynamic.type == ROLL_TOTAL
    assert choice.stats[0].dynamic.scale == -1
    assert choice.visibility_condition.kind == VISITED_NONE
    assert choice.visibility_condition.values == ("two",)


@pytest.mark.parametrize(
    ("script", "line_number", "match"),
    [
        ("Branch: a\n", 1, "before the first branch"),
        ("Title: A\nDescription: x\n", 1, "missing its Branch id"),
        ("Title: A\nBranch: []\nDescription: x\n", 2, "cannot be empty"),
        ("Title: A\nBranch: a\n", 1, "missing a description"),
        ("Title: A\nBranch: a\nDescription: x\nChoice:\n", 4, "missing its value"),
        ("Title: A\nBranch: a\nDescription: x\nChoice: display=Go\n", 4, "next branch or a roll"),
        ("Title: A\nBranch: a\nDescription: x\nChoice: display=Go; next=b; colour=red\n", 4, "Unsupported"),
        ("Title: A\nBranch: a\nDescription: x\nChoice: display=Go; next\n", 4, "Malformed"),
        ("Title: A\nBranch: a\nDescription: x\nChoice: display=A; display=B; next=b\n", 4, "more than once"),
        ("Title: A\nBranch: a\nDescription: x\nChoice: display=Go; next=b\nstray text\n", 5, "Unrecognised"),
        ("Title: A\nBranch: a\nDescription: x\nTitle: B\nBranch: a\nDescription: y\n", 4, "Duplicate branch id"),
    ],
)
def test_parse_errors_report_line_numbers(script: str, line_number: int, match: str) -> None:
    with pytest.raises(StoryParseError, match=match) as excinfo:
        parse_story(script)
    assert excinfo.value.line_number == line_number


def test_empty_script_is_rejected() -> None:
    with pytest.raises(StoryParseError, match="No branches"):
        parse_story("# only a comment\n\n")


def test_description_keeps_lines_until_next_directive() -> None:
    story = parse_story(
        "Title: A\nBranch: a\nDescription: one\ntwo\n\n\nthree\nChoice: display=Go; next=a\n"
    )
    assert story.branches["a"].description == "one\ntwo\n\n\nthree"


def test_sample_story_loads() -> None:
    story = load_story(REPO_ROOT / "assets" / "story.txt")
    assert story.start == "crossroads"
    assert "town" in story.branches
    assert story.branches["town"].choices == ()
