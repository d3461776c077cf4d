from narrative.story_graph import (
    Edge,
    build_edges,
    build_mermaid_definition,
    escape_mermaid_label,
    missing_destinations,
    reachable_from,
    sanitize_edge_label,
    sanitize_mermaid_id,
    unreachable_branches,
)
from narrative.story_parser import parse_story

STORY = """\
Title: Start "Here"
Branch: start
Description: x
Choice: display=Walk; next=middle
Choice: display=Run; next=middle
Choice: display=Gamble; roll=[target=4, ok=finale, fail=nowhere]

Title: Middle
Branch: middle
Description: y
Choice: display=Finish (fast); next=finale

Title: End
Branch: finale
Description: z

Title: Island
Branch: 9 island
Description: never reached
Choice: display=Leave; next=start
"""


def test_build_edges_includes_both_roll_outcomes() -> None:
    story = parse_story(STORY)
    edges = build_edges(story)

    assert edges[0] == Edge("start", "middle", "start:1", "Walk")
    assert Edge("start", "finale", "start:3", "Gamble: success") in edges
    assert Edge("start", "nowhere", "start:3", "Gamble: fail") in edges
    assert [edge.target for edge in missing_destinations(story)] == ["nowhere"]


def test_reachability() -> None:
    story = parse_story(STORY)
    assert reachable_from(story) == {"start", "middle", "finale"}
    assert unreachable_branches(story) == ["9 island"]
    assert reachable_from(story, "missing") == set()


def test_mermaid_identifiers() -> None:
    assert sanitize_mermaid_id("9 island") == "N_9_island"
    assert sanitize_mermaid_id("") == "Node"
    assert sanitize_mermaid_id("tower-top") == "tower_top"
    assert escape_mermaid_label('Start "Here"\nnow') == 'Start \\"Here\\" now'
    assert sanitize_edge_label("Finish (fast) | now") == "Finish fast now"


def test_mermaid_definition_collapses_parallel_edges() -> None:
    story = parse_story(STORY)
    definition = build_mermaid_definition(story, current_branch_id="middle", visited=["start", "middle"])
    lines = definition.splitlines()

    assert lines[0] == "graph LR"
    assert '  start["Start \\"Here\\""]' in lines
    assert lines.count("  start --> middle") == 1
    assert "  start --> nowhere" not in lines
    assert "  class finale,N_9_island unvisited;" in lines
    assert "  class middle current;" in lines


def test_mermaid_definition_with_edge_labels() -> None:
    story = parse_story(STORY)
    lines = build_mermaid_definition(story, edge_labels=True).splitlines()

    assert "  start -->|Walk| middle" in lines
    assert "  start -->|Run| middle" in lines
    assert "  middle -->|Finish fast| finale" in lines
    assert not any("unvisited;" in line for line in lines if line.startswith("  class "))
