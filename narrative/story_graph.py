"""Branch graph queries: edges, reachability and Mermaid export."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from .story_schema import Choice, Story

_MERMAID_UNSAFE = re.compile(r"[^A-Za-z0-9_]")
_EDGE_LABEL_UNSAFE = re.compile(r"[\[\]{}<>|`\"()]")

CLASS_DEFINITIONS = (
    ("default", "fill:#141a31,stroke:#49d2ff,stroke-width:2px"),
    ("unvisited", "fill:#1a1d29,stroke:#3a3f55,stroke-width:1.5px,color:#8590b5"),
    ("current", "stroke:#63f5c0,stroke-width:3px"),
)


@dataclass(frozen=True)
class Edge:
    origin: str
    target: str
    choice_id: str
    label: str = ""


def _edge_label(choice: Choice, outcome: Optional[str] = None) -> str:
    if outcome is None:
        return choice.text
    return f"{choice.text}: {outcome}"


def build_edges(story: Story) -> List[Edge]:
    """Every destination named by every choice, in authoring order.

    Destinations that do not exist in the story are included.
    """
    edges: List[Edge] = []
    for branch_id, branch in story.branches.items():
        for choice in branch.choices:
            if choice.roll is not None:
                edges.append(Edge(branch_id, choice.roll.ok, choice.id, _edge_label(choice, "success")))
                edges.append(Edge(branch_id, choice.roll.fail, choice.id, _edge_label(choice, "fail")))
            elif choice.next:
                edges.append(Edge(branch_id, choice.next, choice.id, _edge_label(choice)))
    return edges


def missing_destinations(story: Story) -> List[Edge]:
    return [edge for edge in build_edges(story) if edge.target not in story]


def adjacency(story: Story) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {branch_id: [] for branch_id in story.branches}
    for edge in build_edges(story):
        if edge.target in story and edge.target not in graph[edge.origin]:
            graph[edge.origin].append(edge.target)
    return graph


def reachable_from(story: Story, start: Optional[str] = None) -> Set[str]:
    graph = adjacency(story)
    start = start or story.start
    if start not in graph:
        return set()
    visited: Set[str] = set()
    stack = [start]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        stack.extend(graph.get(current, []))
    return visited


def unreachable_branches(story: Story, start: Optional[str] = None) -> List[str]:
    reached = reachable_from(story, start)
    return [branch_id for branch_id in story.branches if branch_id not in reached]


# ---------- Mermaid ----------
def sanitize_mermaid_id(value: str) -> str:
    cleaned = _MERMAID_UNSAFE.sub("_", (value or "").strip())
    if not cleaned:
        return "Node"
    if not cleaned[0].isascii() or not cleaned[0].isalpha():
        return f"N_{cleaned}"
    return cleaned


def _unique_id(value: str, used: Set[str]) -> str:
    base = sanitize_mermaid_id(value)
    candidate = base
    counter = 1
    while candidate in used:
        candidate = f"{base}_{counter}"
        counter += 1
    used.add(candidate)
    return candidate


def escape_mermaid_label(value: str) -> str:
    escaped = (value or "").replace("\\", "\\\\").replace('"', '\\"')
    return re.sub(r"\r?\n|\r", " ", escaped).strip()


def sanitize_edge_label(value: str) -> str:
    return re.sub(r"\s+", " ", _EDGE_LABEL_UNSAFE.sub("", value or "")).strip()


def build_mermaid_definition(
    story: Story,
    *,
    current_branch_id: Optional[str] = None,
    visited: Optional[Iterable[str]] = None,
    edge_labels: bool = False,
) -> str:
    """Render the branch graph as a Mermaid ``graph LR`` flowchart.

    Branches missing from ``visited`` get the ``unvisited`` class once any
    visit data is given; the current branch always counts as visited. With
    ``edge_labels`` every choice becomes its own labelled edge, otherwise
    parallel edges collapse into one.
    """
    visited_set = {v.strip() for v in visited or () if isinstance(v, str) and v.strip()}
    used: Set[str] = set()
    ids = {branch_id: _unique_id(branch_id, used) for branch_id in story.branches}

    lines = ["graph LR", "  %% Nodes"]
    unvisited: List[str] = []
    current: List[str] = []
    for branch_id, branch in story.branches.items():
        node_id = ids[branch_id]
        label = escape_mermaid_label(branch.title.strip() or branch_id)
        lines.append(f'  {node_id}["{label}"]')
        if current_branch_id and branch_id == current_branch_id:
            current.append(node_id)
        elif visited_set and branch_id not in visited_set:
            unvisited.append(node_id)

    lines.append("  %% Edges")
    seen = set()
    for edge in build_edges(story):
        origin, target = ids.get(edge.origin), ids.get(edge.target)
        if not origin or not target:
            continue
        if edge_labels:
            label = sanitize_edge_label(edge.label)
            lines.append(f"  {origin} -->|{label}| {target}" if label else f"  {origin} --> {target}")
            continue
        if (origin, target) in seen:
            continue
        seen.add((origin, target))
        lines.append(f"  {origin} --> {target}")

    lines.append("  %% Node Classes")
    for name, definition in CLASS_DEFINITIONS:
        lines.append(f"  classDef {name} {definition};")
    if unvisited:
        lines.append(f"  class {','.join(unvisited)} unvisited;")
    if current:
        lines.append(f"  class {','.join(current)} current;")
    return "\n".join(lines)
