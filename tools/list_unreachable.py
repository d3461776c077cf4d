import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_STORY_PATH = REPO_ROOT / "assets" / "story.txt"

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from narrative.story_graph import missing_destinations, reachable_from
from narrative.story_parser import load_story


def main() -> None:
    story_path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_STORY_PATH
    story = load_story(story_path)
    reached = reachable_from(story)
    unreachable = [branch_id for branch_id in story.branches if branch_id not in reached]

    print(f"Story file: {story_path}")
    print(f"Total branches: {len(story.branches)}")
    print(f"Reachable branches: {len(reached)}")
    if unreachable:
        print("Unreachable branches:")
        for branch_id in unreachable:
            print(f"  - {branch_id}")
    else:
        print(f'All branches reachable from "{story.start}".')

    missing = missing_destinations(story)
    if missing:
        print("Missing destinations:")
        for edge in missing:
            print(f"  - {edge.origin} -> {edge.target} ({edge.choice_id})")


if __name__ == "__main__":
    main()
