import asyncio
import json
from pathlib import Path

import pytest

from narrative import play
from narrative.engine import ChoiceView
from narrative.settings import Settings
from narrative.stats import StatChange
from narrative.story_schema import Choice, InventoryEffect

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_describe_choice_marks_disabled_requirements() -> None:
    choice = Choice(id="a:1", text="Open the gate", next="b")
    settings = Settings()
    assert play.describe_choice(ChoiceView(choice, True), 1, settings) == "  1. Open the gate"
    disabled = ChoiceView(choice, False, "Requires: key")
    assert play.describe_choice(disabled, 2, settings) == "  2. [Requires: key] Open the gate (unavailable)"
    settings.high_contrast = True
    assert play.describe_choice(ChoiceView(choice, True), 3, settings) == "  [3] OPEN THE GATE"


def test_format_changes() -> None:
    lines = play.format_changes([StatChange("luck", 2)], [InventoryEffect("rope", -1)])
    assert lines == ["Stats: Luck +2", "Inventory: rope -1"]
    assert play.format_changes([], []) == []


@pytest.mark.parametrize(("scale", "width"), [(1.0, 80), (0.1, 50), (2.0, 120), (1.25, 100)])
def test_compute_line_width(scale: float, width: int) -> None:
    assert play.compute_line_width(Settings(ui_scale=scale)) == width


def test_compute_text_delay() -> None:
    assert play.compute_text_delay(Settings(text_speed=0)) == 0.0
    assert play.compute_text_delay(Settings(reduce_animations=True)) == 0.0
    assert play.compute_text_delay(Settings(text_speed=2.0)) == pytest.approx(0.01)


def test_scripted_session(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"text_speed": 0}), encoding="utf-8")
    answers = iter(["1", "j", "u", "9", "q"])
    output = []

    async def fake_input(prompt: str = "") -> str:
        return next(answers)

    def fake_print(*args, **kwargs) -> None:
        output.append(" ".join(str(arg) for arg in args))

    monkeypatch.setattr(play, "read_input", fake_input)
    monkeypatch.setattr(play, "emit_print", fake_print)

    argv = [
        str(REPO_ROOT / "assets" / "story.txt"),
        "--stats",
        str(REPO_ROOT / "assets" / "stats.config"),
        "--saves",
        str(tmp_path / "saves"),
        "--settings",
        str(settings_path),
        "--seed",
        "3",
    ]
    assert asyncio.run(play.main(argv)) == 0

    text = "\n".join(output)
    assert "The Lantern Keeper" in text
    assert "The journal is empty." in text
    assert "Pick a valid choice number." in text
    assert (tmp_path / "saves" / "autosave" / "save.json").exists()


def test_missing_story_file_fails(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    output = []
    monkeypatch.setattr(play, "emit_print", lambda *args, **kwargs: output.append(" ".join(map(str, args))))
    argv = [str(tmp_path / "nope.txt"), "--saves", str(tmp_path / "saves"), "--settings", str(tmp_path / "s.json")]
    assert asyncio.run(play.main(argv)) == 1
    assert output[-1].startswith("[!] Could not load story:")
