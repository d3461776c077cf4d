import asyncio
import json
from pathlib import Path

from narrative.options_menu import ENTRIES, adjust_entry, format_value, options_menu, reset_entry
from narrative.settings import MAX_JOURNAL_LIMIT, Settings, load_settings, save_settings


def entry(field: str):
    return next(item for item in ENTRIES if item.field == field)


def test_from_dict_clamps_and_coerces() -> None:
    settings = Settings.from_dict(
        {"max_journal_entries": "500", "text_speed": -3, "reduce_animations": "yes", "ui_scale": "big"}
    )
    assert settings.max_journal_entries == MAX_JOURNAL_LIMIT
    assert settings.text_speed == 0.0
    assert settings.reduce_animations is True
    assert settings.ui_scale == 1.0
    assert Settings.from_dict(None) == Settings()


def test_settings_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    save_settings(Settings(max_journal_entries=3, high_contrast=True), path)

    assert json.loads(path.read_text(encoding="utf-8"))["max_journal_entries"] == 3
    loaded = load_settings(path)
    assert loaded.max_journal_entries == 3
    assert loaded.high_contrast is True


def test_load_settings_falls_back_on_bad_files(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "missing.json") == Settings()
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert load_settings(broken) == Settings()


def test_adjust_entry_respects_bounds() -> None:
    settings = Settings(max_journal_entries=1)
    assert not adjust_entry(settings, entry("max_journal_entries"), -1)
    assert adjust_entry(settings, entry("max_journal_entries"), 1)
    assert settings.max_journal_entries == 2

    assert adjust_entry(settings, entry("high_contrast"), 1)
    assert settings.high_contrast is True


def test_reset_entry_restores_default() -> None:
    settings = Settings(text_speed=3.0)
    assert reset_entry(settings, entry("text_speed"))
    assert settings.text_speed == 1.0
    assert not reset_entry(settings, entry("text_speed"))


def test_format_value() -> None:
    assert format_value(True, "toggle") == "On"
    assert format_value(0, "text_speed") == "Instant"
    assert format_value(1.5, "scale") == "1.50x"
    assert format_value(8, "count") == "8 entries"


def test_options_menu_saves_changes(tmp_path: Path) -> None:
    answers = iter(["d", "d", "esc"])
    applied = []
    path = tmp_path / "settings.json"

    settings, changed = asyncio.run(
        options_menu(
            Settings(),
            settings_path=path,
            apply_callback=applied.append,
            input_func=lambda prompt: next(answers),
            print_func=lambda line: None,
        )
    )

    assert changed is True
    assert settings.max_journal_entries == 10
    assert [item.max_journal_entries for item in applied] == [9, 10]
    assert load_settings(path).max_journal_entries == 10


def test_options_menu_without_changes_keeps_settings(tmp_path: Path) -> None:
    output = []
    current = Settings(text_speed=2.0)
    settings, changed = asyncio.run(
        options_menu(
            current,
            settings_path=tmp_path / "settings.json",
            input_func=lambda prompt: "q",
            print_func=output.append,
        )
    )
    assert changed is False
    assert settings is current
    assert output[-1] == "[Settings] No changes made."
    assert not (tmp_path / "settings.json").exists()
