"""Slot-based save files for the story engine."""

from __future__ import annotations

import inspect
import json
import logging
import shutil
import string
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from .engine import StoryEngine

logger = logging.getLogger(__name__)

SAVE_VERSION = 1


class SaveError(Exception):
    """Base class for save related failures."""


class SaveCorruptError(SaveError):
    """Raised when a save file cannot be parsed or validated."""


def validate_save_payload(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise SaveCorruptError("Payload was not an object.")
    version = payload.get("version")
    if isinstance(version, bool) or version != SAVE_VERSION:
        raise SaveCorruptError(f"Unsupported save version: {version!r}")
    if not isinstance(payload.get("state"), dict):
        raise SaveCorruptError("Save data missing required state information.")


@dataclass
class SlotMetadata:
    slot: str
    saved_at: Optional[str] = None
    branch_title: Optional[str] = None


class SaveManager:
    """Handle save/load/autosave orchestration with backups."""

    SAVE_FILENAME = "save.json"
    BACKUP_FILENAME = "save.bak"
    AUTOSAVE_SLOT = "autosave"
    QUICK_SLOT = "quick"
    _VALID_SLOT_CHARS = set(string.ascii_lowercase + string.digits + "-_")

    def __init__(
        self,
        engine: "StoryEngine",
        base_path: Path | str = "saves",
        *,
        input_func: Callable[[str], str | Awaitable[str]] = input,
        print_func: Callable[[str], None] = print,
    ) -> None:
        self.engine = engine
        self.base_path = Path(base_path)
        self.input_func = input_func
        self.print = print_func
        self.base_path.mkdir(parents=True, exist_ok=True)

    # ---------- Public API ----------
    def save(self, slot: str, *, label: Optional[str] = None, quiet: bool = False) -> Path:
        normalized = self._normalize_slot(slot)
        payload = self.engine.create_save_payload()
        path = self._slot_path(normalized)
        path.mkdir(parents=True, exist_ok=True)
        save_path = path / self.SAVE_FILENAME
        backup_path = path / self.BACKUP_FILENAME
        self._write_payload(save_path, backup_path, payload, make_backup=True)
        logger.debug("Saved slot %s to %s", normalized, save_path)

        if not quiet:
            tag = label or "Saved"
            self.print(f"[{tag}] Slot '{normalized}' written to {save_path}.")
        return save_path

    async def load(self, slot: str, *, prefer_backup: bool = False) -> bool:
        normalized = self._normalize_slot(slot)
        path = self._slot_path(normalized)
        save_path = path / self.SAVE_FILENAME
        backup_path = path / self.BACKUP_FILENAME

        target_path = backup_path if prefer_backup else save_path
        if not target_path.exists():
            if save_path.exists():
                target_path = save_path
            else:
                self.print(f"[!] No save found for slot '{normalized}'.")
                return False

        try:
            payload = self._read_payload(target_path)
        except SaveCorruptError as err:
            if backup_path.exists() and target_path != backup_path:
                self.print(f"[!] Save slot '{normalized}' is corrupted: {err}")
                if not await self._confirm_restore(normalized):
                    self.print("[!] Load cancelled.")
                    return False
                try:
                    payload = self._read_payload(backup_path)
                except SaveError as backup_err:
                    self.print(f"[!] Backup for slot '{normalized}' also failed: {backup_err}")
                    return False
                self._write_payload(save_path, backup_path, payload, make_backup=False)
                logger.warning("Restored slot %s from its backup", normalized)
                self.print(f"[Restore] Backup save applied for slot '{normalized}'.")
            else:
                self.print(f"[!] Failed to load slot '{normalized}': {err}. No backup available.")
                return False
        except SaveError as err:
            self.print(f"[!] Failed to load slot '{normalized}': {err}")
            return False

        try:
            self.engine.load_from_save(payload)
        except (OSError, ValueError, SaveError) as err:
            self.print(f"[!] Failed to load slot '{normalized}': {err}")
            return False
        self.print(f"[Loaded] Slot '{normalized}' from {target_path}.")
        return True

    def autosave(self) -> Optional[Path]:
        if self.engine.story is None or not self.engine.state.current_branch_id:
            return None
        return self.save(self.AUTOSAVE_SLOT, label="Autosave", quiet=True)

    def list_slots(self, *, include_special: bool = False) -> List[SlotMetadata]:
        slots: List[SlotMetadata] = []
        if not self.base_path.exists():
            return slots
        for child in sorted(self.base_path.iterdir()):
            if not child.is_dir():
                continue
            if not include_special and child.name == self.AUTOSAVE_SLOT:
                continue
            main_path = child / self.SAVE_FILENAME
            if not main_path.exists():
                continue
            slots.append(self._read_metadata(main_path))
        return slots

    # ---------- Internal helpers ----------
    def _normalize_slot(self, slot: str) -> str:
        slot = (slot or "").strip().lower()
        if slot in {self.AUTOSAVE_SLOT, self.QUICK_SLOT}:
            return slot
        cleaned = "".join(ch for ch in slot if ch in self._VALID_SLOT_CHARS)
        if not cleaned:
            raise SaveError("Slot names must contain letters or numbers.")
        if cleaned == self.AUTOSAVE_SLOT:
            raise SaveError("The autosave slot is reserved.")
        return cleaned

    def _slot_path(self, slot: str) -> Path:
        return self.base_path / slot

    def _write_payload(
        self,
        save_path: Path,
        backup_path: Path,
        payload: Dict,
        *,
        make_backup: bool,
    ) -> None:
        tmp_path = save_path.with_suffix(save_path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
        if make_backup and save_path.exists():
            backup_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(save_path, backup_path)
        tmp_path.replace(save_path)

    def _read_payload(self, path: Path) -> Dict:
        try:
            with open(path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError as exc:
            raise SaveError("Save file missing.") from exc
        except json.JSONDecodeError as exc:
            raise SaveCorruptError(f"Invalid JSON: {exc}") from exc
        validate_save_payload(payload)
        return payload

    async def _confirm_restore(self, slot: str) -> bool:
        response = (
            await self._resolve_input(f"Restore backup for slot '{slot}'? [y/N]: ")
        ).strip().lower()
        return response in {"y", "yes"}

    async def _resolve_input(self, prompt: str) -> str:
        result = self.input_func(prompt)
        if inspect.isawaitable(result):
            return await result
        return result

    def _read_metadata(self, path: Path) -> SlotMetadata:
        try:
            payload = self._read_payload(path)
        except SaveError:
            return SlotMetadata(slot=path.parent.name)
        story = payload.get("story") if isinstance(payload.get("story"), dict) else {}
        return SlotMetadata(
            slot=path.parent.name,
            saved_at=payload.get("createdAt"),
            branch_title=story.get("currentBranchTitle"),
        )
