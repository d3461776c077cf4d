"""Story engine: owns the loaded story, the game state and the undo stack."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .choice_processor import ChoiceOutcome, RollPresenter, process_choice
from .conditions import describe_condition
from .game_state import DEFAULT_MAX_JOURNAL_ENTRIES, GameState
from .rolls import RandomSource
from .save_manager import SAVE_VERSION, SaveCorruptError, validate_save_payload
from .stat_config import load_stat_config
from .story_parser import load_story
from .story_schema import Branch, Choice, Story

logger = logging.getLogger(__name__)

DEPLETION_STAT = "stamina"

STATUS_COMMITTED = "committed"
STATUS_ABORTED = "aborted"
STATUS_REJECTED = "rejected"
STATUS_BUSY = "busy"

StateChangeListener = Callable[[Dict[str, Any]], None]


@dataclass
class ChoiceResolution:
    status: str
    outcome: Optional[ChoiceOutcome] = None
    message: Optional[str] = None

    @property
    def committed(self) -> bool:
        return self.status == STATUS_COMMITTED


@dataclass
class ChoiceView:
    choice: Choice
    enabled: bool
    requirement: Optional[str] = None


class StoryEngine:
    """Resolve choices against a loaded story.

    A resolution runs idle -> resolving -> committed or aborted -> idle. While
    one is in flight further calls to ``handle_choice`` return ``busy``.
    Every committed choice leaves one snapshot on the undo stack; aborted
    attempts leave the state exactly as it was before the call.
    """

    def __init__(
        self,
        *,
        rng: Optional[RandomSource] = None,
        roll_presenter: Optional[RollPresenter] = None,
        max_journal_entries: int = DEFAULT_MAX_JOURNAL_ENTRIES,
    ) -> None:
        self.state = GameState(max_journal_entries)
        self.story: Optional[Story] = None
        self.story_path: Optional[str] = None
        self.stats_config_path: Optional[str] = None
        self.rng = rng
        self.roll_presenter = roll_presenter
        self._choice_in_progress = False
        self._history: List[Dict[str, Any]] = []
        self._listener: Optional[StateChangeListener] = None

    # ---------- Loading ----------
    def load(self, story_path: Path | str, stats_config_path: Optional[Path | str] = None) -> None:
        story = load_story(story_path)
        defaults = load_stat_config(stats_config_path)
        self.set_story(
            story,
            defaults,
            story_path=str(story_path),
            stats_config_path=str(stats_config_path) if stats_config_path else None,
        )

    def set_story(
        self,
        story: Story,
        stat_defaults: Optional[Dict[str, float]] = None,
        *,
        story_path: Optional[str] = None,
        stats_config_path: Optional[str] = None,
    ) -> None:
        self.story = story
        self.story_path = story_path
        self.stats_config_path = stats_config_path
        self.state.configure_stats(stat_defaults or {})
        self.reset_state()
        logger.debug("Loaded story with %d branches from %s", len(story.branches), story_path)

    def reset_state(self) -> None:
        if self.story is None:
            return
        self.clear_undo_history(silent=True)
        self.state.reset(self.story.start)
        self._notify_state_change()

    def restart(self) -> None:
        self.reset_state()

    # ---------- Queries ----------
    @property
    def is_processing_choice(self) -> bool:
        return self._choice_in_progress

    @property
    def current_branch(self) -> Optional[Branch]:
        if self.story is None:
            return None
        return self.story.get(self.state.current_branch_id)

    def list_choices(self) -> List[ChoiceView]:
        """Visible choices of the current branch; failing ``valid`` gates disable them."""
        branch = self.current_branch
        if branch is None:
            return []
        views = []
        for choice in branch.choices:
            if not self.state.evaluate_condition(choice.visibility_condition):
                continue
            enabled = self.state.evaluate_condition(choice.valid_condition)
            requirement = None if enabled else describe_condition(choice.valid_condition)
            views.append(ChoiceView(choice=choice, enabled=enabled, requirement=requirement))
        return views

    def is_depleted(self) -> bool:
        if DEPLETION_STAT not in self.state.stats:
            return False
        return self.state.get_stat_value(DEPLETION_STAT) <= 0

    # ---------- Resolution ----------
    async def handle_choice(self, choice_id: str) -> ChoiceResolution:
        if self._choice_in_progress:
            return ChoiceResolution(STATUS_BUSY)

        branch = self.current_branch
        if branch is None:
            return ChoiceResolution(STATUS_REJECTED, message="No branch is active.")
        choice = branch.find_choice(choice_id)
        if choice is None:
            return ChoiceResolution(STATUS_REJECTED, message=f'Unknown choice "{choice_id}".')
        if not self.state.evaluate_condition(choice.visibility_condition):
            return ChoiceResolution(STATUS_REJECTED, message="Choice is not available.")
        if not self.state.evaluate_condition(choice.valid_condition):
            return ChoiceResolution(
                STATUS_REJECTED, message=describe_condition(choice.valid_condition)
            )

        self._choice_in_progress = True
        snapshot: Optional[Dict[str, Any]] = None
        depth = 0
        try:
            self._notify_state_change()
            snapshot = self.state.create_snapshot()
            self._history.append(snapshot)
            depth = len(self._history)
            self.state.last_roll = None
            self.state.system_error = None
            outcome = await process_choice(
                choice, self.state, rng=self.rng, roll_presenter=self.roll_presenter
            )

            target = outcome.next_branch_id
            error = None
            if not target:
                error = "Choice does not specify a destination branch."
            elif target not in self.story:
                error = f'Missing branch "{target}".'
            if error is not None:
                self._rollback(snapshot, depth)
                self.state.system_error = error
                logger.warning("Aborted choice %s: %s", choice.id, error)
                return ChoiceResolution(STATUS_ABORTED, outcome=outcome, message=error)

            self.state.mark_transition(branch.id, target)
            self.state.set_current_branch(target)
            logger.debug("Transition %s -> %s via %s", branch.id, target, choice.id)
            return ChoiceResolution(STATUS_COMMITTED, outcome=outcome, message=self.state.system_error)
        except Exception:
            if snapshot is not None:
                self._rollback(snapshot, depth)
            raise
        finally:
            self._choice_in_progress = False
            self._notify_state_change()

    def _rollback(self, snapshot: Dict[str, Any], depth: int) -> None:
        del self._history[depth - 1 :]
        self.state.restore_snapshot(snapshot)

    # ---------- Undo ----------
    def can_undo(self) -> bool:
        return bool(self._history)

    def clear_undo_history(self, *, silent: bool = False) -> None:
        self._history = []
        if not silent:
            self._notify_state_change()

    def undo_last_choice(self) -> bool:
        if not self.can_undo() or self._choice_in_progress:
            return False
        snapshot = self._history.pop()
        self.state.restore_snapshot(snapshot)
        self._notify_state_change()
        return True

    # ---------- Listener ----------
    def set_state_change_listener(self, listener: Optional[StateChangeListener]) -> None:
        self._listener = listener if callable(listener) else None
        self._notify_state_change()

    def _notify_state_change(self) -> None:
        if self._listener is None:
            return
        self._listener(
            {
                "can_undo": self.can_undo(),
                "is_processing_choice": self._choice_in_progress,
                "current_branch_id": self.state.current_branch_id,
            }
        )

    # ---------- Saves ----------
    def create_save_payload(self) -> Dict[str, Any]:
        if self.story is None:
            raise RuntimeError("No story loaded to save.")
        branch = self.current_branch
        return {
            "version": SAVE_VERSION,
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "story": {
                "url": self.story_path,
                "statsConfigUrl": self.stats_config_path,
                "start": self.story.start,
                "currentBranchId": self.state.current_branch_id,
                "currentBranchTitle": branch.title if branch else None,
            },
            "state": self.state.create_snapshot(),
        }

    def load_from_save(self, payload: Any) -> None:
        """Restore a payload built by ``create_save_payload``.

        When the payload names a different story or stat config than the
        loaded ones, those files are loaded first. A saved location that no
        longer exists falls back to the story start with a ``system_error``.
        """
        validate_save_payload(payload)

        info = payload.get("story") if isinstance(payload.get("story"), dict) else {}
        story_path = info.get("url") or self.story_path
        stats_path = info["statsConfigUrl"] if "statsConfigUrl" in info else self.stats_config_path
        if self.story is None or story_path != self.story_path or stats_path != self.stats_config_path:
            if not story_path:
                raise SaveCorruptError("Save data does not name a story file.")
            self.load(story_path, stats_path)

        self.clear_undo_history(silent=True)
        self.state.restore_snapshot(payload["state"])
        branch_id = self.state.current_branch_id
        if not branch_id or branch_id not in self.story:
            if branch_id:
                message = f'Saved branch "{branch_id}" is unavailable. Reverting to the story start.'
            else:
                message = "Save data was missing the current location. Returning to the story start."
            logger.warning(message)
            self.state.set_current_branch(self.story.start)
            self.state.system_error = message
        self._notify_state_change()
