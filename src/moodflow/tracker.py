from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from ._util import _now_local
from .activities import append_activity, mood_for_context, recommend
from .models import MOOD_MAX, MOOD_MIN, MoodEntry, is_mood_value
from .relay import FeedbackRelay, RelayBusyError, RelayState
from .render import DEFAULT_RANGE, HistoryView, parse_range, render_history
from .storage import EntryStore


class MissingMoodError(ValueError):
    """Save was attempted without a mood selected."""


MISSING_MOOD_PROMPT = "Please select your mood (tap an emoji)."


@dataclass
class TrackerState:
    selected_mood: int | None = None
    note: str = ""
    history_range: str = DEFAULT_RANGE
    relay_state: RelayState = RelayState.IDLE
    ai_message: str | None = None


class Tracker:
    """
    The check-in workflow with all of its state held in ``self.state``.

    Front ends call these methods from their event handlers and then redraw
    from ``view()``; nothing here touches a widget.
    """

    def __init__(self, store: EntryStore, relay: FeedbackRelay | None = None, state: TrackerState | None = None):
        self.store = store
        self.relay = relay or FeedbackRelay()
        self.state = state or TrackerState()
        self.relay.add_listener(self._on_relay_state)

    def _on_relay_state(self, relay_state: RelayState) -> None:
        self.state.relay_state = relay_state

    @property
    def controls_enabled(self) -> bool:
        return self.state.relay_state is RelayState.IDLE

    # -------- Form --------

    def select_mood(self, value: int) -> list[str]:
        if not is_mood_value(value):
            raise ValueError(f"Mood must be between {MOOD_MIN} and {MOOD_MAX}.")
        self.state.selected_mood = value
        return recommend(value)

    def add_activity(self, label: str) -> str:
        self.state.note = append_activity(self.state.note, label)
        return self.state.note

    def reset_form(self) -> None:
        self.state.selected_mood = None
        self.state.note = ""

    def set_range(self, range_: str) -> None:
        parse_range(range_)
        self.state.history_range = range_

    # -------- Log --------

    def save(self, now: datetime | None = None) -> MoodEntry:
        """Record the current form as a check-in. Raises MissingMoodError when no mood is selected."""
        if self.state.selected_mood is None:
            raise MissingMoodError(MISSING_MOOD_PROMPT)
        entry = MoodEntry(
            value=self.state.selected_mood,
            note=self.state.note.strip(),
            # stored with seconds precision; keep the in-memory entry identical
            timestamp=(now or _now_local()).replace(microsecond=0),
        )
        self.store.append(entry)
        return entry

    async def save_and_reflect(self, now: datetime | None = None) -> tuple[MoodEntry, str]:
        if self.relay.busy:
            raise RelayBusyError("Still waiting on the previous check-in.")
        entry = self.save(now=now)
        self.reset_form()
        reply = await self.relay.reflect(entry.value, entry.note)
        self.state.ai_message = reply
        return entry, reply

    def clear_all(self, confirm: bool | Callable[[], bool]) -> bool:
        confirmed = confirm() if callable(confirm) else confirm
        if not confirmed:
            return False
        self.store.clear_all()
        return True

    def entries(self) -> list[MoodEntry]:
        return self.store.read_all()

    # -------- Rendering --------

    def view(self, today: date | None = None) -> HistoryView:
        return render_history(self.entries(), self.state.history_range, today=today)

    def activities(self) -> list[str]:
        return recommend(mood_for_context(self.state.selected_mood, self.entries()))
