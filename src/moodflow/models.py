from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ._util import _now_local, _with_local_tz

MOOD_MIN = 1
MOOD_MAX = 5

MOOD_LABELS: dict[int, str] = {
    1: "very low",
    2: "low",
    3: "neutral",
    4: "good",
    5: "great",
}

MOOD_EMOJI: dict[int, str] = {
    1: "😞",
    2: "😕",
    3: "😐",
    4: "🙂",
    5: "😄",
}

UNKNOWN_MOOD_GLYPH = "—"


class InvalidEntryError(ValueError):
    """A stored record does not have the shape of a mood entry."""


def is_mood_value(value: Any) -> bool:
    # bool is an int subclass; True must not sneak in as a 1
    return isinstance(value, int) and not isinstance(value, bool) and MOOD_MIN <= value <= MOOD_MAX


def mood_label(value: Any) -> str:
    return MOOD_LABELS.get(value, str(value)) if is_mood_value(value) else str(value)


def mood_emoji(value: Any) -> str:
    return MOOD_EMOJI.get(value, UNKNOWN_MOOD_GLYPH) if is_mood_value(value) else UNKNOWN_MOOD_GLYPH


def _parse_date(raw: Any) -> datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidEntryError(f"missing or non-string date: {raw!r}")
    s = raw.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return _with_local_tz(datetime.fromisoformat(s))
    except (ValueError, OverflowError) as e:
        # OverflowError: in range as written, out of range once shifted to local time
        raise InvalidEntryError(f"unparseable date: {raw!r}") from e


@dataclass(frozen=True)
class MoodEntry:
    """
    One check-in.

    Persisted as ``{"value": int, "note": str, "date": ISO-8601}``; the
    timestamp is always timezone-aware once it is in memory.
    """

    value: int
    note: str = ""
    timestamp: datetime = field(default_factory=_now_local)

    def __post_init__(self) -> None:
        if not is_mood_value(self.value):
            raise InvalidEntryError(f"mood value must be an integer {MOOD_MIN}–{MOOD_MAX}, got {self.value!r}")
        if not isinstance(self.note, str):
            raise InvalidEntryError(f"note must be text, got {type(self.note).__name__}")
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", _with_local_tz(self.timestamp))

    @property
    def label(self) -> str:
        return mood_label(self.value)

    @property
    def emoji(self) -> str:
        return mood_emoji(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "note": self.note,
            "date": self.timestamp.isoformat(timespec="seconds"),
        }

    @classmethod
    def from_dict(cls, raw: Any) -> MoodEntry:
        if not isinstance(raw, dict):
            raise InvalidEntryError(f"entry must be an object, got {type(raw).__name__}")
        note = raw.get("note")
        if note is None:
            note = ""
        return cls(value=raw.get("value"), note=note, timestamp=_parse_date(raw.get("date")))
