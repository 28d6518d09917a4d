from __future__ import annotations

from typing import Sequence

from .models import MoodEntry, is_mood_value

ACTIVITY_SEPARATOR = " | "

DEFAULT_ACTIVITIES: list[str] = [
    "2-minute breathing",
    "Gratitude: 1 thing",
    "Walk for 5 min",
    "Stretch",
    "Write 1 sentence",
]

ACTIVITIES_BY_MOOD: dict[int, list[str]] = {
    1: [
        "Slow 2-minute breathing",
        "Drink a glass of water",
        "Message someone you trust",
        "Write 1 thing that’s hard right now",
    ],
    2: [
        "Short walk (3–5 min)",
        "Note 1 thing that went okay today",
        "Gentle stretching for 2 min",
    ],
    3: [
        "Gratitude: 2 small things",
        "Plan 1 nice thing for later",
        "Tidy one small area",
    ],
    4: [
        "Celebrate 1 win from today",
        "Do something fun for 5 min",
        "Send a kind message to someone",
    ],
    5: [
        "Capture this mood in 1 sentence",
        "Do a quick dance or stretch",
        "Start a small project you’ve been delaying",
    ],
}


def recommend(mood: object) -> list[str]:
    if is_mood_value(mood):
        return list(ACTIVITIES_BY_MOOD[mood])  # type: ignore[index]
    return list(DEFAULT_ACTIVITIES)


def mood_for_context(selected: int | None, entries: Sequence[MoodEntry]) -> int | None:
    """Selected mood first, then the latest check-in, else nothing."""
    if selected:
        return selected
    if entries:
        return entries[0].value
    return None


def append_activity(note: str, label: str) -> str:
    if label in note:
        return note
    return f"{note}{ACTIVITY_SEPARATOR}{label}" if note else label
