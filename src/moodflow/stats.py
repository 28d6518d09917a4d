"""
Derived statistics over the mood log.

Everything here is recomputed from the log on every render and never stored.
Entries are expected newest-first, exactly as the store returns them.

Day policy: an entry belongs to the calendar day of its timestamp converted
to the machine's current local timezone. "Today" uses the same conversion,
and the streak walk steps over calendar dates rather than 24h spans, so a
DST switch never skips or repeats a day.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from ._util import _day_key, _today_local
from .models import MoodEntry

ROLLING_WINDOW = 30
NO_DATA = "—"


@dataclass(frozen=True)
class DerivedStats:
    count: int
    average: float | None
    streak: int
    trend: list[int] = field(default_factory=list)

    @property
    def average_text(self) -> str:
        return format_average(self.average)


def _recent(entries: Sequence[MoodEntry], window: int = ROLLING_WINDOW) -> Sequence[MoodEntry]:
    return entries[:window]


def rolling_average(entries: Sequence[MoodEntry], window: int = ROLLING_WINDOW) -> float | None:
    recent = _recent(entries, window)
    if not recent:
        return None
    # half-up at the cent: a mean of 3.125 shows as 3.13
    mean = Decimal(sum(e.value for e in recent)) / Decimal(len(recent))
    return float(mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_average(avg: float | None) -> str:
    return NO_DATA if avg is None else f"{avg:.2f}"


def streak(entries: Sequence[MoodEntry], today: date | None = None) -> int:
    if not entries:
        return 0

    days_with = {_day_key(e.timestamp) for e in entries}
    d = today or _today_local()
    count = 0
    while d.isoformat() in days_with:
        count += 1
        d -= timedelta(days=1)
    return count


def trend_series(entries: Sequence[MoodEntry], window: int = ROLLING_WINDOW) -> list[int]:
    # oldest-first so a plot reads left to right
    return [e.value for e in reversed(_recent(entries, window))]


def compute_stats(entries: Sequence[MoodEntry], today: date | None = None) -> DerivedStats:
    return DerivedStats(
        count=len(entries),
        average=rolling_average(entries),
        streak=streak(entries, today=today),
        trend=trend_series(entries),
    )
