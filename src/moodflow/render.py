from __future__ import annotations

import html
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from ._util import _fmt_when
from .models import MOOD_MAX, MOOD_MIN, MoodEntry
from .stats import DerivedStats, compute_stats

EMPTY_HISTORY_MESSAGE = "No entries yet — try a check-in."
NO_NOTE_TEXT = "(no note)"
NO_NOTE_HTML = f'<span class="muted">{NO_NOTE_TEXT}</span>'

# "7" / "30" / "all", as offered by the range selector
HISTORY_RANGES: dict[str, int | None] = {"7": 7, "30": 30, "all": None}
DEFAULT_RANGE = "7"

# Trend canvas defaults
SPARK_WIDTH = 300
SPARK_HEIGHT = 60
SPARK_MARGIN_X = 5
SPARK_MARGIN_Y = 6
SPARK_COLOR = "#6c5ce7"


# -------------------------
# Range selection
# -------------------------

def parse_range(raw: str | int | None) -> int | None:
    """
    Accepts "7", "30", "all" (or a positive int). Returns the entry limit,
    None meaning the whole log.
    """
    if raw is None:
        return HISTORY_RANGES[DEFAULT_RANGE]
    if isinstance(raw, int) and not isinstance(raw, bool):
        if raw <= 0:
            raise ValueError(f"range must be positive, got {raw}")
        return raw
    s = str(raw).strip().lower()
    if s in HISTORY_RANGES:
        return HISTORY_RANGES[s]
    if s.isdigit() and int(s) > 0:
        return int(s)
    raise ValueError(f"range must be one of {', '.join(HISTORY_RANGES)} or a positive number (got {raw!r})")


def select_range(entries: Sequence[MoodEntry], limit: int | None) -> list[MoodEntry]:
    # the log is already newest-first; never re-sort here
    return list(entries) if limit is None else list(entries[:limit])


# -------------------------
# History rows
# -------------------------

@dataclass(frozen=True)
class HistoryRow:
    value: int
    emoji: str
    label: str
    note: str
    note_html: str
    when: str

    @property
    def note_text(self) -> str:
        return self.note or NO_NOTE_TEXT


@dataclass
class HistoryView:
    rows: list[HistoryRow]
    stats: DerivedStats
    trend_points: list[tuple[float, float]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def placeholder(self) -> str | None:
        return EMPTY_HISTORY_MESSAGE if self.is_empty else None


def escape_note(note: str) -> str:
    return html.escape(note, quote=True) if note else NO_NOTE_HTML


def history_row(entry: MoodEntry) -> HistoryRow:
    return HistoryRow(
        value=entry.value,
        emoji=entry.emoji,
        label=entry.label,
        note=entry.note,
        note_html=escape_note(entry.note),
        when=_fmt_when(entry.timestamp),
    )


def render_history(
    entries: Sequence[MoodEntry],
    range_: str | int | None = DEFAULT_RANGE,
    today: date | None = None,
    width: int = SPARK_WIDTH,
    height: int = SPARK_HEIGHT,
) -> HistoryView:
    shown = select_range(entries, parse_range(range_))
    stats = compute_stats(entries, today=today)
    return HistoryView(
        rows=[history_row(e) for e in shown],
        stats=stats,
        trend_points=trend_points(stats.trend, width, height),
    )


# -------------------------
# Trend graphic
# -------------------------

def trend_points(
    values: Sequence[float],
    width: float = SPARK_WIDTH,
    height: float = SPARK_HEIGHT,
    margin_x: float = SPARK_MARGIN_X,
    margin_y: float = SPARK_MARGIN_Y,
) -> list[tuple[float, float]]:
    """
    Map an oldest-first series onto canvas coordinates.

    x is evenly spaced between the side margins (a lone point sits in the
    middle); y is linear with MOOD_MIN on the bottom margin and MOOD_MAX on
    the top margin. Values are clamped to the mood domain.
    """
    n = len(values)
    if not n:
        return []

    plot_w = max(0.0, width - 2 * margin_x)
    plot_h = max(0.0, height - 2 * margin_y)
    span = MOOD_MAX - MOOD_MIN

    def x_for(i: int) -> float:
        if n <= 1:
            return margin_x + plot_w / 2
        return margin_x + i * plot_w / (n - 1)

    def y_for(v: float) -> float:
        v = max(MOOD_MIN, min(MOOD_MAX, float(v)))
        return height - margin_y - (v - MOOD_MIN) / span * plot_h

    return [(x_for(i), y_for(v)) for i, v in enumerate(values)]


def render_sparkline_svg(
    values: Sequence[float],
    width: int = SPARK_WIDTH,
    height: int = SPARK_HEIGHT,
    color: str = SPARK_COLOR,
) -> str:
    pts = trend_points(values, width, height)
    parts = [f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" viewBox="0 0 {width} {height}">']
    if len(pts) >= 2:
        coords = " ".join(f"{x:.1f},{y:.1f}" for x, y in pts)
        parts.append(f'<polyline points="{coords}" fill="none" stroke="{color}" stroke-width="2"/>')
    for x, y in pts:
        parts.append(f'<circle cx="{x:.1f}" cy="{y:.1f}" r="3" fill="#fff" stroke="{color}" stroke-width="1.5"/>')
    parts.append("</svg>")
    return "".join(parts)


def text_sparkline(values: Sequence[float], vmin: float = MOOD_MIN, vmax: float = MOOD_MAX) -> str:
    if not values:
        return ""
    blocks = "▁▂▃▄▅▆▇█"
    span = max(1e-9, vmax - vmin)
    out = []
    for v in values:
        x = (v - vmin) / span
        idx = int(round(x * (len(blocks) - 1)))
        idx = max(0, min(len(blocks) - 1, idx))
        out.append(blocks[idx])
    return "".join(out)


# -------------------------
# HTML snapshot
# -------------------------

_PAGE_STYLE = """
body { font-family: system-ui, sans-serif; max-width: 640px; margin: 2rem auto; color: #222; }
.muted { color: #888; }
ul.history { list-style: none; padding: 0; }
ul.history li { border-bottom: 1px solid #eee; padding: .5rem 0; }
.stats span { margin-right: 1.5rem; }
"""


def render_html(view: HistoryView, title: str = "Mood history") -> str:
    items: list[str] = []
    if view.is_empty:
        items.append(f'<li class="muted">{html.escape(EMPTY_HISTORY_MESSAGE)}</li>')
    for row in view.rows:
        items.append(
            f'<li><div><strong title="{html.escape(row.label)}">{row.emoji}</strong> {row.note_html}</div>'
            f"<div><time>{html.escape(row.when)}</time></div></li>"
        )

    stats = view.stats
    return "\n".join(
        [
            "<!doctype html>",
            '<html lang="en"><head><meta charset="utf-8">',
            f"<title>{html.escape(title)}</title>",
            f"<style>{_PAGE_STYLE}</style>",
            "</head><body>",
            f"<h1>{html.escape(title)}</h1>",
            '<div class="stats">'
            f'<span>Entries: <b id="entriesCount">{stats.count}</b></span>'
            f'<span>Average (last 30): <b id="avgMood">{stats.average_text}</b></span>'
            f'<span>Streak: <b id="streak">{stats.streak}</b></span>'
            "</div>",
            f'<div class="trend">{render_sparkline_svg(stats.trend)}</div>',
            f'<ul class="history">{"".join(items)}</ul>',
            "</body></html>",
            "",
        ]
    )
