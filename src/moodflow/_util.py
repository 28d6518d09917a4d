"""Shared time helpers used by the store, the stats engine and the front ends."""

from __future__ import annotations

from datetime import date, datetime


def _now_local() -> datetime:
    return datetime.now().astimezone()


def _today_local() -> date:
    return _now_local().date()


def _with_local_tz(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=_now_local().tzinfo)
    return dt.astimezone()


def _fmt_time(dt: datetime) -> str:
    # Windows-safe formatting
    try:
        return dt.strftime("%-I:%M %p")
    except ValueError:
        return dt.strftime("%I:%M %p").lstrip("0")


def _fmt_when(dt: datetime) -> str:
    local = dt.astimezone()
    return f"{local.date().isoformat()} {_fmt_time(local)}"


def _day_key(dt: datetime) -> str:
    """YYYY-MM-DD of the local calendar day the moment falls on."""
    return dt.astimezone().date().isoformat()
