from __future__ import annotations

import csv
import io
from datetime import timezone
from pathlib import Path
from typing import Sequence

from .models import MoodEntry

EXPORT_FILENAME = "mood_entries.csv"
EXPORT_MIME_TYPE = "text/csv"
CSV_FIELDS = ["date", "mood", "note"]


class EmptyExportError(ValueError):
    """Nothing to export."""


def _utc_iso(entry: MoodEntry) -> str:
    return entry.timestamp.astimezone(timezone.utc).isoformat(timespec="seconds")


def _flatten(note: str) -> str:
    # one record per line
    return note.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def to_csv(entries: Sequence[MoodEntry]) -> str:
    """
    Serialize the log oldest-first as ``date,mood,note``.
    - date: UTC ISO-8601
    - note: always quoted, quotes doubled, newlines collapsed to spaces
    """
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow(CSV_FIELDS)
    # date and mood share a line with the note, which alone is always quoted
    lead = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator=",")
    note = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for e in reversed(entries):
        lead.writerow([_utc_iso(e), e.value])
        note.writerow([_flatten(e.note)])
    return buf.getvalue().rstrip("\n")


def parse_csv(text: str) -> list[tuple[str, int, str]]:
    reader = csv.DictReader(io.StringIO(text))
    rows: list[tuple[str, int, str]] = []
    for row in reader:
        rows.append((row["date"], int(row["mood"]), row["note"]))
    return rows


def write_export(entries: Sequence[MoodEntry], out_path: Path) -> Path:
    if not entries:
        raise EmptyExportError("No entries to export.")
    out_path = Path(out_path).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as f:
        f.write(to_csv(entries))
    return out_path
