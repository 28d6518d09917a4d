from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from .config import STORAGE_KEY
from .models import InvalidEntryError, MoodEntry

logger = logging.getLogger("moodflow.storage")


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load_json(path: Path) -> dict[str, Any]:
    """
    Safe load:
    - creates parent dirs
    - if missing/empty -> writes {}
    - if corrupt -> backs up raw text then resets to {}
    Always returns a dict.
    """
    path = Path(path)
    _ensure_parent(path)

    if not path.exists():
        save_json(path, {})
        return {}

    txt = path.read_text(encoding="utf-8").strip()
    if not txt:
        save_json(path, {})
        return {}

    try:
        data = json.loads(txt)
        return data if isinstance(data, dict) else {}
    except (json.JSONDecodeError, RecursionError):
        backup = path.with_suffix(f".corrupt-{int(time.time())}.json")
        backup.write_text(txt, encoding="utf-8")
        logger.warning("Corrupt data file %s backed up to %s", path, backup)
        save_json(path, {})
        return {}


def save_json(path: Path, data: Any) -> None:
    """
    Atomic save:
    - write to temp file in same directory
    - flush + fsync
    - os.replace to target
    - chmod 0600 best-effort
    """
    path = Path(path)
    _ensure_parent(path)

    tmp = path.with_name(path.name + ".tmp")

    # serialize before touching the disk so a bad payload never truncates anything
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"

    with open(tmp, "w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())

    os.replace(tmp, path)

    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


class EntryStore:
    """
    Append-only mood log persisted under a fixed key of a JSON document.

    Reads fail open (empty log) and writes fail silently (logged): the front
    ends must stay usable even when the data file is unavailable. A dropped
    write means the entry is lost, there is no retry.
    """

    def __init__(self, data_path: Path, key: str = STORAGE_KEY):
        self.data_path = Path(data_path)
        self.key = key

    def _load_document(self) -> dict[str, Any]:
        return load_json(self.data_path)

    def read_all(self) -> list[MoodEntry]:
        try:
            raw = self._load_document().get(self.key, [])
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read mood log from %s: %s", self.data_path, e)
            return []

        if not isinstance(raw, list):
            logger.warning("Mood log under %r is not a list; treating it as empty", self.key)
            return []

        entries: list[MoodEntry] = []
        for i, item in enumerate(raw):
            try:
                entries.append(MoodEntry.from_dict(item))
            except InvalidEntryError as e:
                logger.warning("Skipping malformed mood entry #%d: %s", i, e)
        return entries

    def append(self, entry: MoodEntry) -> None:
        try:
            doc = self._load_document()
            raw = doc.get(self.key)
            if not isinstance(raw, list):
                raw = []
            doc[self.key] = [entry.to_dict()] + raw
            save_json(self.data_path, doc)
        except (OSError, UnicodeDecodeError, TypeError, ValueError) as e:
            logger.warning("Could not persist mood entry to %s: %s", self.data_path, e)

    def clear_all(self) -> int:
        """Drop the whole log. Returns how many raw records were removed."""
        doc = self._load_document()
        raw = doc.pop(self.key, [])
        save_json(self.data_path, doc)
        return len(raw) if isinstance(raw, list) else 0
