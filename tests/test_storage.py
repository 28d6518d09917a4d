"""Tests for storage.load_json / save_json and the EntryStore mood log."""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from moodflow.config import STORAGE_KEY
from moodflow.models import MoodEntry
from moodflow.storage import EntryStore, load_json, save_json


@pytest.fixture()
def tmp_json(tmp_path: Path) -> Path:
    return tmp_path / "data.json"


@pytest.fixture()
def store(tmp_json: Path) -> EntryStore:
    return EntryStore(tmp_json)


def _entry(value: int, note: str = "", minutes_ago: int = 0) -> MoodEntry:
    ts = datetime(2026, 10, 16, 12, 0).astimezone() - timedelta(minutes=minutes_ago)
    return MoodEntry(value=value, note=note, timestamp=ts)


# ---- save_json ----


def test_save_writes_valid_json(tmp_json):
    save_json(tmp_json, {"a": 1, "b": [1, 2, 3]})
    data = json.loads(tmp_json.read_text())
    assert data == {"a": 1, "b": [1, 2, 3]}


def test_save_creates_parent_dirs(tmp_path):
    deep = tmp_path / "a" / "b" / "c" / "data.json"
    save_json(deep, {"x": 1})
    assert deep.exists()


def test_save_is_atomic_no_tmp_left(tmp_json):
    save_json(tmp_json, {"x": 1})
    tmp = tmp_json.with_name(tmp_json.name + ".tmp")
    assert not tmp.exists()


def test_save_sets_permissions(tmp_json):
    save_json(tmp_json, {})
    mode = oct(os.stat(tmp_json).st_mode & 0o777)
    assert mode == "0o600"


def test_save_unserializable_leaves_file_untouched(tmp_json):
    save_json(tmp_json, {"keep": True})
    with pytest.raises(TypeError):
        save_json(tmp_json, {"bad": object()})
    assert json.loads(tmp_json.read_text()) == {"keep": True}


# ---- load_json ----


def test_load_missing_returns_empty_dict(tmp_json):
    assert load_json(tmp_json) == {}
    assert tmp_json.exists()


def test_load_empty_file_returns_empty_dict(tmp_json):
    tmp_json.write_text("", encoding="utf-8")
    assert load_json(tmp_json) == {}


def test_load_corrupt_returns_empty_and_backs_up(tmp_json):
    tmp_json.write_text("not valid json {{{{", encoding="utf-8")
    assert load_json(tmp_json) == {}
    backups = list(tmp_json.parent.glob("*.corrupt-*.json"))
    assert len(backups) == 1


def test_load_non_dict_json_returns_empty(tmp_json):
    tmp_json.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert load_json(tmp_json) == {}


# ---- EntryStore ----


def test_read_all_empty_on_first_use(store):
    assert store.read_all() == []


def test_append_prepends_newest_first(store):
    first = _entry(2, "first", minutes_ago=10)
    second = _entry(4, "second", minutes_ago=5)
    third = _entry(5, "third")
    for e in (first, second, third):
        store.append(e)

    assert [e.note for e in store.read_all()] == ["third", "second", "first"]


def test_read_all_keeps_insertion_order_not_time_order(store):
    late = _entry(3, "late", minutes_ago=0)
    early = _entry(3, "early", minutes_ago=60)
    store.append(late)
    store.append(early)

    # no re-sorting on read: the last appended is first
    assert [e.note for e in store.read_all()] == ["early", "late"]


def test_persisted_layout(store, tmp_json):
    store.append(_entry(4, "hello"))
    doc = json.loads(tmp_json.read_text())
    (record,) = doc[STORAGE_KEY]
    assert record["value"] == 4
    assert record["note"] == "hello"
    assert datetime.fromisoformat(record["date"]).tzinfo is not None


def test_append_keeps_other_keys(store, tmp_json):
    save_json(tmp_json, {"settings": {"theme": "dark"}})
    store.append(_entry(3))
    doc = json.loads(tmp_json.read_text())
    assert doc["settings"] == {"theme": "dark"}


def test_read_all_corrupt_document_is_empty(store, tmp_json):
    tmp_json.write_text("{ broken", encoding="utf-8")
    assert store.read_all() == []


def test_read_all_non_list_log_is_empty(store, tmp_json):
    save_json(tmp_json, {STORAGE_KEY: {"value": 3}})
    assert store.read_all() == []


def test_read_all_skips_malformed_records(store, tmp_json):
    good = _entry(4, "ok").to_dict()
    save_json(
        tmp_json,
        {
            STORAGE_KEY: [
                good,
                {"value": 9, "note": "", "date": good["date"]},
                {"value": 3, "note": "", "date": "yesterday-ish"},
                "junk",
                {"value": True, "note": "", "date": good["date"]},
                {"value": 2, "note": None, "date": "2026-10-15T08:00:00.000Z"},
            ]
        },
    )
    entries = store.read_all()
    assert [e.value for e in entries] == [4, 2]
    assert entries[1].note == ""


def test_read_all_skips_dates_that_overflow_in_local_time(store, tmp_json):
    good = _entry(4, "ok").to_dict()
    save_json(
        tmp_json,
        {STORAGE_KEY: [good, {"value": 2, "note": "", "date": "0001-01-01T00:00:00+14:00"}]},
    )
    assert [e.value for e in store.read_all()] == [4]


def test_deeply_nested_document_is_treated_as_corrupt(store, tmp_json):
    tmp_json.write_text("[" * 100_000, encoding="utf-8")
    assert store.read_all() == []
    assert list(tmp_json.parent.glob("data.corrupt-*.json"))


def test_append_recovers_from_deeply_nested_document(store, tmp_json):
    tmp_json.write_text("[" * 100_000, encoding="utf-8")
    store.append(_entry(5, "still here"))
    assert [e.note for e in store.read_all()] == ["still here"]


def test_append_write_failure_is_silent(store, monkeypatch):
    def boom(*_a, **_k):
        raise OSError("disk full")

    monkeypatch.setattr("moodflow.storage.save_json", boom)
    store.append(_entry(3))  # must not raise
    monkeypatch.undo()
    assert store.read_all() == []


def test_read_failure_is_empty(store, monkeypatch):
    def boom(*_a, **_k):
        raise OSError("permission denied")

    monkeypatch.setattr("moodflow.storage.load_json", boom)
    assert store.read_all() == []


def test_clear_all(store):
    store.append(_entry(1))
    store.append(_entry(5))
    assert store.clear_all() == 2
    assert store.read_all() == []
