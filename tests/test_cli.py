"""End-to-end tests for the `mf` command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from moodflow import cli
from moodflow.config import STORAGE_KEY


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "mood.json"


def _run(data_file: Path, *argv: str) -> None:
    cli.main(["--data", str(data_file), "--allow-repo-data-path", *argv])


def test_add_and_list(data_file, capsys):
    _run(data_file, "mood", "add", "--score", "4", "--note", "walked the dog")
    _run(data_file, "mood", "add", "--score", "2")
    capsys.readouterr()

    _run(data_file, "mood", "list", "--range", "all")
    out = capsys.readouterr().out
    lines = [ln for ln in out.splitlines() if "/5" in ln]
    assert "2/5" in lines[0] and "(no note)" in lines[0]
    assert "4/5" in lines[1] and "walked the dog" in lines[1]


def test_add_without_score_is_blocked(data_file):
    with pytest.raises(SystemExit, match="select your mood"):
        _run(data_file, "mood", "add", "--note", "no score")
    assert not data_file.exists() or json.loads(data_file.read_text()).get(STORAGE_KEY, []) == []


def test_add_rejects_bad_score(data_file):
    with pytest.raises(SystemExit):
        _run(data_file, "mood", "add", "--score", "7")


def test_list_empty_placeholder(data_file, capsys):
    _run(data_file, "mood", "list")
    assert "No entries yet" in capsys.readouterr().out


def test_stats(data_file, capsys):
    for score in ("5", "1", "3"):
        _run(data_file, "mood", "add", "--score", score)
    capsys.readouterr()

    _run(data_file, "mood", "stats")
    out = capsys.readouterr().out
    assert "entries: 3" in out
    assert "average (last 30): 3.00" in out
    assert "streak: 1 day" in out


def test_export(data_file, tmp_path, capsys):
    _run(data_file, "mood", "add", "--score", "3", "--note", 'a "quoted", note')
    out_csv = tmp_path / "mood_entries.csv"
    _run(data_file, "mood", "export", "--csv", str(out_csv))

    lines = out_csv.read_text(encoding="utf-8").split("\n")
    assert lines[0] == "date,mood,note"
    assert lines[1].endswith(',3,"a ""quoted"", note"')


def test_export_empty_refused(data_file, tmp_path):
    with pytest.raises(SystemExit, match="No entries to export"):
        _run(data_file, "mood", "export", "--csv", str(tmp_path / "x.csv"))


def test_report(data_file, tmp_path):
    _run(data_file, "mood", "add", "--score", "5", "--note", "<b>bold</b>")
    page = tmp_path / "history.html"
    _run(data_file, "mood", "report", "--html", str(page))
    html = page.read_text(encoding="utf-8")
    assert "&lt;b&gt;bold&lt;/b&gt;" in html
    assert "<circle" in html


def test_suggest_uses_latest_mood(data_file, capsys):
    _run(data_file, "mood", "add", "--score", "1")
    capsys.readouterr()
    _run(data_file, "mood", "suggest")
    assert "Drink a glass of water" in capsys.readouterr().out


def test_reset_requires_yes(data_file):
    _run(data_file, "mood", "add", "--score", "3")
    with pytest.raises(SystemExit, match="--yes"):
        _run(data_file, "mood", "reset")

    _run(data_file, "mood", "reset", "--yes")
    assert STORAGE_KEY not in json.loads(data_file.read_text())


def test_init_and_where(data_file, capsys):
    _run(data_file, "init")
    assert json.loads(data_file.read_text()) == {STORAGE_KEY: []}
    _run(data_file, "where")
    assert "because you passed --data" in capsys.readouterr().out


def test_where_reports_env(tmp_path, monkeypatch, capsys):
    target = tmp_path / "env.json"
    monkeypatch.setenv("MOODFLOW_DATA", str(target))
    cli.main(["where"])
    out = capsys.readouterr().out
    assert str(target.resolve()) in out
    assert "MOODFLOW_DATA is set" in out


def test_refuses_data_inside_git_repo(tmp_path, capsys):
    (tmp_path / ".git").mkdir()
    with pytest.raises(SystemExit) as exc:
        cli.main(["--data", str(tmp_path / "mood.json"), "mood", "list"])
    assert exc.value.code == 2
    assert "inside a git repo" in capsys.readouterr().err


def test_doctor_reports_allowed_repo_root(tmp_path, capsys):
    (tmp_path / ".git").mkdir()
    cli.main(["--data", str(tmp_path / "mood.json"), "--allow-repo-data-path", "doctor"])
    out = capsys.readouterr().out
    assert "allowed by --allow-repo-data-path" in out
    assert "JSON readable: OK (0 valid entries)" in out
