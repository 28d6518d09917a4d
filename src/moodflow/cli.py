from __future__ import annotations

import argparse
import asyncio
import logging
import stat
from pathlib import Path

from ._util import _fmt_time, _fmt_when
from .activities import mood_for_context, recommend
from .config import HOST, PORT, RELAY_URL, STORAGE_KEY
from .export import EXPORT_FILENAME, EmptyExportError, write_export
from .models import MOOD_EMOJI, MOOD_LABELS, MoodEntry
from .paths import locate_data
from .relay import LOADING_MESSAGE, FeedbackRelay
from .render import HISTORY_RANGES, NO_NOTE_TEXT, render_history, render_html, text_sparkline
from .safety import assert_safe_data_path, check_data_path
from .storage import EntryStore, load_json, save_json
from .tracker import MissingMoodError, Tracker


# -------------------------
# Print blocks
# -------------------------

def _print_mood_block(entry: MoodEntry) -> None:
    dt = entry.timestamp.astimezone()
    print("```")
    print("📒 Mood Check-in")
    print(f"- 📅 Date: {dt.date().isoformat()}")
    print(f"- 🕒 Time: {_fmt_time(dt)}")
    print(f"- {entry.emoji} Mood (1–5): {entry.value} ({entry.label})")
    if entry.note:
        print(f"- 📝 Note: {entry.note}")
    print("```")


def _mood_line(entry: MoodEntry) -> str:
    line = f"{_fmt_when(entry.timestamp)} — {entry.emoji} {entry.value}/5"
    return line + f" ({entry.note})" if entry.note else line


def _tracker(args: argparse.Namespace) -> Tracker:
    relay = FeedbackRelay(url=getattr(args, "relay_url", None) or RELAY_URL)
    return Tracker(EntryStore(args.data_path), relay=relay)


# -------------------------
# MOOD commands
# -------------------------

def cmd_mood_add(args: argparse.Namespace) -> None:
    tracker = _tracker(args)
    try:
        if args.score is not None:
            tracker.select_mood(args.score)
    except ValueError as e:
        raise SystemExit(f"--score: {e}") from e
    tracker.state.note = args.note or ""

    try:
        if args.feedback:
            print(f"⏳ {LOADING_MESSAGE}")
            entry, reply = asyncio.run(tracker.save_and_reflect())
        else:
            entry, reply = tracker.save(), None
    except MissingMoodError as e:
        raise SystemExit(str(e)) from e

    if args.format == "block":
        _print_mood_block(entry)
    else:
        print(f"{entry.emoji} Logged mood {entry.value}/5 @ {entry.timestamp.isoformat(timespec='seconds')}")

    if reply:
        print(f"\n💬 {reply}")


def cmd_mood_list(args: argparse.Namespace) -> None:
    tracker = _tracker(args)
    tracker.set_range(args.range)
    entries = tracker.entries()
    view = tracker.view()

    if view.is_empty:
        print(view.placeholder)
        return

    shown = entries[: len(view.rows)]
    if args.format == "block":
        for e in shown:
            _print_mood_block(e)
        return

    print(f"=== Mood Log (newest first, range: {args.range}) ===")
    for row in view.rows:
        print(f"{row.when} — {row.emoji} {row.value}/5 {row.label} | {row.note or NO_NOTE_TEXT}")


def cmd_mood_stats(args: argparse.Namespace) -> None:
    view = _tracker(args).view()
    stats = view.stats

    print("=== Mood Stats ===")
    print(f"- entries: {stats.count}")
    print(f"- average (last 30): {stats.average_text}")
    print(f"- streak: {stats.streak} day{'s' if stats.streak != 1 else ''}")
    if stats.trend:
        print(f"- trend (oldest → newest): {text_sparkline(stats.trend)}")


def cmd_mood_suggest(args: argparse.Namespace) -> None:
    tracker = _tracker(args)
    mood = mood_for_context(args.score, tracker.entries())
    header = f"for {MOOD_EMOJI[mood]} {MOOD_LABELS[mood]}" if mood in MOOD_LABELS else "to try"
    print(f"=== Quick activities {header} ===")
    for label in recommend(mood):
        print(f"- {label}")


def cmd_mood_export(args: argparse.Namespace) -> None:
    entries = EntryStore(args.data_path).read_all()
    try:
        out_path = write_export(entries, Path(args.csv))
    except EmptyExportError as e:
        raise SystemExit(str(e)) from e
    print(f"📄 Exported {len(entries)} mood rows → {out_path}")


def cmd_mood_report(args: argparse.Namespace) -> None:
    entries = EntryStore(args.data_path).read_all()
    view = render_history(entries, args.range)
    out_path = Path(args.html).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(render_html(view), encoding="utf-8")
    print(f"🖼️ Wrote history snapshot ({len(view.rows)} rows) → {out_path}")


def cmd_mood_reset(args: argparse.Namespace) -> None:
    if not args.yes:
        raise SystemExit("Refusing to reset without --yes (this deletes ALL mood entries and cannot be undone).")

    before = len(EntryStore(args.data_path).read_all())
    _tracker(args).clear_all(confirm=True)
    print(f"🧹 Mood reset: deleted {before} entries.")


# -------------------------
# Core commands
# -------------------------

def cmd_init(args: argparse.Namespace) -> None:
    data = load_json(args.data_path)
    data.setdefault(STORAGE_KEY, [])
    save_json(args.data_path, data)
    print(f"✅ Initialized data file: {args.data_path}")


def cmd_where(args: argparse.Namespace) -> None:
    print(args.location.path)
    print(f"↳ using {args.location.reason}")


def cmd_doctor(args: argparse.Namespace) -> None:
    print("=== MoodFlow Doctor ===")

    repo_root = check_data_path(args.data_path, args.allow_repo_data_path)
    if repo_root:
        print(f"⚠️ Data path is inside the git repo at {repo_root} (allowed by --allow-repo-data-path)")
    else:
        print("✅ Data path safety guard: OK")

    data = load_json(args.data_path)
    raw = data.get(STORAGE_KEY, [])
    readable = len(EntryStore(args.data_path).read_all())
    print(f"✅ JSON readable: OK ({readable} valid entries)")
    if isinstance(raw, list) and readable != len(raw):
        print(f"⚠️ {len(raw) - readable} malformed entries are being skipped")

    try:
        mode = args.data_path.stat().st_mode
        perms = stat.S_IMODE(mode)
        print(f"🔐 File permissions: {oct(perms)} (target 0o600)")
    except FileNotFoundError:
        print("⚠️ Data file missing (run `mf init`)")

    print(f"🔗 Relay endpoint: {args.relay_url or RELAY_URL}")
    print("=== Done ===")


def cmd_serve(args: argparse.Namespace) -> None:
    from .server import run

    run(host=args.host, port=args.port)


def cmd_gui(args: argparse.Namespace) -> None:
    from .gui import run_gui

    run_gui(data_path=args.data_path)


def main(argv=None) -> None:
    p = argparse.ArgumentParser(prog="mf", description="MoodFlow mood check-ins")
    p.add_argument("--data", default=None, help="Path to data JSON (overrides env/default)")
    p.add_argument("--profile", default=None, help="Profile name (e.g. dev/test)")
    p.add_argument("--allow-repo-data-path", action="store_true", help="Override safety guard (not recommended)")
    p.add_argument("--relay-url", dest="relay_url", default=None, help=f"Feedback relay endpoint (default {RELAY_URL})")
    p.add_argument("-v", "--verbose", action="store_true", help="Log what the store and relay are doing")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("init", help="Initialize data store safely").set_defaults(func=cmd_init)
    sub.add_parser("where", help="Show which data file is active and why").set_defaults(func=cmd_where)
    sub.add_parser("doctor", help="Run safety + health checks").set_defaults(func=cmd_doctor)
    sub.add_parser("gui", help="Open the desktop check-in widget").set_defaults(func=cmd_gui)

    serve = sub.add_parser("serve", help="Run the feedback relay server")
    serve.add_argument("--host", default=HOST)
    serve.add_argument("--port", type=int, default=PORT)
    serve.set_defaults(func=cmd_serve)

    # ---- mood ----
    mood = sub.add_parser("mood", help="Mood check-ins, history and export")
    mood_sub = mood.add_subparsers(dest="mood_cmd", required=True)

    mood_add = mood_sub.add_parser("add", help="Save a check-in (1–5)")
    mood_add.add_argument("--score", type=int, default=None, help="Mood 1 (very low) … 5 (great)")
    mood_add.add_argument("--note", default=None)
    mood_add.add_argument("--feedback", action="store_true", help="Ask the relay for a supportive reply")
    mood_add.add_argument("--format", choices=["line", "block"], default="line")
    mood_add.set_defaults(func=cmd_mood_add)

    mood_list = mood_sub.add_parser("list", help="List check-ins (newest first)")
    mood_list.add_argument("--range", choices=list(HISTORY_RANGES), default="7",
                           help="How many recent entries: 7, 30, or all")
    mood_list.add_argument("--format", choices=["line", "block"], default="line")
    mood_list.set_defaults(func=cmd_mood_list)

    mood_sub.add_parser("stats", help="Count, 30-entry average, streak and trend").set_defaults(func=cmd_mood_stats)

    mood_suggest = mood_sub.add_parser("suggest", help="Quick activities for a mood")
    mood_suggest.add_argument("--score", type=int, default=None, help="Mood 1–5 (default: latest check-in)")
    mood_suggest.set_defaults(func=cmd_mood_suggest)

    mood_export = mood_sub.add_parser("export", help="Export all check-ins to CSV (date,mood,note)")
    mood_export.add_argument("--csv", default=EXPORT_FILENAME, help=f"Output CSV path (default {EXPORT_FILENAME})")
    mood_export.set_defaults(func=cmd_mood_export)

    mood_report = mood_sub.add_parser("report", help="Write an HTML history snapshot with trend graphic")
    mood_report.add_argument("--html", required=True, help="Output HTML path")
    mood_report.add_argument("--range", choices=list(HISTORY_RANGES), default="30")
    mood_report.set_defaults(func=cmd_mood_report)

    mood_reset = mood_sub.add_parser("reset", help="Delete ALL check-ins (requires --yes)")
    mood_reset.add_argument("--yes", action="store_true", help="Confirm destructive reset")
    mood_reset.set_defaults(func=cmd_mood_reset)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.location = locate_data(args.data, args.profile)
    args.data_path = args.location.path

    assert_safe_data_path(args.data_path, args.allow_repo_data_path)

    args.func(args)


if __name__ == "__main__":
    main()
