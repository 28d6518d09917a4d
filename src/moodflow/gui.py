from __future__ import annotations

import asyncio
import queue
import threading
import tkinter as tk
import traceback
from pathlib import Path
from tkinter import filedialog, messagebox, ttk

from .export import EXPORT_FILENAME, EmptyExportError, write_export
from .models import MOOD_EMOJI, MOOD_LABELS, MoodEntry
from .paths import locate_data
from .relay import LOADING_MESSAGE, FeedbackRelay, RelayBusyError, RelayState
from .render import HISTORY_RANGES, SPARK_COLOR, trend_points
from .safety import assert_safe_data_path
from .storage import EntryStore
from .tracker import MissingMoodError, Tracker

SPARK_CANVAS_W = 320
SPARK_CANVAS_H = 70
RELAY_POLL_MS = 100


class MoodFlowApp(tk.Tk):
    def __init__(self, tracker: Tracker):
        super().__init__()
        self.title("MoodFlow")
        self.geometry("860x560")
        self.tracker = tracker

        # the relay runs on a worker thread; Tk is only touched from _poll_relay
        self._relay_events: queue.Queue[tuple[str, object]] = queue.Queue()
        self.tracker.relay.add_listener(lambda s: self._relay_events.put(("state", s)))

        self._build_header()
        self._build_body()
        self._render()
        self.after(RELAY_POLL_MS, self._poll_relay)

    # -------- Crash guard --------

    def report_callback_exception(self, exc, val, tb):  # type: ignore[override]
        traceback.print_exception(exc, val, tb)
        try:
            messagebox.showerror("Crash prevented", f"{exc.__name__}: {val}")
        except Exception:
            pass

    def _safe_cmd(self, fn):
        def wrapped(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                traceback.print_exc()
                try:
                    messagebox.showerror("Crash prevented", f"{type(e).__name__}: {e}")
                except Exception:
                    pass
                return None

        return wrapped

    # -------------------------
    # Layout
    # -------------------------

    def _build_header(self) -> None:
        frm = ttk.Frame(self, padding=10)
        frm.pack(fill="x")
        ttk.Label(frm, text="MoodFlow", font=("TkDefaultFont", 16, "bold")).pack(side="left")
        ttk.Label(frm, text=str(self.tracker.store.data_path), foreground="#666").pack(side="left", padx=12)

    def _build_body(self) -> None:
        left = ttk.Frame(self, padding=10)
        right = ttk.Frame(self, padding=10)
        left.pack(side="left", fill="y")
        right.pack(side="right", fill="both", expand=True)

        # ---- check-in ----
        ttk.Label(left, text="How are you feeling?", font=("TkDefaultFont", 12, "bold")).pack(anchor="w")
        moods = ttk.Frame(left)
        moods.pack(anchor="w", pady=(4, 8))
        self.mood_buttons: dict[int, tk.Button] = {}
        for value, emoji in MOOD_EMOJI.items():
            btn = tk.Button(
                moods,
                text=emoji,
                font=("TkDefaultFont", 18),
                relief="raised",
                command=self._safe_cmd(lambda v=value: self._select_mood(v)),
            )
            btn.pack(side="left", padx=2)
            self.mood_buttons[value] = btn

        self.mood_caption = tk.StringVar(value="No mood selected")
        ttk.Label(left, textvariable=self.mood_caption, foreground="#555").pack(anchor="w")

        ttk.Label(left, text="Note (optional)").pack(anchor="w", pady=(8, 0))
        self.note_var = tk.StringVar()
        ttk.Entry(left, textvariable=self.note_var, width=40).pack(anchor="w", pady=(0, 8))

        ttk.Label(left, text="Quick activities").pack(anchor="w")
        self.chips = ttk.Frame(left)
        self.chips.pack(anchor="w", fill="x", pady=(0, 8))

        btns = ttk.Frame(left)
        btns.pack(fill="x")
        self.save_btn = ttk.Button(btns, text="Save check-in", command=self._safe_cmd(self._save))
        self.save_btn.pack(side="left", expand=True, fill="x", padx=(0, 4))
        self.clear_btn = ttk.Button(btns, text="Clear", command=self._safe_cmd(self._reset_form))
        self.clear_btn.pack(side="left", expand=True, fill="x")

        ai = ttk.LabelFrame(left, text="Reflection", padding=8)
        ai.pack(fill="x", pady=(12, 0))
        self.ai_progress = ttk.Progressbar(ai, mode="indeterminate", length=260)
        self.ai_message = tk.StringVar(value="")
        ttk.Label(ai, textvariable=self.ai_message, wraplength=300, justify="left").pack(anchor="w")

        # ---- history ----
        top = ttk.Frame(right)
        top.pack(fill="x")
        ttk.Label(top, text="History", font=("TkDefaultFont", 12, "bold")).pack(side="left")
        self.range_var = tk.StringVar(value=self.tracker.state.history_range)
        rng = ttk.Combobox(top, textvariable=self.range_var, values=list(HISTORY_RANGES), width=5, state="readonly")
        rng.pack(side="right")
        rng.bind("<<ComboboxSelected>>", lambda _e: self._safe_cmd(self._change_range)())
        ttk.Label(top, text="Show last").pack(side="right", padx=4)

        stats = ttk.Frame(right)
        stats.pack(fill="x", pady=6)
        self.count_var = tk.StringVar()
        self.avg_var = tk.StringVar()
        self.streak_var = tk.StringVar()
        for var in (self.count_var, self.avg_var, self.streak_var):
            ttk.Label(stats, textvariable=var).pack(side="left", padx=(0, 16))

        self.spark = tk.Canvas(right, width=SPARK_CANVAS_W, height=SPARK_CANVAS_H, bg="#fafafa", highlightthickness=0)
        self.spark.pack(anchor="w", pady=(0, 6))

        self.history = tk.Listbox(right, height=14)
        self.history.pack(fill="both", expand=True)

        actions = ttk.Frame(right)
        actions.pack(fill="x", pady=(6, 0))
        ttk.Button(actions, text="Export CSV…", command=self._safe_cmd(self._export_csv)).pack(side="left")
        self.clear_all_btn = ttk.Button(actions, text="Clear all…", command=self._safe_cmd(self._clear_all))
        self.clear_all_btn.pack(side="right")

    # -------------------------
    # Event handlers
    # -------------------------

    def _select_mood(self, value: int) -> None:
        self.tracker.select_mood(value)
        self._render_mood_buttons()
        self._render_activities()

    def _pick_activity(self, label: str) -> None:
        self.tracker.state.note = self.note_var.get()
        self.note_var.set(self.tracker.add_activity(label))

    def _reset_form(self) -> None:
        self.tracker.reset_form()
        self.note_var.set("")
        self._render_mood_buttons()
        self._render_activities()

    def _change_range(self) -> None:
        self.tracker.set_range(self.range_var.get())
        self._render()

    def _save(self) -> None:
        if self.tracker.relay.busy or self.save_btn.instate(["disabled"]):
            return
        self.tracker.state.note = self.note_var.get()
        try:
            entry = self.tracker.save()
        except MissingMoodError as e:
            messagebox.showwarning("Pick a mood", str(e))
            return

        self._reset_form()
        self._render()
        # lock the controls now; the worker only claims the relay slot a moment later
        self._apply_relay_state(RelayState.AWAITING)
        self._request_reflection(entry)

    def _request_reflection(self, entry: MoodEntry) -> None:
        def worker() -> None:
            try:
                reply = asyncio.run(self.tracker.relay.reflect(entry.value, entry.note))
            except RelayBusyError:
                return
            self._relay_events.put(("reply", reply))

        threading.Thread(target=worker, name="moodflow-relay", daemon=True).start()

    def _poll_relay(self) -> None:
        try:
            while True:
                kind, payload = self._relay_events.get_nowait()
                if kind == "state":
                    self._apply_relay_state(payload)
                else:
                    self._show_reply(payload)
        except queue.Empty:
            pass
        finally:
            self.after(RELAY_POLL_MS, self._poll_relay)

    def _show_reply(self, reply: str) -> None:
        self.tracker.state.ai_message = reply
        self.ai_message.set(reply)

    def _apply_relay_state(self, state: RelayState) -> None:
        awaiting = state is RelayState.AWAITING
        for btn in (self.save_btn, self.clear_btn):
            btn.state(["disabled"] if awaiting else ["!disabled"])
        if awaiting:
            self.ai_message.set(LOADING_MESSAGE)
            self.ai_progress.pack(anchor="w", pady=(4, 0))
            self.ai_progress.start(12)
        else:
            self.ai_progress.stop()
            self.ai_progress.pack_forget()

    def _export_csv(self) -> None:
        entries = self.tracker.entries()
        if not entries:
            messagebox.showinfo("Export", "No entries to export.")
            return
        path = filedialog.asksaveasfilename(
            title="Export mood entries",
            defaultextension=".csv",
            initialfile=EXPORT_FILENAME,
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            out = write_export(entries, Path(path))
        except (EmptyExportError, OSError) as e:
            messagebox.showerror("Export failed", str(e))
            return
        messagebox.showinfo("Exported", f"Saved {len(entries)} entries → {out}")

    def _clear_all(self) -> None:
        def confirm() -> bool:
            return messagebox.askyesno("Clear all", "Clear ALL entries? This cannot be undone.")

        if self.tracker.clear_all(confirm):
            self._render()

    # -------------------------
    # Drawing
    # -------------------------

    def _render(self) -> None:
        view = self.tracker.view()

        self.history.delete(0, tk.END)
        if view.is_empty:
            self.history.insert(tk.END, view.placeholder)
        for row in view.rows:
            self.history.insert(tk.END, f"{row.emoji}  {row.note_text}    {row.when}")

        stats = view.stats
        self.count_var.set(f"Entries: {stats.count}")
        self.avg_var.set(f"Average: {stats.average_text}")
        self.streak_var.set(f"Streak: {stats.streak}")

        self._draw_sparkline(stats.trend)
        self._render_mood_buttons()
        self._render_activities()

    def _draw_sparkline(self, values: list[int]) -> None:
        canvas = self.spark
        canvas.delete("all")
        pts = trend_points(values, SPARK_CANVAS_W, SPARK_CANVAS_H)
        if not pts:
            canvas.create_text(SPARK_CANVAS_W // 2, SPARK_CANVAS_H // 2, text="No mood data", fill="#666")
            return

        if len(pts) >= 2:
            flat: list[float] = []
            for x, y in pts:
                flat.extend([x, y])
            canvas.create_line(*flat, fill=SPARK_COLOR, width=2)

        for x, y in pts:
            canvas.create_oval(x - 3, y - 3, x + 3, y + 3, outline=SPARK_COLOR, width=1.5, fill="#fff")

    def _render_mood_buttons(self) -> None:
        selected = self.tracker.state.selected_mood
        for value, btn in self.mood_buttons.items():
            btn.configure(relief="sunken" if value == selected else "raised")
        if selected:
            self.mood_caption.set(f"Selected: {MOOD_EMOJI[selected]} {MOOD_LABELS[selected]}")
        else:
            self.mood_caption.set("No mood selected")

    def _render_activities(self) -> None:
        for child in self.chips.winfo_children():
            child.destroy()
        for label in self.tracker.activities():
            ttk.Button(
                self.chips,
                text=label,
                command=self._safe_cmd(lambda lb=label: self._pick_activity(lb)),
            ).pack(anchor="w", fill="x", pady=1)


# -------------------------
# GUI Entrypoint
# -------------------------


def run_gui(data_path: Path | None = None) -> None:
    if data_path is None:
        data_path = locate_data().path
        assert_safe_data_path(data_path, allow_repo_data_path=False)
    tracker = Tracker(EntryStore(data_path), relay=FeedbackRelay())
    app = MoodFlowApp(tracker)
    app.mainloop()


if __name__ == "__main__":
    run_gui()
