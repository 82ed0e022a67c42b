#!/usr/bin/env python3
"""
Prayer Tracker Desktop Widget
Always-on-top window showing:
  - Current location and date (Gregorian + Hijri)
  - Today's five prayers with start/end times and a "Mark as Prayed" box
  - Active prayer and forbidden-time highlighting
  - Countdown to the next prayer
  - Completed / remaining counts and a 30-day missed-prayer summary
"""

import logging
import threading
import tkinter as tk
from tkinter import messagebox

from prayertrack.controller import PrayerController
from prayertrack.location import clear_manual_location, save_manual_location
from prayertrack.notifier import notify_forbidden, notify_missed
from prayertrack.storage import JsonFileStore
from prayertrack.timemath import format_12h

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Theme constants
# ──────────────────────────────────────────────────────────────────────────────
BG_DARK = "#0d1117"          # near-black background
BG_CARD = "#161b22"          # card background
BG_ACTIVE = "#1a3a2a"        # current prayer
BG_FORBIDDEN = "#3a1a1a"     # prayer in a forbidden window
BG_COMPLETED = "#1a2433"     # prayed
BORDER_COLOR = "#2ea043"
ACCENT_GOLD = "#f0c040"
ACCENT_GREEN = "#3fb950"
TEXT_WHITE = "#e6edf3"
TEXT_DIM = "#8b949e"
TEXT_RED = "#ff6b6b"

FONT_PIXEL = ("Courier", 10, "bold")
FONT_PIXEL_SM = ("Courier", 8)
FONT_PIXEL_LG = ("Courier", 14, "bold")
FONT_CLOCK = ("Courier", 22, "bold")
FONT_ARABIC = ("Arial", 12, "bold")

WINDOW_W = 480
WINDOW_H = 760

CLOCK_MS = 1000      # live clock
STATUS_MS = 60000    # active / forbidden / missed re-evaluation


class PrayerTrackerApp:
    def __init__(self, root: tk.Tk, controller: PrayerController):
        self.root = root
        self.controller = controller
        self._drag_x = 0
        self._drag_y = 0
        self._check_vars: dict = {}   # prayer name -> BooleanVar
        self._rendered_for = None     # prayer list the cards were built for
        self._status_job = None       # pending root.after id of the status tick

        self._setup_window()
        self._build_ui()
        self._start_data_load()

    # ──────────────────────────────────────────────────────────────────────
    # Window setup
    # ──────────────────────────────────────────────────────────────────────
    def _setup_window(self):
        root = self.root
        root.title("Prayer Tracker")
        root.configure(bg=BG_DARK)
        root.resizable(False, False)
        root.overrideredirect(True)
        root.attributes("-topmost", True)

        screen_w = root.winfo_screenwidth()
        screen_h = root.winfo_screenheight()
        x = screen_w - WINDOW_W - 40
        y = (screen_h - WINDOW_H) // 2
        root.geometry(f"{WINDOW_W}x{WINDOW_H}+{x}+{y}")

        root.bind("<ButtonPress-1>", self._on_drag_start)
        root.bind("<B1-Motion>", self._on_drag_motion)

    def _on_drag_start(self, event):
        self._drag_x = event.x_root - self.root.winfo_x()
        self._drag_y = event.y_root - self.root.winfo_y()

    def _on_drag_motion(self, event):
        self.root.geometry(f"+{event.x_root - self._drag_x}+{event.y_root - self._drag_y}")

    # ──────────────────────────────────────────────────────────────────────
    # UI construction
    # ──────────────────────────────────────────────────────────────────────
    def _build_ui(self):
        outer = tk.Frame(self.root, bg=BORDER_COLOR, bd=0)
        outer.pack(fill=tk.BOTH, expand=True, padx=2, pady=2)
        inner = tk.Frame(outer, bg=BG_DARK, bd=0)
        inner.pack(fill=tk.BOTH, expand=True, padx=1, pady=1)

        # ── title bar ─────────────────────────────────────────────────────
        title_bar = tk.Frame(inner, bg=BG_CARD, height=32)
        title_bar.pack(fill=tk.X, side=tk.TOP)
        title_bar.pack_propagate(False)
        tk.Label(
            title_bar,
            text="  🕌  PRAYER TRACKER  ◆  متتبع الصلاة  ",
            font=FONT_PIXEL,
            fg=ACCENT_GOLD,
            bg=BG_CARD,
        ).pack(side=tk.LEFT, padx=6)
        tk.Button(
            title_bar,
            text=" ✕ ",
            font=FONT_PIXEL_SM,
            fg=TEXT_RED,
            bg=BG_CARD,
            activeforeground=TEXT_WHITE,
            activebackground=BG_FORBIDDEN,
            bd=0,
            cursor="hand2",
            command=self.root.destroy,
        ).pack(side=tk.RIGHT, padx=4, pady=4)
        tk.Button(
            title_bar,
            text=" 📍 ",
            font=FONT_PIXEL_SM,
            fg=ACCENT_GOLD,
            bg=BG_CARD,
            activeforeground=TEXT_WHITE,
            activebackground=BG_ACTIVE,
            bd=0,
            cursor="hand2",
            command=self._show_location_dialog,
        ).pack(side=tk.RIGHT, padx=2, pady=4)

        # ── location, dates, clock ────────────────────────────────────────
        self.lbl_location = tk.Label(inner, text="📍 Detecting location…", font=FONT_PIXEL, fg=TEXT_DIM, bg=BG_DARK)
        self.lbl_location.pack(pady=(6, 0))
        self.lbl_date = tk.Label(inner, text="", font=FONT_PIXEL, fg=TEXT_WHITE, bg=BG_DARK)
        self.lbl_date.pack()
        self.lbl_hijri = tk.Label(inner, text="", font=FONT_PIXEL, fg=ACCENT_GOLD, bg=BG_DARK)
        self.lbl_hijri.pack()
        self.lbl_clock = tk.Label(inner, text="--:--:--", font=FONT_CLOCK, fg=ACCENT_GOLD, bg=BG_DARK, pady=4)
        self.lbl_clock.pack()

        # ── forbidden banner (hidden by default) ──────────────────────────
        self.forbidden_banner = tk.Label(
            inner,
            text="⚠  Forbidden time: prayer is disliked now",
            font=FONT_PIXEL,
            fg=TEXT_WHITE,
            bg=BG_FORBIDDEN,
            pady=4,
        )
        self._banner_shown = False
        self._banner_anchor = tk.Frame(inner, bg=BG_DARK, height=1)
        self._banner_anchor.pack(fill=tk.X)

        # ── next prayer ───────────────────────────────────────────────────
        self.lbl_next = tk.Label(inner, text="—", font=FONT_PIXEL_LG, fg=ACCENT_GREEN, bg=BG_DARK, pady=4)
        self.lbl_next.pack()

        # ── prayer cards ──────────────────────────────────────────────────
        self.prayer_frame = tk.Frame(inner, bg=BG_DARK)
        self.prayer_frame.pack(fill=tk.X, padx=10, pady=4)
        self.prayer_rows: dict = {}

        # ── stats ─────────────────────────────────────────────────────────
        stats = tk.Frame(inner, bg=BG_CARD)
        stats.pack(fill=tk.X, padx=10, pady=4)
        self.lbl_completed = tk.Label(stats, text="Completed: 0", font=FONT_PIXEL, fg=ACCENT_GREEN, bg=BG_CARD)
        self.lbl_completed.pack(side=tk.LEFT, padx=8, pady=4)
        self.lbl_remaining = tk.Label(stats, text="Remaining: 5", font=FONT_PIXEL, fg=ACCENT_GOLD, bg=BG_CARD)
        self.lbl_remaining.pack(side=tk.RIGHT, padx=8, pady=4)

        # ── missed summary ────────────────────────────────────────────────
        self.missed_frame = tk.Frame(inner, bg=BG_DARK)
        self.lbl_missed_title = tk.Label(
            self.missed_frame,
            text="MISSED PRAYERS (LAST 30 DAYS)",
            font=FONT_PIXEL,
            fg=TEXT_RED,
            bg=BG_DARK,
        )
        self.lbl_missed_title.pack()
        self.missed_grid = tk.Frame(self.missed_frame, bg=BG_DARK)
        self.missed_grid.pack(fill=tk.X)
        # packed only when something was missed

        # ── notification banner (hidden by default) ───────────────────────
        self.notif_frame = tk.Frame(inner, bg="#2d1b00", bd=1, relief=tk.RIDGE)
        self.lbl_notif_title = tk.Label(self.notif_frame, text="", font=FONT_PIXEL, fg=ACCENT_GOLD, bg="#2d1b00")
        self.lbl_notif_title.pack(pady=2)
        self.lbl_notif_msg = tk.Label(
            self.notif_frame, text="", font=FONT_PIXEL_SM, fg=TEXT_WHITE, bg="#2d1b00", wraplength=440,
        )
        self.lbl_notif_msg.pack(pady=(0, 4))

    def _build_prayer_rows(self, prayers):
        """(Re)create one card per prayer; Friday swaps Dhuhr for Jummah."""
        for child in self.prayer_frame.winfo_children():
            child.destroy()
        self.prayer_rows.clear()
        self._check_vars.clear()

        for view in prayers:
            row = tk.Frame(self.prayer_frame, bg=BG_CARD, pady=2)
            row.pack(fill=tk.X, pady=1)

            top = tk.Frame(row, bg=BG_CARD)
            top.pack(fill=tk.X)
            lbl_name = tk.Label(top, text=f" {view.icon}  {view.name}", font=FONT_PIXEL, fg=TEXT_WHITE, bg=BG_CARD, anchor="w")
            lbl_name.pack(side=tk.LEFT, padx=4)
            lbl_arabic = tk.Label(top, text=view.arabic, font=FONT_ARABIC, fg=ACCENT_GOLD, bg=BG_CARD)
            lbl_arabic.pack(side=tk.RIGHT, padx=4)

            lbl_times = tk.Label(
                row,
                text=f"Start: {format_12h(view.start)} | End: {format_12h(view.end)}",
                font=FONT_PIXEL_SM,
                fg=TEXT_DIM,
                bg=BG_CARD,
                anchor="w",
            )
            lbl_times.pack(fill=tk.X, padx=8)

            var = tk.BooleanVar(value=view.is_completed)
            check = tk.Checkbutton(
                row,
                text=view.checkbox_label,
                variable=var,
                font=FONT_PIXEL_SM,
                fg=TEXT_WHITE,
                bg=BG_CARD,
                selectcolor=BG_DARK,
                activebackground=BG_CARD,
                command=lambda name=view.name: self._on_toggle(name),
            )
            check.pack(anchor="w", padx=8)

            self._check_vars[view.name] = var
            self.prayer_rows[view.name] = [row, top, lbl_name, lbl_arabic, lbl_times, check]

        self._rendered_for = [view.name for view in prayers]

    # ──────────────────────────────────────────────────────────────────────
    # Data loading (runs in background thread)
    # ──────────────────────────────────────────────────────────────────────
    def _start_data_load(self):
        threading.Thread(target=self._load_data, daemon=True).start()
        self._tick()

    def _load_data(self):
        """Fetch location + prayer times in background thread."""
        try:
            loaded = self.controller.fetch()
        except Exception as exc:
            # fetch() already falls back for network errors; anything else is a bug
            logger.exception("Loading prayer times failed")
            self.root.after(0, lambda: self._on_data_error(str(exc)))
            return
        self.root.after(0, lambda: self._on_data_loaded(loaded))

    def _on_data_loaded(self, loaded):
        """Called in main thread once data is ready."""
        self.controller.apply(loaded)
        self.lbl_location.config(text=f"📍 {self.controller.location_label}", fg=ACCENT_GREEN)
        self._render()
        self._arm_status_tick()

    def _on_data_error(self, message: str):
        self.lbl_location.config(text=f"⚠ Could not load data: {message[:60]}", fg=TEXT_RED)
        if self.controller.classifier is not None:
            # keep tracking on the previous schedule
            self._arm_status_tick()

    def _reload_data(self):
        """Reload location and prayer times."""
        self.lbl_location.config(text="📍 Refreshing location…", fg=TEXT_DIM)
        threading.Thread(target=self._load_data, daemon=True).start()

    # ──────────────────────────────────────────────────────────────────────
    # Ticks
    # ──────────────────────────────────────────────────────────────────────
    def _tick(self):
        """Every second: live clock and date labels."""
        now = self.controller.now()
        self.lbl_clock.config(text=now.strftime("%I:%M:%S %p"))
        self.lbl_date.config(text=f"📅 {now.strftime('%A, %B %d, %Y')}")
        self.root.after(CLOCK_MS, self._tick)

    def _arm_status_tick(self):
        """Schedule the next status tick, replacing any pending one."""
        if self._status_job is not None:
            self.root.after_cancel(self._status_job)
        self._status_job = self.root.after(STATUS_MS, self._status_tick)

    def _status_tick(self):
        """Every minute: missed detection, forbidden entry and re-render."""
        self._status_job = None
        result = self.controller.status_tick()
        if result.newly_missed:
            notify_missed(result.newly_missed, callback=self._on_notification)
        if result.entered_forbidden:
            notify_forbidden(callback=self._on_notification)
        if result.rolled_over:
            self._reload_data()
            return  # _on_data_loaded / _on_data_error re-arm the status tick
        self._render()
        self._arm_status_tick()

    # ──────────────────────────────────────────────────────────────────────
    # Rendering
    # ──────────────────────────────────────────────────────────────────────
    def _render(self):
        snap = self.controller.snapshot()

        self.lbl_hijri.config(text=f"☪  {snap.hijri}" + ("  (default times)" if snap.fallback else ""))
        self.lbl_next.config(text=snap.next_label)

        if self._rendered_for != [view.name for view in snap.prayers]:
            self._build_prayer_rows(snap.prayers)

        for view in snap.prayers:
            if view.is_forbidden:
                bg = BG_FORBIDDEN
            elif view.is_active:
                bg = BG_ACTIVE
            elif view.is_completed:
                bg = BG_COMPLETED
            else:
                bg = BG_CARD
            for widget in self.prayer_rows[view.name]:
                widget.config(bg=bg)
            self._check_vars[view.name].set(view.is_completed)

        if snap.forbidden_banner and not self._banner_shown:
            self.forbidden_banner.pack(fill=tk.X, padx=10, pady=2, after=self._banner_anchor)
            self._banner_shown = True
        elif not snap.forbidden_banner and self._banner_shown:
            self.forbidden_banner.pack_forget()
            self._banner_shown = False

        self._render_stats(snap)

    def _render_stats(self, snap):
        self.lbl_completed.config(text=f"Completed: {snap.completed_count}")
        self.lbl_remaining.config(text=f"Remaining: {snap.remaining_count}")

        for child in self.missed_grid.winfo_children():
            child.destroy()
        if not snap.missed_counts:
            self.missed_frame.pack_forget()
            return
        for name, count in snap.missed_counts.items():
            item = tk.Frame(self.missed_grid, bg=BG_CARD)
            item.pack(side=tk.LEFT, expand=True, fill=tk.X, padx=2, pady=2)
            tk.Label(item, text=name, font=FONT_PIXEL_SM, fg=TEXT_WHITE, bg=BG_CARD).pack()
            tk.Label(item, text=str(count), font=FONT_PIXEL_LG, fg=TEXT_RED, bg=BG_CARD).pack()
        self.missed_frame.pack(fill=tk.X, padx=10, pady=4)

    def _on_toggle(self, prayer: str):
        self.controller.toggle(prayer, self._check_vars[prayer].get())
        self._render()

    # ──────────────────────────────────────────────────────────────────────
    # Location dialog
    # ──────────────────────────────────────────────────────────────────────
    def _show_location_dialog(self):
        """Show a dialog to set a manual location or go back to IP lookup."""
        dlg = tk.Toplevel(self.root)
        dlg.title("Set Location")
        dlg.configure(bg=BG_DARK)
        dlg.resizable(False, False)
        dlg.attributes("-topmost", True)
        dlg.transient(self.root)
        dlg.grab_set()

        tk.Label(dlg, text="📍 Set Location", font=FONT_PIXEL_LG, fg=ACCENT_GOLD, bg=BG_DARK).pack(pady=(10, 6))

        fields_frame = tk.Frame(dlg, bg=BG_DARK)
        fields_frame.pack(fill=tk.X, padx=20, pady=4)

        fields = [
            ("City:", "city"),
            ("Country:", "country"),
            ("Latitude:", "lat"),
            ("Longitude:", "lon"),
            ("Timezone:", "timezone"),
        ]
        entries = {}
        for i, (label, key) in enumerate(fields):
            tk.Label(
                fields_frame, text=label, font=FONT_PIXEL_SM,
                fg=TEXT_WHITE, bg=BG_DARK, anchor="w", width=10,
            ).grid(row=i, column=0, sticky="w", pady=2)
            ent = tk.Entry(
                fields_frame, font=FONT_PIXEL_SM,
                fg=TEXT_WHITE, bg=BG_CARD, insertbackground=TEXT_WHITE,
                width=28, relief=tk.FLAT,
            )
            ent.grid(row=i, column=1, sticky="ew", pady=2, padx=(4, 0))
            if key in self.controller.location:
                ent.insert(0, str(self.controller.location[key]))
            entries[key] = ent
        fields_frame.columnconfigure(1, weight=1)

        def _apply():
            try:
                loc = {
                    "city": entries["city"].get().strip(),
                    "country": entries["country"].get().strip(),
                    "lat": float(entries["lat"].get().strip()),
                    "lon": float(entries["lon"].get().strip()),
                    "timezone": entries["timezone"].get().strip(),
                }
            except ValueError:
                messagebox.showerror("Invalid input", "Latitude and Longitude must be numbers.", parent=dlg)
                return
            save_manual_location(loc)
            dlg.destroy()
            self._reload_data()

        def _refresh_ip():
            clear_manual_location()
            dlg.destroy()
            self._reload_data()

        btn_frame = tk.Frame(dlg, bg=BG_DARK)
        btn_frame.pack(pady=10)
        tk.Button(
            btn_frame, text="  Save  ", font=FONT_PIXEL_SM,
            fg=BG_DARK, bg=ACCENT_GREEN, bd=0, cursor="hand2", command=_apply,
        ).pack(side=tk.LEFT, padx=6)
        tk.Button(
            btn_frame, text="  Refresh from IP  ", font=FONT_PIXEL_SM,
            fg=BG_DARK, bg=ACCENT_GOLD, bd=0, cursor="hand2", command=_refresh_ip,
        ).pack(side=tk.LEFT, padx=6)
        tk.Button(
            btn_frame, text="  Cancel  ", font=FONT_PIXEL_SM,
            fg=TEXT_WHITE, bg=BG_CARD, bd=0, cursor="hand2", command=dlg.destroy,
        ).pack(side=tk.LEFT, padx=6)

    # ──────────────────────────────────────────────────────────────────────
    # Notifications
    # ──────────────────────────────────────────────────────────────────────
    def _on_notification(self, title: str, message: str):
        self.lbl_notif_title.config(text=title)
        self.lbl_notif_msg.config(text=message)
        self.notif_frame.pack(fill=tk.X, padx=14, pady=4)
        self.root.bell()
        self.root.after(15000, self.notif_frame.pack_forget)


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────
def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    root = tk.Tk()
    PrayerTrackerApp(root, PrayerController(store=JsonFileStore()))
    root.mainloop()


if __name__ == "__main__":
    main()
