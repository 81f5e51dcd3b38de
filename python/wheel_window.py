#!/usr/bin/env python3
"""Main raffle pane: number wheel, data table, history and settings."""

from __future__ import annotations

import logging
import tkinter as tk
from datetime import datetime
from tkinter import filedialog, messagebox, ttk
from typing import Any

from raffle import RaffleBusyError, RaffleController, RaffleView
from raffle_data import DataParseError, display_name
from raffle_rng import Selection
from themes import get_theme, theme_options
from wheel_spin import SpinFrame
from wheel_window_render import WheelWindowRender
from wheel_window_ui import WheelWindowUI

logger = logging.getLogger(__name__)

FILE_TYPES = [
    ("Spreadsheets", "*.csv *.xlsx *.xlsm *.txt *.json"),
    ("All files", "*.*"),
]


class WheelRaffleWindow(WheelWindowUI, WheelWindowRender, RaffleView, tk.Frame):
    """Tk implementation of the raffle view, driven by ``RaffleController.poll``."""

    def __init__(self, root: tk.Tk, controller: RaffleController, settings: dict[str, Any]) -> None:
        tk.Frame.__init__(self, root)
        self.root = root
        self.controller = controller
        self.colors = get_theme(settings.get("theme"))

        self.rng_value_var = tk.StringVar(value="")
        self.rng_raw_var = tk.StringVar(value="")
        self.row_count_var = tk.StringVar(value="0 rows")
        self.use_header_var = tk.BooleanVar(value=True)
        self.external_rng_var = tk.BooleanVar(value=bool(settings.get("external_rng")))
        self.display_column_var = tk.StringVar()
        self.duration_var = tk.StringVar(value=str(settings.get("animation_duration", 10)))
        self.celebration_var = tk.StringVar(value=str(settings.get("celebration_duration", 20)))
        self.show_advanced_var = tk.BooleanVar(value=bool(settings.get("show_advanced")))
        rigged_row = settings.get("rigged_row")
        self.rigged_row_var = tk.StringVar(value="" if rigged_row is None else str(rigged_row))

        self.current_frame: SpinFrame | None = None
        self.render_after_id: str | None = None
        self.render_interval_ms = 16
        self.force_full_render = True
        self.last_render_time = 0.0
        self.last_canvas_size = (0, 0)
        self.loop_after_id: str | None = None
        self.winner_item: str | None = None

        self._build_ui()
        self.render_settings(settings)
        self._bind_keys()
        self.apply_theme(self.colors)
        self._handle_external_rng(save=False)
        self._animate()

    # --- host loop ---
    def _animate(self) -> None:
        try:
            if self.controller.is_busy:
                self.controller.poll()
        finally:
            self.loop_after_id = self.after(16, self._animate)

    def destroy(self) -> None:
        if self.loop_after_id:
            self.after_cancel(self.loop_after_id)
            self.loop_after_id = None
        if self.render_after_id:
            self.after_cancel(self.render_after_id)
            self.render_after_id = None
        tk.Frame.destroy(self)

    # --- RaffleView hooks ---
    def render_table(self, rows: list[dict[str, Any]], meta: dict[str, Any]) -> None:
        headers = list(meta.get("headers") or [])
        columns = ["#"] + [f"c{i}" for i in range(len(headers))]
        self.table.delete(*self.table.get_children())
        self.table.configure(columns=columns)
        self.table.heading("#", text="#")
        self.table.column("#", width=60, anchor=tk.E, stretch=False)
        for index, header in enumerate(headers):
            self.table.heading(f"c{index}", text=header)
            self.table.column(f"c{index}", width=140, anchor=tk.W)
        for row in rows:
            values = [row["id"]] + [row["values"][i] if i < len(row["values"]) else "" for i in range(len(headers))]
            self.table.insert("", tk.END, iid=str(row["id"]), values=values)
        self.winner_item = None
        self.row_count_var.set(f"{len(rows)} rows")
        self.display_column_combo["values"] = headers
        column = self.controller.store.get_settings().get("display_column") or 0
        self.display_column_var.set(headers[column] if 0 <= column < len(headers) else "")
        if rows:
            self.empty_label.pack_forget()
            self.resume_button.pack_forget()
        else:
            self.empty_label.pack(pady=12)
        self.use_header_var.set(bool(meta.get("use_header", self.use_header_var.get())))

    def reset_wheel(self, slot_count: int) -> None:
        self.current_frame = None
        self.spin_button.configure(state=tk.NORMAL if slot_count else tk.DISABLED)
        self._request_render(force=True)

    def render_wheel(self, frame: SpinFrame) -> None:
        self.current_frame = frame
        self._request_render()

    def set_spinning(self, spinning: bool) -> None:
        if spinning:
            self.spin_button.configure(text="SPINNING…", state=tk.DISABLED)
        else:
            self.spin_button.configure(
                text="SPIN WHEEL",
                state=tk.NORMAL if self.controller.slot_count else tk.DISABLED,
            )

    def show_rng_pending(self) -> None:
        self.rng_value_var.set("Quantum…")
        self.rng_raw_var.set("Connecting to the lab…")

    def show_rng_result(self, selection: Selection) -> None:
        self.rng_value_var.set(str(selection.row_number))
        if selection.raw_value is not None:
            self.rng_raw_var.set(f"Source: {selection.raw_value} (uint16)")
        elif selection.error:
            self.rng_raw_var.set("Error - local fallback")
        else:
            self.rng_raw_var.set(selection.label)

    def scroll_to_row(self, row_number: int) -> None:
        item = str(row_number)
        if self.table.exists(item):
            self.table.see(item)

    def highlight_winner(self, row_number: int) -> None:
        if self.winner_item and self.table.exists(self.winner_item):
            self.table.item(self.winner_item, tags=())
        item = str(row_number)
        if self.table.exists(item):
            self.table.item(item, tags=("winner",))
            self.table.selection_set(item)
            self.winner_item = item

    def update_history(self, history: list[dict[str, Any]]) -> None:
        self.history_listbox.delete(0, tk.END)
        for record in history:
            try:
                stamp = datetime.fromisoformat(record["timestamp"]).strftime("%H:%M:%S")
            except (KeyError, ValueError):
                stamp = ""
            name = display_name(record.get("winner"))
            self.history_listbox.insert(tk.END, f"Row #{record.get('row_number')} - {name} - {stamp}")

    def warn(self, message: str) -> None:
        messagebox.showwarning("Warning", message, parent=self.root)

    # --- settings ---
    def render_settings(self, settings: dict[str, Any]) -> None:
        labels = dict(theme_options())
        self.theme_combo.set(labels.get(settings.get("theme"), labels["orange"]))
        self.split_combo.set(settings.get("split_ratio", "50-50"))
        self._handle_advanced_toggle(save=False)

    def _handle_theme_change(self, event: tk.Event) -> None:
        label = self.theme_combo.get()
        key = next((key for key, text in theme_options() if text == label), None)
        if key:
            self.controller.change_setting("theme", key)

    def _handle_int_setting(self, key: str, variable: tk.StringVar) -> None:
        try:
            value = int(variable.get())
        except ValueError:
            variable.set(str(self.controller.store.get_settings().get(key, "")))
            return
        if value < 1:
            value = 1
            variable.set("1")
        if self.controller.store.get_settings().get(key) != value:
            self.controller.change_setting(key, value)

    def _handle_advanced_toggle(self, save: bool = True) -> None:
        show = self.show_advanced_var.get()
        if show:
            self.advanced_frame.grid()
        else:
            self.advanced_frame.grid_remove()
        if save:
            self.controller.change_setting("show_advanced", show)

    def _handle_rigged_row(self, event: tk.Event | None = None) -> None:
        raw = self.rigged_row_var.get().strip()
        if not raw:
            value = None
        else:
            try:
                value = int(raw)
            except ValueError:
                messagebox.showwarning("Rigged row", "Enter a whole row number or leave it blank.", parent=self.root)
                return
        if self.controller.store.get_settings().get("rigged_row") != value:
            self.controller.change_setting("rigged_row", value)

    def _handle_display_column(self, event: tk.Event) -> None:
        headers = list(self.display_column_combo["values"])
        label = self.display_column_var.get()
        if label in headers:
            self.controller.change_setting("display_column", headers.index(label))

    def _handle_external_rng(self, save: bool = True) -> None:
        enabled = self.external_rng_var.get()
        if enabled:
            self.rng_frame.pack(fill=tk.X, before=self.canvas)
        else:
            self.rng_frame.pack_forget()
            self.rng_value_var.set("")
            self.rng_raw_var.set("")
        if save:
            self.controller.change_setting("external_rng", enabled)

    # --- actions ---
    def _handle_spin(self) -> None:
        self.controller.request_spin()

    def _handle_space(self, event: tk.Event) -> None:
        if isinstance(event.widget, (tk.Entry, tk.Spinbox, ttk.Entry)):
            return
        self.controller.request_spin()

    def _handle_load_file(self) -> None:
        path = filedialog.askopenfilename(parent=self.root, title="Choose entries", filetypes=FILE_TYPES)
        if not path:
            return
        try:
            count = self.controller.load_file(path, use_header=self.use_header_var.get())
        except DataParseError as exc:
            messagebox.showerror("Load failed", str(exc), parent=self.root)
            return
        except RaffleBusyError as exc:
            messagebox.showinfo("Busy", str(exc), parent=self.root)
            return
        logger.info("Loaded %s rows", count)

    def _handle_header_toggle(self) -> None:
        try:
            self.controller.toggle_header(self.use_header_var.get())
        except RaffleBusyError as exc:
            self.use_header_var.set(not self.use_header_var.get())
            messagebox.showinfo("Busy", str(exc), parent=self.root)

    def show_resume_option(self) -> None:
        self.resume_button.pack(side=tk.LEFT, padx=8)

    def _handle_resume(self) -> None:
        try:
            self.controller.resume()
        except RaffleBusyError as exc:
            messagebox.showinfo("Busy", str(exc), parent=self.root)

    def _handle_clear(self) -> None:
        if not messagebox.askyesno("Clear", "Forget the loaded file and the winner history?", parent=self.root):
            return
        try:
            self.controller.clear()
        except RaffleBusyError as exc:
            messagebox.showinfo("Busy", str(exc), parent=self.root)
