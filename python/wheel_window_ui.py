#!/usr/bin/env python3
"""UI layout and event binding for the raffle window."""

from __future__ import annotations

import tkinter as tk
from tkinter import ttk

from themes import theme_options

SPLIT_RATIOS = ["50-50", "60-40", "40-60", "70-30", "30-70"]


class WheelWindowUI:
    def _build_ui(self) -> None:
        """Wheel pane on the left, data/history/settings notebook on the right."""
        self.main_pane = tk.PanedWindow(self, orient=tk.HORIZONTAL, sashwidth=6, bd=0)
        self.main_pane.pack(fill=tk.BOTH, expand=True)

        # ================= Wheel pane =================
        self.wheel_pane = tk.Frame(self.main_pane, padx=12, pady=12)
        self.main_pane.add(self.wheel_pane, stretch="always")

        self.title_label = tk.Label(self.wheel_pane, text="Raffle Wheel", font=("Helvetica", 18, "bold"))
        self.title_label.pack(anchor=tk.W)

        self.rng_frame = tk.Frame(self.wheel_pane)
        self.rng_value_label = tk.Label(self.rng_frame, textvariable=self.rng_value_var, font=("Helvetica", 28, "bold"))
        self.rng_value_label.pack(anchor=tk.W)
        self.rng_raw_label = tk.Label(self.rng_frame, textvariable=self.rng_raw_var, font=("Helvetica", 10))
        self.rng_raw_label.pack(anchor=tk.W)

        self.canvas = tk.Canvas(self.wheel_pane, highlightthickness=0, height=600)
        self.canvas.pack(fill=tk.BOTH, expand=True, pady=(8, 8))
        self.canvas.bind("<Configure>", lambda event: self._request_render(force=True))

        controls = tk.Frame(self.wheel_pane)
        controls.pack(fill=tk.X)
        self.spin_button = ttk.Button(controls, text="SPIN WHEEL", command=self._handle_spin, state=tk.DISABLED)
        self.spin_button.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.external_rng_check = ttk.Checkbutton(
            controls,
            text="External RNG (quantum)",
            variable=self.external_rng_var,
            command=self._handle_external_rng,
        )
        self.external_rng_check.pack(side=tk.LEFT, padx=(12, 0))

        # ================= Data pane =================
        self.data_pane = tk.Frame(self.main_pane, padx=12, pady=12)
        self.main_pane.add(self.data_pane, stretch="always")
        self.notebook = ttk.Notebook(self.data_pane)
        self.notebook.pack(fill=tk.BOTH, expand=True)

        self.data_tab = ttk.Frame(self.notebook, padding=8)
        self.history_tab = ttk.Frame(self.notebook, padding=8)
        self.settings_tab = ttk.Frame(self.notebook, padding=8)
        self.notebook.add(self.data_tab, text="Data")
        self.notebook.add(self.history_tab, text="History")
        self.notebook.add(self.settings_tab, text="Settings")

        self._build_data_tab()
        self._build_history_tab()
        self._build_settings_tab()

    def _build_data_tab(self) -> None:
        toolbar = ttk.Frame(self.data_tab)
        toolbar.pack(fill=tk.X)
        ttk.Button(toolbar, text="Load file…", command=self._handle_load_file).pack(side=tk.LEFT)
        ttk.Checkbutton(
            toolbar,
            text="First row is header",
            variable=self.use_header_var,
            command=self._handle_header_toggle,
        ).pack(side=tk.LEFT, padx=8)
        self.resume_button = ttk.Button(toolbar, text="Resume last file", command=self._handle_resume)
        ttk.Label(toolbar, textvariable=self.row_count_var).pack(side=tk.RIGHT)

        column_frame = ttk.Frame(self.data_tab)
        column_frame.pack(fill=tk.X, pady=(6, 0))
        ttk.Label(column_frame, text="Winner name column:").pack(side=tk.LEFT)
        self.display_column_combo = ttk.Combobox(
            column_frame,
            textvariable=self.display_column_var,
            state="readonly",
            width=24,
        )
        self.display_column_combo.pack(side=tk.LEFT, padx=6)
        self.display_column_combo.bind("<<ComboboxSelected>>", self._handle_display_column)

        table_frame = ttk.Frame(self.data_tab)
        table_frame.pack(fill=tk.BOTH, expand=True, pady=(8, 0))
        self.table = ttk.Treeview(table_frame, show="headings", selectmode="browse")
        y_scroll = ttk.Scrollbar(table_frame, orient=tk.VERTICAL, command=self.table.yview)
        x_scroll = ttk.Scrollbar(table_frame, orient=tk.HORIZONTAL, command=self.table.xview)
        self.table.configure(yscrollcommand=y_scroll.set, xscrollcommand=x_scroll.set)
        y_scroll.pack(side=tk.RIGHT, fill=tk.Y)
        x_scroll.pack(side=tk.BOTTOM, fill=tk.X)
        self.table.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self.empty_label = ttk.Label(
            self.data_tab,
            text="Load a CSV or Excel file to fill the wheel.",
            foreground="#888",
        )
        self.empty_label.pack(pady=12)

    def _build_history_tab(self) -> None:
        self.history_listbox = tk.Listbox(self.history_tab, highlightthickness=0, borderwidth=0, activestyle="none")
        self.history_listbox.pack(fill=tk.BOTH, expand=True)
        ttk.Button(self.history_tab, text="Clear data and history", command=self._handle_clear).pack(
            anchor=tk.E, pady=(8, 0)
        )

    def _build_settings_tab(self) -> None:
        row = 0
        ttk.Label(self.settings_tab, text="Theme:").grid(row=row, column=0, sticky=tk.W, pady=4)
        self.theme_combo = ttk.Combobox(
            self.settings_tab,
            values=[label for _, label in theme_options()],
            state="readonly",
            width=24,
        )
        self.theme_combo.grid(row=row, column=1, sticky=tk.W, pady=4)
        self.theme_combo.bind("<<ComboboxSelected>>", self._handle_theme_change)

        row += 1
        ttk.Label(self.settings_tab, text="Split:").grid(row=row, column=0, sticky=tk.W, pady=4)
        self.split_combo = ttk.Combobox(self.settings_tab, values=SPLIT_RATIOS, state="readonly", width=10)
        self.split_combo.grid(row=row, column=1, sticky=tk.W, pady=4)
        self.split_combo.bind(
            "<<ComboboxSelected>>",
            lambda event: self.controller.change_setting("split_ratio", self.split_combo.get()),
        )

        row += 1
        ttk.Label(self.settings_tab, text="Spin duration (s):").grid(row=row, column=0, sticky=tk.W, pady=4)
        self.duration_spin = ttk.Spinbox(
            self.settings_tab,
            from_=1,
            to=120,
            textvariable=self.duration_var,
            width=8,
            command=lambda: self._handle_int_setting("animation_duration", self.duration_var),
        )
        self.duration_spin.grid(row=row, column=1, sticky=tk.W, pady=4)
        self.duration_spin.bind(
            "<FocusOut>", lambda event: self._handle_int_setting("animation_duration", self.duration_var)
        )

        row += 1
        ttk.Label(self.settings_tab, text="Celebration (s):").grid(row=row, column=0, sticky=tk.W, pady=4)
        self.celebration_spin = ttk.Spinbox(
            self.settings_tab,
            from_=1,
            to=300,
            textvariable=self.celebration_var,
            width=8,
            command=lambda: self._handle_int_setting("celebration_duration", self.celebration_var),
        )
        self.celebration_spin.grid(row=row, column=1, sticky=tk.W, pady=4)
        self.celebration_spin.bind(
            "<FocusOut>", lambda event: self._handle_int_setting("celebration_duration", self.celebration_var)
        )

        row += 1
        ttk.Checkbutton(
            self.settings_tab,
            text="Show advanced",
            variable=self.show_advanced_var,
            command=self._handle_advanced_toggle,
        ).grid(row=row, column=0, columnspan=2, sticky=tk.W, pady=(12, 4))

        row += 1
        self.advanced_frame = ttk.Frame(self.settings_tab)
        self.advanced_frame.grid(row=row, column=0, columnspan=2, sticky=tk.W)
        ttk.Label(self.advanced_frame, text="Rigged row (blank = random):").pack(side=tk.LEFT)
        rigged_entry = ttk.Entry(self.advanced_frame, textvariable=self.rigged_row_var, width=8)
        rigged_entry.pack(side=tk.LEFT, padx=6)
        rigged_entry.bind("<FocusOut>", self._handle_rigged_row)
        rigged_entry.bind("<Return>", self._handle_rigged_row)

    def _bind_keys(self) -> None:
        root = self.winfo_toplevel()
        root.bind("<Escape>", lambda event: self.controller.skip_celebration())
        root.bind("<space>", self._handle_space)

    def apply_layout(self, split_ratio: str) -> None:
        try:
            left, right = (int(part) for part in split_ratio.split("-"))
        except ValueError:
            left, right = 50, 50
        self.update_idletasks()
        total = self.main_pane.winfo_width()
        if total <= 1:
            self.after(100, lambda: self.apply_layout(split_ratio))
            return
        self.main_pane.sash_place(0, int(total * left / (left + right)), 0)

    def apply_theme(self, colors: dict[str, str]) -> None:
        self.colors = colors
        for frame in (self, self.wheel_pane, self.data_pane, self.rng_frame):
            frame.configure(bg=colors["bg"])
        self.main_pane.configure(bg=colors["border"])
        self.title_label.configure(bg=colors["bg"], fg=colors["text"])
        self.rng_value_label.configure(bg=colors["bg"], fg=colors["accent"])
        self.rng_raw_label.configure(bg=colors["bg"], fg=colors["muted"])
        self.history_listbox.configure(
            bg=colors["panel"],
            fg=colors["text"],
            selectbackground=colors["accent"],
        )
        style = ttk.Style()
        style.configure("Treeview", background=colors["panel"], fieldbackground=colors["panel"], foreground=colors["text"])
        self.table.tag_configure("winner", background=colors["accent"], foreground=colors["panel"])
        self._request_render(force=True)
