#!/usr/bin/env python3
"""Tkinter raffle wheel: load a spreadsheet, spin, celebrate the winner."""

from __future__ import annotations

import argparse
import logging
import tkinter as tk
from pathlib import Path
from tkinter import messagebox
from typing import Any

from celebration_window import CelebrationOverlay
from raffle import DEFAULT_DATA_DIR, HEADER_TOGGLE, SETTING_CHANGE, RaffleController, configure_logging
from raffle_rng import RandomnessProvider
from raffle_store import RaffleStore
from themes import get_theme
from wheel_spin import SpinAnimator
from wheel_window import WheelRaffleWindow

logger = logging.getLogger(__name__)


class RaffleApp:
    def __init__(
        self,
        root: tk.Tk,
        data_dir: Path,
        win_sound: Path | None = None,
        background: Path | None = None,
    ) -> None:
        self.root = root
        self.root.title("Raffle Wheel")
        self.root.geometry("1280x800")
        self.root.minsize(900, 600)

        self.store = RaffleStore(data_dir, on_warning=self._handle_store_warning)
        settings = self.store.get_settings()

        self.celebration = CelebrationOverlay(
            root,
            get_theme(settings.get("theme")),
            win_sound_path=win_sound,
            background_path=background,
            display_column=settings.get("display_column"),
        )
        self.controller = RaffleController(
            self.store,
            provider=RandomnessProvider(),
            animator=SpinAnimator(),
            celebration=self.celebration,
        )
        self.window = WheelRaffleWindow(root, self.controller, settings)
        self.window.pack(fill=tk.BOTH, expand=True)
        self.controller.view = self.window

        self.controller.on(SETTING_CHANGE, self._handle_setting_change)
        self.controller.on(HEADER_TOGGLE, lambda rows: logger.info("Re-read dataset: %s rows", len(rows)))

        self.window.update_history(self.store.get_history())
        self.window.apply_layout(settings.get("split_ratio", "50-50"))
        dataset = self.store.get_dataset()
        if dataset and dataset["rows"]:
            logger.info("Found saved dataset: %s", dataset["meta"].get("filename"))
            self.window.show_resume_option()
        self.root.protocol("WM_DELETE_WINDOW", self._handle_close)

    def _handle_store_warning(self, message: str) -> None:
        messagebox.showwarning("Storage", message, parent=self.root)

    def _handle_setting_change(self, key: str, value: Any) -> None:
        if key == "theme":
            colors = get_theme(value)
            self.window.apply_theme(colors)
            self.celebration.colors = colors
        elif key == "split_ratio":
            self.window.apply_layout(value)
        elif key == "display_column":
            self.celebration.display_column = value

    def _handle_close(self) -> None:
        self.celebration.stop()
        self.root.destroy()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Raffle wheel (Tkinter).")
    parser.add_argument(
        "--data-dir",
        default=str(DEFAULT_DATA_DIR),
        help=f"Directory holding settings, dataset and history (default: {DEFAULT_DATA_DIR})",
    )
    parser.add_argument("--win-sound", help="Sound file played when the winner is revealed")
    parser.add_argument("--background", help="Image shown behind the winner reveal")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(args.verbose)
    root = tk.Tk()
    RaffleApp(
        root,
        Path(args.data_dir),
        win_sound=Path(args.win_sound) if args.win_sound else None,
        background=Path(args.background) if args.background else None,
    )
    root.mainloop()


if __name__ == "__main__":
    main()
