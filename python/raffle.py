#!/usr/bin/env python3
"""Raffle orchestration and the console runner.

Usage examples:
  python python/raffle.py load entries.xlsx
  python python/raffle.py spin --remote
  python python/raffle.py history
  python python/raffle.py settings rigged_row 3
  python python/raffle.py reset
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from raffle_data import DataParseError, display_name, parse_file, process_rows
from raffle_rng import MODE_LOCAL, MODE_REMOTE, SOURCE_FALLBACK, SOURCE_REMOTE, RandomnessProvider, Selection
from raffle_store import RaffleStore
from wheel_spin import SpinAnimator, SpinFrame

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".raffle-wheel"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SETTING_CHANGE = "setting_change"
HEADER_TOGGLE = "header_toggle"
SPIN_COMPLETE = "spin_complete"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def local_now() -> str:
    return datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")


def run_in_thread(task: Callable[[], None]) -> None:
    threading.Thread(target=task, daemon=True).start()


class RaffleBusyError(RuntimeError):
    """The wheel cannot change while a spin is in flight."""


class RaffleView:
    """UI collaborator. Every hook is optional; the default does nothing."""

    def render_table(self, rows: list[dict[str, Any]], meta: dict[str, Any]) -> None: ...
    def reset_wheel(self, slot_count: int) -> None: ...
    def render_wheel(self, frame: SpinFrame) -> None: ...
    def set_spinning(self, spinning: bool) -> None: ...
    def show_rng_pending(self) -> None: ...
    def show_rng_result(self, selection: Selection) -> None: ...
    def scroll_to_row(self, row_number: int) -> None: ...
    def highlight_winner(self, row_number: int) -> None: ...
    def update_history(self, history: list[dict[str, Any]]) -> None: ...
    def warn(self, message: str) -> None: ...


class Celebration:
    """Celebration collaborator that shows nothing."""

    def start(self, winner_row: dict[str, Any], display_number: int, duration_seconds: float) -> None: ...
    def stop(self) -> None: ...


@dataclass(frozen=True)
class SpinResult:
    row_number: int
    winner: dict[str, Any]
    selection: Selection
    record: dict[str, Any]


class RaffleController:
    """Runs one spin at a time: pick the winner, drive the wheel, report the result."""

    IDLE = "idle"
    SELECTING = "selecting"
    SPINNING = "spinning"

    def __init__(
        self,
        store: RaffleStore,
        provider: RandomnessProvider | None = None,
        animator: SpinAnimator | None = None,
        view: RaffleView | None = None,
        celebration: Celebration | None = None,
        run_in_background: Callable[[Callable[[], None]], None] = run_in_thread,
    ) -> None:
        self.store = store
        self.provider = provider or RandomnessProvider()
        self.animator = animator or SpinAnimator()
        self.view = view or RaffleView()
        self.celebration = celebration or Celebration()
        self.run_in_background = run_in_background

        self.phase = self.IDLE
        self.rows: list[dict[str, Any]] = []
        self.meta: dict[str, Any] = {}
        self.events: dict[str, list[Callable[..., None]]] = {}
        self.spin_settings: dict[str, Any] = {}
        self.selection: Selection | None = None
        self.last_result: SpinResult | None = None
        # Written once by the worker, consumed by poll() on the UI thread.
        self._outcome: tuple[Selection | None, BaseException | None] | None = None

    @property
    def slot_count(self) -> int:
        return len(self.rows)

    @property
    def is_busy(self) -> bool:
        return self.phase != self.IDLE

    # --- events ---
    def on(self, event: str, callback: Callable[..., None]) -> None:
        self.events.setdefault(event, []).append(callback)

    def emit(self, event: str, *args: Any) -> None:
        for callback in self.events.get(event, []):
            callback(*args)

    # --- dataset ---
    def _ensure_idle(self) -> None:
        if self.is_busy:
            raise RaffleBusyError("A spin is in progress. Wait for the wheel to stop.")

    def load_dataset(
        self,
        rows: list[dict[str, Any]],
        meta: dict[str, Any],
        raw_rows: list[list[Any]] | None = None,
        persist: bool = True,
    ) -> None:
        self._ensure_idle()
        if persist:
            self.store.save_dataset(rows, meta, raw_rows)
        self.rows = rows
        self.meta = meta
        self.animator.reset(len(rows))
        self.view.render_table(rows, meta)
        self.view.reset_wheel(len(rows))

    def load_file(self, path: Path | str, use_header: bool = True) -> int:
        """Parse ``path`` and make it the active dataset. Raises DataParseError."""
        self._ensure_idle()
        raw_rows = parse_file(path)
        rows, meta = process_rows(raw_rows, use_header, Path(path).name)
        self.load_dataset(rows, meta, raw_rows)
        return len(rows)

    def resume(self) -> bool:
        dataset = self.store.get_dataset()
        if not dataset or not dataset["rows"]:
            return False
        self.load_dataset(dataset["rows"], dataset["meta"], persist=False)
        logger.info("Resumed dataset %s (%s rows)", self.meta.get("filename"), self.slot_count)
        return True

    def toggle_header(self, use_header: bool) -> list[dict[str, Any]] | None:
        """Re-read the stored raw rows with or without a header row."""
        self._ensure_idle()
        raw_rows = self.store.get_raw_rows()
        if not raw_rows:
            return None
        filename = self.meta.get("filename", "Unknown")
        rows, meta = process_rows(raw_rows, use_header, filename)
        self.load_dataset(rows, meta, raw_rows)
        self.emit(HEADER_TOGGLE, rows)
        return rows

    def clear(self) -> None:
        self._ensure_idle()
        self.store.clear_data()
        self.rows = []
        self.meta = {}
        self.animator.reset(0)
        self.view.render_table([], {})
        self.view.reset_wheel(0)
        self.view.update_history([])

    # --- settings ---
    def change_setting(self, key: str, value: Any) -> dict[str, Any]:
        settings = self.store.get_settings()
        settings[key] = value
        self.store.save_settings(settings)
        self.emit(SETTING_CHANGE, key, value)
        return settings

    # --- spinning ---
    def request_spin(self, mode: str | None = None, **overrides: Any) -> bool:
        """Start a spin. Returns False when there is nothing to spin or one is running."""
        if self.is_busy or self.animator.is_spinning:
            return False
        if self.slot_count < 1:
            return False
        settings = self.store.get_settings()
        settings.update(overrides)
        if mode is None:
            mode = MODE_REMOTE if settings.get("external_rng") else MODE_LOCAL
        self.spin_settings = settings
        self.spin_settings["mode"] = mode
        self.selection = None
        self._outcome = None
        self.phase = self.SELECTING
        self.view.set_spinning(True)
        if mode == MODE_REMOTE:
            self.view.show_rng_pending()

        slot_count = self.slot_count
        rigged_row = settings.get("rigged_row")

        def _select() -> None:
            try:
                selection = self.provider.select_winner_sync(slot_count, mode, rigged_row)
            except Exception as exc:  # handed to the UI thread in poll()
                self._outcome = (None, exc)
                return
            self._outcome = (selection, None)

        self.run_in_background(_select)
        return True

    def poll(self, now: float | None = None) -> SpinFrame | None:
        """Advance the spin; the host calls this once per frame."""
        if self.phase == self.SELECTING:
            outcome = self._outcome
            if outcome is None:
                return None
            self._outcome = None
            selection, error = outcome
            if error is not None or selection is None:
                logger.error("Winner selection failed: %s", error)
                self.phase = self.IDLE
                self.view.set_spinning(False)
                self.view.warn(f"Could not pick a winner: {error}")
                return None
            self._start_animation(selection)

        if self.phase == self.SPINNING:
            frame = self.animator.step(now)
            if frame is not None:
                self.view.render_wheel(frame)
            return frame
        return None

    def _start_animation(self, selection: Selection) -> None:
        self.selection = selection
        settings = self.spin_settings
        started = self.animator.spin_to(
            selection.row_number,
            float(settings.get("animation_duration", 10)),
            float(settings.get("slowdown_duration", 4)),
            on_settle=self._handle_settle,
        )
        if not started:
            logger.warning("Wheel refused to start a spin")
            self.phase = self.IDLE
            self.view.set_spinning(False)
            return
        self.phase = self.SPINNING

    def _handle_settle(self, target_index: int) -> None:
        selection = self.selection
        settings = self.spin_settings
        winner = self.rows[target_index]
        row_number = target_index + 1
        self.phase = self.IDLE

        record = {
            "row_number": row_number,
            "timestamp": local_now(),
            "winner": winner,
            "dataset_name": self.meta.get("filename", "Unknown"),
            "source": selection.source,
            "source_label": selection.label,
            "raw_value": selection.raw_value,
        }
        self.store.add_history(record)
        self.last_result = SpinResult(row_number, winner, selection, record)
        logger.info("Winner: row %s (%s) via %s", row_number, display_name(winner), selection.label)

        # History is written before any collaborator runs.
        self._notify(self.view.set_spinning, False)
        if settings.get("mode") == MODE_REMOTE or selection.source in (SOURCE_REMOTE, SOURCE_FALLBACK):
            self._notify(self.view.show_rng_result, selection)
        self._notify(self.celebration.start, winner, row_number, float(settings.get("celebration_duration", 20)))
        self._notify(self.view.scroll_to_row, row_number)
        self._notify(self.view.highlight_winner, row_number)
        self._notify(self.view.update_history, self.store.get_history())
        self._notify(self.emit, SPIN_COMPLETE, self.last_result)

    def _notify(self, callback: Callable[..., None], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("%s failed after the spin settled", getattr(callback, "__name__", callback))

    def skip_celebration(self) -> None:
        self.celebration.stop()


class ConsoleView(RaffleView):
    """Prints wheel progress and the reveal to a terminal."""

    def __init__(self, stream: Any = None, show_ticker: bool = True) -> None:
        self.stream = stream or sys.stdout
        self.show_ticker = show_ticker
        self.last_index: int | None = None

    def render_wheel(self, frame: SpinFrame) -> None:
        if not self.show_ticker or frame.center_index == self.last_index:
            return
        self.last_index = frame.center_index
        self.stream.write(f"\r  🎡 {frame.center_index + 1:>6}")
        self.stream.flush()

    def show_rng_pending(self) -> None:
        print("Quantum... connecting to the lab", file=self.stream)

    def show_rng_result(self, selection: Selection) -> None:
        if selection.raw_value is not None:
            print(f"\nSource: {selection.raw_value} (uint16)", file=self.stream)
        elif selection.error:
            print(f"\nQuantum RNG error ({selection.error}) - local fallback", file=self.stream)

    def warn(self, message: str) -> None:
        print(f"⚠️ {message}", file=self.stream)


class ConsoleCelebration(Celebration):
    def __init__(self, stream: Any = None, columns: int | None = None) -> None:
        self.stream = stream or sys.stdout
        self.columns = columns

    def start(self, winner_row: dict[str, Any], display_number: int, duration_seconds: float) -> None:
        print(f"\n🎉 #{display_number}  {display_name(winner_row, self.columns)}", file=self.stream)


def parse_setting_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def format_history(record: dict[str, Any]) -> str:
    winner = display_name(record.get("winner"))
    return (
        f"{record.get('timestamp', '')} | #{record.get('row_number')} {winner}"
        f" | {record.get('dataset_name', '')} [{record.get('source_label') or record.get('source')}]"
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Raffle wheel (console runner).")
    parser.add_argument(
        "--data-dir",
        default=str(DEFAULT_DATA_DIR),
        help=f"Directory holding settings, dataset and history (default: {DEFAULT_DATA_DIR})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    load_parser = subparsers.add_parser("load", help="Load a CSV/Excel file as the active dataset")
    load_parser.add_argument("file", help="Spreadsheet to load")
    load_parser.add_argument("--no-header", action="store_true", help="Treat the first row as data")

    spin_parser = subparsers.add_parser("spin", help="Spin the wheel once")
    spin_parser.add_argument("--remote", action="store_true", help="Use the ANU quantum RNG")
    spin_parser.add_argument("--local", action="store_true", help="Force the local RNG")
    spin_parser.add_argument("--duration", type=float, help="Animation duration in seconds")
    spin_parser.add_argument("--rigged-row", type=int, help="Force the winning row (1-based)")
    spin_parser.add_argument("--seed", type=int, help="Random seed for reproducible draws")
    spin_parser.add_argument("--quiet", action="store_true", help="Do not print the spinning ticker")

    subparsers.add_parser("history", help="Show recent winners")

    settings_parser = subparsers.add_parser("settings", help="Show or change a setting")
    settings_parser.add_argument("key", nargs="?")
    settings_parser.add_argument("value", nargs="?")

    subparsers.add_parser("reset", help="Forget the dataset and history")
    return parser.parse_args(argv)


def run_spin(controller: RaffleController, mode: str | None, frame_interval: float = 1 / 30, **overrides: Any) -> SpinResult | None:
    if not controller.request_spin(mode, **overrides):
        return None
    while controller.is_busy:
        controller.poll()
        time.sleep(frame_interval)
    return controller.last_result


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    store = RaffleStore(Path(args.data_dir), on_warning=lambda message: print(f"⚠️ {message}"))

    if args.command == "reset":
        store.clear_data()
        print(f"Cleared dataset and history in {store.data_dir}")
        return

    if args.command == "history":
        history = store.get_history()
        if not history:
            print("No winners yet.")
            return
        for record in history:
            print(format_history(record))
        return

    if args.command == "settings":
        settings = store.get_settings()
        if not args.key:
            for key, value in settings.items():
                print(f"{key} = {json.dumps(value, ensure_ascii=False)}")
            return
        if args.value is None:
            if args.key not in settings:
                raise SystemExit(f"Unknown setting: {args.key}")
            print(json.dumps(settings[args.key], ensure_ascii=False))
            return
        controller = RaffleController(store)
        controller.change_setting(args.key, parse_setting_value(args.value))
        print(f"{args.key} = {args.value}")
        return

    if args.command == "load":
        controller = RaffleController(store)
        try:
            count = controller.load_file(args.file, use_header=not args.no_header)
        except DataParseError as exc:
            raise SystemExit(str(exc))
        print(f"Loaded {count} rows from {Path(args.file).name}")
        return

    if args.command == "spin":
        settings = store.get_settings()
        provider = RandomnessProvider(rng=random.Random(args.seed))
        controller = RaffleController(
            store,
            provider=provider,
            view=ConsoleView(show_ticker=not args.quiet),
            celebration=ConsoleCelebration(columns=settings.get("display_column")),
            run_in_background=lambda task: task(),
        )
        if not controller.resume():
            raise SystemExit("No dataset loaded. Run the 'load' command first.")
        overrides: dict[str, Any] = {}
        if args.duration is not None:
            overrides["animation_duration"] = args.duration
        if args.rigged_row is not None:
            overrides["rigged_row"] = args.rigged_row
        mode = MODE_REMOTE if args.remote else MODE_LOCAL if args.local else None
        result = run_spin(controller, mode, **overrides)
        if result is None:
            raise SystemExit("The wheel could not be spun.")


if __name__ == "__main__":
    main()
