#!/usr/bin/env python3
"""JSON-file persistence for settings, the loaded dataset and spin history."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50

DEFAULT_SETTINGS: dict[str, Any] = {
    "theme": "orange",
    "split_ratio": "50-50",
    "animation_duration": 10,
    "slowdown_duration": 4,
    "celebration_duration": 20,
    "show_advanced": False,
    "rigged_row": None,
    "external_rng": False,
    "display_column": 0,
}


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_json(path: Path, payload: Any) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)


class RaffleStore:
    """Settings, dataset and history kept as JSON files in ``data_dir``.

    When a write fails the value is held in memory for the rest of the session
    and ``on_warning`` is told that persistence is session-only.
    """

    FILES = {
        "settings": "settings.json",
        "dataset": "dataset.json",
        "history": "history.json",
    }

    def __init__(self, data_dir: Path, on_warning: Callable[[str], None] | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.on_warning = on_warning
        self._memory: dict[str, Any] = {}
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Cannot create data directory %s: %s", self.data_dir, exc)

    def _path(self, key: str) -> Path:
        return self.data_dir / self.FILES[key]

    def _load(self, key: str) -> Any:
        if key in self._memory:
            return copy.deepcopy(self._memory[key])
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return read_json(path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable %s: %s", path, exc)
            return None

    def _save(self, key: str, payload: Any) -> bool:
        if key in self._memory:
            self._memory[key] = copy.deepcopy(payload)
            return False
        try:
            write_json(self._path(key), payload)
        except OSError as exc:
            logger.warning("Could not persist %s: %s", key, exc)
            self._memory[key] = copy.deepcopy(payload)
            self._warn(f"The {key} could not be saved to disk ({exc}). It will work for this session only.")
            return False
        return True

    def _warn(self, message: str) -> None:
        if self.on_warning:
            self.on_warning(message)

    @property
    def session_only(self) -> bool:
        return bool(self._memory)

    def get_settings(self) -> dict[str, Any]:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        stored = self._load("settings")
        if isinstance(stored, dict):
            settings.update(stored)
        return settings

    def save_settings(self, settings: dict[str, Any]) -> bool:
        return self._save("settings", settings)

    def save_dataset(self, rows: list[dict[str, Any]], meta: dict[str, Any], raw_rows: list[list[Any]] | None) -> bool:
        payload = {"rows": rows, "meta": meta, "raw_rows": raw_rows}
        return self._save("dataset", payload)

    def get_dataset(self) -> dict[str, Any] | None:
        dataset = self._load("dataset")
        if not isinstance(dataset, dict) or "rows" not in dataset:
            return None
        dataset.setdefault("meta", {})
        dataset.setdefault("raw_rows", None)
        return dataset

    def get_raw_rows(self) -> list[list[Any]] | None:
        dataset = self.get_dataset()
        return dataset["raw_rows"] if dataset else None

    def add_history(self, record: dict[str, Any]) -> list[dict[str, Any]]:
        history = self.get_history()
        history.insert(0, record)
        del history[HISTORY_LIMIT:]
        self._save("history", history)
        return history

    def get_history(self) -> list[dict[str, Any]]:
        history = self._load("history")
        return history if isinstance(history, list) else []

    def clear_data(self) -> None:
        """Forget the dataset and history; settings are kept."""
        for key in ("dataset", "history"):
            self._memory.pop(key, None)
            path = self._path(key)
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove %s: %s", path, exc)
                self._memory[key] = [] if key == "history" else None
