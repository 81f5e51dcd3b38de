#!/usr/bin/env python3
"""Spreadsheet loading and row processing for the raffle table."""

from __future__ import annotations

import csv
import json
import logging
import time
from pathlib import Path
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


class DataParseError(ValueError):
    """The uploaded file could not be turned into rows."""


def clean_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (bool, int, float)):
        return value
    # Dates and numpy scalars must stay JSON-serialisable for the store.
    return str(value)


def _read_csv(path: Path) -> list[list[Any]]:
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        sample = handle.read(4096)
        handle.seek(0)
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
        except csv.Error:
            dialect = csv.excel
        return [[clean_cell(cell) for cell in row] for row in csv.reader(handle, dialect)]


def _read_excel(path: Path) -> list[list[Any]]:
    try:
        frame = pd.read_excel(path, sheet_name=0, header=None, dtype=object, engine="openpyxl")
    except (OSError, ValueError):
        raise
    except Exception as exc:
        # Zip archives that are not workbooks fail deep inside pandas/openpyxl.
        raise ValueError(f"Not an Excel workbook: {exc}") from exc
    frame = frame.astype(object).where(frame.notna(), "")
    return [[clean_cell(cell) for cell in row] for row in frame.values.tolist()]


def _read_json_rows(path: Path) -> list[list[Any]]:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise ValueError("JSON upload must be a list of rows.")
    rows = []
    for entry in payload:
        if isinstance(entry, list):
            rows.append([clean_cell(cell) for cell in entry])
        elif isinstance(entry, dict):
            rows.append([clean_cell(cell) for cell in entry.values()])
        else:
            rows.append([clean_cell(entry)])
    return rows


def parse_file(path: Path | str) -> list[list[Any]]:
    """Read the first sheet of ``path`` as a list of raw rows."""
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix in CSV_SUFFIXES:
            rows = _read_csv(path)
        elif suffix in EXCEL_SUFFIXES:
            rows = _read_excel(path)
        elif suffix == ".json":
            rows = _read_json_rows(path)
        else:
            raise DataParseError(f"Unsupported file type: {path.suffix or path.name}")
    except DataParseError:
        raise
    except FileNotFoundError as exc:
        raise DataParseError(f"File not found: {path}") from exc
    except (OSError, ValueError, UnicodeDecodeError, csv.Error) as exc:
        logger.error("Failed to parse %s: %s", path, exc)
        raise DataParseError("Could not read the file. Make sure it is a valid CSV or Excel file.") from exc
    logger.info("Parsed %s raw rows from %s", len(rows), path.name)
    return rows


def _is_blank(row: Any) -> bool:
    if not row:
        return True
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row)


def process_rows(
    raw_rows: list[list[Any]],
    use_header: bool,
    filename: str = "Unknown",
) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    """Turn raw rows into numbered table rows plus dataset metadata."""
    clean_rows = [list(row) for row in raw_rows if not _is_blank(row)]
    if use_header and clean_rows:
        headers = [str(cell) for cell in clean_rows[0]]
        data_rows = clean_rows[1:]
    else:
        width = max((len(row) for row in clean_rows), default=0)
        headers = [f"Column {i + 1}" for i in range(width)]
        data_rows = clean_rows

    rows = [{"id": index + 1, "values": values} for index, values in enumerate(data_rows)]
    meta = {
        "headers": headers,
        "filename": filename,
        "use_header": bool(use_header),
        "count": len(rows),
        "last_modified": int(time.time() * 1000),
    }
    return rows, meta


def display_name(row: dict[str, Any] | None, column: int | None = None) -> str:
    """Best human-readable label for a winning row."""
    if not row or not row.get("values"):
        return "Anonymous"
    values = row["values"]
    if column is not None and 0 <= column < len(values):
        value = str(values[column]).strip()
        if value:
            return value
    for value in values:
        if isinstance(value, str) and value:
            return value
    return "Winner"
