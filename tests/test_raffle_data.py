from __future__ import annotations

import json
import zipfile

import pandas as pd
import pytest

from raffle_data import DataParseError, display_name, parse_file, process_rows


def test_process_rows_skips_empty_rows():
    raw = [[], ["Header"], [], ["Row1"], ["", "  "]]
    rows, meta = process_rows(raw, True)
    assert len(rows) == 1
    assert meta["count"] == 1
    assert meta["headers"] == ["Header"]


def test_process_rows_respects_header_toggle():
    raw = [["H1", "H2"], ["V1", "V2"]]

    rows, meta = process_rows(raw, True, "people.csv")
    assert meta["headers"] == ["H1", "H2"]
    assert meta["filename"] == "people.csv"
    assert meta["use_header"] is True
    assert rows[0] == {"id": 1, "values": ["V1", "V2"]}

    rows, meta = process_rows(raw, False)
    assert meta["headers"] == ["Column 1", "Column 2"]
    assert meta["filename"] == "Unknown"
    assert len(rows) == 2


def test_generated_headers_cover_widest_row():
    rows, meta = process_rows([["a"], ["b", "c", "d"]], False)
    assert meta["headers"] == ["Column 1", "Column 2", "Column 3"]
    assert rows[1]["id"] == 2


def test_parse_csv_with_bom_and_semicolons(tmp_path):
    path = tmp_path / "entries.csv"
    path.write_text("\ufeffName;Email\nAna;ana@example.com\nLuis;luis@example.com\n", encoding="utf-8")
    raw = parse_file(path)
    assert raw[0] == ["Name", "Email"]
    assert raw[2] == ["Luis", "luis@example.com"]


def test_parse_excel_first_sheet(tmp_path):
    path = tmp_path / "entries.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame({"Name": ["Ana", None], "Tickets": [3, 1]}).to_excel(writer, index=False, sheet_name="Entries")
        pd.DataFrame({"Other": ["x"]}).to_excel(writer, index=False, sheet_name="Ignored")
    raw = parse_file(path)
    assert raw[0] == ["Name", "Tickets"]
    assert raw[1][0] == "Ana"
    assert raw[2][0] == ""
    json.dumps(raw)


def test_parse_json_rows(tmp_path):
    path = tmp_path / "entries.json"
    path.write_text(json.dumps([["Name"], ["Ana"], {"name": "Luis"}]), encoding="utf-8")
    assert parse_file(path) == [["Name"], ["Ana"], ["Luis"]]


def test_parse_errors_are_readable(tmp_path):
    with pytest.raises(DataParseError, match="Unsupported"):
        parse_file(tmp_path / "entries.pdf")
    with pytest.raises(DataParseError, match="not found"):
        parse_file(tmp_path / "missing.csv")
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"this is not a workbook")
    with pytest.raises(DataParseError, match="valid CSV or Excel"):
        parse_file(broken)


def test_legacy_and_fake_workbooks_are_readable_errors(tmp_path):
    ole2 = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 512
    legacy = tmp_path / "old.xls"
    legacy.write_bytes(ole2)
    with pytest.raises(DataParseError, match="Unsupported"):
        parse_file(legacy)

    disguised = tmp_path / "old_renamed.xlsx"
    disguised.write_bytes(ole2)
    with pytest.raises(DataParseError, match="valid CSV or Excel"):
        parse_file(disguised)

    archive = tmp_path / "fake.xlsx"
    with zipfile.ZipFile(archive, "w") as bundle:
        bundle.writestr("hello.txt", "not a workbook")
    with pytest.raises(DataParseError, match="valid CSV or Excel"):
        parse_file(archive)


def test_display_name():
    assert display_name(None) == "Anonymous"
    assert display_name({"id": 1, "values": []}) == "Anonymous"
    assert display_name({"id": 1, "values": [42, "", "Ana"]}) == "Ana"
    assert display_name({"id": 1, "values": [42, 7]}) == "Winner"
    assert display_name({"id": 1, "values": ["Ana", "Luis"]}, column=1) == "Luis"
    assert display_name({"id": 1, "values": ["Ana", ""]}, column=1) == "Ana"
