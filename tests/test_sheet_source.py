from pathlib import Path

import pytest
import requests
from openpyxl import Workbook

from core import sheet_source
from core.sheet_source import SheetImportError, load_rows, load_table, read_csv_text

CSV_TEXT = (
    'Name,Gender,Age,Site,Group,Event,Time\r\n'
    '"Smith, Alice",F,15,East,Senior I,100 Free SCY,58.50\r\n'
    '\r\n'
    '"Bob ""B"" Jones",M,16,East,Senior I,50 Free SCY,22.10\n'
    ',,,,,,\n'
)


class FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def test_read_csv_text_handles_quotes_and_blank_lines():
    rows = read_csv_text(CSV_TEXT)
    assert len(rows) == 3
    assert rows[1][0] == "Smith, Alice"
    assert rows[2][0] == 'Bob "B" Jones'


def test_load_rows_from_url_drops_header(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(CSV_TEXT)

    monkeypatch.setattr(sheet_source.requests, "get", fake_get)
    rows = load_rows("https://example.com/sheet.csv")
    assert calls == ["https://example.com/sheet.csv"]
    assert [r[0] for r in rows] == ["Smith, Alice", 'Bob "B" Jones']


def test_fetch_failure_is_loud(monkeypatch):
    monkeypatch.setattr(sheet_source.requests, "get", lambda url, timeout: FakeResponse("", status=403))
    with pytest.raises(SheetImportError, match="403"):
        load_rows("https://example.com/private.csv")


def test_network_error_is_wrapped(monkeypatch):
    def boom(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(sheet_source.requests, "get", boom)
    with pytest.raises(SheetImportError, match="offline"):
        load_rows("https://example.com/sheet.csv")


def test_load_rows_from_csv_file(tmp_path: Path):
    path = tmp_path / "swims.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    assert len(load_rows(path)) == 2


def test_load_rows_from_workbook_keeps_cell_types(tmp_path: Path):
    path = tmp_path / "swims.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.title = "Swims"
    ws.append(["Name", "Gender", "Age", "Site", "Group", "Event", "Time"])
    ws.append(["Alice", "F", 15, "East", "Senior I", "100 Free SCY", "58.50"])
    ws.append([None, None, None, None, None, None, None])
    ws.append(["Bob", "M", 16, "East", "Senior I", "50 Free SCY", 22.1])
    wb.save(path)

    rows = load_rows(path)
    assert [r[0] for r in rows] == ["Alice", "Bob"]
    assert rows[0][2] == 15
    assert rows[1][6] == 22.1


def test_load_table_named_sheet(tmp_path: Path):
    path = tmp_path / "book.xlsx"
    wb = Workbook()
    wb.active.append(["first"])
    other = wb.create_sheet("Standards")
    other.append(["Event", "Cut"])
    other.append(["50 Free SCY", "22.00"])
    wb.save(path)

    assert load_table(path, sheet="Standards") == [["Event", "Cut"], ["50 Free SCY", "22.00"]]
    with pytest.raises(SheetImportError, match="Missing"):
        load_table(path, sheet="Missing")


def test_rejects_legacy_xls(tmp_path: Path):
    legacy_file = tmp_path / "results.xls"
    legacy_file.write_text("legacy excel")
    with pytest.raises(SheetImportError, match=".xls"):
        load_rows(legacy_file)


def test_rejects_missing_empty_and_corrupt_files(tmp_path: Path):
    with pytest.raises(SheetImportError, match="does not exist"):
        load_rows(tmp_path / "nope.csv")

    empty = tmp_path / "empty.xlsx"
    empty.write_bytes(b"")
    with pytest.raises(SheetImportError, match="empty"):
        load_rows(empty)

    corrupt = tmp_path / "corrupt.xlsx"
    corrupt.write_text("not a zip")
    with pytest.raises(SheetImportError, match="Could not open"):
        load_rows(corrupt)


def test_rejects_unknown_suffix(tmp_path: Path):
    with pytest.raises(SheetImportError, match="Unsupported"):
        load_rows(tmp_path / "swims.txt")
