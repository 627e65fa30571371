from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from zipfile import BadZipFile

import requests
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 15
WORKBOOK_SUFFIXES = {".xlsx", ".xlsm"}


class SheetImportError(ValueError):
    """Raised when results rows cannot be fetched or read."""


def _is_blank(row: list[object]) -> bool:
    return all(str(c if c is not None else "").strip() == "" for c in row)


def read_csv_text(text: str) -> list[list[str]]:
    rows = csv.reader(io.StringIO(text, newline=""))
    return [row for row in rows if not _is_blank(row)]


def fetch_csv(url: str, timeout: float = FETCH_TIMEOUT) -> list[list[str]]:
    """Single GET, no retries: any failure raises SheetImportError."""
    logger.info("Fetching sheet: %s", url)
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise SheetImportError(f"Could not fetch {url}: {exc}") from exc
    return read_csv_text(resp.text)


def _validate_input_file(file_path: Path) -> None:
    if not file_path.exists():
        raise SheetImportError(f"File does not exist: {file_path}")
    if file_path.stat().st_size == 0:
        raise SheetImportError(f"File is empty: {file_path}")


def load_csv_rows(path: Path) -> list[list[str]]:
    _validate_input_file(path)
    return read_csv_text(path.read_text(encoding="utf-8-sig"))


def load_workbook_rows(path: Path, sheet: str | None = None) -> list[list[object]]:
    _validate_input_file(path)
    if path.suffix.lower() not in WORKBOOK_SUFFIXES:
        raise SheetImportError("Only .xlsx and .xlsm workbooks are supported.")
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (BadZipFile, InvalidFileException, OSError) as exc:
        raise SheetImportError(f"Could not open workbook {path}") from exc

    try:
        if sheet is None:
            ws = wb.worksheets[0]
        elif sheet in wb.sheetnames:
            ws = wb[sheet]
        else:
            raise SheetImportError(f"Worksheet {sheet!r} not found in {path}")
        return [list(row) for row in ws.iter_rows(values_only=True) if not _is_blank(list(row))]
    finally:
        wb.close()


def load_table(source: str | Path, sheet: str | None = None) -> list[list[object]]:
    """All non-blank rows, header included, from a URL or a .csv/.xlsx file."""
    text = str(source)
    if text.startswith(("http://", "https://")):
        return fetch_csv(text)

    path = Path(source)
    suffix = path.suffix.lower()
    if suffix == ".xls":
        raise SheetImportError("Legacy .xls is not supported. Save the file as .xlsx and try again.")
    if suffix == ".csv":
        return load_csv_rows(path)
    if suffix in WORKBOOK_SUFFIXES:
        return load_workbook_rows(path, sheet)
    raise SheetImportError(f"Unsupported source: {source}")


def load_rows(source: str | Path, sheet: str | None = None) -> list[list[object]]:
    """Data rows only: the header row is discarded."""
    table = load_table(source, sheet)
    logger.info("Loaded %d rows from %s", max(len(table) - 1, 0), source)
    return table[1:]
