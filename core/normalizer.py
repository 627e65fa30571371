from __future__ import annotations

import re
from datetime import time, timedelta
from typing import Iterable, Mapping, Optional, Sequence

from core.models import ColumnMap, NormalizedRow, RosterQuery
from core.time_utils import format_time, parse_time

NON_DIGIT_RE = re.compile(r"\D")

DEFAULT_GENDER_PREFIXES: dict[str, str] = {
    "m": "M",  # M, Male, Men
    "b": "M",  # Boys
    "f": "F",  # F, Female
    "g": "F",  # Girls
}


def normalize_cell(value: object) -> str:
    """Coerce any spreadsheet cell to a trimmed string ("" for None)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    # Excel duration cells come back from openpyxl as time/timedelta.
    if isinstance(value, timedelta):
        return format_time(value.total_seconds())
    if isinstance(value, time):
        seconds = value.hour * 3600 + value.minute * 60 + value.second + value.microsecond / 1_000_000
        return format_time(seconds)
    return str(value).strip()


def parse_age(value: object) -> int:
    digits = NON_DIGIT_RE.sub("", normalize_cell(value))
    return int(digits) if digits else -1


def normalize_gender(value: object, prefixes: Mapping[str, str] = DEFAULT_GENDER_PREFIXES) -> Optional[str]:
    text = normalize_cell(value).lower()
    if not text:
        return None
    for prefix, category in prefixes.items():
        if text.startswith(prefix):
            return category
    return None


def _cell(cells: Sequence[object], index: int) -> str:
    if index < 0 or index >= len(cells):
        return ""
    return normalize_cell(cells[index])


def normalize_row(cells: Sequence[object], columns: ColumnMap = ColumnMap()) -> NormalizedRow:
    age = _cell(cells, columns.age)
    time_str = _cell(cells, columns.time)
    return NormalizedRow(
        name=_cell(cells, columns.name),
        gender=_cell(cells, columns.gender),
        age=age,
        age_num=parse_age(age),
        site=_cell(cells, columns.site),
        group=_cell(cells, columns.group),
        event=_cell(cells, columns.event),
        time_str=time_str,
        time_sec=parse_time(time_str),
        standards={s.key: parse_time(_cell(cells, s.index)) for s in columns.standards},
    )


def normalize_rows(rows: Iterable[Sequence[object]], columns: ColumnMap = ColumnMap()) -> list[NormalizedRow]:
    return [normalize_row(cells, columns) for cells in rows]


def matches_query(row: NormalizedRow, query: RosterQuery) -> bool:
    if query.site is not None and row.site != query.site:
        return False
    if query.groups and row.group not in query.groups:
        return False
    return True


def filter_rows(rows: Iterable[NormalizedRow], query: RosterQuery) -> list[NormalizedRow]:
    """Site/group pre-filter applied by callers before aggregation."""
    return [row for row in rows if matches_query(row, query)]
