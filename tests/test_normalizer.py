from datetime import time, timedelta

from core.models import ColumnMap, RosterQuery, StandardColumn, StandardKind
from core.normalizer import (
    filter_rows,
    normalize_cell,
    normalize_gender,
    normalize_row,
    parse_age,
)

COLUMNS = ColumnMap(standards=(StandardColumn("cut", 7, StandardKind.CUT), StandardColumn("a", 8)))


def test_normalize_cell_coerces_sheet_values():
    assert normalize_cell(None) == ""
    assert normalize_cell("  East ") == "East"
    assert normalize_cell(15.0) == "15"
    assert normalize_cell(58.5) == "58.5"
    assert normalize_cell(16) == "16"


def test_normalize_cell_renders_duration_cells_as_times():
    assert normalize_cell(time(0, 1, 2, 340000)) == "1:02.34"
    assert normalize_cell(timedelta(seconds=58.5)) == "58.50"


def test_parse_age_digits_only():
    assert parse_age("15") == 15
    assert parse_age(" 16 yrs") == 16
    assert parse_age(14.0) == 14
    assert parse_age("") == -1
    assert parse_age(None) == -1
    assert parse_age("n/a") == -1


def test_normalize_gender_prefix_table():
    assert normalize_gender("Male") == "M"
    assert normalize_gender("boys") == "M"
    assert normalize_gender("F") == "F"
    assert normalize_gender("Girls") == "F"
    assert normalize_gender("X") is None
    assert normalize_gender("") is None
    assert normalize_gender("Women", {"w": "F", "m": "M"}) == "F"


def test_normalize_row_reads_columns_and_standards():
    cells = ["Alice", "F", "15", "East", "Senior I", "100 Free SCY", "58.50", "59.00", ""]
    row = normalize_row(cells, COLUMNS)
    assert row.name == "Alice"
    assert row.age_num == 15
    assert row.time_sec == 58.5
    assert row.standards == {"cut": 59.0, "a": None}


def test_normalize_row_tolerates_short_rows():
    row = normalize_row(["Bob", "M"], COLUMNS)
    assert row.event == ""
    assert row.time_sec is None
    assert row.age_num == -1
    assert row.standards == {"cut": None, "a": None}


def test_filter_rows_matches_site_and_groups_exactly():
    rows = [
        normalize_row(["A", "F", "15", "East", "Senior I"]),
        normalize_row(["B", "F", "15", "West", "Senior I"]),
        normalize_row(["C", "F", "15", "East", "senior i"]),
        normalize_row(["D", "F", "15", " East ", "Senior I "]),
    ]
    query = RosterQuery(site="East", groups=("Senior I",))
    assert [r.name for r in filter_rows(rows, query)] == ["A", "D"]
    assert len(filter_rows(rows, RosterQuery())) == 4
