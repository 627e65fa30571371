"""Deployment constants: sheet location, column layout and roster presets.

The results sheet has one row per swimmer/event/time. Columns (0-indexed):
A name, B gender, C age, D site, E group, F event, G time,
J/K/L B/BB/A standards, N AAA, P short course YNAT cut, Q AG Champs.
"""

from __future__ import annotations

import os
import sys

from core.classifier import BUBBLE_BAND, TIGHT_BAND
from core.models import ColumnMap, RosterQuery, StandardColumn, StandardKind

SHEET_ID = "1xW2U_SlWsOlmEJlWLd-18jBxbreR5sFnMVr42rAosso"
SWIMS_GID = "0"
STANDARDS_GID = "550985665"

SOURCE_ENV_VAR = "SWIM_SHEET_SOURCE"
STANDARDS_ENV_VAR = "SWIM_STANDARDS_SOURCE"

SC_EVENT_ORDER = (
    "50 Free SCY",
    "100 Free SCY",
    "200 Free SCY",
    "500 Free SCY",
    "1000 Free SCY",
    "1650 Free SCY",
    "100 Back SCY",
    "200 Back SCY",
    "100 Breast SCY",
    "200 Breast SCY",
    "100 Fly SCY",
    "200 Fly SCY",
    "200 IM SCY",
    "400 IM SCY",
)

IM_EVENTS = ("200 IM SCY", "400 IM SCY")

YNAT_KEY = "ynat"

SENIOR_COLUMNS = ColumnMap(
    standards=(
        StandardColumn("aaa", 13),
        StandardColumn(YNAT_KEY, 15, StandardKind.CUT),
    ),
)

AGE_GROUP_COLUMNS = ColumnMap(
    standards=(
        StandardColumn("agc", 16),
        StandardColumn("b", 9),
        StandardColumn("bb", 10),
        StandardColumn("a", 11),
    ),
)

CUT_COLUMNS = ColumnMap(standards=(StandardColumn(YNAT_KEY, 15, StandardKind.CUT),))

KERR_GROUP_ORDER = ("Silver", "Purple", "White", "Green")


def senior_query(site: str, group: str = "Senior I") -> RosterQuery:
    return RosterQuery(
        columns=SENIOR_COLUMNS,
        site=site,
        groups=(group,),
        near_band=TIGHT_BAND,
        best_of_events=IM_EVENTS,
        next_up_limit=5,
    )


EAST_SENIOR_I = senior_query("East")
WEST_SENIOR_I = senior_query("West")

KERR_AGE_GROUP = RosterQuery(
    columns=AGE_GROUP_COLUMNS,
    site="Kerr",
    groups=KERR_GROUP_ORDER,
    group_order=KERR_GROUP_ORDER,
)

ALL_SITES = RosterQuery(columns=CUT_COLUMNS, near_band=BUBBLE_BAND, gender_order=None)

PRESETS: dict[str, RosterQuery] = {
    "East Senior I": EAST_SENIOR_I,
    "West Senior I": WEST_SENIOR_I,
    "Kerr Age Group": KERR_AGE_GROUP,
    "All Sites": ALL_SITES,
}


def sheet_csv_url(sheet_id: str = SHEET_ID, gid: str = SWIMS_GID) -> str:
    return f"https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&gid={gid}"


def get_sheet_source(argv: list[str] | None = None) -> str:
    """
    Priority:
    1. First command-line argument (URL or path to .csv/.xlsx)
    2. SWIM_SHEET_SOURCE environment variable
    3. Published CSV of the swims tab
    """
    args = sys.argv[1:] if argv is None else argv
    if args and args[0].strip():
        return args[0].strip()
    env = os.environ.get(SOURCE_ENV_VAR, "").strip()
    if env:
        return env
    return sheet_csv_url()


def get_standards_source(argv: list[str] | None = None) -> str:
    """
    Priority:
    1. Second command-line argument
    2. SWIM_STANDARDS_SOURCE environment variable
    3. Published CSV of the standards tab
    """
    args = sys.argv[1:] if argv is None else argv
    if len(args) > 1 and args[1].strip():
        return args[1].strip()
    env = os.environ.get(STANDARDS_ENV_VAR, "").strip()
    if env:
        return env
    return sheet_csv_url(gid=STANDARDS_GID)
