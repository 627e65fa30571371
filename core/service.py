from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from core.classifier import BUBBLE_BAND
from core.config import ALL_SITES, SC_EVENT_ORDER
from core.models import ConfigError, NearMissBand, NormalizedRow, RosterQuery, SwimmerAggregate, TimeMark
from core.normalizer import filter_rows, normalize_gender, normalize_rows
from core.ordering import group_swimmers, sort_roster
from core.pivot import build_event_pivot, count_standards, parse_standards_table
from core.roster import build_listing, build_roster, count_swimmers, summarize_cut
from core.sheet_source import load_rows
from core.time_utils import format_delta

logger = logging.getLogger(__name__)

SECTION_TITLES = {"M": "MALES", "F": "FEMALES"}
GRADED_TITLES = {"aaa": "AAA", "agc": "Age Group Champs", "b": "B", "bb": "BB", "a": "A"}


def _marks_text(marks: Iterable[TimeMark], empty: str) -> str:
    labels = [m.label for m in marks]
    return "; ".join(labels) if labels else empty


def _next_up_text(marks: Sequence[TimeMark]) -> str:
    if not marks:
        return "No Next Up Events"
    return "; ".join(f"{m.label} | ({format_delta(m.diff_sec)})" for m in marks)


class StandardsService:
    def __init__(self, root: Path, source: str | Path, standards_source: str | Path | None = None):
        self.root = root
        self.source = source
        self.standards_source = standards_source
        self.reports_dir = self.root / "reports"

    def load_rows(self) -> list[list[object]]:
        return load_rows(self.source)

    def load_standards_rows(self) -> list[list[object]]:
        if self.standards_source is None:
            raise ConfigError("No standards source configured")
        return load_rows(self.standards_source)

    @staticmethod
    def count_swimmers(rows: Iterable[Sequence[object]]) -> int:
        return count_swimmers(normalize_rows(rows))

    @staticmethod
    def normalize(rows: Iterable[Sequence[object]], query: RosterQuery) -> list[NormalizedRow]:
        return filter_rows(normalize_rows(rows, query.columns), query)

    def build_roster(self, query: RosterQuery, rows: Iterable[Sequence[object]] | None = None) -> list[SwimmerAggregate]:
        raw = self.load_rows() if rows is None else rows
        roster = build_roster(self.normalize(raw, query), query)
        return sort_roster(roster, query.gender_order)

    def _swimmer_line(self, swimmer: SwimmerAggregate, query: RosterQuery) -> str:
        cells = [swimmer.name, swimmer.gender, swimmer.age or "-"]
        if query.columns.cut_key:
            cells.append(_marks_text(swimmer.achieved, "No Cuts"))
            cells.append(_marks_text(swimmer.near_misses, "No Near-Misses"))
        for key, marks in swimmer.graded.items():
            cells.append(_marks_text(marks, f"No {GRADED_TITLES.get(key, key.upper())}"))
        for event, mark in swimmer.best_of.items():
            cells.append(mark.label if mark else f"{event} -")
        if query.columns.cut_key:
            cells.append(_next_up_text(swimmer.next_up))
        return " | ".join(cells)

    def _header_line(self, query: RosterQuery) -> str:
        cells = ["Name", "Gender", "Age"]
        if query.columns.cut_key:
            cells += ["Cuts", "Near-Misses"]
        cells += [GRADED_TITLES.get(k, k.upper()) for k in query.columns.graded_keys]
        cells += list(query.best_of_events)
        if query.columns.cut_key:
            cells.append("Next Up")
        return " | ".join(cells)

    def build_roster_text(self, query: RosterQuery, title: str, rows: Iterable[Sequence[object]] | None = None) -> str:
        roster = self.build_roster(query, rows)
        lines = [title, "=" * 80]
        if not roster:
            lines.append(f"No swimmers found for Site = {query.site or '-'} and Group = {', '.join(query.groups) or '-'}.")
            return "\n".join(lines)

        if query.group_order is not None:
            sections = group_swimmers(roster, query.group_order)
        else:
            sections = []
            for swimmer in roster:
                category = normalize_gender(swimmer.gender) if query.gender_order else None
                heading = SECTION_TITLES.get(category, swimmer.gender) if category else ""
                if not sections or sections[-1][0] != heading:
                    sections.append((heading, []))
                sections[-1][1].append(swimmer)

        for heading, swimmers in sections:
            lines.append("")
            if heading:
                lines.append(heading.upper())
            lines.append(self._header_line(query))
            lines.extend(self._swimmer_line(s, query) for s in swimmers)
        return "\n".join(lines)

    def build_listing_text(self, rows: Iterable[Sequence[object]] | None = None) -> str:
        raw = self.load_rows() if rows is None else list(rows)
        entries = build_listing(normalize_rows(raw))
        lines = [
            "Roster",
            "=" * 80,
            f"{len(entries)} athletes, {self.count_swimmers(raw)} swimmers in sheet",
            "Site | Group | Name | Age",
        ]
        lines.extend(f"{e.site} | {e.group} | {e.name} | {e.age or '-'}" for e in entries)
        return "\n".join(lines)

    def build_cut_summary_text(
        self,
        query: RosterQuery = ALL_SITES,
        rows: Iterable[Sequence[object]] | None = None,
        band: NearMissBand = BUBBLE_BAND,
    ) -> str:
        cut_key = query.columns.cut_key
        if cut_key is None:
            raise ConfigError("Qualifier summary needs a query with a cut column")
        raw = self.load_rows() if rows is None else rows
        summary = summarize_cut(self.normalize(raw, query), cut_key, band)
        lines = ["Qualifier summary", "=" * 80]
        for title, block in (("Qualifiers", summary.qualifiers), ("Bubble", summary.bubble)):
            lines.append("")
            lines.append(f"{title}: {len(block)} swimmers")
            if not block:
                lines.append("None found (or missing data).")
            for name, events in block:
                lines.append(name)
                lines.extend(f"  - {event}" for event in events)
        return "\n".join(lines)

    def build_event_standards_text(
        self,
        standards_rows: Iterable[Sequence[object]] | None = None,
        swim_rows: Iterable[Sequence[object]] | None = None,
        event_order: Sequence[str] = SC_EVENT_ORDER,
        band: NearMissBand = BUBBLE_BAND,
    ) -> str:
        if standards_rows is None:
            standards_rows = self.load_standards_rows()
        if swim_rows is None:
            swim_rows = self.load_rows()
        standards = parse_standards_table(standards_rows, event_order)
        pivot = build_event_pivot(normalize_rows(swim_rows), events=event_order)
        lines = ["Event standards", "=" * 80]
        for gender, title in (("M", "Men"), ("F", "Women")):
            lines.append("")
            lines.append(title)
            counts = count_standards(pivot.get(gender, {}), standards.get(gender, []), band, event_order)
            if not counts:
                lines.append("No standards rows found.")
            for row in counts:
                lines.append(" | ".join([row.event] + [raw or "-" for _label, raw in row.thresholds]))
                for label, names in row.names:
                    lines.append(f"  {label}: {', '.join(names) or '-'}")
                lines.append(f"  Bubble: {', '.join(row.bubble) or '-'}")
        return "\n".join(lines)

    def save_report(self, text: str, name: str, output: Path | None = None) -> Path:
        if output is None:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
            output = self.reports_dir / f"{name}-{stamp}.txt"
        output.write_text(text, encoding="utf-8")
        logger.info("Saved report %s", output)
        return output

    def save_roster_report(self, query: RosterQuery, title: str, output: Path | None = None) -> Path:
        slug = title.lower().replace(" ", "-")
        return self.save_report(self.build_roster_text(query, title), slug, output)

    def build_report(self, name: str) -> str:
        """Text for one of the REPORTS, keyed by its display name."""
        if name not in REPORTS:
            raise ConfigError(f"Unknown report: {name}")
        builder = getattr(self, REPORTS[name])
        logger.info("Building report %s", name)
        return builder()


REPORTS = {
    "Roster listing": "build_listing_text",
    "Qualifier summary": "build_cut_summary_text",
    "Event standards": "build_event_standards_text",
}
