from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Optional

from core.classifier import BUBBLE_BAND, classify, classify_graded
from core.models import (
    CutSummary,
    NearMissBand,
    NormalizedRow,
    RosterEntry,
    RosterQuery,
    SwimmerAggregate,
    TimeMark,
)
from core.ordering import sort_by_time, sort_listing, sort_next_up

logger = logging.getLogger(__name__)


def swimmer_key(name: str, gender: str) -> str:
    return f"{name.strip()}||{gender.strip()}".lower()


@dataclass
class _MarkSet:
    """Insertion-ordered marks, unique on (event, time string) ignoring case."""

    items: list[TimeMark] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)

    def add(self, mark: TimeMark) -> None:
        key = f"{mark.event}||{mark.time_str}".lower()
        if key in self.seen:
            return
        self.seen.add(key)
        self.items.append(mark)


@dataclass
class _SwimmerBuilder:
    name: str
    gender: str
    age: str
    age_num: int
    site: str
    group: str
    achieved: _MarkSet = field(default_factory=_MarkSet)
    near_misses: _MarkSet = field(default_factory=_MarkSet)
    next_up: _MarkSet = field(default_factory=_MarkSet)
    graded: dict[str, _MarkSet] = field(default_factory=dict)
    best_of: dict[str, Optional[TimeMark]] = field(default_factory=dict)

    def absorb_identity(self, row: NormalizedRow) -> None:
        if row.age_num > self.age_num:
            self.age_num = row.age_num
            self.age = row.age
        if not self.site:
            self.site = row.site
        if not self.group:
            self.group = row.group

    def freeze(self, next_up_limit: int) -> SwimmerAggregate:
        return SwimmerAggregate(
            name=self.name,
            gender=self.gender,
            age=self.age,
            age_num=self.age_num,
            site=self.site,
            group=self.group,
            achieved=tuple(sort_by_time(self.achieved.items)),
            near_misses=tuple(sort_by_time(self.near_misses.items)),
            next_up=tuple(sort_next_up(self.next_up.items, next_up_limit)),
            graded=MappingProxyType({k: tuple(sort_by_time(v.items)) for k, v in self.graded.items()}),
            best_of=MappingProxyType(dict(self.best_of)),
        )


def _classify_row(builder: _SwimmerBuilder, row: NormalizedRow, query: RosterQuery) -> None:
    columns = query.columns
    time_sec = row.time_sec

    graded = {key: row.standards.get(key) for key in columns.graded_keys}
    for key in classify_graded(time_sec, graded):
        builder.graded[key].add(TimeMark(row.event, row.time_str, time_sec))

    cut_key = columns.cut_key
    if cut_key is not None:
        verdict = classify(time_sec, row.standards.get(cut_key), query.near_band)
        if verdict.achieved:
            builder.achieved.add(TimeMark(row.event, row.time_str, time_sec))
        elif verdict.miss is not None:
            miss = verdict.miss
            if verdict.near_miss:
                builder.near_misses.add(TimeMark(row.event, row.time_str, time_sec, ratio=miss.ratio))
            builder.next_up.add(
                TimeMark(
                    row.event,
                    row.time_str,
                    time_sec,
                    ratio=miss.ratio,
                    diff_sec=miss.diff_sec,
                    delta_sec=miss.delta_sec,
                )
            )

    if row.event in builder.best_of:
        best = builder.best_of[row.event]
        if best is None or time_sec < best.time_sec:
            builder.best_of[row.event] = TimeMark(row.event, row.time_str, time_sec)


def build_roster(rows: Iterable[NormalizedRow], query: RosterQuery = RosterQuery()) -> list[SwimmerAggregate]:
    """Fold rows into one aggregate per (name, gender), in first-seen order.

    Rows without a name or gender are dropped. Rows without an event or a
    parseable time still count toward identity and age. Nothing raises on
    bad data; site/group filtering is the caller's job.
    """
    builders: dict[str, _SwimmerBuilder] = {}
    dropped = 0

    for row in rows:
        if not row.name or not row.gender:
            dropped += 1
            continue

        key = swimmer_key(row.name, row.gender)
        builder = builders.get(key)
        if builder is None:
            builder = _SwimmerBuilder(
                name=row.name,
                gender=row.gender,
                age=row.age,
                age_num=row.age_num,
                site=row.site,
                group=row.group,
                graded={k: _MarkSet() for k in query.columns.graded_keys},
                best_of={event: None for event in query.best_of_events},
            )
            builders[key] = builder
        else:
            builder.absorb_identity(row)

        if not row.event or row.time_sec is None:
            continue
        _classify_row(builder, row, query)

    if dropped:
        logger.debug("Dropped %d rows without name or gender", dropped)
    return [b.freeze(query.next_up_limit) for b in builders.values()]


def build_listing(rows: Iterable[NormalizedRow]) -> list[RosterEntry]:
    """One entry per (site, group, name), keeping the oldest reported age."""
    entries: dict[str, RosterEntry] = {}
    for row in rows:
        if not row.name or not row.site or not row.group:
            continue
        key = f"{row.site}||{row.group}||{row.name}".lower()
        prev = entries.get(key)
        if prev is None or row.age_num > prev.age_num:
            entries[key] = RosterEntry(
                site=row.site, group=row.group, name=row.name, age=row.age, age_num=row.age_num
            )
    return sort_listing(entries.values())


def count_swimmers(rows: Iterable[NormalizedRow]) -> int:
    return len({row.name for row in rows if row.name})


def summarize_cut(
    rows: Iterable[NormalizedRow],
    cut_key: str,
    band: NearMissBand = BUBBLE_BAND,
) -> CutSummary:
    """Meet-wide lists of who made the cut, and who sits in the bubble, per event."""
    qualifiers: dict[str, set[str]] = {}
    bubble: dict[str, set[str]] = {}
    for row in rows:
        if not row.name or not row.event:
            continue
        verdict = classify(row.time_sec, row.standards.get(cut_key), band)
        if verdict.achieved:
            qualifiers.setdefault(row.name, set()).add(row.event)
        elif verdict.near_miss:
            bubble.setdefault(row.name, set()).add(row.event)

    def _freeze(by_name: dict[str, set[str]]) -> tuple[tuple[str, tuple[str, ...]], ...]:
        return tuple((name, tuple(sorted(by_name[name]))) for name in sorted(by_name))

    return CutSummary(qualifiers=_freeze(qualifiers), bubble=_freeze(bubble))
