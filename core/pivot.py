from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional, Sequence

from core.classifier import BUBBLE_BAND, classify, meets_standard
from core.models import EventStandards, NearMissBand, NormalizedRow, StandardCounts
from core.normalizer import normalize_cell, normalize_gender
from core.time_utils import parse_time

BestTimes = dict[str, dict[str, dict[str, float]]]

WOMEN_MARKERS = {"women", "womens"}
DEFAULT_STANDARD_LABELS = ("Cut", "B Final", "A Final")


def build_event_pivot(
    rows: Iterable[NormalizedRow],
    gender_normalizer: Callable[[str], Optional[str]] = normalize_gender,
    events: Optional[Iterable[str]] = None,
) -> BestTimes:
    """gender -> event -> swimmer name -> best (minimum) seconds.

    Rows with no name, event, parseable time or recognisable gender are
    skipped. When ``events`` is given, other events are ignored.
    """
    wanted = set(events) if events is not None else None
    pivot: BestTimes = {}
    for row in rows:
        if not row.name or not row.event or row.time_sec is None:
            continue
        if wanted is not None and row.event not in wanted:
            continue
        gender = gender_normalizer(row.gender)
        if not gender:
            continue
        by_name = pivot.setdefault(gender, {}).setdefault(row.event, {})
        prev = by_name.get(row.name)
        if prev is None or row.time_sec < prev:
            by_name[row.name] = row.time_sec
    return pivot


def parse_standards_table(
    rows: Iterable[Sequence[object]],
    event_order: Sequence[str],
    labels: Sequence[str] = DEFAULT_STANDARD_LABELS,
    men_key: str = "M",
    women_key: str = "F",
) -> dict[str, list[EventStandards]]:
    """Read the standards tab: men's block first, then a "Women" marker row.

    Each row is the event name followed by one column per label. Only events
    in ``event_order`` are kept, and they come back in that order.
    """
    found: dict[str, dict[str, EventStandards]] = {men_key: {}, women_key: {}}
    current = men_key
    wanted = set(event_order)
    for cells in rows:
        if not cells:
            continue
        event = normalize_cell(cells[0]).replace('"', "")
        if event.lower() in WOMEN_MARKERS:
            current = women_key
            continue
        if event not in wanted:
            continue
        thresholds = tuple(
            (label, normalize_cell(cells[idx]) if idx < len(cells) else "")
            for idx, label in enumerate(labels, start=1)
        )
        found[current][event] = EventStandards(event=event, thresholds=thresholds, cut_label=labels[0])

    return {
        gender: [by_event[ev] for ev in event_order if ev in by_event]
        for gender, by_event in found.items()
    }


def count_event(
    standards: EventStandards,
    best_times: Mapping[str, float],
    band: NearMissBand = BUBBLE_BAND,
) -> StandardCounts:
    parsed = [(label, parse_time(raw)) for label, raw in standards.thresholds]
    names = tuple(
        (label, tuple(sorted(n for n, best in best_times.items() if meets_standard(best, seconds))))
        for label, seconds in parsed
    )

    bubble: tuple[str, ...] = ()
    cut_sec = dict(parsed).get(standards.cut_label) if standards.cut_label else None
    if cut_sec is not None:
        bubble = tuple(sorted(n for n, best in best_times.items() if classify(best, cut_sec, band).near_miss))

    return StandardCounts(event=standards.event, thresholds=standards.thresholds, names=names, bubble=bubble)


def count_standards(
    best_times: Mapping[str, Mapping[str, float]],
    standards: Iterable[EventStandards],
    band: NearMissBand = BUBBLE_BAND,
    event_order: Optional[Sequence[str]] = None,
) -> list[StandardCounts]:
    """Per-event name lists for one gender, in the caller's event order."""
    by_event = {s.event: s for s in standards}
    order = list(event_order) if event_order is not None else list(by_event)
    return [count_event(by_event[ev], best_times.get(ev, {}), band) for ev in order if ev in by_event]
