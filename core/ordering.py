from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional, Sequence

from core.models import RosterEntry, SwimmerAggregate, TimeMark
from core.normalizer import DEFAULT_GENDER_PREFIXES, normalize_gender


def _fold(text: str) -> str:
    return text.casefold()


def sort_by_time(marks: Iterable[TimeMark]) -> list[TimeMark]:
    return sorted(marks, key=lambda m: (m.time_sec, m.event))


def sort_next_up(marks: Iterable[TimeMark], limit: int = 5) -> list[TimeMark]:
    """Closest misses first (smallest amount over the cut), capped at ``limit``."""
    ranked = sorted(marks, key=lambda m: (m.diff_sec if m.diff_sec is not None else float("inf"), m.event))
    return ranked[:limit]


def sort_by_gender_then_age(
    swimmers: Iterable[SwimmerAggregate],
    gender_order: Sequence[str] = ("M", "F"),
    prefixes: Mapping[str, str] = DEFAULT_GENDER_PREFIXES,
) -> list[SwimmerAggregate]:
    """Gender sections in ``gender_order``, oldest first, then name."""
    rank = {g: idx for idx, g in enumerate(gender_order)}

    def key(s: SwimmerAggregate):
        category = normalize_gender(s.gender, prefixes)
        return (rank.get(category, len(rank)), -s.age_num, _fold(s.name), _fold(s.gender))

    return sorted(swimmers, key=key)


def sort_by_name_then_age(swimmers: Iterable[SwimmerAggregate]) -> list[SwimmerAggregate]:
    return sorted(swimmers, key=lambda s: (_fold(s.name), -s.age_num))


def sort_roster(
    swimmers: Iterable[SwimmerAggregate],
    gender_order: Optional[Sequence[str]] = ("M", "F"),
) -> list[SwimmerAggregate]:
    """Gender-sectioned when ``gender_order`` is given, plain alphabetical otherwise."""
    if gender_order:
        return sort_by_gender_then_age(swimmers, gender_order)
    return sort_by_name_then_age(swimmers)


def sort_listing(entries: Iterable[RosterEntry]) -> list[RosterEntry]:
    return sorted(
        entries,
        key=lambda e: (_fold(e.site), _fold(e.group), _fold(e.name), -e.age_num),
    )


def order_groups(groups: Iterable[str], group_order: Optional[Sequence[str]] = None) -> list[str]:
    """Explicit order first when given; anything else alphabetical after it."""
    unique = list(dict.fromkeys(groups))
    if not group_order:
        return sorted(unique, key=_fold)
    known = [g for g in group_order if g in unique]
    rest = sorted((g for g in unique if g not in group_order), key=_fold)
    return known + rest


def group_swimmers(
    swimmers: Iterable[SwimmerAggregate],
    group_order: Optional[Sequence[str]] = None,
    sort_within: Callable[[Iterable[SwimmerAggregate]], list[SwimmerAggregate]] = sort_by_gender_then_age,
) -> list[tuple[str, list[SwimmerAggregate]]]:
    grouped: dict[str, list[SwimmerAggregate]] = {}
    for swimmer in swimmers:
        grouped.setdefault(swimmer.group, []).append(swimmer)
    return [(group, sort_within(grouped[group])) for group in order_groups(grouped, group_order)]
