from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class ConfigError(ValueError):
    """Raised when a column map or roster query is misconfigured."""


class StandardKind(str, Enum):
    CUT = "cut"
    GRADED = "graded"


@dataclass(frozen=True, slots=True)
class NearMissBand:
    """Ratio window (time / cut) just above the cut."""

    low: float = 1.0001
    high: float = 1.003
    inclusive_low: bool = True

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ConfigError(f"near-miss band low {self.low} is above high {self.high}")

    def contains(self, ratio: float) -> bool:
        above_low = ratio >= self.low if self.inclusive_low else ratio > self.low
        return above_low and ratio <= self.high


@dataclass(frozen=True, slots=True)
class StandardColumn:
    key: str
    index: int
    kind: StandardKind = StandardKind.GRADED


@dataclass(frozen=True, slots=True)
class ColumnMap:
    name: int = 0
    gender: int = 1
    age: int = 2
    site: int = 3
    group: int = 4
    event: int = 5
    time: int = 6
    standards: tuple[StandardColumn, ...] = ()

    def __post_init__(self) -> None:
        keys = [s.key for s in self.standards]
        if len(set(keys)) != len(keys):
            raise ConfigError(f"duplicate standard keys: {keys}")
        cuts = [s.key for s in self.standards if s.kind == StandardKind.CUT]
        if len(cuts) > 1:
            raise ConfigError(f"only one cut column is allowed, got {cuts}")

    @property
    def cut_key(self) -> Optional[str]:
        return next((s.key for s in self.standards if s.kind == StandardKind.CUT), None)

    @property
    def graded_keys(self) -> tuple[str, ...]:
        return tuple(s.key for s in self.standards if s.kind == StandardKind.GRADED)


@dataclass(frozen=True, slots=True)
class RosterQuery:
    """Everything a roster view needs besides the rows themselves."""

    columns: ColumnMap = ColumnMap()
    site: Optional[str] = None
    groups: tuple[str, ...] = ()
    near_band: NearMissBand = NearMissBand()
    best_of_events: tuple[str, ...] = ()
    next_up_limit: int = 5
    group_order: Optional[tuple[str, ...]] = None
    gender_order: Optional[tuple[str, ...]] = ("M", "F")

    def __post_init__(self) -> None:
        if self.next_up_limit < 1:
            raise ConfigError(f"next_up_limit must be positive, got {self.next_up_limit}")


@dataclass(frozen=True, slots=True)
class NormalizedRow:
    name: str
    gender: str
    age: str
    age_num: int
    site: str
    group: str
    event: str
    time_str: str
    time_sec: Optional[float]
    standards: Mapping[str, Optional[float]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TimeMark:
    event: str
    time_str: str
    time_sec: float
    ratio: Optional[float] = None
    diff_sec: Optional[float] = None
    delta_sec: Optional[float] = None

    @property
    def label(self) -> str:
        return f"{self.event} ({self.time_str})"


@dataclass(frozen=True, slots=True)
class SwimmerAggregate:
    name: str
    gender: str
    age: str
    age_num: int
    site: str = ""
    group: str = ""
    achieved: tuple[TimeMark, ...] = ()
    near_misses: tuple[TimeMark, ...] = ()
    next_up: tuple[TimeMark, ...] = ()
    graded: Mapping[str, tuple[TimeMark, ...]] = field(default_factory=lambda: MappingProxyType({}))
    best_of: Mapping[str, Optional[TimeMark]] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def key(self) -> str:
        return f"{self.name}||{self.gender}".lower()


@dataclass(frozen=True, slots=True)
class RosterEntry:
    """One line of the plain roster listing."""

    site: str
    group: str
    name: str
    age: str
    age_num: int


@dataclass(frozen=True, slots=True)
class EventStandards:
    event: str
    thresholds: tuple[tuple[str, str], ...]
    cut_label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class StandardCounts:
    event: str
    thresholds: tuple[tuple[str, str], ...]
    names: tuple[tuple[str, tuple[str, ...]], ...]
    bubble: tuple[str, ...] = ()

    def names_for(self, label: str) -> tuple[str, ...]:
        return dict(self.names).get(label, ())


@dataclass(frozen=True, slots=True)
class CutSummary:
    qualifiers: tuple[tuple[str, tuple[str, ...]], ...] = ()
    bubble: tuple[tuple[str, tuple[str, ...]], ...] = ()
