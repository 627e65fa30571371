from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.models import NearMissBand

TIGHT_BAND = NearMissBand(1.0001, 1.003)
BUBBLE_BAND = NearMissBand(1.0001, 1.03, inclusive_low=False)


@dataclass(frozen=True, slots=True)
class Miss:
    ratio: float
    diff_sec: float
    delta_sec: float


@dataclass(frozen=True, slots=True)
class Verdict:
    achieved: bool = False
    near_miss: bool = False
    miss: Optional[Miss] = None


NO_VERDICT = Verdict()


def usable_standard(standard_sec: Optional[float]) -> bool:
    return standard_sec is not None and standard_sec > 0


def meets_standard(time_sec: Optional[float], standard_sec: Optional[float]) -> bool:
    if time_sec is None or not usable_standard(standard_sec):
        return False
    return time_sec <= standard_sec


def classify(time_sec: Optional[float], standard_sec: Optional[float], band: NearMissBand = TIGHT_BAND) -> Verdict:
    """Compare one swim against one cut.

    At or under the cut is achieved. Over the cut is always a miss (with
    diff_sec > 0 for ranking and delta_sec < 0 for display) and is also a
    near miss when time / cut falls inside ``band``.
    """
    if time_sec is None or not usable_standard(standard_sec):
        return NO_VERDICT
    if time_sec <= standard_sec:
        return Verdict(achieved=True)

    ratio = time_sec / standard_sec
    miss = Miss(ratio=ratio, diff_sec=time_sec - standard_sec, delta_sec=standard_sec - time_sec)
    return Verdict(near_miss=band.contains(ratio), miss=miss)


def classify_graded(time_sec: Optional[float], standards: dict[str, Optional[float]]) -> list[str]:
    """Keys of every graded standard the time clears, in the given order.

    Tiers are independent: no ordering between them is assumed or enforced.
    """
    return [key for key, standard_sec in standards.items() if meets_standard(time_sec, standard_sec)]
