from __future__ import annotations

import math
import re

TIME_CHARS_RE = re.compile(r"[^0-9:.]")


def _to_number(text: str) -> float | None:
    # An empty side of the colon counts as zero, e.g. ":30.5" or "1:".
    if not text:
        return 0.0
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_time(value: object) -> float | None:
    """Convert "m:ss.xx" or "ss.xx" to seconds.

    Everything except digits, colon and period is stripped first, so
    "1:02.34Y" or " 58.50 " parse fine. Returns None for empty or
    non-numeric input. No range checks are applied.
    """
    if value is None:
        return None
    cleaned = TIME_CHARS_RE.sub("", str(value).strip())
    if not cleaned:
        return None

    if ":" in cleaned:
        parts = cleaned.split(":")
        minutes = _to_number(parts[0])
        seconds = _to_number(parts[1])
        if minutes is None or seconds is None:
            return None
        return minutes * 60 + seconds

    return _to_number(cleaned)


def format_time(value: float | None) -> str:
    """Render seconds as "M:SS.xx", or "SS.xx" under a minute. Sign is dropped."""
    if value is None or not math.isfinite(value):
        return ""
    centis = round(abs(value) * 100)
    minutes, centis = divmod(centis, 6000)
    seconds = f"{centis / 100:05.2f}"
    return f"{minutes}:{seconds}" if minutes > 0 else seconds


def format_delta(diff_sec: float | None) -> str:
    """Time still to drop, shown as a negative duration: "-0.02", "-1:02.34"."""
    text = format_time(diff_sec)
    return f"-{text}" if text else ""
