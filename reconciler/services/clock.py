"""
Clock-face arithmetic on ``HH:MM`` strings.

All times handled by the engine are times of day. Values coming from the
classifier may carry seconds (``07:00:00``), a next-day marker
(``07:00 (+1)``) or a full ISO timestamp; ``normalize_time`` reduces them
all to ``HH:MM`` before any comparison.
"""

from __future__ import annotations

import re
from datetime import date, timedelta

MINUTES_PER_DAY = 24 * 60
NEXT_DAY_SUFFIX = " (+1)"

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})")


def normalize_time(value: str | None) -> str:
    """Return ``value`` as zero-padded ``HH:MM``.

    Raises ``ValueError`` for empty or unparseable input.
    """
    if value is None:
        raise ValueError("Time value is missing")
    text = value.replace(NEXT_DAY_SUFFIX, "").strip()
    # ISO timestamp: 2026-03-10T07:00:00
    if len(text) > 8 and text[10:11] in ("T", " "):
        text = text[11:]
    match = _HHMM_RE.match(text)
    if not match:
        raise ValueError(f"Invalid time value: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time value: {value!r}")
    return f"{hours:02d}:{minutes:02d}"


def to_minutes(value: str) -> int:
    """Minutes from midnight for a time-of-day string."""
    hours, minutes = normalize_time(value).split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(minutes: int) -> str:
    """Format minutes from midnight as ``HH:MM``, wrapping around 24h."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, delta: int) -> str:
    """Shift a time of day by ``delta`` minutes (negative to subtract)."""
    return from_minutes(to_minutes(value) + delta)


def is_before(later: str, earlier: str) -> bool:
    """True when ``later`` is numerically earlier than ``earlier`` on the clock face."""
    return to_minutes(later) < to_minutes(earlier)


def next_day(day: date) -> date:
    return day + timedelta(days=1)
