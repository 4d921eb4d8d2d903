"""
Company shift table and shift-code helpers.

Each shift code maps to fixed start/end times of day; the night shift ends
on the calendar day after it starts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from reconciler.core.config import settings
from reconciler.services.clock import is_before, normalize_time, to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShiftBounds:
    code: str
    label: str
    start: str  # HH:MM
    end: str  # HH:MM

    @property
    def crosses_midnight(self) -> bool:
        return is_before(self.end, self.start)


MORNING = ShiftBounds("M", "Morning", "07:00", "15:00")
AFTERNOON = ShiftBounds("TN", "Afternoon/Evening", "15:00", "23:00")
NIGHT = ShiftBounds("N", "Night", "23:00", "07:00")
CENTRAL = ShiftBounds("C", "Central", "08:00", "17:00")

SHIFTS: dict[str, ShiftBounds] = {
    "M": MORNING,
    "T": AFTERNOON,
    "TN": AFTERNOON,
    "N": NIGHT,
    "C": CENTRAL,
}

# Entries at or after this time belong to the afternoon/evening shift.
_AFTERNOON_CUTOFF = 14 * 60


def resolve_shift(code: str | None) -> ShiftBounds:
    """Return the bounds for a shift code, falling back to the default shift."""
    key = (code or settings.DEFAULT_SHIFT_CODE).strip().upper()
    bounds = SHIFTS.get(key)
    if bounds is None:
        logger.debug("Unknown shift code %r, using %s", code, settings.DEFAULT_SHIFT_CODE)
        bounds = SHIFTS.get(settings.DEFAULT_SHIFT_CODE, MORNING)
    return bounds


def classify_shift(entry_time: str | None) -> str:
    """Infer the shift code from the first entry punch of a day.

    Without an entry there is nothing to go on and the morning shift is
    assumed.
    """
    if not entry_time:
        return MORNING.code
    if to_minutes(entry_time) >= _AFTERNOON_CUTOFF:
        return AFTERNOON.code
    return MORNING.code


def format_time_range(
    entry_time: str | None,
    exit_time: str | None,
    exit_next_day: bool = False,
) -> str:
    """Human-readable ``07:00 - 15:00`` range, ``??:??`` for a missing exit."""
    if not entry_time:
        return "-"
    start = normalize_time(entry_time)
    if not exit_time:
        return f"{start} - ??:??"
    suffix = " (+1)" if exit_next_day else ""
    return f"{start} - {normalize_time(exit_time)}{suffix}"
