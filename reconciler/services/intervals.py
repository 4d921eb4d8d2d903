"""
Real elapsed time for overlapping task entries.

A worker booked on order A (08:00-09:00) and order B (08:00-10:00) has
been present for two hours, not three: overlapping intervals are
flattened before they are summed.
"""

from __future__ import annotations

from collections.abc import Iterable

from reconciler.schemas.attendance import MergedInterval, WorkEntry
from reconciler.services.clock import to_minutes


def _valid_intervals(entries: Iterable[WorkEntry]) -> list[tuple[int, int]]:
    intervals = [(to_minutes(e.start), to_minutes(e.end)) for e in entries]
    return [(start, end) for start, end in intervals if end > start]


def merge_intervals(entries: Iterable[WorkEntry]) -> list[MergedInterval]:
    """Sweep-merge the entries into non-overlapping spans, sorted by start.

    Entries whose end is not after their start are dropped.
    """
    intervals = sorted(_valid_intervals(entries))
    if not intervals:
        return []

    merged: list[MergedInterval] = []
    cur_start, cur_end = intervals[0]
    for start, end in intervals[1:]:
        if start < cur_end:
            cur_end = max(cur_end, end)
        else:
            merged.append(MergedInterval(start=cur_start, end=cur_end))
            cur_start, cur_end = start, end
    merged.append(MergedInterval(start=cur_start, end=cur_end))
    return merged


def calculate_real_time(entries: Iterable[WorkEntry]) -> float:
    """Total real time covered by ``entries``, in hours (2 decimals)."""
    total = sum(m.duration for m in merge_intervals(entries))
    return round(total / 60, 2)


def calculate_overlap_efficiency(entries: Iterable[WorkEntry]) -> float:
    """Ratio of booked time to real time; above 1 means multi-tasking."""
    entries = list(entries)
    real = sum(m.duration for m in merge_intervals(entries))
    if real == 0:
        return 0.0
    booked = sum(end - start for start, end in _valid_intervals(entries))
    return round(booked / real, 2)
