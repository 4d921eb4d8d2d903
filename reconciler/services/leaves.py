"""
Leave range grouping.

The record store holds one absence row per employee per day. HR edits
leave (holidays, sick leave, ...) as ranges, so consecutive rows with the
same employee and reason are collapsed into a single ``LeaveRange`` and
can be expanded back into rows after an edit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import timedelta

from reconciler.core.config import settings
from reconciler.schemas.attendance import (MIDNIGHT, ClockEvent, Direction,
                                           LeaveRange, SyntheticPunch)

logger = logging.getLogger(__name__)


def _is_full_day(row: ClockEvent) -> bool:
    return (
        row.time == MIDNIGHT
        and row.reference_start in (None, MIDNIGHT)
        and row.reference_end in (None, MIDNIGHT)
    )


def _open_range(row: ClockEvent) -> LeaveRange:
    full_day = _is_full_day(row)
    return LeaveRange(
        range_id=f"{row.employee_id}-{row.reason_code}-{row.date.isoformat()}",
        employee_id=row.employee_id,
        employee_name=row.employee_name,
        department=row.department,
        reason_code=row.reason_code,  # type: ignore[arg-type]
        reason_description=row.reason_description,
        start_date=row.date,
        end_date=row.date,
        is_full_day=full_day,
        start_time=None if full_day else (row.reference_start or row.time),
        end_time=None if full_day else row.reference_end,
        events=[row],
    )


def group_leave_ranges(events: Iterable[ClockEvent]) -> list[LeaveRange]:
    """Collapse per-day absence rows into contiguous leave ranges.

    Only absence exits take part: plain punches, end-of-shift markers and
    breaks are ignored. A row extends the open range when it has the same
    employee and reason and falls within ``LEAVE_CONTINUITY_DAYS`` of the
    range's end date.
    """
    rows = sorted(
        (e for e in events if e.is_absence),
        key=lambda e: (e.employee_id, e.reason_code, e.date),
    )
    tolerance = timedelta(days=settings.LEAVE_CONTINUITY_DAYS)

    ranges: list[LeaveRange] = []
    current: LeaveRange | None = None
    for row in rows:
        extends = (
            current is not None
            and current.employee_id == row.employee_id
            and current.reason_code == row.reason_code
            and row.date - current.end_date <= tolerance
        )
        if extends and current is not None:
            if row.date > current.end_date:
                current.end_date = row.date
            current.events.append(row)
        else:
            current = _open_range(row)
            ranges.append(current)

    logger.debug("Grouped %d absence rows into %d ranges", len(rows), len(ranges))
    return ranges


def expand_leave_range(leave: LeaveRange) -> list[SyntheticPunch]:
    """Rebuild one absence row per calendar day covered by ``leave``."""
    if leave.end_date < leave.start_date:
        raise ValueError(
            f"Leave range {leave.range_id} ends ({leave.end_date}) before it starts ({leave.start_date})"
        )

    if leave.is_full_day:
        time, ref_start, ref_end = MIDNIGHT, None, None
    else:
        time = leave.start_time or MIDNIGHT
        ref_start, ref_end = leave.start_time, leave.end_time

    rows: list[SyntheticPunch] = []
    for offset in range(leave.days):
        rows.append(
            SyntheticPunch(
                employee_id=leave.employee_id,
                employee_name=leave.employee_name,
                department=leave.department,
                date=leave.start_date + timedelta(days=offset),
                time=time,
                direction=Direction.EXIT,
                reason_code=leave.reason_code,
                reason_description=leave.reason_description,
                computable=True,
                shift_label=leave.reason_description,
                reference_start=ref_start,
                reference_end=ref_end,
            )
        )
    return rows
