"""
Justification strategy generator.

Turns one detected anomaly plus the reason chosen by HR into the exact
entry/exit pair of synthetic punches that encodes the justification in
the attendance record store.

The anomaly is first resolved into one of five shapes:

* ``StartAlignedGap``: gap starts at the shift start (late arrival).
  Entry is forced to the shift start, exit one minute before the real
  arrival.
* ``EndAlignedGap``: gap ends at the shift end (early departure).
  Entry one minute after the real departure, exit forced to the shift end.
* ``InteriorGap``: employee left and came back. The hole is
  bracketed by a resume entry (+1 min) and a pause exit (-1 min); the
  employee's own punches are never touched.
* ``FullDayAbsence``: shift start to shift end; the exit lands on the
  next calendar day for shifts that cross midnight.
* ``WorkdayShortfall``: hours are missing but no hole can be located.
  A zero-length pair is anchored at the shift end so the reason is
  recorded without changing measured totals.

Every shape is resolved once per call and each has its own recipe, so
the same anomaly and reason always produce the same rows. Anything that
cannot be resolved raises ``JustificationError``.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Callable, ClassVar, Union

from reconciler.core.config import settings
from reconciler.core.exceptions import JustificationError
from reconciler.schemas.attendance import (Direction, EmployeeRef,
                                           JustificationReason,
                                           JustificationResult, ShapeKind,
                                           SyntheticPunch, UnjustifiedGap,
                                           WorkdayDeviation)
from reconciler.services.clock import (MINUTES_PER_DAY, from_minutes,
                                       normalize_time, to_minutes)
from reconciler.services.shifts import ShiftBounds, resolve_shift

logger = logging.getLogger(__name__)

Anomaly = Union[UnjustifiedGap, WorkdayDeviation, dt.date]


# ── Shapes ──────────────────────────────────────────────────────────
@dataclass(frozen=True)
class StartAlignedGap:
    kind: ClassVar[ShapeKind] = ShapeKind.START_ALIGNED_GAP
    date: dt.date
    shift: ShiftBounds
    gap_end: str


@dataclass(frozen=True)
class EndAlignedGap:
    kind: ClassVar[ShapeKind] = ShapeKind.END_ALIGNED_GAP
    date: dt.date
    shift: ShiftBounds
    gap_start: str


@dataclass(frozen=True)
class InteriorGap:
    kind: ClassVar[ShapeKind] = ShapeKind.INTERIOR_GAP
    date: dt.date
    shift: ShiftBounds
    gap_start: str
    gap_end: str
    start_from_boundary: bool = False


@dataclass(frozen=True)
class FullDayAbsence:
    kind: ClassVar[ShapeKind] = ShapeKind.FULL_DAY
    date: dt.date
    shift: ShiftBounds


@dataclass(frozen=True)
class WorkdayShortfall:
    kind: ClassVar[ShapeKind] = ShapeKind.WORKDAY_SHORTFALL
    date: dt.date
    shift: ShiftBounds
    actual_hours: float


Shape = Union[StartAlignedGap, EndAlignedGap, InteriorGap, FullDayAbsence, WorkdayShortfall]


def _after(shape: Shape, anchor: int, value: str) -> int:
    """Absolute minutes of ``value``, rolled into the next day if it precedes ``anchor``.

    Only shifts that cross midnight may roll over.
    """
    minutes = to_minutes(value)
    if minutes >= anchor:
        return minutes
    if not shape.shift.crosses_midnight:
        raise JustificationError(
            f"Incident on {shape.date} ends at {value}, before it starts ({from_minutes(anchor)})"
        )
    return minutes + MINUTES_PER_DAY


def _gap_bounds(gap: UnjustifiedGap) -> tuple[str, str]:
    try:
        start, end = normalize_time(gap.start), normalize_time(gap.end)
    except ValueError as exc:
        raise JustificationError(f"Malformed gap on {gap.date}: {exc}") from exc
    if start == end:
        raise JustificationError(f"Zero-length gap on {gap.date} at {start}")
    return start, end


def resolve_shape(anomaly: Anomaly, shift: ShiftBounds) -> Shape:
    """Classify ``anomaly`` against the shift boundaries."""
    if isinstance(anomaly, UnjustifiedGap):
        start, end = _gap_bounds(anomaly)
        if start == shift.start:
            return StartAlignedGap(anomaly.date, shift, end)
        if end == shift.end:
            return EndAlignedGap(anomaly.date, shift, start)
        return InteriorGap(anomaly.date, shift, start, end, anomaly.start_from_boundary)
    if isinstance(anomaly, WorkdayDeviation):
        if anomaly.actual_hours < 0:
            raise JustificationError(
                f"Workday deviation on {anomaly.date} has negative hours ({anomaly.actual_hours})"
            )
        return WorkdayShortfall(anomaly.date, shift, anomaly.actual_hours)
    # datetime is a date subclass but carries a time: not a plain absent day
    if isinstance(anomaly, dt.date) and not isinstance(anomaly, dt.datetime):
        return FullDayAbsence(anomaly, shift)
    raise JustificationError(f"Unsupported anomaly type: {type(anomaly).__name__}")


# ── Row building ────────────────────────────────────────────────────
@dataclass(frozen=True)
class _Plan:
    entry_at: int  # absolute minutes from the anomaly date's midnight
    exit_at: int
    reference_start: str
    reference_end: str
    description: str


def _stamp(day: dt.date, minutes: int) -> tuple[dt.date, str]:
    return day + dt.timedelta(days=minutes // MINUTES_PER_DAY), from_minutes(minutes)


def _require_bracket(shape: Shape, entry_at: int, exit_at: int, strict: bool = True) -> None:
    """Entry must precede the exit; boundary-aligned pairs may coincide."""
    if entry_at > exit_at or (strict and entry_at == exit_at):
        raise JustificationError(
            f"Gap on {shape.date} is too short to bracket "
            f"({from_minutes(entry_at)} -> {from_minutes(exit_at)})"
        )


def _plan_start_aligned(shape: StartAlignedGap) -> _Plan:
    entry_at = to_minutes(shape.shift.start)
    exit_at = _after(shape, entry_at, shape.gap_end) - 1
    _require_bracket(shape, entry_at, exit_at, strict=False)
    return _Plan(
        entry_at,
        exit_at,
        shape.shift.start,
        shape.gap_end,
        f"Late arrival: insert {shape.shift.start} (entry) and {from_minutes(exit_at)} (justified exit)",
    )


def _plan_end_aligned(shape: EndAlignedGap) -> _Plan:
    start = to_minutes(shape.gap_start)
    entry_at = start + 1
    exit_at = _after(shape, start, shape.shift.end)
    _require_bracket(shape, entry_at, exit_at, strict=False)
    return _Plan(
        entry_at,
        exit_at,
        shape.gap_start,
        shape.shift.end,
        f"Early departure: insert {from_minutes(entry_at)} (entry) and {shape.shift.end} (justified exit)",
    )


def _plan_interior(shape: InteriorGap) -> _Plan:
    start = to_minutes(shape.gap_start)
    entry_at = start if shape.start_from_boundary else start + 1
    exit_at = _after(shape, start, shape.gap_end) - 1
    _require_bracket(shape, entry_at, exit_at)
    return _Plan(
        entry_at,
        exit_at,
        shape.gap_start,
        shape.gap_end,
        f"Intermediate exit: insert {from_minutes(entry_at)} (entry) and {from_minutes(exit_at)} (justified exit)",
    )


def _plan_full_day(shape: FullDayAbsence) -> _Plan:
    entry_at = to_minutes(shape.shift.start)
    return _Plan(
        entry_at,
        _after(shape, entry_at, shape.shift.end),
        shape.shift.start,
        shape.shift.end,
        f"Full day: insert {shape.shift.start} to {shape.shift.end}",
    )


def _plan_shortfall(shape: WorkdayShortfall) -> _Plan:
    # TODO: confirm with HR whether the shortfall should instead be booked as a real interval
    anchor = _after(shape, to_minutes(shape.shift.start), shape.shift.end)
    missing = settings.STANDARD_WORKDAY_HOURS - shape.actual_hours
    return _Plan(
        anchor,
        anchor,
        shape.shift.end,
        shape.shift.end,
        f"Workday adjustment ({missing:.2f}h): synthetic record at {shape.shift.end}",
    )


_PLANNERS: dict[type, Callable[..., _Plan]] = {
    StartAlignedGap: _plan_start_aligned,
    EndAlignedGap: _plan_end_aligned,
    InteriorGap: _plan_interior,
    FullDayAbsence: _plan_full_day,
    WorkdayShortfall: _plan_shortfall,
}


def _check_reason(reason: JustificationReason) -> None:
    if reason.code in (settings.END_OF_SHIFT_CODE, settings.BREAK_CODE):
        raise JustificationError(
            f"Reason code {reason.code} cannot be used to justify an incident"
        )


def build_rows(
    shape: Shape,
    reason: JustificationReason,
    employee: EmployeeRef,
) -> JustificationResult:
    """Apply the recipe for ``shape`` and return the entry/exit pair."""
    _check_reason(reason)
    plan = _PLANNERS[type(shape)](shape)

    entry_date, entry_time = _stamp(shape.date, plan.entry_at)
    exit_date, exit_time = _stamp(shape.date, plan.exit_at)
    common = {
        "employee_id": employee.employee_id,
        "employee_name": employee.name,
        "department": employee.department,
        "shift_label": employee.shift_code or shape.shift.code,
    }
    entry = SyntheticPunch(
        **common,
        date=entry_date,
        time=entry_time,
        direction=Direction.ENTRY,
        computable=True,
    )
    exit_ = SyntheticPunch(
        **common,
        date=exit_date,
        time=exit_time,
        direction=Direction.EXIT,
        reason_code=reason.code,
        reason_description=reason.description,
        computable=False,
        reference_start=plan.reference_start,
        reference_end=plan.reference_end,
    )
    logger.debug(
        "%s for employee %s on %s: %s",
        shape.kind.value, employee.employee_id, shape.date, plan.description,
    )
    return JustificationResult(shape=shape.kind, rows=[entry, exit_], description=plan.description)


# ── Public entry points ─────────────────────────────────────────────
def generate_gap_strategy(
    gap: UnjustifiedGap,
    reason: JustificationReason,
    employee: EmployeeRef,
) -> JustificationResult:
    """Rows justifying an unexplained gap inside the employee's shift."""
    if gap.origin_punch_id is not None:
        logger.debug("Gap on %s originated at punch %s", gap.date, gap.origin_punch_id)
    shape = resolve_shape(gap, resolve_shift(employee.shift_code))
    return build_rows(shape, reason, employee)


def generate_full_day_strategy(
    day: dt.date,
    reason: JustificationReason,
    employee: EmployeeRef,
) -> JustificationResult:
    """Rows justifying a whole day of absence."""
    shape = resolve_shape(day, resolve_shift(employee.shift_code))
    return build_rows(shape, reason, employee)


def generate_workday_strategy(
    deviation: WorkdayDeviation,
    reason: JustificationReason,
    employee: EmployeeRef,
) -> JustificationResult:
    """Rows justifying missing hours that cannot be tied to one hole."""
    shape = resolve_shape(deviation, resolve_shift(employee.shift_code))
    return build_rows(shape, reason, employee)


def generate_justification(
    anomaly: Anomaly,
    reason: JustificationReason,
    employee: EmployeeRef,
) -> JustificationResult:
    """Dispatch on the anomaly type; raises ``JustificationError`` if unknown."""
    shape = resolve_shape(anomaly, resolve_shift(employee.shift_code))
    return build_rows(shape, reason, employee)
