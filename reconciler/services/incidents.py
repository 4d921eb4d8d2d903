"""
Incident context detection and planned-incident registration.

When HR registers an incidence for a date (often a future one) the punch
state of that day decides which synthetic-punch recipe applies.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable

from reconciler.core.exceptions import JustificationError
from reconciler.schemas.attendance import (ClockEvent, EmployeeRef,
                                           IncidentContext, IncidentKind,
                                           JustificationReason,
                                           JustificationResult,
                                           UnjustifiedGap)
from reconciler.services.clock import normalize_time
from reconciler.services.shifts import ShiftBounds, resolve_shift
from reconciler.services.strategies import (InteriorGap, build_rows,
                                            resolve_shape)

logger = logging.getLogger(__name__)


def detect_incident_context(
    day: dt.date,
    events: Iterable[ClockEvent],
    shift: ShiftBounds | None = None,
) -> IncidentContext:
    """Classify ``day`` from the employee's punches on it.

    ``shift`` is accepted for callers that have it at hand; the punch
    counts alone decide the outcome.
    """
    day_punches = [e for e in events if e.date == day]
    entries = sum(1 for e in day_punches if e.is_entry)
    exits = len(day_punches) - entries
    has_entry, has_exit = entries > 0, exits > 0

    if not day_punches:
        kind = IncidentKind.FULL_DAY
    elif has_entry and not has_exit:
        kind = IncidentKind.EARLY_DEPARTURE
    elif has_exit and not has_entry:
        kind = IncidentKind.LATE_ARRIVAL
    elif entries > 1 or exits > 1:
        kind = IncidentKind.INTERMEDIATE
    else:
        kind = IncidentKind.FULL_DAY

    return IncidentContext(
        kind=kind,
        existing_punches=day_punches,
        has_entry=has_entry,
        has_exit=has_exit,
    )


def register_incident(
    day: dt.date,
    events: Iterable[ClockEvent],
    reason: JustificationReason,
    employee: EmployeeRef,
    start: str | None = None,
    end: str | None = None,
) -> tuple[IncidentContext, JustificationResult]:
    """Detect the day's context and build the rows of the matching recipe.

    Partial contexts need the incident period: a late arrival uses ``end``
    (the real arrival), an early departure uses ``start`` (the real
    departure) and an intermediate exit uses both.
    """
    shift = resolve_shift(employee.shift_code)
    context = detect_incident_context(day, events, shift)

    if context.kind == IncidentKind.FULL_DAY:
        result = build_rows(resolve_shape(day, shift), reason, employee)
        return context, result

    if context.kind == IncidentKind.LATE_ARRIVAL:
        start = shift.start
    elif context.kind == IncidentKind.EARLY_DEPARTURE:
        end = shift.end
    if not start or not end:
        raise JustificationError(
            f"A {context.kind.value} incident for employee {employee.employee_id} "
            f"on {day} needs an explicit period"
        )

    gap = UnjustifiedGap(date=day, start=start, end=end)
    logger.debug("Registering %s incident %s-%s on %s", context.kind.value, start, end, day)
    return context, build_rows(resolve_shape(gap, shift), reason, employee)


def generate_intermediate_punches(
    day: dt.date,
    exit_time: str,
    return_time: str,
    reason: JustificationReason,
    employee: EmployeeRef,
) -> JustificationResult:
    """Bracket an explicit leave-and-return pair of real punches.

    Unlike gap resolution, the pair is always bracketed from the inside
    even when it touches a shift boundary.
    """
    try:
        start, end = normalize_time(exit_time), normalize_time(return_time)
    except ValueError as exc:
        raise JustificationError(f"Malformed period on {day}: {exc}") from exc
    shape = InteriorGap(day, resolve_shift(employee.shift_code), start, end)
    return build_rows(shape, reason, employee)
