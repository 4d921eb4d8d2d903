"""
Conflict validation for proposed incident rows.

Checks the rows about to be inserted against what the employee already
has on each touched day. Errors must block persistence; warnings are
surfaced to the operator, who may confirm and proceed.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections import defaultdict
from collections.abc import Iterable

from reconciler.schemas.attendance import (ClockEvent, IssueCategory,
                                           IssueSeverity, ValidationIssue)
from reconciler.services.clock import MINUTES_PER_DAY, from_minutes, to_minutes
from reconciler.services.shifts import format_time_range

logger = logging.getLogger(__name__)

GroupKey = tuple[int, dt.date]


def _row_key(row: ClockEvent) -> tuple[int, dt.date, int | None, str]:
    return row.employee_id, row.date, row.reason_code, row.time


def _interval(row: ClockEvent) -> tuple[int, int]:
    """Minutes covered by an absence; zero-width counts as one minute."""
    start = to_minutes(row.reference_start or row.time)
    end = to_minutes(row.reference_end or row.reference_start or row.time)
    if end == start:
        end = start + 1
    elif end < start:
        end += MINUTES_PER_DAY
    return start, end


def _overlaps(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """Intersect two intervals, also comparing the post-midnight part of a wrapped one."""
    return any(
        a[0] + shift < b[1] and a[1] + shift > b[0]
        for shift in (-MINUTES_PER_DAY, 0, MINUTES_PER_DAY)
    )


def _fmt(interval: tuple[int, int]) -> str:
    start, end = interval
    return format_time_range(from_minutes(start), from_minutes(end), end >= MINUTES_PER_DAY)


def _issue(
    severity: IssueSeverity,
    category: IssueCategory,
    message: str,
    employee_name: str,
    day: dt.date,
) -> ValidationIssue:
    return ValidationIssue(
        severity=severity,
        category=category,
        message=message,
        employee_name=employee_name,
        date=day,
    )


def _check_presence(name: str, day: dt.date, new: list[ClockEvent], existing: list[ClockEvent]) -> list[ValidationIssue]:
    if any(r.is_full_day_marker for r in new) and any(r.is_entry for r in existing):
        return [
            _issue(
                IssueSeverity.WARNING,
                IssueCategory.PRESENCE_CONFLICT,
                f"{name} already has presence punches on {day}; the absence will be recorded anyway.",
                name,
                day,
            )
        ]
    return []


def _check_terminal(name: str, day: dt.date, new: list[ClockEvent], existing: list[ClockEvent]) -> list[ValidationIssue]:
    added = sum(1 for r in new if r.is_terminal)
    total = added + sum(1 for r in existing if r.is_terminal)
    if added and total > 1:
        return [
            _issue(
                IssueSeverity.ERROR,
                IssueCategory.DUPLICATE_TERMINAL,
                f"{name} would have {total} 'end of shift' records on {day}; only one is allowed.",
                name,
                day,
            )
        ]
    return []


def _check_overlap(name: str, day: dt.date, new: list[ClockEvent], existing: list[ClockEvent]) -> list[ValidationIssue]:
    new_abs = [r for r in new if r.is_absence]
    old_abs = [r for r in existing if r.is_absence]
    if not new_abs or not old_abs:
        return []

    if any(r.is_full_day_marker for r in new_abs + old_abs):
        return [
            _issue(
                IssueSeverity.ERROR,
                IssueCategory.OVERLAP,
                f"{name} already has an absence on {day} ({old_abs[0].reason_description}) "
                "incompatible with the new request.",
                name,
                day,
            )
        ]

    issues: list[ValidationIssue] = []
    for new_row in new_abs:
        new_iv = _interval(new_row)
        for old_row in old_abs:
            old_iv = _interval(old_row)
            if not _overlaps(new_iv, old_iv):
                continue
            if new_row.reason_code == old_row.reason_code:
                issues.append(
                    _issue(
                        IssueSeverity.ERROR,
                        IssueCategory.PARTIAL_OVERLAP,
                        f"{name} already has {new_row.reason_description or new_row.reason_code} "
                        f"registered on {day} at {_fmt(old_iv)}.",
                        name,
                        day,
                    )
                )
            else:
                issues.append(
                    _issue(
                        IssueSeverity.WARNING,
                        IssueCategory.PARTIAL_OVERLAP,
                        f"Overlap for {name} on {day}: {new_row.reason_description or new_row.reason_code} "
                        f"({_fmt(new_iv)}) overlaps {old_row.reason_description or old_row.reason_code} "
                        f"({_fmt(old_iv)}).",
                        name,
                        day,
                    )
                )
    return issues


def validate_new_incidents(
    current: Iterable[ClockEvent],
    proposed: Iterable[ClockEvent],
    ignored: Iterable[ClockEvent] = (),
) -> list[ValidationIssue]:
    """Return the conflicts ``proposed`` would create.

    ``ignored`` lists existing rows an edit is about to replace; they are
    treated as already removed. Only the (employee, date) pairs touched by
    ``proposed`` are examined.
    """
    skip = {_row_key(r) for r in ignored}

    new_by_day: dict[GroupKey, list[ClockEvent]] = defaultdict(list)
    for row in proposed:
        new_by_day[(row.employee_id, row.date)].append(row)

    existing_by_day: dict[GroupKey, list[ClockEvent]] = defaultdict(list)
    for row in current:
        key = (row.employee_id, row.date)
        if key in new_by_day and _row_key(row) not in skip:
            existing_by_day[key].append(row)

    issues: list[ValidationIssue] = []
    for (employee_id, day), rows in new_by_day.items():
        name = rows[0].employee_name or str(employee_id)
        existing = existing_by_day.get((employee_id, day), [])
        issues.extend(_check_presence(name, day, rows, existing))
        issues.extend(_check_terminal(name, day, rows, existing))
        issues.extend(_check_overlap(name, day, rows, existing))

    if issues:
        logger.info(
            "Validation found %d issue(s) across %d day(s)",
            len(issues), len(new_by_day),
        )
    return issues


def has_blocking_issues(issues: Iterable[ValidationIssue]) -> bool:
    return any(i.blocking for i in issues)
