"""
Reconciliation flow: generate, validate, then hand back to the caller.

The record store and the anomaly classifier are reached only through the
capability ports below, so the whole flow runs against in-memory fixtures
in tests. Persisting rows is the caller's job; ``confirm`` is called once
they are stored and records the justification key.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Protocol

from reconciler.core.exceptions import (AlreadyJustifiedError,
                                        BlockingConflictError)
from reconciler.schemas.attendance import (ClockEvent, EmployeeAnomalies,
                                           EmployeeRef, JustificationProposal,
                                           JustificationReason, LeaveEditPlan,
                                           LeaveRange, PendingIncident,
                                           RowReplacement)
from reconciler.services.keys import (JustificationLedger, key_for,
                                      pending_incidents)
from reconciler.services.leaves import expand_leave_range
from reconciler.services.shifts import classify_shift
from reconciler.services.strategies import Anomaly, generate_justification
from reconciler.services.validation import validate_new_incidents

logger = logging.getLogger(__name__)


# ── Ports ───────────────────────────────────────────────────────────
class EventSource(Protocol):
    """Read access to the attendance record store."""

    def events_for(
        self, employee_ids: Iterable[int], start: dt.date, end: dt.date
    ) -> list[ClockEvent]: ...


class AnomalySource(Protocol):
    """The upstream classifier's per-employee anomaly lists."""

    def anomalies_for(self, employee_ids: Iterable[int]) -> list[EmployeeAnomalies]: ...


class InMemoryEventSource:
    def __init__(self, events: Iterable[ClockEvent] = ()) -> None:
        self._events = list(events)

    def events_for(
        self, employee_ids: Iterable[int], start: dt.date, end: dt.date
    ) -> list[ClockEvent]:
        ids = set(employee_ids)
        return [
            e for e in self._events
            if e.employee_id in ids and start <= e.date <= end
        ]


class InMemoryAnomalySource:
    def __init__(self, anomalies: Iterable[EmployeeAnomalies] = ()) -> None:
        self._by_employee = {a.employee.employee_id: a for a in anomalies}

    def anomalies_for(self, employee_ids: Iterable[int]) -> list[EmployeeAnomalies]:
        return [self._by_employee[i] for i in employee_ids if i in self._by_employee]


def _anomaly_day(anomaly: Anomaly) -> dt.date:
    return anomaly if isinstance(anomaly, dt.date) else anomaly.date


# ── Service ─────────────────────────────────────────────────────────
class ReconciliationService:
    def __init__(
        self,
        events: EventSource,
        ledger: JustificationLedger,
        anomalies: AnomalySource | None = None,
    ) -> None:
        self._events = events
        self._ledger = ledger
        self._anomalies = anomalies

    def _with_shift(self, employee: EmployeeRef, day: dt.date) -> EmployeeRef:
        """Fill in a missing shift code from the day's first entry punch."""
        if employee.shift_code:
            return employee
        entries = sorted(
            (e for e in self._events.events_for([employee.employee_id], day, day) if e.is_entry),
            key=lambda e: e.time,
        )
        code = classify_shift(entries[0].time if entries else None)
        logger.debug("Inferred shift %s for employee %s on %s", code, employee.employee_id, day)
        return employee.model_copy(update={"shift_code": code})

    def pending(self, employee_ids: Iterable[int]) -> list[PendingIncident]:
        """Not-yet-justified incidents for the given employees."""
        if self._anomalies is None:
            raise RuntimeError("No anomaly source configured")
        pending: list[PendingIncident] = []
        for anomalies in self._anomalies.anomalies_for(employee_ids):
            pending.extend(pending_incidents(anomalies, self._ledger))
        return pending

    def propose(
        self,
        anomaly: Anomaly,
        reason: JustificationReason,
        employee: EmployeeRef,
        replaces: Iterable[ClockEvent] = (),
    ) -> JustificationProposal:
        """Generate and validate the rows for one anomaly.

        Raises ``JustificationError`` for anomalies that match no recipe.
        """
        key = key_for(anomaly, employee.employee_id)
        employee = self._with_shift(employee, _anomaly_day(anomaly))
        result = generate_justification(anomaly, reason, employee)

        dates = [r.date for r in result.rows]
        existing = self._events.events_for([employee.employee_id], min(dates), max(dates))
        issues = validate_new_incidents(existing, result.rows, replaces)

        proposal = JustificationProposal(
            key=key,
            employee=employee,
            reason=reason,
            result=result,
            issues=issues,
            already_justified=key in self._ledger,
        )
        if proposal.blocking:
            logger.warning("Proposal %s is blocked (%d issue(s))", key, len(issues))
        return proposal

    def confirm(self, proposal: JustificationProposal, accept_warnings: bool = False) -> None:
        """Record the proposal's key after its rows were persisted."""
        if proposal.key in self._ledger:
            raise AlreadyJustifiedError(proposal.key)
        errors = [i for i in proposal.issues if i.blocking]
        if errors:
            raise BlockingConflictError(
                f"Justification {proposal.key} has {len(errors)} blocking issue(s)", errors
            )
        if proposal.warnings and not accept_warnings:
            raise BlockingConflictError(
                f"Justification {proposal.key} has warnings that need confirmation",
                proposal.warnings,
            )
        self._ledger.record(proposal.key, proposal.reason.code)

    def plan_leave_edit(self, original: LeaveRange, updated: LeaveRange) -> LeaveEditPlan:
        """Old -> new row pairs (plus inserts and deletes) for an edited range.

        The original range's rows are treated as removed while validating
        the rebuilt ones.
        """
        new_rows = expand_leave_range(updated)
        old_by_day: dict[dt.date, list[ClockEvent]] = defaultdict(list)
        for row in original.events:
            old_by_day[row.date].append(row)

        plan = LeaveEditPlan()
        for row in new_rows:
            olds = old_by_day.get(row.date)
            if olds:
                plan.replacements.append(RowReplacement(old=olds.pop(0), new=row))
            else:
                plan.inserts.append(row)
        plan.deletes = [row for rows in old_by_day.values() for row in rows]

        start = min(original.start_date, updated.start_date)
        end = max(original.end_date, updated.end_date)
        existing = self._events.events_for({original.employee_id, updated.employee_id}, start, end)
        plan.issues = validate_new_incidents(existing, new_rows, original.events)
        return plan
