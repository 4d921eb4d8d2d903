"""
Justification keys — idempotency tokens for justified incidents.

The engine has no identity of its own: the caller owns a ledger of the
keys it has persisted and checks it before offering or inserting a
justification again.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from collections.abc import Iterable
from typing import Protocol

from reconciler.core.config import settings
from reconciler.core.exceptions import (AlreadyJustifiedError,
                                        JustificationError)
from reconciler.schemas.attendance import (AnomalyKind, EmployeeAnomalies,
                                           PendingIncident, UnjustifiedGap,
                                           WorkdayDeviation)
from reconciler.services.clock import normalize_time

logger = logging.getLogger(__name__)


def justification_key(
    kind: AnomalyKind,
    employee_id: int,
    day: dt.date,
    start: str | None = None,
    end: str | None = None,
) -> str:
    """Deterministic key for one anomaly.

    Gaps are keyed by their normalized bounds as well, since one day can
    hold several of them.
    """
    key = f"{kind.value}-{employee_id}-{day.isoformat()}"
    if kind == AnomalyKind.GAP:
        if not start or not end:
            raise JustificationError(f"Gap key for employee {employee_id} on {day} needs both bounds")
        try:
            key += f"-{normalize_time(start)}-{normalize_time(end)}"
        except ValueError as exc:
            raise JustificationError(f"Malformed gap on {day}: {exc}") from exc
    return key


def key_for(anomaly: UnjustifiedGap | WorkdayDeviation | dt.date, employee_id: int) -> str:
    if isinstance(anomaly, UnjustifiedGap):
        return justification_key(AnomalyKind.GAP, employee_id, anomaly.date, anomaly.start, anomaly.end)
    if isinstance(anomaly, WorkdayDeviation):
        return justification_key(AnomalyKind.DEVIATION, employee_id, anomaly.date)
    if isinstance(anomaly, dt.date):
        return justification_key(AnomalyKind.ABSENCE, employee_id, anomaly)
    raise JustificationError(f"Unsupported anomaly type: {type(anomaly).__name__}")


class JustificationLedger(Protocol):
    """Caller-owned record of justified incidents."""

    def __contains__(self, key: object) -> bool: ...

    def record(self, key: str, reason_code: int) -> None:
        """Store ``key``; raises ``AlreadyJustifiedError`` if it is already there."""
        ...


class InMemoryJustificationLedger:
    """Process-local ledger mapping key -> reason code."""

    def __init__(self, entries: dict[str, int] | None = None) -> None:
        self._entries: dict[str, int] = dict(entries or {})
        self._lock = threading.Lock()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(self, key: str, reason_code: int) -> None:
        """Store ``key`` unless it is already recorded; check and insert hold one lock."""
        with self._lock:
            if key in self._entries:
                raise AlreadyJustifiedError(key)
            self._entries[key] = reason_code
        logger.info("Recorded justification %s (reason %s)", key, reason_code)

    def reason_for(self, key: str) -> int | None:
        with self._lock:
            return self._entries.get(key)

    def keys_for_employee(self, employee_id: int) -> list[str]:
        """Every recorded key that belongs to ``employee_id``."""
        prefixes = tuple(f"{kind.value}-{employee_id}-" for kind in AnomalyKind)
        with self._lock:
            return sorted(k for k in self._entries if k.startswith(prefixes))


def pending_incidents(
    anomalies: EmployeeAnomalies,
    ledger: JustificationLedger | Iterable[str],
) -> list[PendingIncident]:
    """Incidents of one employee that still need a justification.

    Deviations on a day that also has a gap are left out: justifying the
    gap accounts for the missing hours.
    """
    employee_id = anomalies.employee.employee_id
    gap_days = {g.date for g in anomalies.gaps}
    pending: list[PendingIncident] = []

    for gap in anomalies.gaps:
        key = key_for(gap, employee_id)
        if key in ledger:
            continue
        pending.append(
            PendingIncident(
                kind=AnomalyKind.GAP,
                key=key,
                date=gap.date,
                description=f"Gap detected: {normalize_time(gap.start)} -> {normalize_time(gap.end)} ({gap.date})",
                gap=gap,
            )
        )

    for dev in anomalies.deviations:
        key = key_for(dev, employee_id)
        if key in ledger or dev.date in gap_days:
            continue
        delta = dev.actual_hours - settings.STANDARD_WORKDAY_HOURS
        pending.append(
            PendingIncident(
                kind=AnomalyKind.DEVIATION,
                key=key,
                date=dev.date,
                description=f"Workday of {dev.actual_hours:.2f}h ({delta:+.2f}h) on {dev.date}",
                deviation=dev,
            )
        )

    for day in anomalies.absent_days:
        key = key_for(day, employee_id)
        if key in ledger:
            continue
        pending.append(
            PendingIncident(
                kind=AnomalyKind.ABSENCE,
                key=key,
                date=day,
                description=f"Full absence on {day}",
            )
        )

    return pending
