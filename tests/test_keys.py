"""Tests for justification keys, the ledger and pending incidents."""

import datetime as dt

import pytest

from reconciler.core.exceptions import (AlreadyJustifiedError,
                                        JustificationError)
from reconciler.schemas.attendance import (AnomalyKind, EmployeeAnomalies,
                                           UnjustifiedGap, WorkdayDeviation)
from reconciler.services.keys import (InMemoryJustificationLedger,
                                      justification_key, key_for,
                                      pending_incidents)


def test_key_formats(day):
    gap = UnjustifiedGap(date=day, start="07:00:00", end="11:35 (+1)")
    assert key_for(gap, 47) == "gap-47-2026-03-10-07:00-11:35"
    assert key_for(WorkdayDeviation(date=day, actual_hours=7.0), 47) == "dev-47-2026-03-10"
    assert key_for(day, 47) == "abs-47-2026-03-10"


def test_gap_keys_distinguish_gaps_on_same_day(day):
    first = justification_key(AnomalyKind.GAP, 47, day, "08:00", "09:00")
    second = justification_key(AnomalyKind.GAP, 47, day, "10:00", "11:00")
    assert first != second


@pytest.mark.parametrize("start,end", [(None, "09:00"), ("08:00", ""), ("8h", "09:00")])
def test_gap_key_needs_valid_bounds(day, start, end):
    with pytest.raises(JustificationError):
        justification_key(AnomalyKind.GAP, 47, day, start, end)


def test_key_for_rejects_unknown_types():
    with pytest.raises(JustificationError):
        key_for("2026-03-10", 47)


def test_ledger_records_and_filters_by_employee():
    ledger = InMemoryJustificationLedger({"abs-47-2026-03-09": 5})
    ledger.record("gap-47-2026-03-10-07:00-09:00", 2)
    ledger.record("abs-470-2026-03-10", 5)

    assert "abs-47-2026-03-09" in ledger
    assert len(ledger) == 3
    assert ledger.reason_for("gap-47-2026-03-10-07:00-09:00") == 2
    assert ledger.reason_for("missing") is None
    assert ledger.keys_for_employee(47) == ["abs-47-2026-03-09", "gap-47-2026-03-10-07:00-09:00"]


def test_pending_skips_justified_and_gap_day_deviations(employee, day):
    other_day = day + dt.timedelta(days=1)
    anomalies = EmployeeAnomalies(
        employee=employee,
        gaps=[UnjustifiedGap(date=day, start="07:00", end="09:00")],
        deviations=[
            WorkdayDeviation(date=day, actual_hours=6.0),
            WorkdayDeviation(date=other_day, actual_hours=7.5),
        ],
        absent_days=[dt.date(2026, 3, 12), dt.date(2026, 3, 13)],
    )
    ledger = {"abs-47-2026-03-12"}

    pending = pending_incidents(anomalies, ledger)

    assert [p.key for p in pending] == [
        "gap-47-2026-03-10-07:00-09:00",
        "dev-47-2026-03-11",
        "abs-47-2026-03-13",
    ]
    assert pending[0].description == "Gap detected: 07:00 -> 09:00 (2026-03-10)"
    assert pending[1].description == "Workday of 7.50h (-0.50h) on 2026-03-11"
    assert pending[2].description == "Full absence on 2026-03-13"


def test_pending_is_empty_once_everything_is_justified(employee, day):
    anomalies = EmployeeAnomalies(employee=employee, absent_days=[day])
    ledger = InMemoryJustificationLedger()
    ledger.record(key_for(day, employee.employee_id), 5)
    assert pending_incidents(anomalies, ledger) == []


def test_ledger_refuses_to_record_a_key_twice():
    ledger = InMemoryJustificationLedger()
    ledger.record("abs-47-2026-03-10", 5)

    with pytest.raises(AlreadyJustifiedError) as exc_info:
        ledger.record("abs-47-2026-03-10", 2)

    assert exc_info.value.key == "abs-47-2026-03-10"
    assert ledger.reason_for("abs-47-2026-03-10") == 5
