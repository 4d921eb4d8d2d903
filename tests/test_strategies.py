"""Tests for the justification strategy generator."""

import datetime as dt

import pytest

from reconciler.core.exceptions import JustificationError
from reconciler.schemas.attendance import (Direction, EmployeeRef,
                                           JustificationReason, ShapeKind,
                                           UnjustifiedGap, WorkdayDeviation)
from reconciler.services.shifts import NIGHT, resolve_shift
from reconciler.services.strategies import (EndAlignedGap, FullDayAbsence,
                                            InteriorGap, StartAlignedGap,
                                            WorkdayShortfall,
                                            generate_full_day_strategy,
                                            generate_gap_strategy,
                                            generate_justification,
                                            generate_workday_strategy,
                                            resolve_shape)


def _gap(start, end, day=dt.date(2026, 3, 10), **kw):
    return UnjustifiedGap(date=day, start=start, end=end, **kw)


# ── Shape resolution ────────────────────────────────────────────────
def test_resolve_shape_variants():
    """Each anomaly maps to exactly one shape."""
    morning = resolve_shift("M")
    assert isinstance(resolve_shape(_gap("07:00", "09:00"), morning), StartAlignedGap)
    assert isinstance(resolve_shape(_gap("12:00", "15:00"), morning), EndAlignedGap)
    assert isinstance(resolve_shape(_gap("10:00", "12:00"), morning), InteriorGap)
    assert isinstance(resolve_shape(dt.date(2026, 3, 10), morning), FullDayAbsence)
    deviation = WorkdayDeviation(date=dt.date(2026, 3, 10), actual_hours=7.5)
    assert isinstance(resolve_shape(deviation, morning), WorkdayShortfall)


def test_start_alignment_wins_when_gap_covers_whole_shift():
    shape = resolve_shape(_gap("07:00", "15:00"), resolve_shift("M"))
    assert isinstance(shape, StartAlignedGap)


# ── Start-aligned (late arrival) ────────────────────────────────────
def test_late_arrival_example(employee, medical):
    """Shift M, gap 07:00-11:35 -> entry 07:00, exit 11:34."""
    result = generate_gap_strategy(_gap("07:00", "11:35"), medical, employee)

    entry, exit_ = result.rows
    assert result.shape == ShapeKind.START_ALIGNED_GAP
    assert entry.direction == Direction.ENTRY and entry.time == "07:00"
    assert entry.reason_code is None and entry.computable is True
    assert exit_.direction == Direction.EXIT and exit_.time == "11:34"
    assert exit_.reason_code == 2 and exit_.computable is False
    assert (exit_.reference_start, exit_.reference_end) == ("07:00", "11:35")
    assert all(r.generated for r in result.rows)


@pytest.mark.parametrize("detected_start", ["07:00", "07:00:00", "07:00:59", "07:00 (+1)"])
def test_late_arrival_entry_is_always_shift_start(employee, medical, detected_start):
    """The entry is forced to the shift start regardless of the detected format."""
    result = generate_gap_strategy(_gap(detected_start, "09:10:30"), medical, employee)
    assert result.rows[0].time == "07:00"
    assert result.rows[1].time == "09:09"


# ── End-aligned (early departure) ───────────────────────────────────
def test_early_departure_example(employee, medical):
    """Shift M, gap 12:00-15:00 -> entry 12:01, exit 15:00."""
    result = generate_gap_strategy(_gap("12:00", "15:00"), medical, employee)

    entry, exit_ = result.rows
    assert result.shape == ShapeKind.END_ALIGNED_GAP
    assert entry.time == "12:01"
    assert exit_.time == "15:00"
    assert (exit_.reference_start, exit_.reference_end) == ("12:00", "15:00")


@pytest.mark.parametrize("code,start", [("TN", "20:15"), ("C", "16:00"), ("M", "08:30")])
def test_early_departure_exit_is_shift_end(medical, code, start):
    employee = EmployeeRef(employee_id=1, name="X", shift_code=code)
    result = generate_gap_strategy(_gap(start, resolve_shift(code).end), medical, employee)
    assert result.rows[1].time == resolve_shift(code).end


@pytest.mark.parametrize(
    "start,end,times,shape",
    [
        ("07:00", "07:01", ["07:00", "07:00"], ShapeKind.START_ALIGNED_GAP),
        ("14:59", "15:00", ["15:00", "15:00"], ShapeKind.END_ALIGNED_GAP),
    ],
)
def test_one_minute_boundary_gaps_are_justified(employee, medical, start, end, times, shape):
    """A one-minute late arrival or early departure yields a coinciding pair."""
    result = generate_gap_strategy(_gap(start, end), medical, employee)
    assert result.shape == shape
    assert [r.time for r in result.rows] == times


# ── Interior ────────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "start,end,entry,exit_",
    [("10:00", "12:00", "10:01", "11:59"), ("08:15", "08:45", "08:16", "08:44")],
)
def test_interior_gap_is_bracketed(employee, medical, start, end, entry, exit_):
    result = generate_gap_strategy(_gap(start, end), medical, employee)

    assert result.shape == ShapeKind.INTERIOR_GAP
    assert [r.time for r in result.rows] == [entry, exit_]
    assert result.rows[0].time < result.rows[1].time
    assert result.rows[0].reason_code is None
    assert (result.rows[1].reference_start, result.rows[1].reference_end) == (start, end)


def test_interior_gap_from_boundary_starts_exactly(employee, medical):
    result = generate_gap_strategy(_gap("10:00", "12:00", start_from_boundary=True), medical, employee)
    assert result.rows[0].time == "10:00"


def test_interior_gap_keeps_origin_punch_untouched(employee, medical):
    """The originating punch id is informational; only new rows are produced."""
    result = generate_gap_strategy(_gap("10:00", "12:00", origin_punch_id=991), medical, employee)
    assert len(result.rows) == 2
    assert all(r.record_id is None for r in result.rows)


def test_night_shift_interior_gap_crossing_midnight(medical):
    employee = EmployeeRef(employee_id=3, name="Night Worker", shift_code="N")
    result = generate_gap_strategy(_gap("23:30", "00:30"), medical, employee)

    entry, exit_ = result.rows
    assert (entry.date, entry.time) == (dt.date(2026, 3, 10), "23:31")
    assert (exit_.date, exit_.time) == (dt.date(2026, 3, 11), "00:29")


# ── Full day ────────────────────────────────────────────────────────
def test_full_day_morning(employee, holiday):
    result = generate_full_day_strategy(dt.date(2026, 3, 10), holiday, employee)

    entry, exit_ = result.rows
    assert result.shape == ShapeKind.FULL_DAY
    assert (entry.date, entry.time) == (dt.date(2026, 3, 10), "07:00")
    assert (exit_.date, exit_.time) == (dt.date(2026, 3, 10), "15:00")
    assert exit_.reason_code == 5


def test_full_day_night_shift_example(holiday):
    """Shift N, full day 2026-03-10 -> entry 03-10 23:00, exit 03-11 07:00."""
    employee = EmployeeRef(employee_id=3, name="Night Worker", shift_code="N")
    result = generate_full_day_strategy(dt.date(2026, 3, 10), holiday, employee)

    entry, exit_ = result.rows
    assert (entry.date, entry.time) == (dt.date(2026, 3, 10), "23:00")
    assert (exit_.date, exit_.time) == (dt.date(2026, 3, 11), "07:00")
    assert NIGHT.crosses_midnight


@pytest.mark.parametrize("day", [dt.date(2026, 2, 28), dt.date(2026, 12, 31), dt.date(2028, 2, 28)])
def test_full_day_night_shift_exit_is_next_calendar_day(holiday, day):
    employee = EmployeeRef(employee_id=3, shift_code="N")
    entry, exit_ = generate_full_day_strategy(day, holiday, employee).rows
    assert exit_.date - entry.date == dt.timedelta(days=1)


# ── Workday shortfall ───────────────────────────────────────────────
def test_workday_shortfall_zero_length_pair(employee, medical):
    deviation = WorkdayDeviation(date=dt.date(2026, 3, 10), actual_hours=7.25)
    result = generate_workday_strategy(deviation, medical, employee)

    entry, exit_ = result.rows
    assert result.shape == ShapeKind.WORKDAY_SHORTFALL
    assert entry.time == exit_.time == "15:00"
    assert exit_.reason_code == 2
    assert "0.75h" in result.description


# ── Determinism & dispatch ──────────────────────────────────────────
def test_generation_is_deterministic(employee, medical):
    gap = _gap("10:00", "12:00")
    assert generate_justification(gap, medical, employee) == generate_justification(gap, medical, employee)


def test_unknown_shift_code_falls_back_to_morning(medical):
    employee = EmployeeRef(employee_id=9, shift_code="ZZ")
    result = generate_gap_strategy(_gap("07:00", "08:00"), medical, employee)
    assert result.rows[0].time == "07:00"
    assert result.rows[0].shift_label == "ZZ"


# ── Structural errors ───────────────────────────────────────────────
@pytest.mark.parametrize(
    "start,end",
    [("", "10:00"), ("ab:cd", "10:00"), ("25:00", "26:00"), ("10:00", "10:00"), ("10:00", "10:01")],
)
def test_malformed_gaps_raise(employee, medical, start, end):
    with pytest.raises(JustificationError):
        generate_gap_strategy(_gap(start, end), medical, employee)


def test_day_shift_gap_ending_before_start_raises(employee, medical):
    with pytest.raises(JustificationError):
        generate_gap_strategy(_gap("12:00", "09:00"), medical, employee)


def test_negative_deviation_raises(employee, medical):
    with pytest.raises(JustificationError):
        generate_workday_strategy(WorkdayDeviation(date=dt.date(2026, 3, 10), actual_hours=-1), medical, employee)


@pytest.mark.parametrize("code", [1, 14])
def test_terminal_and_break_codes_are_not_reasons(employee, code):
    with pytest.raises(JustificationError):
        generate_gap_strategy(_gap("10:00", "12:00"), JustificationReason(code=code), employee)


@pytest.mark.parametrize("anomaly", ["2026-03-10", 42, dt.datetime(2026, 3, 10, 8, 0), None])
def test_unknown_anomaly_types_raise(employee, medical, anomaly):
    with pytest.raises(JustificationError):
        generate_justification(anomaly, medical, employee)
