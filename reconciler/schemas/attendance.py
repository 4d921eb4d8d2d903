"""Pydantic schemas for clock events, anomalies and reconciliation results."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from reconciler.core.config import settings
from reconciler.services.clock import normalize_time

MIDNIGHT = "00:00"


# ── Clock events ────────────────────────────────────────────────────
class Direction(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"


class ClockEvent(BaseModel):
    """One punch row as held by the attendance record store."""

    record_id: int | None = None  # store identifier, informational only
    employee_id: int
    employee_name: str = ""
    department: str = ""
    date: dt.date
    time: str  # HH:MM
    direction: Direction
    reason_code: int | None = None
    reason_description: str = ""
    computable: bool = True
    shift_label: str = ""
    reference_start: str | None = None
    reference_end: str | None = None
    generated: bool = False

    model_config = {"frozen": True}

    @field_validator("time", mode="before")
    @classmethod
    def _time(cls, v: str) -> str:
        return normalize_time(v)

    @field_validator("reference_start", "reference_end", mode="before")
    @classmethod
    def _reference(cls, v: str | None) -> str | None:
        if v is None or not str(v).strip():
            return None
        return normalize_time(v)

    @property
    def is_entry(self) -> bool:
        return self.direction == Direction.ENTRY

    @property
    def is_exit(self) -> bool:
        return self.direction == Direction.EXIT

    @property
    def is_terminal(self) -> bool:
        """Exit carrying the "end of shift" code."""
        return self.is_exit and self.reason_code == settings.END_OF_SHIFT_CODE

    @property
    def is_absence(self) -> bool:
        """Exit justified by a reason other than end-of-shift or break."""
        return (
            self.is_exit
            and self.reason_code is not None
            and self.reason_code not in (settings.END_OF_SHIFT_CODE, settings.BREAK_CODE)
        )

    @property
    def is_full_day_marker(self) -> bool:
        """Absence stamped at midnight with no explicit time range."""
        return self.is_absence and self.time == MIDNIGHT and self.reference_start is None


class SyntheticPunch(ClockEvent):
    """Clock event produced by the engine to encode a justification."""

    generated: Literal[True] = True


# ── Anomalies (classifier output) ───────────────────────────────────
class UnjustifiedGap(BaseModel):
    date: dt.date
    start: str  # HH:MM, may carry seconds or a " (+1)" marker
    end: str
    origin_punch_id: int | None = None  # links the originating punch, never mutated
    start_from_boundary: bool = False  # start is a shift boundary, not a real punch-out


class WorkdayDeviation(BaseModel):
    date: dt.date
    actual_hours: float


class AnomalyKind(str, Enum):
    GAP = "gap"
    DEVIATION = "dev"
    ABSENCE = "abs"


class JustificationReason(BaseModel):
    code: int
    description: str = ""


class EmployeeRef(BaseModel):
    employee_id: int
    name: str = ""
    department: str = ""
    shift_code: str | None = None


class EmployeeAnomalies(BaseModel):
    """Everything the classifier flagged for one employee."""

    employee: EmployeeRef
    gaps: list[UnjustifiedGap] = Field(default_factory=list)
    deviations: list[WorkdayDeviation] = Field(default_factory=list)
    absent_days: list[dt.date] = Field(default_factory=list)


class PendingIncident(BaseModel):
    kind: AnomalyKind
    key: str
    date: dt.date
    description: str
    gap: UnjustifiedGap | None = None
    deviation: WorkdayDeviation | None = None


# ── Justification output ────────────────────────────────────────────
class ShapeKind(str, Enum):
    START_ALIGNED_GAP = "start_aligned_gap"
    END_ALIGNED_GAP = "end_aligned_gap"
    INTERIOR_GAP = "interior_gap"
    FULL_DAY = "full_day"
    WORKDAY_SHORTFALL = "workday_shortfall"


class JustificationResult(BaseModel):
    shape: ShapeKind
    rows: list[SyntheticPunch]
    description: str


# ── Incident context ────────────────────────────────────────────────
class IncidentKind(str, Enum):
    FULL_DAY = "full_day"
    LATE_ARRIVAL = "late_arrival"
    EARLY_DEPARTURE = "early_departure"
    INTERMEDIATE = "intermediate"


class IncidentContext(BaseModel):
    kind: IncidentKind
    existing_punches: list[ClockEvent]
    has_entry: bool
    has_exit: bool


# ── Leave ranges ────────────────────────────────────────────────────
class LeaveRange(BaseModel):
    range_id: str
    employee_id: int
    employee_name: str
    department: str
    reason_code: int
    reason_description: str
    start_date: dt.date
    end_date: dt.date  # inclusive
    is_full_day: bool
    start_time: str | None = None
    end_time: str | None = None
    events: list[ClockEvent] = Field(default_factory=list)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


# ── Validation ──────────────────────────────────────────────────────
class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCategory(str, Enum):
    PRESENCE_CONFLICT = "presence_conflict"
    DUPLICATE_TERMINAL = "duplicate_terminal"
    OVERLAP = "overlap"
    PARTIAL_OVERLAP = "partial_overlap"
    OTHER = "other"


class ValidationIssue(BaseModel):
    severity: IssueSeverity
    category: IssueCategory
    message: str
    employee_name: str
    date: dt.date

    @property
    def blocking(self) -> bool:
        return self.severity == IssueSeverity.ERROR


# ── Task time entries ───────────────────────────────────────────────
class WorkEntry(BaseModel):
    order_id: str = ""
    employee_id: int | None = None
    start: str  # HH:MM or HH:MM:SS
    end: str

    @field_validator("start", "end", mode="before")
    @classmethod
    def _time(cls, v: str) -> str:
        return normalize_time(v)


class MergedInterval(BaseModel):
    start: int  # minutes from midnight
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


# ── Proposals & edits ───────────────────────────────────────────────
class JustificationProposal(BaseModel):
    """Generated rows plus everything the caller needs before persisting."""

    key: str
    employee: EmployeeRef
    reason: JustificationReason
    result: JustificationResult
    issues: list[ValidationIssue] = Field(default_factory=list)
    already_justified: bool = False

    @property
    def blocking(self) -> bool:
        return self.already_justified or any(i.blocking for i in self.issues)

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if not i.blocking]


class RowReplacement(BaseModel):
    old: ClockEvent
    new: SyntheticPunch


class LeaveEditPlan(BaseModel):
    replacements: list[RowReplacement] = Field(default_factory=list)
    inserts: list[SyntheticPunch] = Field(default_factory=list)
    deletes: list[ClockEvent] = Field(default_factory=list)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def blocking(self) -> bool:
        return any(i.blocking for i in self.issues)
