"""Request / response bodies for the reconciliation API."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, model_validator

from reconciler.schemas.attendance import (ClockEvent, EmployeeAnomalies,
                                           EmployeeRef, IncidentContext,
                                           JustificationReason,
                                           JustificationResult,
                                           MergedInterval, ShapeKind,
                                           SyntheticPunch, UnjustifiedGap,
                                           ValidationIssue, WorkdayDeviation,
                                           WorkEntry)


# ── Justifications ──────────────────────────────────────────────────
class JustificationPreviewRequest(BaseModel):
    employee: EmployeeRef
    reason: JustificationReason
    gap: UnjustifiedGap | None = None
    deviation: WorkdayDeviation | None = None
    absent_day: dt.date | None = None
    existing_events: list[ClockEvent] = Field(default_factory=list)
    replaces: list[ClockEvent] = Field(default_factory=list)

    @model_validator(mode="after")
    def _one_anomaly(self) -> JustificationPreviewRequest:
        given = [a for a in (self.gap, self.deviation, self.absent_day) if a is not None]
        if len(given) != 1:
            raise ValueError("Exactly one of gap, deviation or absent_day is required")
        return self

    @property
    def anomaly(self) -> UnjustifiedGap | WorkdayDeviation | dt.date:
        return next(a for a in (self.gap, self.deviation, self.absent_day) if a is not None)


class JustificationPreviewResponse(BaseModel):
    key: str
    shape: ShapeKind
    description: str
    rows: list[SyntheticPunch]
    issues: list[ValidationIssue]
    blocking: bool
    already_justified: bool


class KeyRecordRequest(BaseModel):
    key: str = Field(min_length=1, max_length=200)
    reason_code: int


class KeyRecordResponse(BaseModel):
    success: bool
    key: str


class PendingRequest(BaseModel):
    anomalies: list[EmployeeAnomalies]


# ── Validation ──────────────────────────────────────────────────────
class ValidationRequest(BaseModel):
    existing_events: list[ClockEvent] = Field(default_factory=list)
    proposed_events: list[ClockEvent]
    ignored_events: list[ClockEvent] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    issues: list[ValidationIssue]
    blocking: bool


# ── Incidents ───────────────────────────────────────────────────────
class IncidentContextRequest(BaseModel):
    date: dt.date
    events: list[ClockEvent] = Field(default_factory=list)
    shift_code: str | None = None


class IncidentRegisterRequest(BaseModel):
    date: dt.date
    employee: EmployeeRef
    reason: JustificationReason
    events: list[ClockEvent] = Field(default_factory=list)
    start: str | None = None
    end: str | None = None


class IncidentRegisterResponse(BaseModel):
    context: IncidentContext
    result: JustificationResult
    issues: list[ValidationIssue]
    blocking: bool


# ── Reports ─────────────────────────────────────────────────────────
class LeaveRangesRequest(BaseModel):
    events: list[ClockEvent]


class IntervalRequest(BaseModel):
    entries: list[WorkEntry]


class IntervalResponse(BaseModel):
    real_hours: float
    overlap_efficiency: float
    merged: list[MergedInterval]


class HealthResponse(BaseModel):
    status: str
    version: str
    justified_incidents: int
