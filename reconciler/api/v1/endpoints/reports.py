"""
Reporting helpers — leave ranges, real task time and health.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from reconciler.api.v1.deps import get_ledger
from reconciler.core.config import settings
from reconciler.schemas.attendance import LeaveRange
from reconciler.schemas.reconciliation import (HealthResponse,
                                               IntervalRequest,
                                               IntervalResponse,
                                               LeaveRangesRequest)
from reconciler.services.intervals import (calculate_overlap_efficiency,
                                           calculate_real_time,
                                           merge_intervals)
from reconciler.services.keys import InMemoryJustificationLedger
from reconciler.services.leaves import group_leave_ranges

router = APIRouter(tags=["reports"])


@router.post("/leaves/ranges", response_model=list[LeaveRange])
async def leave_ranges(body: LeaveRangesRequest) -> list[LeaveRange]:
    """Collapse per-day absence rows into leave ranges."""
    return group_leave_ranges(body.events)


@router.post("/intervals/real-time", response_model=IntervalResponse)
async def interval_real_time(body: IntervalRequest) -> IntervalResponse:
    """Real elapsed time of possibly overlapping task entries."""
    return IntervalResponse(
        real_hours=calculate_real_time(body.entries),
        overlap_efficiency=calculate_overlap_efficiency(body.entries),
        merged=merge_intervals(body.entries),
    )


@router.get("/health", response_model=HealthResponse)
async def health(
    ledger: InMemoryJustificationLedger = Depends(get_ledger),
) -> HealthResponse:
    return HealthResponse(status="ok", version=settings.VERSION, justified_incidents=len(ledger))
