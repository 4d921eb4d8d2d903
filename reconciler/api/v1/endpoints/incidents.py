"""
Incident registration endpoints — planned or ad-hoc incidences for a date
whose punch state is not known in detail.
"""

from __future__ import annotations

from fastapi import APIRouter

from reconciler.schemas.attendance import IncidentContext
from reconciler.schemas.reconciliation import (IncidentContextRequest,
                                               IncidentRegisterRequest,
                                               IncidentRegisterResponse)
from reconciler.services.incidents import (detect_incident_context,
                                           register_incident)
from reconciler.services.shifts import resolve_shift
from reconciler.services.validation import (has_blocking_issues,
                                            validate_new_incidents)

router = APIRouter(prefix="/incidents", tags=["incidents"])


@router.post("/context", response_model=IncidentContext)
async def incident_context(body: IncidentContextRequest) -> IncidentContext:
    """Classify the day from its existing punches."""
    return detect_incident_context(body.date, body.events, resolve_shift(body.shift_code))


@router.post("/register", response_model=IncidentRegisterResponse)
async def incident_register(body: IncidentRegisterRequest) -> IncidentRegisterResponse:
    """Build and validate the rows for an incidence on ``date``."""
    context, result = register_incident(
        body.date, body.events, body.reason, body.employee, body.start, body.end
    )
    issues = validate_new_incidents(body.events, result.rows)
    return IncidentRegisterResponse(
        context=context,
        result=result,
        issues=issues,
        blocking=has_blocking_issues(issues),
    )
