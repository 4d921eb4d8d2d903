"""
Justification endpoints.

Stateless apart from the ledger: the caller sends the anomaly together
with the employee's existing rows, persists the returned rows itself and
then records the key.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from reconciler.api.v1.deps import get_ledger
from reconciler.schemas.attendance import PendingIncident
from reconciler.schemas.reconciliation import (JustificationPreviewRequest,
                                               JustificationPreviewResponse,
                                               KeyRecordRequest,
                                               KeyRecordResponse,
                                               PendingRequest,
                                               ValidationRequest,
                                               ValidationResponse)
from reconciler.services.keys import (InMemoryJustificationLedger,
                                      pending_incidents)
from reconciler.services.reconciliation import (InMemoryEventSource,
                                                ReconciliationService)
from reconciler.services.validation import (has_blocking_issues,
                                            validate_new_incidents)

router = APIRouter(tags=["justifications"])


@router.post("/justifications/preview", response_model=JustificationPreviewResponse)
async def preview_justification(
    body: JustificationPreviewRequest,
    ledger: InMemoryJustificationLedger = Depends(get_ledger),
) -> JustificationPreviewResponse:
    """Generate the synthetic rows for one anomaly and validate them."""
    service = ReconciliationService(InMemoryEventSource(body.existing_events), ledger)
    proposal = service.propose(body.anomaly, body.reason, body.employee, body.replaces)
    return JustificationPreviewResponse(
        key=proposal.key,
        shape=proposal.result.shape,
        description=proposal.result.description,
        rows=proposal.result.rows,
        issues=proposal.issues,
        blocking=proposal.blocking,
        already_justified=proposal.already_justified,
    )


@router.post("/justifications/keys", response_model=KeyRecordResponse, status_code=201)
async def record_justification_key(
    body: KeyRecordRequest,
    ledger: InMemoryJustificationLedger = Depends(get_ledger),
) -> KeyRecordResponse:
    """Record a key once the caller has persisted the rows."""
    ledger.record(body.key, body.reason_code)
    return KeyRecordResponse(success=True, key=body.key)


@router.post("/justifications/pending", response_model=list[PendingIncident])
async def list_pending(
    body: PendingRequest,
    ledger: InMemoryJustificationLedger = Depends(get_ledger),
) -> list[PendingIncident]:
    """Incidents that have not been justified yet."""
    pending: list[PendingIncident] = []
    for anomalies in body.anomalies:
        pending.extend(pending_incidents(anomalies, ledger))
    return pending


@router.post("/validation", response_model=ValidationResponse)
async def validate_rows(body: ValidationRequest) -> ValidationResponse:
    """Check proposed rows against the existing ones."""
    issues = validate_new_incidents(
        body.existing_events, body.proposed_events, body.ignored_events
    )
    return ValidationResponse(issues=issues, blocking=has_blocking_issues(issues))
