"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from reconciler.api.v1.endpoints import incidents, justifications, reports

api_router = APIRouter()

# Preview, key ledger, pending incidents, validation
api_router.include_router(justifications.router)

# Context detection and planned incidents
api_router.include_router(incidents.router)

# Leave ranges, task time, health
api_router.include_router(reports.router)
