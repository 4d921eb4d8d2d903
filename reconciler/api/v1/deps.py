"""
FastAPI dependencies — the process-wide justification ledger.
"""

from __future__ import annotations

from fastapi import Request

from reconciler.services.keys import InMemoryJustificationLedger


async def get_ledger(request: Request) -> InMemoryJustificationLedger:
    """Ledger created by the app factory and shared by every request."""
    return request.app.state.ledger
