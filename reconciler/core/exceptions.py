"""
Engine error taxonomy and the global exception handlers that map it to
JSON responses — prevents stack-trace leakage to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ReconciliationError(Exception):
    """Base class for every error raised by the engine."""


class JustificationError(ReconciliationError):
    """The anomaly (or reason) cannot be mapped to exactly one recipe.

    Callers must not persist anything when this is raised.
    """


class AlreadyJustifiedError(ReconciliationError):
    """The anomaly's justification key is already recorded."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Incident '{key}' has already been justified")
        self.key = key


class BlockingConflictError(ReconciliationError):
    """A proposal with blocking (or unconfirmed) issues was confirmed."""

    def __init__(self, message: str, issues: list | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
    )


async def _justification_error_handler(_request: Request, exc: JustificationError) -> JSONResponse:
    logger.warning("Rejected anomaly: %s", exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "success": False},
    )


async def _already_justified_handler(_request: Request, exc: AlreadyJustifiedError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "key": exc.key, "success": False},
    )


async def _blocking_conflict_handler(_request: Request, exc: BlockingConflictError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "issues": [i.model_dump(mode="json") for i in exc.issues],
            "success": False,
        },
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(JustificationError, _justification_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(AlreadyJustifiedError, _already_justified_handler)  # type: ignore[arg-type]
    app.add_exception_handler(BlockingConflictError, _blocking_conflict_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
