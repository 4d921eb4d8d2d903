"""
Attendance Reconciler — application entry point.

This is the **only** file that assembles the app. All reconciliation
logic lives in the `services/` package; `api/` only adapts it to HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reconciler.api.v1.api import api_router
from reconciler.core.config import settings
from reconciler.core.exceptions import register_exception_handlers
from reconciler.services.keys import InMemoryJustificationLedger

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    logger.info(
        "Shutdown complete (%d justification key(s) recorded)", len(app.state.ledger)
    )


# ── App factory ─────────────────────────────────────────────────────
def create_app(ledger: InMemoryJustificationLedger | None = None) -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Attendance reconciliation & justification engine",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.ledger = ledger if ledger is not None else InMemoryJustificationLedger()

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
