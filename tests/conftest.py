"""
Shared test fixtures for the reconciliation engine test suite.
"""

import datetime as dt
import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["LOG_LEVEL"] = "WARNING"

from httpx import ASGITransport, AsyncClient

from reconciler.main import create_app
from reconciler.schemas.attendance import (ClockEvent, Direction, EmployeeRef,
                                           JustificationReason)
from reconciler.services.keys import InMemoryJustificationLedger

DAY = dt.date(2026, 3, 10)


@pytest.fixture
def day() -> dt.date:
    return DAY


@pytest.fixture
def employee() -> EmployeeRef:
    return EmployeeRef(employee_id=47, name="Mario Velazquez", department="Assembly", shift_code="M")


@pytest.fixture
def medical() -> JustificationReason:
    return JustificationReason(code=2, description="Medical appointment")


@pytest.fixture
def holiday() -> JustificationReason:
    return JustificationReason(code=5, description="Holiday")


@pytest.fixture
def make_event():
    """Factory for clock events of employee 47 on ``DAY``."""

    def _make(time="07:00", direction=Direction.ENTRY, **overrides) -> ClockEvent:
        values = {
            "employee_id": 47,
            "employee_name": "Mario Velazquez",
            "department": "Assembly",
            "date": DAY,
            "time": time,
            "direction": direction,
        }
        values.update(overrides)
        return ClockEvent(**values)

    return _make


@pytest.fixture
def ledger() -> InMemoryJustificationLedger:
    return InMemoryJustificationLedger()


@pytest.fixture
async def async_client(ledger) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to a fresh app."""
    app = create_app(ledger)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
