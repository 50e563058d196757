"""Integration test fixtures for the HTTP API."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wage_compliance.api.app import create_app
from wage_compliance.calculators.engine import ComplianceEngine
from wage_compliance.errors import ConfigurationLoadError


@pytest_asyncio.fixture
async def client(snapshot, component_rules) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app(engine=ComplianceEngine.from_snapshot(snapshot, component_rules))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def broken_client(component_rules) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app whose rate file cannot be loaded."""

    def broken():
        raise ConfigurationLoadError("nmw_rates.json", "invalid JSON at line 1")

    app = create_app(engine=ComplianceEngine(broken, component_rules))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def check_payload(worker_id: str = "W001", age: int | None = 25, pay: str = "400.00", **extra):
    """JSON body for a single compliance check."""
    payload = {
        "worker": {"worker_id": worker_id, "age": age},
        "pay_period": {
            "period_start": "2024-06-03",
            "period_end": "2024-06-09",
            "total_hours": "40",
            "total_pay": pay,
        },
    }
    payload.update(extra)
    return payload
