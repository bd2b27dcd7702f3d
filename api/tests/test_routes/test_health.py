"""Test the health check endpoint."""

import pytest

from tests.conftest import FakePrinter


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_ignores_failing_printers(client, registry):
    registry.register(FakePrinter("Broken", error=RuntimeError("down")))
    response = await client.get("/api/health")
    assert response.status_code == 200
