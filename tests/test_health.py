"""
Health check endpoint tests.
"""

import pytest


@pytest.mark.asyncio
async def test_health_endpoint(client):
    """Basic health check needs no actor headers."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_readiness_checks_database(client):
    response = await client.get("/api/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "connected", "active_slabs": 3}


@pytest.mark.asyncio
async def test_liveness(client):
    response = await client.get("/api/health/live")
    assert response.json() == {"status": "alive"}
