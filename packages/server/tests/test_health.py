"""
Health check and API root tests.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(http: AsyncClient):
    """Health endpoint should return status ok."""
    response = await http.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_api_root(http: AsyncClient):
    """API v1 root should return version and endpoint list."""
    response = await http.get("/api/v1/")
    assert response.status_code == 200
    data = response.json()
    assert data["api"] == "v1"
    assert "/profiles/me" in data["endpoints"]
