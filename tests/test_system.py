from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from catalog import main
from catalog.main import app


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "cultivar-catalog", "version": "0.1.0"}


@pytest.mark.asyncio
async def test_readiness_ok(client: AsyncClient, fake_redis: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "_check_database", AsyncMock(return_value=None))
    monkeypatch.setattr(app.state, "redis", fake_redis, raising=False)

    response = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "checks": {"database": "ok", "redis": "ok"}}


@pytest.mark.asyncio
async def test_readiness_degraded(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "_check_database", AsyncMock(side_effect=OSError("connection refused")))

    response = await client.get("/health/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "degraded"
    assert body["checks"] == {"database": "unavailable", "redis": "unavailable"}


@pytest.mark.asyncio
async def test_request_id_propagated(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"x-request-id": "req-123"})
    assert response.headers["x-request-id"] == "req-123"

    generated = await client.get("/health")
    assert generated.headers["x-request-id"]


def test_routes_registered() -> None:
    paths = {route.path for route in app.routes}
    assert "/api/v1/cultivars" in paths
    assert "/api/v1/cultivars/{cultivar_id}/status" in paths
    assert "/api/v1/cultivars/status" in paths
    assert "/api/v1/logs" in paths
    assert "/api/v1/auth/token" in paths
    assert "/health/ready" in paths
