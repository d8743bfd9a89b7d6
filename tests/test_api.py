"""Tests for the FastAPI app."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from seasonality import __version__
from seasonality.api import create_app
from seasonality.config.loader import ConfigLoader  # noqa: TCH001
from seasonality.service import AnalyticsService


class _StubService(AnalyticsService):
    def __init__(self, config: ConfigLoader, status: int, body: dict[str, Any]) -> None:
        super().__init__(config)
        self.status = status
        self.body = body
        self.payloads: list[dict[str, Any]] = []

    async def handle(self, payload: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        self.payloads.append(payload)
        return self.status, self.body


@pytest.fixture()
def stub(config_loader: ConfigLoader) -> _StubService:
    return _StubService(config_loader, 200, {"results": [], "timeSlots": ["Daily"]})


@pytest.fixture()
def client(stub: _StubService) -> TestClient:
    return TestClient(create_app(service=stub))


class TestAnalyticsEndpoint:
    def test_forwards_payload(self, client: TestClient, stub: _StubService) -> None:
        payload = {"timeframe": "1d", "daysBack": 30}
        resp = client.post("/api/analytics", json=payload)
        assert resp.status_code == 200
        assert resp.json() == {"results": [], "timeSlots": ["Daily"]}
        assert stub.payloads == [payload]

    def test_error_status_passed_through(self, client: TestClient, stub: _StubService) -> None:
        stub.status, stub.body = 400, {"error": "timeframe parameter is required"}
        resp = client.post("/api/analytics", json={"daysBack": 30})
        assert resp.status_code == 400
        assert resp.json() == {"error": "timeframe parameter is required"}

    def test_cors_preflight(self, client: TestClient) -> None:
        resp = client.options(
            "/api/analytics",
            headers={
                "Origin": "https://dashboard.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


class TestHealthEndpoint:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "ok",
            "version": __version__,
            "exchanges": ["binance", "bybit"],
        }


class TestCreateApp:
    def test_builds_service_from_config(self, config_loader: ConfigLoader) -> None:
        client = TestClient(create_app(config=config_loader))
        resp = client.post("/api/analytics", json={"timeframe": "1h", "daysBack": 0})
        assert resp.status_code == 400
        assert "daysBack" in resp.json()["error"]
