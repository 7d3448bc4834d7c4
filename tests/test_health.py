"""Tests for the health, keep-alive and metrics endpoints."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from relay.registry import ConnectionRegistry


@pytest.fixture
def app():
    """
    Create a minimal FastAPI app with the HTTP endpoints.

    Returns:
        FastAPI: FastAPI application instance.
    """
    from relay.api.http.health import router as health_router
    from relay.api.http.metrics import router as metrics_router

    test_app = FastAPI()
    test_app.include_router(health_router)
    test_app.include_router(metrics_router)
    return test_app


@pytest.fixture
def client(app):
    """
    Create a test client for the FastAPI application.

    Args:
        app: FastAPI application fixture.

    Returns:
        TestClient: FastAPI test client instance.
    """
    return TestClient(app)


@pytest.fixture
def populated_registry():
    """
    Registry with three connections ever, two live, in two rooms.

    Returns:
        ConnectionRegistry: Populated registry
    """
    registry = ConnectionRegistry()
    for cid in ("a", "b", "c"):
        registry.register(cid)
    registry.add_to_room("a", "r1")
    registry.add_to_room("b", "r1")
    registry.add_to_room("b", "r2")
    registry.unregister("c")
    return registry


def test_health_endpoint_reports_counters(client, populated_registry):
    """
    Test health endpoint reports registry counters.

    Args:
        client: FastAPI test client fixture.
        populated_registry: Registry fixture.
    """
    with patch("relay.api.http.health.connection_registry", populated_registry):
        response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "room-relay"
    assert data["connections"] == {"active": 2, "total": 3}
    assert data["rooms"] == 2
    assert data["uptime"] >= 0
    assert data["timestamp"].endswith("Z")


def test_root_serves_health(client):
    """
    Test the root path answers with the health document.

    Args:
        client: FastAPI test client fixture.
    """
    with patch(
        "relay.api.http.health.connection_registry", ConnectionRegistry()
    ):
        response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["connections"] == {"active": 0, "total": 0}
    assert data["rooms"] == 0


def test_ping_returns_pong(client):
    """
    Test the keep-alive endpoint answers with plain text.

    Args:
        client: FastAPI test client fixture.
    """
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.text == "pong"
    assert response.headers["content-type"].startswith("text/plain")


def test_metrics_endpoint_exposes_relay_metrics(client):
    """
    Test /metrics serves the relay metrics in Prometheus text format.

    Args:
        client: FastAPI test client fixture.
    """
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "relay_connections_active" in response.text
    assert "relay_messages_broadcast_total" in response.text
