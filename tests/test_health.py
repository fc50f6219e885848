"""Tests for health check endpoints.

- GET /health reports database connectivity (token store and grant ledger)
- Liveness and readiness probes for container orchestration
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest.fixture
async def client():
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    async def test_returns_healthy_with_db_connected(self, client):
        with patch(
            "src.routers.health.check_database_connection",
            new_callable=AsyncMock
        ) as mock_db:
            mock_db.return_value = True

            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}

    async def test_returns_degraded_when_db_disconnected(self, client):
        """
        Without the database no share token can be resolved, so the
        service reports itself degraded with a 503.
        """
        with patch(
            "src.routers.health.check_database_connection",
            new_callable=AsyncMock
        ) as mock_db:
            mock_db.return_value = False

            response = await client.get("/health")

        assert response.status_code == 503
        assert response.json() == {"status": "degraded", "database": "disconnected"}


class TestLivenessProbe:
    async def test_returns_alive(self, client):
        """Liveness must not depend on the database."""
        with patch(
            "src.routers.health.check_database_connection",
            new_callable=AsyncMock
        ) as mock_db:
            response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}
        mock_db.assert_not_called()


class TestReadinessProbe:
    async def test_ready_when_db_connected(self, client):
        with patch(
            "src.routers.health.check_database_connection",
            new_callable=AsyncMock,
            return_value=True,
        ):
            response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_not_ready_when_db_disconnected(self, client):
        with patch(
            "src.routers.health.check_database_connection",
            new_callable=AsyncMock,
            return_value=False,
        ):
            response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestRootEndpoint:
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "CareLink Share API"
