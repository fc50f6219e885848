"""Tests for security response headers and correlation ID middleware.

Every response carries the security headers and is marked non-cacheable,
since API responses may contain share secrets or report contents.
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.middleware import CORRELATION_ID_HEADER
from src.logging_config import mask_credentials


@pytest.fixture
async def client():
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


def assert_security_headers(response):
    """Assert all expected security headers are present on a response."""
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert response.headers["Cache-Control"] == "no-store"
    assert (
        response.headers["Permissions-Policy"]
        == "camera=(), microphone=(), geolocation=()"
    )


class TestSecurityHeaders:
    async def test_health_endpoint_has_security_headers(self, client):
        with patch(
            "src.routers.health.check_database_connection", new_callable=AsyncMock
        ) as mock_db:
            mock_db.return_value = True
            response = await client.get("/health")

        assert response.status_code == 200
        assert_security_headers(response)

    async def test_root_endpoint_has_security_headers(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert_security_headers(response)

    async def test_404_response_has_security_headers(self, client):
        response = await client.get("/nonexistent-path")

        assert response.status_code == 404
        assert_security_headers(response)

    async def test_error_response_has_security_headers(self, client):
        response = await client.post(
            "/api/bearer-links/open", json={"data": "garbage", "access_code": "A1B2C3"}
        )

        assert response.status_code == 400
        assert_security_headers(response)

    async def test_headers_not_duplicated(self, client):
        response = await client.get("/")

        assert len(response.headers.get_list("Cache-Control")) == 1
        assert len(response.headers.get_list("X-Frame-Options")) == 1


class TestCorrelationId:
    async def test_generated_when_absent(self, client):
        response = await client.get("/")
        assert response.headers[CORRELATION_ID_HEADER]

    async def test_incoming_id_is_echoed(self, client):
        response = await client.get("/", headers={CORRELATION_ID_HEADER: "req-42"})
        assert response.headers[CORRELATION_ID_HEADER] == "req-42"

    def test_secret_in_path_is_masked(self):
        assert (
            mask_credentials("/api/tokens/by-secret/AbCdEf123_-xyz/accept")
            == "/api/tokens/by-secret/***/accept"
        )
        assert mask_credentials("/api/tokens") == "/api/tokens"

    async def test_request_log_masks_secret(self, client, caplog):
        secret = "Zz9" * 10

        with caplog.at_level(logging.INFO, logger="src.middleware.correlation"):
            await client.get(f"/api/tokens/by-secret/{secret}")

        paths = [
            r.extra_fields["path"]
            for r in caplog.records
            if r.name == "src.middleware.correlation"
        ]
        assert paths
        assert all(secret not in p for p in paths)
        assert secret not in caplog.text
