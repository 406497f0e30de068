"""
Application-level tests: system endpoints, error page and the gate wiring.
"""

import json
from urllib.parse import urlencode

import pytest
from httpx import AsyncClient, ASGITransport

from showcase.core.environment import Mode
from showcase.core.validation import EnvironmentValidator
from showcase.main import app, create_app


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def _client_for(validator: EnvironmentValidator) -> AsyncClient:
    gated = create_app(validator, validate_on_startup=False)
    return AsyncClient(transport=ASGITransport(app=gated), base_url="http://test")


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------

async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_ready_check(client: AsyncClient):
    """Ready endpoint should connect to the configured database."""
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


async def test_index_served_when_valid(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert "Speech Showcase" in response.text
    assert response.headers["X-Frame-Options"] == "DENY"


async def test_env_check_reports_presence_only(client: AsyncClient):
    response = await client.get("/api/env-check")
    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "test"
    assert data["variables"]["AUTH_SECRET"] is True
    assert data["variables"]["GOOGLE_CLIENT_ID"] is False
    assert "timestamp" in data
    assert "test-secret" not in response.text


# ---------------------------------------------------------------------------
# Gate wiring
# ---------------------------------------------------------------------------

async def test_invalid_environment_redirects_pages():
    async with _client_for(EnvironmentValidator({}, Mode.PRODUCTION)) as ac:
        response = await ac.get("/")
    assert response.status_code == 307
    assert response.headers["location"].startswith("/env-error?production=true")


async def test_invalid_environment_still_serves_api():
    async with _client_for(EnvironmentValidator({}, Mode.PRODUCTION)) as ac:
        response = await ac.get("/api/env-check")
    assert response.status_code == 200
    assert response.json()["variables"]["AUTH_URL"] is False


async def test_production_adds_hsts(production_env):
    async with _client_for(EnvironmentValidator(production_env)) as ac:
        response = await ac.get("/health")
    assert "Strict-Transport-Security" in response.headers


# ---------------------------------------------------------------------------
# Error page
# ---------------------------------------------------------------------------

async def test_error_page_development_details(client: AsyncClient):
    query = urlencode({
        "errors": json.dumps(["Missing required environment variable: AUTH_SECRET"]),
        "warnings": json.dumps(["<script>alert(1)</script>"]),
        "timestamp": "2026-01-01T00:00:00+00:00",
    })
    response = await client.get(f"/env-error?{query}")
    assert response.status_code == 503
    assert "Missing required environment variable: AUTH_SECRET" in response.text
    assert "<script>" not in response.text
    assert "&lt;script&gt;" in response.text


async def test_error_page_production_hides_details(client: AsyncClient):
    query = urlencode({
        "production": "true",
        "errors": json.dumps(["DATABASE_URL leaked"]),
        "timestamp": "2026-01-01T00:00:00+00:00",
    })
    response = await client.get(f"/env-error?{query}")
    assert response.status_code == 503
    assert "DATABASE_URL leaked" not in response.text
    assert "site administrator" in response.text


async def test_error_page_tolerates_malformed_query(client: AsyncClient):
    response = await client.get("/env-error?errors=not-json&warnings=%7B%7D")
    assert response.status_code == 503
    assert "Configuration Error" in response.text
