"""
Health check and API root tests.
"""

import structlog
from httpx import AsyncClient

from app.core.log_config import configure_logging
from app.core.middleware import SECURITY_HEADERS


async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_ready_check(client: AsyncClient):
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


async def test_api_root_lists_org_scoped_resources(client: AsyncClient):
    response = await client.get("/api/v1/")
    assert response.status_code == 200
    data = response.json()
    assert data["api"] == "v1"
    assert "/orgs/{orgId}/quizzes" in data["endpoints"]
    assert "/share/{token}" in data["endpoints"]


async def test_security_headers_on_every_response(client: AsyncClient):
    response = await client.get("/health")
    for header, value in SECURITY_HEADERS.items():
        assert response.headers[header] == value


def test_configure_logging_json_and_text():
    configure_logging("info", "json")
    assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)

    configure_logging("debug", "text")
    assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
    structlog.get_logger().debug("logging.configured")
