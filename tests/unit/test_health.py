"""Unit tests for health endpoint

Runs the app without its lifespan, so no database is attached.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from document_service import main


@pytest.mark.unit
class TestHealthCheck:
    """Test health check endpoint"""

    async def test_root_reports_running(self):
        async with AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as client:
            response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    async def test_health_degraded_without_database(self, monkeypatch):
        monkeypatch.setattr(main, "db_client", None)
        monkeypatch.setattr(main, "storage", None)
        async with AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as client:
            response = await client.get("/health")
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "degraded"
        assert body["database_connected"] is False
        assert body["service"] == "document-service"
