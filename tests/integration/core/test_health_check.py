import pytest
from django.db import OperationalError
from redis.exceptions import ConnectionError as RedisConnectionError

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        for service in ("database", "cache"):
            assert data["services"][service]["status"] == "up"
            assert "response_time_ms" in data["services"][service]

    def test_cache_outage_is_503(self, client, monkeypatch):
        def _down():
            raise RedisConnectionError("connection refused")

        monkeypatch.setattr("modules.core.views._check_cache", _down)

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"

    def test_database_outage_is_503(self, client, monkeypatch):
        def _down():
            raise OperationalError("could not connect")

        monkeypatch.setattr("modules.core.views._check_database", _down)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["services"]["database"] == {"status": "down"}
