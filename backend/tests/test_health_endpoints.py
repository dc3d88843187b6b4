"""
Competitor Intel - Health Endpoint Tests

Run: python -m pytest -xvs tests/test_health_endpoints.py
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

pytestmark = pytest.mark.timeout(20)


class TestHealthEndpoint:
    """Test the /health liveness probe."""

    def test_health_returns_200(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_health_needs_no_session(self, test_client):
        assert test_client.get("/health").status_code == 200


class TestVersionEndpoint:

    def test_version(self, test_client):
        from constants import __version__
        data = test_client.get("/api/version").json()
        assert data == {"version": __version__, "name": "Competitor Intel"}


class TestCorrelationId:

    def test_generated_when_absent(self, test_client):
        response = test_client.get("/health")
        assert response.headers.get("X-Correlation-ID")

    def test_echoed_when_present(self, test_client):
        response = test_client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"
