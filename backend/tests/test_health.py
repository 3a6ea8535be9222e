"""
Tests for health endpoints and the security middleware.
"""

import os

import pytest
from fastapi.testclient import TestClient

from spectral.config import settings
from spectral.main import app, configure_oauthlib


@pytest.mark.unit
class TestHealthEndpoints:
    """Liveness, readiness and metrics."""

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Spectral API"
        assert data["status"] == "operational"
        assert data["version"] == settings.APP_VERSION

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "test"

    def test_liveness(self, client: TestClient):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"
        assert isinstance(response.json()["pid"], int)

    def test_readiness_without_scheduler(self, client: TestClient):
        response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] is True
        assert data["checks"]["scheduler"] is False

    def test_readiness_requires_enabled_scheduler(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "SCHEDULER_ENABLED", True)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["errors"] == ["Scheduler: Not running"]

    def test_metrics(self, client: TestClient):
        client.get("/health")

        response = client.get("/health/metrics")

        assert response.status_code == 200
        data = response.json()
        assert data["requests"]["total"] >= 1
        assert "error_rate_percent" in data["requests"]
        assert set(data["integrations"]) == {"drive_errors", "youtube_errors", "youtube_uploads"}
        assert "system" in data


@pytest.mark.unit
class TestSecurityMiddleware:
    """Headers and request screening."""

    def test_security_headers(self, client: TestClient):
        response = client.get("/health")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
        assert "Cache-Control" not in response.headers

    def test_auth_responses_not_cached(self, client: TestClient, creator_headers):
        response = client.get("/api/auth/me", headers=creator_headers)

        assert response.headers["Cache-Control"].startswith("no-store")
        assert response.headers["Pragma"] == "no-cache"

    def test_oversized_body_rejected(self, client: TestClient, creator_headers):
        headers = dict(creator_headers)
        headers["Content-Length"] = str(settings.MAX_UPLOAD_BYTES + 1)

        response = client.post("/api/media", content=b"x", headers=headers)

        assert response.status_code == 413

    def test_invalid_content_length(self, client: TestClient):
        response = client.post("/api/auth/login", content=b"{}", headers={"Content-Length": "abc"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid Content-Length header"

    def test_script_in_path_rejected(self, client: TestClient):
        response = client.get("/api/folders/<script>alert(1)</script>")

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request path"


@pytest.mark.unit
class TestStartup:
    """Process-wide setup done when the application starts."""

    def test_relaxed_token_scope_set_on_startup(self, monkeypatch):
        monkeypatch.delenv("OAUTHLIB_RELAX_TOKEN_SCOPE", raising=False)
        monkeypatch.setattr(settings, "SCHEDULER_ENABLED", False)

        with TestClient(app):
            assert os.environ["OAUTHLIB_RELAX_TOKEN_SCOPE"] == "1"

    def test_relaxed_token_scope_can_be_disabled(self, monkeypatch):
        monkeypatch.delenv("OAUTHLIB_RELAX_TOKEN_SCOPE", raising=False)
        monkeypatch.setattr(settings, "OAUTH_RELAX_TOKEN_SCOPE", False)

        configure_oauthlib()

        assert "OAUTHLIB_RELAX_TOKEN_SCOPE" not in os.environ
