"""
ResiliNet Triage - API Endpoint Tests

Tests for REST API endpoints using FastAPI TestClient.
These tests verify:
- POST /api/analyze success, validation, and failure bodies
- Health endpoints
- Analytics endpoints

Run with: pytest tests/test_api_endpoints.py -v
"""

import pytest
from fastapi.testclient import TestClient


INVALID_BODY = {"error": "Invalid description"}

SERVICE_UNAVAILABLE_BODY = {
    "urgency": "Medium",
    "category": "Other",
    "summary": "Service unavailable",
    "resources": [],
    "confidence": 0.4,
}


class TestRootEndpoint:
    """Tests for the root endpoint."""

    def test_root_returns_service_info(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()

        assert data["service"] == "ResiliNet Triage"
        assert data["status"] == "operational"

    def test_request_id_echoed(self, client: TestClient):
        response = client.get("/", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    def test_request_id_generated(self, client: TestClient):
        response = client.get("/")
        assert response.headers.get("X-Request-ID")


class TestAnalyzeEndpoint:
    """Tests for POST /api/analyze."""

    def test_success(self, client: TestClient):
        response = client.post("/api/analyze", json={"description": "Gas leak reported downtown"})

        assert response.status_code == 200
        data = response.json()

        assert data["urgency"] == "Critical"
        assert data["category"] == "Fire"
        assert data["summary"] == "Gas leak reported"
        assert data["resources"] == ["Fire Dept"]
        assert data["confidence"] == pytest.approx(1.0)
        assert set(data) == {"urgency", "category", "summary", "resources", "confidence"}

    def test_confidence_is_fraction(self, client: TestClient):
        response = client.post("/api/analyze", json={"description": "Gas leak reported downtown"})
        confidence = response.json()["confidence"]

        assert isinstance(confidence, float)
        assert 0.0 <= confidence <= 1.0

    def test_short_descriptions_rejected(self, client: TestClient, short_descriptions: list[str]):
        for description in short_descriptions:
            response = client.post("/api/analyze", json={"description": description})
            assert response.status_code == 400
            assert response.json() == INVALID_BODY

    def test_missing_description_rejected(self, client: TestClient):
        response = client.post("/api/analyze", json={})
        assert response.status_code == 400
        assert response.json() == INVALID_BODY

    def test_null_description_rejected(self, client: TestClient):
        response = client.post("/api/analyze", json={"description": None})
        assert response.status_code == 400
        assert response.json() == INVALID_BODY

    def test_non_string_description_rejected(self, client: TestClient):
        response = client.post("/api/analyze", json={"description": 12345})
        assert response.status_code == 400
        assert response.json() == INVALID_BODY

    def test_malformed_json_rejected(self, client: TestClient):
        response = client.post(
            "/api/analyze",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == INVALID_BODY

    def test_collaborator_failure_is_not_an_error(self, failing_client: TestClient):
        response = failing_client.post(
            "/api/analyze", json={"description": "Bridge collapsed on Main St"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == "Manual review required"
        assert data["category"] == "Other"
        assert data["urgency"] == "Medium"
        assert data["resources"] == []
        assert data["confidence"] == pytest.approx(0.35)

    def test_unexpected_failure_returns_sentinel(self, client: TestClient, monkeypatch):
        def explode(result, random_source=None):
            raise RuntimeError("scorer failure")

        monkeypatch.setattr("app.core.pipeline.calculate_confidence", explode)

        response = client.post("/api/analyze", json={"description": "Gas leak reported downtown"})
        assert response.status_code == 500
        assert response.json() == SERVICE_UNAVAILABLE_BODY


class TestHealthEndpoints:
    """Tests for /api/system endpoints."""

    def test_health_returns_structure(self, client: TestClient):
        response = client.get("/api/system/health")
        assert response.status_code == 200
        data = response.json()

        assert data["status"] in ["healthy", "degraded", "unhealthy"]
        assert "classifier" in data["checks"]
        assert "pipeline" in data["checks"]

    def test_dummy_backend_is_healthy(self, client: TestClient):
        data = client.get("/api/system/health").json()
        assert data["status"] == "healthy"
        assert data["checks"]["classifier"]["model"] == "stub-model"

    def test_ready(self, client: TestClient):
        response = client.get("/api/system/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_live(self, client: TestClient):
        assert client.get("/api/system/live").json()["alive"] is True

    def test_config_hides_api_key(self, client: TestClient):
        data = client.get("/api/system/config").json()
        assert data["confidence_scale"] == "0-1"
        assert "gemini_api_key" not in str(data)
        assert data["classifier"]["api_key_configured"] is False


class TestAnalyticsEndpoints:
    """Tests for analytics endpoints."""

    def test_summary_empty(self, client: TestClient):
        response = client.get("/api/analytics/summary")
        assert response.status_code == 200
        data = response.json()

        for field in [
            "total_events",
            "urgency_counts",
            "category_counts",
            "avg_confidence",
            "avg_confidence_percent",
            "fallback_count",
        ]:
            assert field in data, f"Missing field: {field}"
        assert data["total_events"] == 0

    def test_summary_after_analysis(self, client: TestClient):
        client.post("/api/analyze", json={"description": "Gas leak reported downtown"})
        client.post("/api/analyze", json={"description": "Gas leak near the school"})

        data = client.get("/api/analytics/summary").json()
        assert data["total_events"] == 2
        assert data["urgency_counts"] == {"Critical": 2}
        assert data["category_counts"] == {"Fire": 2}
        assert data["avg_confidence_percent"] == 100

    def test_rejected_requests_not_recorded(self, client: TestClient):
        client.post("/api/analyze", json={"description": "sos"})
        assert client.get("/api/analytics/summary").json()["total_events"] == 0

    def test_fallback_counted(self, failing_client: TestClient):
        failing_client.post("/api/analyze", json={"description": "Bridge collapsed on Main St"})
        data = failing_client.get("/api/analytics/summary").json()
        assert data["fallback_count"] == 1

    def test_recent_events(self, client: TestClient):
        client.post("/api/analyze", json={"description": "Gas leak reported downtown"})

        response = client.get("/api/analytics/recent?limit=5")
        assert response.status_code == 200
        data = response.json()

        assert len(data) == 1
        assert data[0]["urgency"] == "Critical"
        assert data[0]["text_snippet"] is None

    def test_recent_limit_validated(self, client: TestClient):
        assert client.get("/api/analytics/recent?limit=0").status_code == 422

    def test_clear(self, client: TestClient):
        client.post("/api/analyze", json={"description": "Gas leak reported downtown"})

        response = client.delete("/api/analytics/clear")
        assert response.status_code == 204

        assert client.get("/api/analytics/summary").json()["total_events"] == 0


class TestAnalyticsDisabled:
    """Tests for analytics when disabled."""

    def test_summary_reports_disabled(self, client_analytics_disabled: TestClient):
        data = client_analytics_disabled.get("/api/analytics/summary").json()
        assert data["enabled"] is False

    def test_recent_forbidden(self, client_analytics_disabled: TestClient):
        assert client_analytics_disabled.get("/api/analytics/recent").status_code == 403

    def test_clear_forbidden(self, client_analytics_disabled: TestClient):
        assert client_analytics_disabled.delete("/api/analytics/clear").status_code == 403

    def test_analyze_still_works(self, client_analytics_disabled: TestClient):
        response = client_analytics_disabled.post(
            "/api/analyze", json={"description": "Gas leak reported downtown"}
        )
        assert response.status_code == 200
