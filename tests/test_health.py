"""Tests for health check endpoints."""


def test_health_check(client):
    """Test basic health check."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "electronics-store-api"}


def test_readiness_check_reports_database(client):
    """Test readiness check includes database status."""
    response = client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["checks"]["database"] is True
    assert data["status"] == "ready"
    assert "redis" in data["checks"]


def test_root_endpoint(client):
    """Test root endpoint returns API info."""
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Electronics Store API"
    assert data["version"] == "1.0.0"
    assert data["status"] == "running"
    assert "POST /api/orders" in data["endpoints"]
