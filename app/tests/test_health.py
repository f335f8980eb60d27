"""
Tests for health endpoint
"""
from app.core.constants import SERVICE_NAME


def test_health_endpoint(client):
    """Test health endpoint returns correct response"""
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "ok"
    assert data["service"] == SERVICE_NAME
    assert data["database"] == "ok"


def test_health_reports_policy_version(client, employee_headers):
    assert client.get("/api/v1/health").json()["policy_version"] is None

    client.get("/api/v1/attendance/policy", headers=employee_headers)

    assert client.get("/api/v1/health").json()["policy_version"] == 1
