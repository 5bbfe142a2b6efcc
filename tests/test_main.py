"""
Tests for the main application endpoints.
"""

def test_root_endpoint(client):
    """
    Test the root endpoint returns a welcome message.
    """
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert "version" in data


def test_health_check(client):
    """
    Test the health check endpoint returns a healthy status.
    """
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_request_headers_are_set(client):
    response = client.get("/health")
    assert "X-Request-ID" in response.headers
    assert "X-Process-Time" in response.headers


def test_domain_errors_render_as_json(client):
    response = client.get("/api/v1/specialties/999")
    assert response.status_code == 404
    assert response.json() == {"detail": "Specialty 999 not found"}


def test_request_validation_errors_keep_422(client):
    response = client.post("/api/v1/specialties", json={})
    assert response.status_code == 422
    assert "errors" in response.json()
