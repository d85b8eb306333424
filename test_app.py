"""
Tests for app-level routes, error envelopes and maintenance scripts
"""

import cleanup_properties
from property_service import property_service


def test_root_and_health(client):
    assert "Rentify Backend is running" in client.get("/").json()["message"]

    body = client.get("/health").json()
    assert body["status"] == "OK"
    assert body["uptime"] >= 0
    assert "timestamp" in body


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Endpoint not found", "code": "NOT_FOUND"}


def test_request_validation_is_400(client):
    response = client.get("/api/properties/not-a-number")
    body = response.json()

    assert response.status_code == 400
    assert body["code"] == "VALIDATION_ERROR"
    assert body["errors"]


def test_success_envelope(client):
    body = client.get("/api/properties/1").json()

    assert body["success"] is True
    assert body["message"] == "Property retrieved successfully"
    assert "timestamp" in body


def test_cleanup_removes_junk_listings():
    properties = property_service.store.read()
    properties.append({**properties[0], "id": 10, "title": "Test listing"})
    properties.append({**properties[0], "id": 11, "description": "testing persistence please ignore"})
    properties.append({**properties[0], "id": 12, "title": "Latest penthouse"})
    property_service.store.write(properties)

    removed = cleanup_properties.cleanup_properties()

    assert sorted(p["id"] for p in removed) == [10, 11]
    assert [p["id"] for p in property_service.store.read()] == [1, 2, 3, 12]


def test_method_not_allowed_uses_listed_code(client):
    response = client.delete("/health")

    assert response.status_code == 405
    assert response.json()["code"] == "BAD_REQUEST"
