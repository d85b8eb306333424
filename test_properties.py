"""
Tests for property listings, search and admin CRUD
"""


def test_list_properties_returns_seed_data(client):
    response = client.get("/api/properties")
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["count"] == 3
    assert [p["id"] for p in body["data"]] == [1, 2, 3]


def test_search_filters_and_sorts(client):
    response = client.get("/api/properties/search", params={"min_price": 1000, "sort_by": "price-high"})
    prices = [p["price"] for p in response.json()["data"]]
    assert prices == [1500, 1200]

    response = client.get("/api/properties", params={"bedrooms": 2, "sort_by": "price-low"})
    assert [p["id"] for p in response.json()["data"]] == [1, 3]

    response = client.get("/api/properties", params={"search": "loft"})
    assert [p["id"] for p in response.json()["data"]] == [2]


def test_search_rejects_invalid_params(client):
    response = client.get("/api/properties", params={"min_price": "cheap", "sort_by": "random"})
    body = response.json()

    assert response.status_code == 400
    assert body["code"] == "VALIDATION_ERROR"
    assert "Invalid minimum price" in body["errors"]
    assert "Invalid sort option" in body["errors"]


def test_get_property_and_missing_property(client):
    assert client.get("/api/properties/2").json()["data"]["title"] == "Modern Loft Apartment"

    response = client.get("/api/properties/999")
    assert response.status_code == 404
    assert response.json()["message"] == "Property not found"


def test_featured_and_statistics(client):
    featured = client.get("/api/properties/featured").json()["data"]
    assert [p["id"] for p in featured] == [1]

    stats = client.get("/api/properties/statistics").json()["data"]
    assert stats == {"total": 3, "available": 3, "featured": 1, "unavailable": 0, "average_price": 1217}


def test_admin_routes_require_login(client):
    response = client.post("/api/properties", json={"title": "x"})
    assert response.status_code == 401

    response = client.delete("/api/properties/1")
    assert response.status_code == 401


def test_create_property(admin_client):
    response = admin_client.post("/api/properties", json={
        "title": "  Garden Cottage ",
        "price": "800",
        "location": "Randburg",
        "bedrooms": 1,
        "bathrooms": 1,
        "square_feet": 500,
    })
    body = response.json()

    assert response.status_code == 201
    assert body["data"]["id"] == 4
    assert body["data"]["title"] == "Garden Cottage"
    assert body["data"]["price"] == 800
    assert body["data"]["available"] is True
    assert body["data"]["featured"] is False


def test_create_property_validation(admin_client):
    response = admin_client.post("/api/properties", json={"title": "", "price": -5})
    body = response.json()

    assert response.status_code == 400
    assert "Title is required" in body["errors"]
    assert "Valid price is required" in body["errors"]
    assert "Location is required" in body["errors"]


def test_update_keeps_id_and_created_at(admin_client):
    response = admin_client.put("/api/properties/1", json={"id": 50, "price": 1300, "created_at": "never"})
    data = response.json()["data"]

    assert data["id"] == 1
    assert data["price"] == 1300
    assert data["created_at"] == "2024-01-01T00:00:00"


def test_toggle_feature_and_delete(admin_client):
    response = admin_client.patch("/api/properties/2/toggle-availability")
    assert response.json()["message"] == "Property marked as unavailable"
    assert response.json()["data"]["available"] is False

    response = admin_client.patch("/api/properties/2/set-featured", json={"featured": True})
    assert response.json()["data"]["featured"] is True

    response = admin_client.delete("/api/properties/3")
    assert response.status_code == 200
    assert admin_client.get("/api/properties/3").status_code == 404
    assert admin_client.delete("/api/properties/3").status_code == 404
