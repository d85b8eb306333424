"""
Tests for rental applications, document uploads and the applicant lookup
"""

import os

import config

FORM = {
    "property_id": "1",
    "name": "Sipho Dlamini",
    "email": "Sipho@Example.com",
    "phone": "+27 82 555 0101",
    "income": "4000",
    "address": "12 Main Road",
    "city": "Johannesburg",
    "state": "Gauteng",
    "zip": "2196",
    "occupants": "2",
    "employment": "Engineer",
}


def _apply(client, files=None, **overrides):
    return client.post("/api/application", data={**FORM, **overrides}, files=files)


def test_submit_application(client):
    response = _apply(client)
    data = response.json()["data"]

    assert response.status_code == 201
    assert data["id"] == 1
    assert data["status"] == "pending"
    assert data["income"] == 4000
    assert data["occupants"] == 2
    assert data["zip"] == "2196"
    assert data["documents"] == []


def test_submit_application_with_documents(client):
    files = [
        ("doc_id", ("id card.pdf", b"%PDF-1.4", "application/pdf")),
        ("doc_other", ("payslip.png", b"\x89PNG", "image/png")),
        ("doc_other", ("lease.jpg", b"\xff\xd8", "image/jpeg")),
    ]
    data = _apply(client, files=files).json()["data"]

    assert [d["type"] for d in data["documents"]] == ["ID", "Other", "Other"]
    assert data["documents"][0]["name"] == "id card.pdf"
    stored = os.path.join(config.UPLOAD_DIR, "documents")
    assert len(os.listdir(stored)) == 3
    assert all(d["url"].startswith("uploads/documents/doc_") for d in data["documents"])


def test_submit_rejects_bad_document_type(client):
    files = [("doc_income", ("notes.txt", b"hello", "text/plain"))]
    response = _apply(client, files=files)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid file type. Only PDF, JPG, and PNG are allowed."


def test_submit_validation(client):
    response = _apply(client, city="")
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields"

    response = _apply(client, email="nope")
    assert response.json()["message"] == "Invalid email format"

    response = _apply(client, income="lots")
    assert response.json()["message"] == "Invalid numeric field"


def test_submit_rejects_non_finite_or_negative_income(admin_client):
    for income in ("nan", "inf", "-2500", "0"):
        response = _apply(admin_client, income=income)
        assert response.status_code == 400
        assert response.json()["message"] == "Valid income amount is required"

    response = _apply(admin_client, occupants="-3")
    assert response.status_code == 400
    assert response.json()["message"] == "Valid number of occupants is required"

    # nothing was stored, so the admin views still serialise
    listing = admin_client.get("/api/application")
    assert listing.status_code == 200
    assert listing.json()["data"] == []


def test_lookup_by_email(client):
    _apply(client)
    _apply(client, property_id="2")

    response = client.post("/api/application/lookup", json={"email": "sipho@example.com"})
    results = response.json()["data"]

    assert len(results) == 2
    assert {r["property_title"] for r in results} == {"Luxury Executive Suite", "Modern Loft Apartment"}


def test_lookup_single_application_checks_email(client):
    _apply(client)

    assert client.get("/api/application/lookup/1").status_code == 400
    assert client.get("/api/application/lookup/9", params={"email": "sipho@example.com"}).status_code == 404

    response = client.get("/api/application/lookup/1", params={"email": "someone@else.com"})
    assert response.status_code == 403
    assert response.json()["message"] == "Email does not match this application"

    data = client.get("/api/application/lookup/1", params={"email": " SIPHO@example.com "}).json()["data"]
    assert data["property"]["title"] == "Luxury Executive Suite"
    assert [e["type"] for e in data["email_history"]] == ["confirmation"]


def test_admin_review_workflow(admin_client):
    _apply(admin_client)

    data = admin_client.get("/api/application/1").json()["data"]
    assert data["meets_income_requirement"] is True

    response = admin_client.patch(
        "/api/application/1/status",
        json={"status": "approved", "admin_notes": "Great references"},
    )
    data = response.json()["data"]
    assert data["status"] == "approved"
    assert data["processed_by"] == 1
    assert data["processed_at"] is not None
    assert data["admin_notes"] == "Great references"

    pending = admin_client.get("/api/application", params={"status": "pending"}).json()["data"]
    assert pending == []


def test_admin_status_validation(admin_client):
    _apply(admin_client)

    assert admin_client.patch("/api/application/1/status", json={"status": "maybe"}).status_code == 400
    assert admin_client.patch("/api/application/7/status", json={"status": "approved"}).status_code == 404


def test_income_requirement_unknown_property(admin_client):
    _apply(admin_client, property_id="99")

    data = admin_client.get("/api/application/1").json()["data"]
    assert data["meets_income_requirement"] is None
