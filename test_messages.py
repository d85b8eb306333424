"""
Tests for contact messages and admin replies
"""

from email_log_service import email_log_service


def _submit(client, **overrides):
    payload = {
        "name": "Thandi",
        "email": "thandi@example.com",
        "message": "Is the loft still available?",
        "property_id": "2",
        **overrides,
    }
    return client.post("/api/message", json=payload)


def test_submit_message(client):
    response = _submit(client)
    data = response.json()["data"]

    assert response.status_code == 201
    assert data["id"] == 1
    assert data["status"] == "unread"
    assert data["property_id"] == 2
    assert data["subject"] == "General Inquiry"


def test_submit_message_validation(client):
    response = _submit(client, name="")
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields"

    response = _submit(client, email="not-an-email")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format"


def test_listing_messages_requires_admin(client):
    _submit(client)
    assert client.get("/api/message").status_code == 401


def test_admin_lists_and_filters_messages(admin_client):
    _submit(admin_client)
    _submit(admin_client, property_id=None)

    body = admin_client.get("/api/message").json()
    assert body["total_count"] == 2

    body = admin_client.get("/api/message", params={"property_id": 2}).json()
    assert [m["id"] for m in body["data"]] == [1]


def test_mark_read_sets_read_at_once(admin_client):
    _submit(admin_client)

    first = admin_client.patch("/api/message/1/status", json={"status": "read"}).json()["data"]
    second = admin_client.patch("/api/message/1/status", json={"status": "read"}).json()["data"]

    assert first["read_at"] is not None
    assert second["read_at"] == first["read_at"]

    response = admin_client.patch("/api/message/1/status", json={"status": "deleted"})
    assert response.status_code == 400


def test_reply_marks_replied_and_logs_email(admin_client):
    _submit(admin_client)

    response = admin_client.post("/api/message/1/reply", json={"reply_message": "Yes it is!"})
    data = response.json()["data"]

    assert data["status"] == "replied"
    assert data["reply"] == "Yes it is!"
    assert data["replied_at"] is not None

    logs = email_log_service.get_by_recipient("THANDI@example.com")
    assert logs[0]["type"] == "message_reply"
    assert logs[0]["status"] == "failed"
    assert logs[0]["error"] == "Email not configured"


def test_reply_requires_text_and_existing_message(admin_client):
    _submit(admin_client)

    assert admin_client.post("/api/message/1/reply", json={}).status_code == 400
    assert admin_client.post("/api/message/9/reply", json={"reply_message": "hi"}).status_code == 404
    assert admin_client.get("/api/message/9").status_code == 404
