"""
Tests for the Resend email service and the email log
"""

import requests

import email_service
from config import Config
from email_log_service import email_log_service

APPLICATION = {
    "id": 4,
    "property_id": 1,
    "name": "<b>Lebo</b>",
    "email": "lebo@example.com",
    "income": 5000,
    "message": "Looking forward to it",
}
PROPERTY = {"id": 1, "title": "Luxury Executive Suite", "location": "Sandton"}


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.content = b"{}"

    def json(self):
        return self._payload


def test_send_email_skipped_without_api_key():
    result = email_service.send_email("a@example.com", "Hi", "<p>Hi</p>")
    assert result == {"success": False, "error": "Email not configured"}


def test_send_email_posts_to_resend(monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, headers, json, timeout))
        return FakeResponse(200, {"id": "email_123"})

    monkeypatch.setattr(Config, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(requests, "post", fake_post)

    result = email_service.send_email("a@example.com", "Hi", "<p>Hi</p>")

    assert result == {"success": True, "data": {"id": "email_123"}}
    url, headers, body, timeout = calls[0]
    assert url == Config.RESEND_API_URL
    assert headers["Authorization"] == "Bearer re_test"
    assert body["to"] == ["a@example.com"]
    assert timeout == 10


def test_send_email_reports_api_and_network_errors(monkeypatch):
    monkeypatch.setattr(Config, "RESEND_API_KEY", "re_test")

    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(422, {"message": "Invalid `to` field"}))
    assert email_service.send_email("bad", "Hi", "x") == {"success": False, "error": "Invalid `to` field"}

    def boom(*args, **kwargs):
        raise requests.ConnectionError("no route to host")

    monkeypatch.setattr(requests, "post", boom)
    result = email_service.send_email("a@example.com", "Hi", "x")
    assert result["success"] is False
    assert "no route to host" in result["error"]


def test_owner_notification_needs_owner_email():
    result = email_service.send_owner_notification(APPLICATION, PROPERTY)
    assert result["success"] is False
    assert email_log_service.get_recent() == []


def test_status_update_is_logged_with_provider_id(monkeypatch):
    monkeypatch.setattr(Config, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(200, {"id": "email_999"}))

    email_service.send_status_update(APPLICATION, "approved", "Welcome aboard", PROPERTY)

    log = email_log_service.get_by_application_id(4)[0]
    assert log["type"] == "status_update"
    assert log["status"] == "sent"
    assert log["provider_id"] == "email_999"
    assert log["subject"] == "🎉 Application Approved: Luxury Executive Suite"


def test_templates_escape_user_input():
    html_body = email_service.note_block("Note", "<script>alert(1)</script>")
    assert "<script>" not in html_body
    assert "&lt;script&gt;" in html_body

    card = email_service.info_card("Applicant", {"Name": email_service._esc(APPLICATION["name"]), "Empty": ""})
    assert "&lt;b&gt;Lebo&lt;/b&gt;" in card
    assert "Empty" not in card


def test_application_link_quotes_email():
    link = email_service.application_link({"id": 3, "email": "a+b@example.com"})
    assert link.endswith("/application-detail.html?id=3&email=a%2Bb%40example.com")


def test_email_log_ordering_and_limit():
    for i in range(3):
        email_log_service.log({"type": "confirmation", "recipient": f"user{i}@example.com", "status": "sent"})

    recent = email_log_service.get_recent(2)
    assert [l["id"] for l in recent] == [3, 2]
