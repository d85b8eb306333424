"""
Tests for the Twilio webhook endpoints and their Twilio signature checks
"""

from twilio.request_validator import RequestValidator

import config
import lead_communication
from config import Config
from conversation_store import States, conversation_store
from lead_store import lead_store


def _sms(client, body, sender="+27825550000", path="/api/webhook/sms"):
    return client.post(path, data={"From": sender, "To": "+27100000000", "Body": body, "MessageSid": "SM1"})


def test_inbound_sms_replies_with_twiml(client):
    response = _sms(client, "Hi")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    assert "<Response><Message>" in response.text
    assert "Thanks for your interest in renting" in response.text
    assert lead_store.find_by_phone("+27825550000")["source"] == "sms"


def test_inbound_whatsapp_strips_prefix(client):
    response = _sms(client, "Hi", sender="whatsapp:+27825550001", path="/api/webhook/whatsapp")

    assert response.status_code == 200
    lead = lead_store.find_by_phone("+27825550001")
    assert lead["phone"] == "+27825550001"
    assert lead["source"] == "whatsapp"


def test_sms_engine_failure_returns_apology(client, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr("conversation_engine.process_message", broken)
    response = _sms(client, "Hi")

    assert response.status_code == 200
    assert "Sorry, we encountered an issue. Please try again or call us directly." in response.text


def test_inbound_call_gathers_speech(client):
    response = client.post("/api/webhook/voice", data={"From": "+27825550002", "CallSid": "CA1"})

    assert response.status_code == 200
    assert "<Gather" in response.text
    assert 'input="speech"' in response.text
    assert "/api/webhook/voice/gather" in response.text
    assert 'voice="Polly.Amy"' in response.text
    assert "Please tell me about your rental needs." in response.text


def test_gather_without_speech_reprompts(client):
    response = client.post("/api/webhook/voice/gather", data={"From": "+27825550003"})

    assert "I didn't catch that" in response.text
    assert "<Gather" in response.text


def test_gather_with_speech_continues_conversation(client):
    client.post("/api/webhook/voice", data={"From": "+27825550004"})
    response = client.post("/api/webhook/voice/gather", data={"From": "+27825550004", "SpeechResult": "about 9000 rand"})

    assert "which area or suburb" in response.text
    assert "<Gather" in response.text


def test_gather_stops_after_handoff(client):
    client.post("/api/webhook/voice", data={"From": "+27825550005"})
    response = client.post("/api/webhook/voice/gather", data={"From": "+27825550005", "SpeechResult": "let me talk to a human"})

    assert "<Gather" not in response.text
    lead = lead_store.find_by_phone("+27825550005")
    assert conversation_store.find_by_lead_id(lead["id"])[0]["state"] == States.HANDOFF


def test_status_callbacks(client):
    response = client.post("/api/webhook/status", data={"MessageSid": "SM1", "MessageStatus": "delivered"})
    assert response.status_code == 200

    response = client.post("/api/webhook/voice/status", data={"CallSid": "CA1", "CallStatus": "completed", "CallDuration": "42"})
    assert response.status_code == 200


def test_invalid_signature_is_rejected_when_configured(client, monkeypatch):
    monkeypatch.setattr(Config, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(Config, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(Config, "TWILIO_PHONE_NUMBER", "+27100000000")

    response = client.post(
        "/api/webhook/sms",
        data={"From": "+27825550006", "Body": "Hi"},
        headers={"X-Twilio-Signature": "bogus"},
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Forbidden"
    assert lead_store.find_by_phone("+27825550006") is None


def test_valid_signature_is_accepted(client, monkeypatch):
    monkeypatch.setattr(Config, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(Config, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(Config, "TWILIO_PHONE_NUMBER", "+27100000000")
    monkeypatch.setattr(lead_communication, "validate_webhook", lambda signature, url, params: True)

    response = _sms(client, "Hi", sender="+27825550007")

    assert response.status_code == 200
    assert lead_store.find_by_phone("+27825550007") is not None


def test_signature_is_checked_against_public_url(client, monkeypatch):
    monkeypatch.setattr(Config, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(Config, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(Config, "TWILIO_PHONE_NUMBER", "+27100000000")
    monkeypatch.setattr(config, "BASE_URL", "https://rentify.example.com")

    params = {"From": "+27825550010", "Body": "Hi"}
    signature = RequestValidator("secret").compute_signature("https://rentify.example.com/api/webhook/sms", params)

    response = client.post("/api/webhook/sms", data=params, headers={"X-Twilio-Signature": signature})

    assert response.status_code == 200
    assert lead_store.find_by_phone("+27825550010") is not None


def test_test_sms_endpoint(client):
    response = client.post("/api/webhook/test/sms", json={"from": "+27825550008", "body": "Hi"})
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["lead"]["phone"] == "+27825550008"
    assert body["conversation"]["state"] == States.GREETING
    assert body["conversation"]["message_count"] == 2


def test_test_sms_validation_and_production_guard(client, monkeypatch):
    response = client.post("/api/webhook/test/sms", json={"from": "+27825550009"})
    assert response.status_code == 400
    assert response.json()["message"] == "Missing from or body"

    monkeypatch.setattr(config, "IS_PRODUCTION", True)
    response = client.post("/api/webhook/test/sms", json={"from": "+27825550009", "body": "Hi"})
    assert response.status_code == 404


def test_webhook_health(client):
    body = client.get("/api/webhook/health").json()

    assert body["status"] == "OK"
    assert body["twilio_configured"] is False
    assert body["endpoints"]["voice_gather"] == "/api/webhook/voice/gather"
