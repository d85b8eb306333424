import pytest
from fastapi.testclient import TestClient

import auth
import config
import lead_communication
from ai_services import ai_services
from analytics_service import analytics_service
from config import Config
from main import app


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Fresh data and upload dirs per test, external services unconfigured"""
    monkeypatch.setattr(config, "DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "IS_PRODUCTION", False)

    monkeypatch.setattr(Config, "TWILIO_ACCOUNT_SID", None)
    monkeypatch.setattr(Config, "TWILIO_AUTH_TOKEN", None)
    monkeypatch.setattr(Config, "TWILIO_PHONE_NUMBER", None)
    monkeypatch.setattr(Config, "RESEND_API_KEY", None)
    monkeypatch.setattr(Config, "OWNER_EMAIL", None)
    monkeypatch.setattr(lead_communication, "_twilio_client", None)
    monkeypatch.setattr(ai_services, "groq_client", None)

    auth.login_attempts.clear()
    analytics_service.invalidate_cache()
    yield tmp_path
    analytics_service.invalidate_cache()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "password123"})
    assert response.status_code == 200
    return client
