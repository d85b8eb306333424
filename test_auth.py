"""
Tests for admin login, sessions and the failed-login limiter
"""

import auth
from config import Config


def test_status_when_logged_out(client):
    data = client.get("/api/auth/status").json()["data"]

    assert data["is_authenticated"] is False
    assert data["user"]["role"] == "guest"


def test_login_sets_session(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "password123"})
    body = response.json()

    assert response.status_code == 200
    assert body["message"] == "Login successful"
    assert body["data"]["username"] == "admin"
    assert "password_hash" not in body["data"]

    status = client.get("/api/auth/status").json()["data"]
    assert status["is_authenticated"] is True
    assert status["user"]["role"] == "admin"


def test_logout_clears_session(admin_client):
    admin_client.post("/api/auth/logout")

    assert admin_client.get("/api/auth/status").json()["data"]["is_authenticated"] is False
    assert admin_client.get("/api/message").status_code == 401


def test_login_requires_both_fields(client):
    response = client.post("/api/auth/login", json={"username": "admin"})

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"


def test_wrong_password(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_too_many_failed_logins(client):
    for _ in range(5):
        client.post("/api/auth/login", json={"username": "admin", "password": "nope"})

    response = client.post("/api/auth/login", json={"username": "admin", "password": "password123"})

    assert response.status_code == 429
    assert response.json()["message"] == "Too many login attempts. Please try again in 15 minutes."


def test_successful_login_clears_failed_attempts(client):
    client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    assert auth.login_attempts

    client.post("/api/auth/login", json={"username": "admin", "password": "password123"})
    assert auth.login_attempts == {}


def test_password_hashing():
    hashed = auth.hash_password("s3cret")

    assert auth.verify_password("s3cret", hashed)
    assert not auth.verify_password("wrong", hashed)
    assert not auth.verify_password("s3cret", "not-a-bcrypt-hash")


def test_forwarded_header_does_not_reset_limiter(client):
    for i in range(5):
        client.post(
            "/api/auth/login",
            json={"username": "admin", "password": "nope"},
            headers={"X-Forwarded-For": f"10.0.0.{i}"},
        )

    response = client.post(
        "/api/auth/login",
        json={"username": "admin", "password": "password123"},
        headers={"X-Forwarded-For": "10.0.0.99"},
    )

    assert response.status_code == 429
    assert list(auth.login_attempts) == ["testclient"]


def test_login_window_resets_after_fifteen_minutes(client):
    for _ in range(5):
        client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    assert client.post("/api/auth/login", json={"username": "admin", "password": "nope"}).status_code == 429

    for attempt in auth.login_attempts.values():
        attempt["first_attempt"] -= Config.LOGIN_WINDOW_SECONDS + 1

    response = client.post("/api/auth/login", json={"username": "admin", "password": "password123"})

    assert response.status_code == 200
    assert auth.login_attempts == {}
