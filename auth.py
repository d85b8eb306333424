"""
Admin authentication
Single configured admin account, bcrypt password check, session-based login
and a per-IP limiter on failed attempts.
"""

import logging
import time
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Request

from config import Config
from errors import ForbiddenError, TooManyRequestsError, UnauthorizedError

logger = logging.getLogger(__name__)

# ip -> {"count": int, "first_attempt": float}
login_attempts: Dict[str, Dict[str, float]] = {}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("⚠️ Stored admin password hash is not a valid bcrypt hash")
        return False


ADMIN_USER = {
    "id": 1,
    "username": Config.ADMIN_USERNAME,
    "email": Config.ADMIN_EMAIL,
    "role": "admin",
    "password_hash": Config.ADMIN_PASSWORD_HASH or hash_password(Config.ADMIN_PASSWORD),
}

GUEST_USER = {"id": None, "username": "guest", "role": "guest"}


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password_hash"}


def find_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    if username == ADMIN_USER["username"]:
        return ADMIN_USER
    return None


def find_user_by_id(user_id) -> Optional[Dict[str, Any]]:
    if user_id == ADMIN_USER["id"]:
        return ADMIN_USER
    return None


# ---------------------------
# Login rate limiting
# ---------------------------
def check_login_attempts(ip: str) -> None:
    """Raise 429 once an IP has used up its failed attempts for the window"""
    attempt = login_attempts.get(ip)
    if not attempt:
        return

    if time.time() - attempt["first_attempt"] > Config.LOGIN_WINDOW_SECONDS:
        login_attempts.pop(ip, None)
        return

    if attempt["count"] >= Config.MAX_LOGIN_ATTEMPTS:
        minutes = Config.LOGIN_WINDOW_SECONDS // 60
        raise TooManyRequestsError(f"Too many login attempts. Please try again in {minutes} minutes.")


def record_failed_attempt(ip: str) -> None:
    attempt = login_attempts.setdefault(ip, {"count": 0, "first_attempt": time.time()})
    attempt["count"] += 1
    logger.warning(f"🔒 Failed login attempt {attempt['count']} from {ip}")


def clear_attempts(ip: str) -> None:
    login_attempts.pop(ip, None)


def authenticate(username: str, password: str, ip: str) -> Dict[str, Any]:
    check_login_attempts(ip)

    user = find_user_by_username(username)
    if not user or not verify_password(password, user["password_hash"]):
        record_failed_attempt(ip)
        raise UnauthorizedError("Invalid credentials")

    clear_attempts(ip)
    logger.info(f"🔑 Admin login: {username}")
    return user


def client_ip(request: Request) -> str:
    # uvicorn rewrites client.host from X-Forwarded-For for trusted proxies only
    return request.client.host if request.client else "unknown"


# ---------------------------
# Dependencies
# ---------------------------
def get_current_user(request: Request) -> Optional[Dict[str, Any]]:
    user_id = request.session.get("user_id")
    if user_id is None:
        return None
    return find_user_by_id(user_id)


def require_auth(request: Request) -> Dict[str, Any]:
    user = get_current_user(request)
    if not user:
        raise UnauthorizedError()
    return user


def require_admin(request: Request) -> Dict[str, Any]:
    user = require_auth(request)
    if not request.session.get("is_admin") or user.get("role") != "admin":
        raise ForbiddenError("Admin access required")
    return user
