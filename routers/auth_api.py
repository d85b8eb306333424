from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

import auth
from errors import BadRequestError, format_response

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
async def login(body: LoginRequest, request: Request):
    if not body.username or not body.password:
        raise BadRequestError("Username and password are required")

    user = auth.authenticate(body.username, body.password, auth.client_ip(request))

    request.session["user_id"] = user["id"]
    request.session["is_admin"] = user["role"] == "admin"

    return format_response(auth.public_user(user), "Login successful")


@router.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return format_response(None, "Logout successful")


@router.get("/status")
async def status(request: Request):
    user = auth.get_current_user(request)
    return format_response(
        {
            "is_authenticated": user is not None,
            "user": auth.public_user(user) if user else auth.GUEST_USER,
        },
        "Authentication status",
    )
