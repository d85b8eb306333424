from typing import Optional, Union

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

import email_service
from auth import require_admin
from errors import NotFoundError, ValidationError, format_response
from message_service import MESSAGE_STATUSES, is_valid_email, message_service

router = APIRouter(prefix="/api/message", tags=["Messages"])


class MessageCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = ""
    subject: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[Union[int, str]] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class ReplyRequest(BaseModel):
    reply_message: Optional[str] = None
    admin_name: Optional[str] = None


@router.post("", status_code=201)
async def submit_message(body: MessageCreate):
    if not body.name or not body.email or not body.message:
        raise ValidationError("Missing required fields")

    if not is_valid_email(body.email):
        raise ValidationError("Invalid email format")

    try:
        property_id = int(body.property_id) if body.property_id not in (None, "") else None
    except ValueError:
        raise ValidationError("Invalid property id")

    message = message_service.create({
        "name": body.name,
        "email": body.email,
        "phone": body.phone or "",
        "subject": body.subject or "General Inquiry",
        "message": body.message,
        "property_id": property_id,
    })
    return format_response(message, "Message submitted successfully")


@router.get("", dependencies=[Depends(require_admin)])
async def list_messages(status: Optional[str] = None, property_id: Optional[int] = None):
    messages = message_service.get_all(status, property_id)
    return format_response(messages, f"Retrieved {len(messages)} messages", total_count=len(messages))


@router.get("/{message_id}", dependencies=[Depends(require_admin)])
async def get_message(message_id: int):
    message = message_service.get_by_id(message_id)
    if not message:
        raise NotFoundError.for_resource("Message")
    return format_response(message, "Message retrieved successfully")


@router.patch("/{message_id}/status", dependencies=[Depends(require_admin)])
async def update_message_status(message_id: int, body: StatusUpdate):
    if body.status not in MESSAGE_STATUSES:
        raise ValidationError("Invalid status")
    return format_response(message_service.update_status(message_id, body.status), "Message status updated successfully")


@router.post("/{message_id}/reply", dependencies=[Depends(require_admin)])
async def reply_to_message(message_id: int, body: ReplyRequest, background_tasks: BackgroundTasks):
    if not body.reply_message:
        raise ValidationError("Reply message is required")

    message = message_service.reply(message_id, body.reply_message)
    background_tasks.add_task(email_service.send_message_reply, message, body.reply_message)
    return format_response(message, "Message replied to successfully")
