"""
Viewings API Router
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import require_admin
from errors import ValidationError, format_response
from lead_store import lead_store
from viewing_scheduler import VIEWING_STATUSES, viewing_scheduler

router = APIRouter(
    prefix="/api/viewings",
    tags=["Viewings"],
    dependencies=[Depends(require_admin)],
)


class ViewingCreate(BaseModel):
    lead_id: Optional[str] = None
    property_id: Optional[Union[int, str]] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    scheduled_at: Optional[str] = None
    notes: Optional[str] = None


class ViewingUpdate(BaseModel):
    scheduled_at: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


@router.post("", status_code=201)
async def schedule_viewing(data: ViewingCreate):
    if not data.property_id or not data.scheduled_at:
        raise ValidationError("Missing required fields")

    viewing = data.model_dump()

    # Fill contact details from the lead when the caller only knows its id
    lead = lead_store.find_by_id(data.lead_id) if data.lead_id else None
    if lead:
        for field in ("phone", "email", "name"):
            viewing[field] = viewing[field] or lead.get(field)

    if not viewing["phone"] and not viewing["email"]:
        raise ValidationError("A phone number or email is required")

    result = viewing_scheduler.schedule_viewing(viewing)
    return format_response(result, "Viewing scheduled successfully")


@router.get("/upcoming")
async def upcoming_viewings():
    viewings = viewing_scheduler.get_upcoming()
    return format_response(viewings, f"Retrieved {len(viewings)} upcoming viewings", total_count=len(viewings))


@router.get("/lead/{lead_id}")
async def viewings_for_lead(lead_id: str):
    viewings = viewing_scheduler.get_by_lead_id(lead_id)
    return format_response(viewings, f"Retrieved {len(viewings)} viewings", total_count=len(viewings))


@router.patch("/{viewing_id}")
async def update_viewing(viewing_id: int, data: ViewingUpdate):
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No valid fields to update")

    if "status" in updates and updates["status"] not in VIEWING_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VIEWING_STATUSES)}")

    return format_response(viewing_scheduler.update(viewing_id, updates), "Viewing updated successfully")


@router.post("/{viewing_id}/cancel")
async def cancel_viewing(viewing_id: int, data: Optional[CancelRequest] = None):
    reason = (data.reason if data else None) or "user_requested"
    return format_response(viewing_scheduler.cancel(viewing_id, reason), "Viewing cancelled")


@router.post("/process-reminders")
async def process_reminders():
    sent = viewing_scheduler.process_reminders()
    return format_response({"reminders_sent": sent}, f"Sent {sent} reminders")
