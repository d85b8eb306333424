"""
Leads API Router
Admin outreach to leads: web capture, opening messages and follow-up calls
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

import conversation_engine
from analytics_service import analytics_service
from auth import require_admin
from conversation_store import conversation_store
from errors import BadRequestError, ConflictError, NotFoundError, ValidationError, format_response
from lead_store import LEAD_STATUSES, lead_store, normalize_phone

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/leads",
    tags=["Leads Management"],
    dependencies=[Depends(require_admin)],
)

OUTREACH_CHANNELS = ["sms", "whatsapp"]


class LeadCreate(BaseModel):
    phone: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    property_id: Optional[Union[int, str]] = None


class LeadStatusUpdate(BaseModel):
    status: Optional[str] = None


def _get_lead(lead_id: str):
    lead = lead_store.find_by_id(lead_id)
    if not lead:
        raise NotFoundError.for_resource("Lead")
    return lead


@router.post("", status_code=201)
async def create_lead(data: LeadCreate):
    """Capture a lead from the website"""
    if not normalize_phone(data.phone):
        raise ValidationError("Phone number is required")

    if lead_store.find_by_phone(data.phone):
        raise ConflictError("A lead with this phone number already exists")

    lead = lead_store.create({
        "phone": data.phone,
        "name": data.name,
        "email": data.email,
        "property_id": data.property_id,
        "source": "web",
    })
    analytics_service.log_lead_created(lead, "web")
    return format_response(lead, "Lead created successfully")


@router.get("/stats")
async def lead_stats():
    leads = lead_store.get_all()
    by_status = {status: 0 for status in LEAD_STATUSES}
    for lead in leads:
        by_status[lead.get("status")] = by_status.get(lead.get("status"), 0) + 1

    return format_response({
        "total": len(leads),
        "by_status": by_status,
        "conversations": conversation_store.get_stats(),
    }, "Lead statistics retrieved")


@router.post("/{lead_id}/auto-response")
async def send_auto_response(lead_id: str, channel: str = "sms"):
    if channel not in OUTREACH_CHANNELS:
        raise BadRequestError(f"Invalid channel. Must be one of: {', '.join(OUTREACH_CHANNELS)}")

    lead = _get_lead(lead_id)
    result = conversation_engine.send_auto_response(lead["phone"], channel)
    if result["lead"]["status"] == "new":
        lead_store.update(lead["id"], {"status": "contacted"})

    return format_response({
        "response": result["response"],
        "conversation_id": result["conversation"]["id"],
        "delivery": result["delivery"],
    }, "Auto-response sent")


@router.post("/{lead_id}/call")
async def call_lead(lead_id: str):
    lead = _get_lead(lead_id)
    result = conversation_engine.initiate_follow_up_call(lead["phone"])
    if not result["success"]:
        raise BadRequestError(f"Failed to initiate call: {result.get('error')}")

    return format_response(result, "Call initiated")


@router.patch("/{lead_id}/status")
async def update_lead_status(lead_id: str, data: LeadStatusUpdate):
    if data.status not in LEAD_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(LEAD_STATUSES)}")

    _get_lead(lead_id)
    lead = lead_store.update(lead_id, {"status": data.status})
    logger.info(f"📋 Lead {lead_id} status set to {data.status}")
    return format_response(lead, "Lead status updated")
