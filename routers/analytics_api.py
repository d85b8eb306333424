"""
Analytics API Router
Conversation metrics, lead funnel and transcripts for the admin dashboard
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from analytics_service import analytics_service
from auth import require_auth
from conversation_store import conversation_store
from errors import NotFoundError, format_response
from lead_store import lead_store

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/metrics", dependencies=[Depends(require_auth)])
async def get_metrics(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    channel: Optional[str] = None,
):
    return format_response(analytics_service.get_metrics(start_date, end_date, channel), "Metrics retrieved")


@router.get("/funnel", dependencies=[Depends(require_auth)])
async def get_funnel():
    return format_response(analytics_service.get_funnel(), "Funnel retrieved")


@router.get("/conversations", dependencies=[Depends(require_auth)])
async def list_conversations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    channel: Optional[str] = None,
    state: Optional[str] = None,
):
    result = analytics_service.get_conversation_list(page, limit, channel, state)
    return format_response(result, f"Retrieved {len(result['conversations'])} conversations")


@router.get("/conversations/{conversation_id}", dependencies=[Depends(require_auth)])
async def get_transcript(conversation_id: str):
    transcript = analytics_service.get_conversation_transcript(conversation_id)
    if not transcript:
        raise NotFoundError.for_resource("Conversation")
    return format_response(transcript, "Transcript retrieved")


@router.get("/leads", dependencies=[Depends(require_auth)])
async def list_leads(status: Optional[str] = None, source: Optional[str] = None):
    leads = [
        {
            "id": lead["id"],
            "phone": lead.get("phone"),
            "email": lead.get("email"),
            "name": lead.get("name"),
            "status": lead.get("status"),
            "source": lead.get("source"),
            "qualified": bool((lead.get("qualification") or {}).get("completed")),
            "created_at": lead.get("created_at"),
            "updated_at": lead.get("updated_at"),
        }
        for lead in lead_store.get_all(status, source)
    ]
    return format_response(leads, f"Retrieved {len(leads)} leads", total_count=len(leads))


@router.get("/leads/{lead_id}", dependencies=[Depends(require_auth)])
async def get_lead(lead_id: str):
    lead = lead_store.find_by_id(lead_id)
    if not lead:
        raise NotFoundError.for_resource("Lead")

    conversations = [
        {
            "id": c["id"],
            "channel": c.get("channel"),
            "state": c.get("state"),
            "message_count": len(c.get("messages") or []),
            "created_at": c.get("created_at"),
            "updated_at": c.get("updated_at"),
        }
        for c in conversation_store.find_by_lead_id(lead["id"])
    ]
    return format_response({"lead": lead, "conversations": conversations}, "Lead retrieved")


@router.get("/health")
async def analytics_health():
    return {"status": "OK", "service": "analytics"}
