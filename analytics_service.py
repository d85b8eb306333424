"""
Analytics Service
Event log for the lead-qualification bot, with funnel and conversion metrics
and conversation transcripts for the admin dashboard.
"""

import logging
import math
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from conversation_store import conversation_store
from errors import ValidationError
from json_store import JsonStore
from lead_store import lead_store

logger = logging.getLogger(__name__)

CHANNELS = ["sms", "whatsapp", "voice"]

METRICS_CACHE_TTL = 5 * 60
TIMELINE_DAYS = 30


class MetricsCache:
    """In-memory TTL cache keyed by the metrics filter combination"""

    def __init__(self, ttl: int = METRICS_CACHE_TTL):
        self.ttl = ttl
        self._entries: Dict[tuple, tuple] = {}

    def get(self, key: tuple):
        entry = self._entries.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at <= time.time():
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: tuple, value) -> None:
        self._entries[key] = (time.time() + self.ttl, value)

    def clear(self) -> None:
        self._entries.clear()


def _parse_date(value: Optional[str], label: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        # event timestamps are naive local time
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        raise ValidationError(f"Invalid {label}")


def _count(events: List[Dict[str, Any]], event_type: str) -> int:
    return len([e for e in events if e.get("type") == event_type])


def _rate(part: int, whole: int) -> str:
    return f"{part / whole * 100:.1f}%"


class AnalyticsService:
    def __init__(self):
        self.store = JsonStore("analytics.json", [])
        self.cache = MetricsCache()

    # ---------------------------
    # Event logging
    # ---------------------------
    def log_event(
        self,
        event_type: str,
        lead_id=None,
        conversation_id=None,
        channel: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        entry = {
            "id": str(uuid.uuid4()),
            "type": event_type,
            "lead_id": lead_id,
            "conversation_id": conversation_id,
            "channel": channel or "sms",
            "data": data or {},
            "timestamp": datetime.now().isoformat(),
        }

        self.store.add(entry)
        self.cache.clear()
        logger.debug(f"📊 Event logged: {event_type} for lead {lead_id}")
        return entry

    def log_lead_created(self, lead: Dict[str, Any], channel: str):
        return self.log_event(
            "lead_created",
            lead_id=lead["id"],
            channel=channel,
            data={"source": lead.get("source"), "phone": lead.get("phone")},
        )

    def log_conversation_started(self, conversation: Dict[str, Any], lead: Dict[str, Any]):
        return self.log_event(
            "conversation_started",
            lead_id=lead["id"],
            conversation_id=conversation["id"],
            channel=conversation.get("channel"),
        )

    def log_message(self, conversation: Dict[str, Any], message: Dict[str, Any], direction: str):
        return self.log_event(
            "message_received" if direction == "inbound" else "message_sent",
            lead_id=conversation.get("lead_id"),
            conversation_id=conversation["id"],
            channel=conversation.get("channel"),
            data={"intent": message.get("intent"), "confidence": message.get("confidence")},
        )

    def log_qualification_step(self, lead: Dict[str, Any], field: str, value, channel: Optional[str] = None):
        return self.log_event(
            "qualification_step",
            lead_id=lead["id"],
            channel=channel,
            data={
                "field": field,
                "value": value,
                "qualification_complete": (lead.get("qualification") or {}).get("completed", False),
            },
        )

    def log_lead_qualified(self, lead: Dict[str, Any], channel: Optional[str] = None):
        return self.log_event("lead_qualified", lead_id=lead["id"], channel=channel, data=lead.get("qualification"))

    def log_handoff(self, conversation: Dict[str, Any], reason: str):
        return self.log_event(
            "handoff",
            lead_id=conversation.get("lead_id"),
            conversation_id=conversation["id"],
            channel=conversation.get("channel"),
            data={"reason": reason},
        )

    def log_conversion(self, lead: Dict[str, Any], action: str, channel: Optional[str] = None):
        return self.log_event("conversion", lead_id=lead["id"], channel=channel, data={"action": action})

    def invalidate_cache(self) -> None:
        self.cache.clear()

    # ---------------------------
    # Metrics
    # ---------------------------
    def get_metrics(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        channel: Optional[str] = None,
    ) -> Dict[str, Any]:
        key = (start_date, end_date, channel)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        start = _parse_date(start_date, "start date")
        end = _parse_date(end_date, "end date")

        events = self.store.read()
        if start:
            events = [e for e in events if datetime.fromisoformat(e["timestamp"]) >= start]
        if end:
            events = [e for e in events if datetime.fromisoformat(e["timestamp"]) <= end]
        if channel:
            events = [e for e in events if e.get("channel") == channel]

        summary = {
            "total_leads": _count(events, "lead_created"),
            "total_conversations": _count(events, "conversation_started"),
            "total_messages": _count(events, "message_received") + _count(events, "message_sent"),
            "total_qualified": _count(events, "lead_qualified"),
            "total_handoffs": _count(events, "handoff"),
            "total_conversions": _count(events, "conversion"),
        }

        rates = {}
        if summary["total_leads"] > 0:
            rates = {
                "qualification_rate": _rate(summary["total_qualified"], summary["total_leads"]),
                "handoff_rate": _rate(summary["total_handoffs"], summary["total_leads"]),
                "conversion_rate": _rate(summary["total_conversions"], summary["total_leads"]),
            }

        metrics = {
            "summary": summary,
            "rates": rates,
            "by_channel": {c: self._channel_metrics(events, c) for c in CHANNELS},
            "timeline": self._timeline(events),
            "generated_at": datetime.now().isoformat(),
        }

        self.cache.set(key, metrics)
        return metrics

    @staticmethod
    def _channel_metrics(events: List[Dict[str, Any]], channel: str) -> Dict[str, int]:
        channel_events = [e for e in events if e.get("channel") == channel]
        return {
            "leads": _count(channel_events, "lead_created"),
            "conversations": _count(channel_events, "conversation_started"),
            "qualified": _count(channel_events, "lead_qualified"),
            "handoffs": _count(channel_events, "handoff"),
            "conversions": _count(channel_events, "conversion"),
        }

    @staticmethod
    def _timeline(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        daily: Dict[str, Dict[str, int]] = {}
        counted = {"lead_created": "leads", "lead_qualified": "qualified", "conversion": "conversions"}

        for event in events:
            date = event["timestamp"].split("T")[0]
            day = daily.setdefault(date, {"leads": 0, "qualified": 0, "conversions": 0})
            if event.get("type") in counted:
                day[counted[event["type"]]] += 1

        timeline = [{"date": date, **counts} for date, counts in sorted(daily.items())]
        return timeline[-TIMELINE_DAYS:]

    def get_funnel(self) -> Dict[str, Any]:
        events = self.store.read()

        def lead_ids(event_type):
            return {e.get("lead_id") for e in events if e.get("type") == event_type}

        total = len(lead_ids("lead_created"))
        contacted = len(lead_ids("message_sent"))
        qualified = len(lead_ids("lead_qualified"))
        converted = len(lead_ids("conversion"))

        def percentage(count):
            return f"{round(count / total * 100)}%" if total > 0 else "0%"

        return {
            "total": total,
            "contacted": contacted,
            "qualified": qualified,
            "converted": converted,
            "funnel": [
                {"stage": "New Leads", "count": total, "percentage": "100%" if total > 0 else "0%"},
                {"stage": "Contacted", "count": contacted, "percentage": percentage(contacted)},
                {"stage": "Qualified", "count": qualified, "percentage": percentage(qualified)},
                {"stage": "Converted", "count": converted, "percentage": percentage(converted)},
            ],
        }

    # ---------------------------
    # Conversations
    # ---------------------------
    def get_conversation_list(
        self,
        page: int = 1,
        limit: int = 20,
        channel: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Dict[str, Any]:
        conversations = conversation_store.get_all()
        if channel:
            conversations = [c for c in conversations if c.get("channel") == channel]
        if state:
            conversations = [c for c in conversations if c.get("state") == state]

        conversations.sort(key=lambda c: c.get("updated_at") or "", reverse=True)

        total = len(conversations)
        start = (page - 1) * limit
        paged = conversations[start:start + limit]

        return {
            "conversations": [
                {
                    "id": c["id"],
                    "lead_id": c.get("lead_id"),
                    "channel": c.get("channel"),
                    "state": c.get("state"),
                    "message_count": len(c.get("messages") or []),
                    "created_at": c.get("created_at"),
                    "updated_at": c.get("updated_at"),
                    "handoff_reason": c.get("handoff_reason"),
                }
                for c in paged
            ],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    def get_conversation_transcript(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        conversation = conversation_store.find_by_id(conversation_id)
        if not conversation:
            return None

        lead = lead_store.find_by_id(conversation.get("lead_id"))

        return {
            "conversation": {
                k: conversation.get(k)
                for k in ("id", "channel", "state", "created_at", "updated_at", "handoff_at", "closed_at", "handoff_reason")
            },
            "lead": {
                "id": lead["id"],
                "phone": lead.get("phone"),
                "email": lead.get("email"),
                "name": lead.get("name"),
                "status": lead.get("status"),
                "qualification": lead.get("qualification"),
            } if lead else None,
            "messages": conversation.get("messages") or [],
            "context": conversation.get("context"),
        }


analytics_service = AnalyticsService()
