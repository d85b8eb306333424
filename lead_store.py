"""
Lead storage
Prospective tenants who reached us by SMS, WhatsApp, voice or the website
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from errors import NotFoundError
from json_store import JsonStore

logger = logging.getLogger(__name__)

LEAD_SOURCES = ["sms", "whatsapp", "voice", "web"]
LEAD_STATUSES = ["new", "contacted", "qualified", "converted", "lost"]


def normalize_phone(phone: Optional[str]) -> str:
    """Keep digits and '+' only"""
    if not phone:
        return ""
    return re.sub(r"[^\d+]", "", phone)


class LeadStore:
    def __init__(self):
        self.store = JsonStore("leads.json", [])

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now().isoformat()
        lead = {
            "id": str(uuid.uuid4()),
            "phone": data.get("phone"),
            "email": data.get("email"),
            "name": data.get("name"),
            "source": data.get("source") or "sms",
            "status": "new",
            "property_interest": data.get("property_id"),
            "qualification": {
                "budget": None,
                "location": None,
                "move_in_date": None,
                "bedrooms": None,
                "completed": False,
            },
            "metadata": data.get("metadata") or {},
            "created_at": now,
            "updated_at": now,
        }

        self.store.add(lead)
        logger.info(f"📋 New lead created: {lead['id']} ({lead['phone']})")
        return lead

    def find_by_phone(self, phone: str) -> Optional[Dict[str, Any]]:
        normalized = normalize_phone(phone)
        return next((l for l in self.store.read() if normalize_phone(l.get("phone")) == normalized), None)

    def find_by_id(self, lead_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get_by_id(lead_id)

    def update(self, lead_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        lead = self.store.get_by_id(lead_id)
        if not lead:
            raise NotFoundError.for_resource("Lead")

        updated = {**lead, **updates, "id": lead_id, "updated_at": datetime.now().isoformat()}
        self.store.update(lead_id, updated)
        return updated

    def update_qualification(self, lead_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge qualification answers; budget, location and move-in together complete it"""
        lead = self.store.get_by_id(lead_id)
        if not lead:
            raise NotFoundError.for_resource("Lead")

        qualification = {**(lead.get("qualification") or {}), **data}
        qualification["completed"] = bool(
            qualification.get("budget")
            and qualification.get("location")
            and qualification.get("move_in_date")
        )

        return self.update(lead_id, {
            "qualification": qualification,
            "status": "qualified" if qualification["completed"] else lead.get("status"),
        })

    def get_all(self, status: Optional[str] = None, source: Optional[str] = None) -> List[Dict[str, Any]]:
        leads = self.store.read()
        if status:
            leads = [l for l in leads if l.get("status") == status]
        if source:
            leads = [l for l in leads if l.get("source") == source]
        return sorted(leads, key=lambda l: l.get("created_at") or "", reverse=True)

    def get_or_create(self, phone: str, defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        lead = self.find_by_phone(phone)
        if not lead:
            lead = self.create({"phone": phone, **(defaults or {})})
        return lead


lead_store = LeadStore()
