"""
Application Service
Rental applications submitted from the site and their admin review workflow
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from errors import NotFoundError
from json_store import JsonStore
from property_service import property_service

logger = logging.getLogger(__name__)

APPLICATION_STATUSES = ["pending", "approved", "rejected", "withdrawn"]

# Monthly income must be at least this multiple of the rent
INCOME_TO_RENT_RATIO = 3


def normalize_email(email: Optional[str]) -> str:
    return (email or "").lower().strip()


class ApplicationService:
    def __init__(self):
        self.store = JsonStore("applications.json", [])

    def get_all(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        applications = self.store.read()
        if status:
            applications = [a for a in applications if a.get("status") == status]
        return applications

    def get_by_id(self, application_id: int) -> Optional[Dict[str, Any]]:
        return self.store.get_by_id(application_id)

    def get_by_email(self, email: str) -> List[Dict[str, Any]]:
        normalized = normalize_email(email)
        applications = [a for a in self.store.read() if normalize_email(a.get("email")) == normalized]
        return sorted(applications, key=lambda a: a.get("created_at") or "", reverse=True)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        applications = self.store.read()
        now = datetime.now().isoformat()

        application = {
            **data,
            "id": JsonStore.next_id(applications),
            "status": "pending",
            "admin_notes": None,
            "processed_at": None,
            "processed_by": None,
            "created_at": now,
            "updated_at": now,
        }

        applications.append(application)
        self.store.write(applications)
        logger.info(f"📝 Application #{application['id']} received for property {application.get('property_id')}")
        return application

    def update_status(
        self,
        application_id: int,
        status: str,
        admin_notes: Optional[str] = None,
        admin_id=None,
    ) -> Dict[str, Any]:
        applications = self.store.read()
        application = next((a for a in applications if a["id"] == application_id), None)
        if application is None:
            raise NotFoundError.for_resource("Application")

        now = datetime.now().isoformat()
        application["status"] = status
        application["updated_at"] = now

        if status != "pending":
            application["processed_at"] = now
            application["processed_by"] = admin_id

        if admin_notes is not None:
            application["admin_notes"] = admin_notes

        self.store.write(applications)
        logger.info(f"📝 Application #{application_id} marked {status}")
        return application

    # ---------------------------
    # Property enrichment
    # ---------------------------
    def meets_income_requirement(self, application: Dict[str, Any]) -> Optional[bool]:
        """None when the property or income is unknown"""
        prop = property_service.get_by_id(application.get("property_id"))
        income = application.get("income")
        if not prop or income is None:
            return None
        return income >= INCOME_TO_RENT_RATIO * prop["price"]

    def lookup_summary(self, application: Dict[str, Any]) -> Dict[str, Any]:
        prop = property_service.get_by_id(application.get("property_id"))
        images = (prop or {}).get("images") or []
        return {
            "id": application["id"],
            "property_id": application.get("property_id"),
            "property_title": (prop or {}).get("title") or f"Property #{application.get('property_id')}",
            "property_location": (prop or {}).get("location") or "Unknown",
            "property_image": images[0] if images else None,
            "status": application.get("status"),
            "created_at": application.get("created_at"),
            "updated_at": application.get("updated_at"),
        }

    @staticmethod
    def property_details(prop: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not prop:
            return None
        keys = ("id", "title", "location", "price", "images", "bedrooms", "bathrooms")
        return {k: prop.get(k) for k in keys}


application_service = ApplicationService()
