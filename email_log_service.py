"""
Email Log Service
Record of every email sent to applicants and contacts
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from json_store import JsonStore

logger = logging.getLogger(__name__)


def _newest_first(logs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(logs, key=lambda l: (l.get("created_at") or "", l.get("id") or 0), reverse=True)


class EmailLogService:
    def __init__(self):
        self.store = JsonStore("email_logs.json", [])

    def log(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        logs = self.store.read()

        new_log = {
            "id": JsonStore.next_id(logs),
            "type": entry.get("type"),
            "application_id": entry.get("application_id"),
            "property_id": entry.get("property_id"),
            "recipient": entry.get("recipient"),
            "subject": entry.get("subject"),
            "status": entry.get("status"),
            "error": entry.get("error"),
            "provider_id": entry.get("provider_id"),
            "created_at": datetime.now().isoformat(),
        }

        logs.append(new_log)
        self.store.write(logs)

        logger.info(f"📧 Email logged: {new_log['type']} to {new_log['recipient']} ({new_log['status']})")
        return new_log

    def get_by_application_id(self, application_id: int) -> List[Dict[str, Any]]:
        logs = self.store.read()
        return _newest_first([l for l in logs if l.get("application_id") == application_id])

    def get_by_recipient(self, email: str) -> List[Dict[str, Any]]:
        normalized = email.lower().strip()
        logs = self.store.read()
        return _newest_first([l for l in logs if (l.get("recipient") or "").lower().strip() == normalized])

    def get_recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        return _newest_first(self.store.read())[:limit]


email_log_service = EmailLogService()
