"""
Message Service
Contact-form messages and admin replies
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from errors import NotFoundError
from json_store import JsonStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MESSAGE_STATUSES = ["unread", "read", "replied", "archived"]


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email and EMAIL_PATTERN.match(email))


class MessageService:
    def __init__(self):
        self.store = JsonStore("messages.json", [])

    def _find(self, messages: List[Dict[str, Any]], message_id: int) -> Dict[str, Any]:
        message = next((m for m in messages if m["id"] == message_id), None)
        if message is None:
            raise NotFoundError.for_resource("Message")
        return message

    def get_all(self, status: Optional[str] = None, property_id: Optional[int] = None) -> List[Dict[str, Any]]:
        messages = self.store.read()
        if status:
            messages = [m for m in messages if m.get("status") == status]
        if property_id is not None:
            messages = [m for m in messages if m.get("property_id") == property_id]
        return messages

    def get_by_id(self, message_id: int) -> Optional[Dict[str, Any]]:
        return self.store.get_by_id(message_id)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        messages = self.store.read()
        now = datetime.now().isoformat()

        new_message = {
            **data,
            "id": JsonStore.next_id(messages),
            "status": "unread",
            "created_at": now,
            "updated_at": now,
            "read_at": None,
            "replied_at": None,
            "reply": None,
        }

        messages.append(new_message)
        self.store.write(messages)
        logger.info(f"✉️ New message #{new_message['id']} from {new_message.get('email')}")
        return new_message

    def update_status(self, message_id: int, status: str) -> Dict[str, Any]:
        messages = self.store.read()
        message = self._find(messages, message_id)

        now = datetime.now().isoformat()
        message["status"] = status
        message["updated_at"] = now
        if status == "read" and not message.get("read_at"):
            message["read_at"] = now

        self.store.write(messages)
        return message

    def reply(self, message_id: int, reply_text: str) -> Dict[str, Any]:
        messages = self.store.read()
        message = self._find(messages, message_id)

        now = datetime.now().isoformat()
        message["status"] = "replied"
        message["reply"] = reply_text
        message["updated_at"] = now
        message["replied_at"] = now

        self.store.write(messages)
        logger.info(f"✉️ Replied to message #{message_id}")
        return message


message_service = MessageService()
