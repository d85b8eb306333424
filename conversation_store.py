"""
Conversation storage
State and message history of each lead-qualification conversation
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from errors import NotFoundError
from json_store import JsonStore

logger = logging.getLogger(__name__)


class States:
    NEW_LEAD = "NEW_LEAD"
    GREETING = "GREETING"
    QUALIFICATION = "QUALIFICATION"
    ACTION = "ACTION"
    HANDOFF = "HANDOFF"
    CLOSED = "CLOSED"


ALL_STATES = [States.NEW_LEAD, States.GREETING, States.QUALIFICATION, States.ACTION, States.HANDOFF, States.CLOSED]
TERMINAL_STATES = [States.HANDOFF, States.CLOSED]
QUALIFICATION_FIELDS = ["budget", "location", "move_in_date"]


def is_active(conversation: Dict[str, Any]) -> bool:
    return conversation.get("state") not in TERMINAL_STATES


class ConversationStore:
    def __init__(self):
        self.store = JsonStore("conversations.json", [])

    def _get(self, conversation_id: str) -> Dict[str, Any]:
        conversation = self.store.get_by_id(conversation_id)
        if not conversation:
            raise NotFoundError.for_resource("Conversation")
        return conversation

    def _save(self, conversation: Dict[str, Any]) -> Dict[str, Any]:
        conversation["updated_at"] = datetime.now().isoformat()
        self.store.update(conversation["id"], conversation)
        return conversation

    def create(self, lead_id: str, channel: str = "sms") -> Dict[str, Any]:
        now = datetime.now().isoformat()
        conversation = {
            "id": str(uuid.uuid4()),
            "lead_id": lead_id,
            "channel": channel,
            "state": States.NEW_LEAD,
            "context": {
                "current_field": None,
                "collected_data": {},
                "attempts": 0,
                "last_intent": None,
            },
            "messages": [],
            "handoff_reason": None,
            "handoff_at": None,
            "closed_at": None,
            "created_at": now,
            "updated_at": now,
        }

        self.store.add(conversation)
        logger.info(f"💬 New conversation created: {conversation['id']} for lead {lead_id}")
        return conversation

    def find_active_by_lead_id(self, lead_id: str) -> Optional[Dict[str, Any]]:
        return next(
            (c for c in self.store.read() if c.get("lead_id") == lead_id and is_active(c)),
            None,
        )

    def find_by_id(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get_by_id(conversation_id)

    def find_by_lead_id(self, lead_id: str) -> List[Dict[str, Any]]:
        return [c for c in self.store.read() if c.get("lead_id") == lead_id]

    def get_all(self) -> List[Dict[str, Any]]:
        return self.store.read()

    def add_message(self, conversation_id: str, message: Dict[str, Any]) -> Dict[str, Any]:
        conversation = self._get(conversation_id)
        conversation["messages"].append({
            "id": str(uuid.uuid4()),
            "role": message["role"],
            "content": message["content"],
            "confidence": message.get("confidence"),
            "intent": message.get("intent"),
            "timestamp": datetime.now().isoformat(),
        })
        return self._save(conversation)

    def update_state(
        self,
        conversation_id: str,
        state: str,
        context_updates: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        conversation = self._get(conversation_id)
        now = datetime.now().isoformat()

        conversation["state"] = state
        conversation["context"] = {**conversation.get("context", {}), **(context_updates or {})}
        if state == States.HANDOFF:
            conversation["handoff_at"] = now
        if state == States.CLOSED:
            conversation["closed_at"] = now

        logger.info(f"🔄 Conversation {conversation_id} state: {state}")
        return self._save(conversation)

    def handoff(self, conversation_id: str, reason: str) -> Dict[str, Any]:
        conversation = self._get(conversation_id)
        conversation["state"] = States.HANDOFF
        conversation["handoff_reason"] = reason
        conversation["handoff_at"] = datetime.now().isoformat()

        logger.info(f"🙋 Conversation {conversation_id} handed off: {reason}")
        return self._save(conversation)

    def close(self, conversation_id: str, outcome: str = "completed") -> Dict[str, Any]:
        conversation = self._get(conversation_id)
        conversation["state"] = States.CLOSED
        conversation["context"]["outcome"] = outcome
        conversation["closed_at"] = datetime.now().isoformat()

        logger.info(f"✅ Conversation {conversation_id} closed: {outcome}")
        return self._save(conversation)

    def get_or_create(self, lead_id: str, channel: str = "sms") -> Dict[str, Any]:
        return self.find_active_by_lead_id(lead_id) or self.create(lead_id, channel)

    def get_stats(self) -> Dict[str, int]:
        conversations = self.store.read()
        return {
            "total": len(conversations),
            "active": len([c for c in conversations if is_active(c)]),
            "handoffs": len([c for c in conversations if c.get("state") == States.HANDOFF]),
            "closed": len([c for c in conversations if c.get("state") == States.CLOSED]),
        }


conversation_store = ConversationStore()
