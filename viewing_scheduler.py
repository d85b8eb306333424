"""
Viewing Scheduler
Books property viewings for leads and sends SMS confirmations and reminders
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import config
import lead_communication
from errors import ApiError, NotFoundError, ValidationError
from json_store import JsonStore

logger = logging.getLogger(__name__)

VIEWING_STATUSES = ["scheduled", "confirmed", "completed", "cancelled", "no_show"]

CANCELLATION_MESSAGE = (
    'Your viewing has been cancelled. Reply "RESCHEDULE" to book a new time, '
    "or visit our website to browse other properties."
)


def parse_scheduled_at(value) -> datetime:
    """ISO date-time as a naive local datetime"""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("Invalid scheduled_at date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_viewing_date(when: datetime) -> str:
    return f"{when.strftime('%A')}, {when.day} {when.strftime('%B %Y')}"


def format_viewing_time(when: datetime) -> str:
    return when.strftime("%H:%M")


def property_link(property_id) -> str:
    return f"{config.BASE_URL}/property-details.html?id={property_id}"


class ViewingScheduler:
    def __init__(self):
        self.store = JsonStore("viewings.json", [])

    def schedule_viewing(self, data: Dict[str, Any]) -> Dict[str, Any]:
        scheduled_at = parse_scheduled_at(data.get("scheduled_at"))
        now = datetime.now().isoformat()

        viewing = {
            "id": JsonStore.next_id(self.store.read()),
            "lead_id": data.get("lead_id"),
            "property_id": data.get("property_id"),
            "phone": data.get("phone"),
            "email": data.get("email"),
            "name": data.get("name"),
            "scheduled_at": scheduled_at.isoformat(),
            "status": "scheduled",
            "reminder_sent": False,
            "confirmation_sent": False,
            "notes": data.get("notes"),
            "cancellation_reason": None,
            "created_at": now,
            "updated_at": now,
        }

        self.store.add(viewing)
        logger.info(f"📅 Viewing scheduled: {viewing['id']} for {viewing['scheduled_at']}")

        return self.send_confirmation(viewing)

    def send_confirmation(self, viewing: Dict[str, Any]) -> Dict[str, Any]:
        when = parse_scheduled_at(viewing["scheduled_at"])
        message = (
            "✅ Viewing Confirmed!\n\n"
            f"📅 Date: {format_viewing_date(when)}\n"
            f"⏰ Time: {format_viewing_time(when)}\n"
            f"📍 Property: {property_link(viewing['property_id'])}\n\n"
            'Reply "CANCEL" to cancel or "RESCHEDULE" to change the time.'
        )

        if viewing.get("phone"):
            lead_communication.send_sms(viewing["phone"], message)

        return self.update(viewing["id"], {"confirmation_sent": True})

    def send_reminder(self, viewing: Dict[str, Any]) -> Dict[str, Any]:
        """Day-before reminder"""
        when = parse_scheduled_at(viewing["scheduled_at"])
        message = (
            "⏰ Reminder: Your property viewing is tomorrow!\n\n"
            f"📅 {format_viewing_date(when)} at {format_viewing_time(when)}\n\n"
            'Reply "CONFIRM" to confirm or "CANCEL" to cancel.'
        )

        if viewing.get("phone"):
            lead_communication.send_sms(viewing["phone"], message)

        updated = self.update(viewing["id"], {"reminder_sent": True})
        logger.info(f"📱 Reminder sent for viewing {viewing['id']}")
        return updated

    def get_by_id(self, viewing_id: int) -> Optional[Dict[str, Any]]:
        return self.store.get_by_id(viewing_id)

    def update(self, viewing_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        viewing = self.store.get_by_id(viewing_id)
        if not viewing:
            raise NotFoundError.for_resource("Viewing")

        if "scheduled_at" in updates:
            updates = {**updates, "scheduled_at": parse_scheduled_at(updates["scheduled_at"]).isoformat()}

        updated = {**viewing, **updates, "id": viewing_id, "updated_at": datetime.now().isoformat()}
        self.store.update(viewing_id, updated)
        return updated

    def cancel(self, viewing_id: int, reason: str = "user_requested") -> Dict[str, Any]:
        viewing = self.update(viewing_id, {"status": "cancelled", "cancellation_reason": reason})

        if viewing.get("phone"):
            lead_communication.send_sms(viewing["phone"], CANCELLATION_MESSAGE)

        logger.info(f"📅 Viewing {viewing_id} cancelled ({reason})")
        return viewing

    def get_viewings_needing_reminders(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Scheduled viewings happening tomorrow that have not been reminded"""
        now = now or datetime.now()
        tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        day_after = tomorrow + timedelta(days=1)

        return [
            v for v in self.store.read()
            if v.get("status") == "scheduled"
            and not v.get("reminder_sent")
            and tomorrow <= parse_scheduled_at(v["scheduled_at"]) < day_after
        ]

    def process_reminders(self, now: Optional[datetime] = None) -> int:
        viewings = self.get_viewings_needing_reminders(now)
        logger.info(f"📅 Processing {len(viewings)} viewing reminders")

        sent = 0
        for viewing in viewings:
            try:
                self.send_reminder(viewing)
                sent += 1
            except (ApiError, OSError) as e:
                logger.error(f"❌ Failed to send reminder for viewing {viewing['id']}: {e}")
        return sent

    def get_by_lead_id(self, lead_id: str) -> List[Dict[str, Any]]:
        return [v for v in self.store.read() if v.get("lead_id") == lead_id]

    def get_upcoming(self) -> List[Dict[str, Any]]:
        now = datetime.now()
        upcoming = [
            v for v in self.store.read()
            if v.get("status") == "scheduled" and parse_scheduled_at(v["scheduled_at"]) > now
        ]
        return sorted(upcoming, key=lambda v: parse_scheduled_at(v["scheduled_at"]))

    @staticmethod
    def generate_booking_link(property_id, lead_id) -> str:
        return f"{config.BASE_URL}/contact.html?property={property_id}&lead={lead_id}&action=viewing"


viewing_scheduler = ViewingScheduler()
