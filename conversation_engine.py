"""
Conversation Engine
Drives each lead through greeting, qualification (budget, location, move-in)
and the action menu. Replies come from the LLM when it is configured and
enabled, otherwise from the templates below.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

import lead_communication
from agent_config import agent_config
from ai_services import ai_services, format_budget, BUDGET_MAX, BUDGET_MIN
from analytics_service import analytics_service
from config import Config, settings
from conversation_store import States, conversation_store
from lead_store import lead_store

logger = logging.getLogger(__name__)

TEMPLATE_CONFIDENCE = 0.8

TEMPLATES = {
    "ask_budget_again": (
        "I didn't catch your budget. Could you tell me how much you're looking to spend on rent per month? "
        '(e.g., "R5000" or "around R8000")'
    ),
    "ask_location": "Great! And which area or suburb are you looking to live in?",
    "ask_location_again": 'Which area or suburb are you interested in? (e.g., "Sandton", "Cape Town CBD", "Pretoria East")',
    "ask_move_in": 'Perfect! When are you looking to move in? (e.g., "next month", "March", "ASAP")',
    "ask_move_in_again": 'When are you looking to move in? (e.g., "February", "next month", "ASAP")',
    "qualified": (
        "Excellent! Based on what you've shared:\n"
        "💰 Budget: {budget}\n"
        "📍 Location: {location}\n"
        "📅 Move-in: {move_in_date}\n\n"
        "I can help you:\n"
        "1️⃣ View available properties matching your criteria\n"
        "2️⃣ Schedule a viewing\n"
        "3️⃣ Start an application\n\n"
        'Reply with 1, 2, or 3 to continue, or type "human" to speak with our team.'
    ),
    "view_properties": (
        "Here are some properties that match your criteria:\n"
        "🏠 Check our available properties at:\n{listings_link}\n\n"
        'Reply with a property number to learn more, or "viewing" to schedule a visit.'
    ),
    "schedule_viewing": (
        "Great! To schedule a viewing, please visit:\n{viewing_link}\n\n"
        "Or reply \"call\" and we'll call you to arrange a time."
    ),
    "start_application": (
        "You can start your application here:\n{application_link}\n\n"
        "This takes about 5 minutes and helps us process your request faster."
    ),
    "action_menu": (
        "Please reply with:\n"
        "1️⃣ View properties\n"
        "2️⃣ Schedule a viewing\n"
        "3️⃣ Start an application\n\n"
        'Or type "human" to speak with our team.'
    ),
}

HANDOFF_TRIGGERS = [
    "human", "agent", "person", "speak to someone", "call me",
    "complaint", "problem", "issue", "angry", "frustrated",
    "legal", "lawyer", "court", "sue",
]

MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

# Checked in order; the first match wins
INTENT_PATTERNS = [
    ("budget", re.compile(r"(?:budget|afford|spend|pay|rent.*?(?:is|of|around|about)?)\s*(?:R|ZAR)?\s*(\d{1,3}(?:[,\s]?\d{3})*)", re.I)),
    ("location", re.compile(r"(?:in|at|near|around|looking for)\s+([A-Za-z\s]+?)(?:\s*(?:area|suburb|city|town)|$|[,.])", re.I)),
    ("move_in", re.compile(
        r"(?:move|start|from|by|in)\s*((?:" + "|".join(MONTHS) +
        r"|\d{1,2}[/\-]\d{1,2}(?:[/\-]\d{2,4})?|asap|immediately|next\s+(?:week|month)|soon))",
        re.I,
    )),
    ("yes", re.compile(r"^(?:yes|yeah|yep|sure|ok|okay|1)$", re.I)),
    ("no", re.compile(r"^(?:no|nope|not|cancel|stop)$", re.I)),
    ("view_properties", re.compile(r"^(?:1|view|properties|listings|show)$", re.I)),
    ("schedule_viewing", re.compile(r"^(?:2|viewing|visit|schedule|see)$", re.I)),
    ("start_application", re.compile(r"^(?:3|apply|application|start)$", re.I)),
]

ACTION_PATTERNS = {name: pattern for name, pattern in INTENT_PATTERNS}

LOCATION_FILLER = re.compile(r"\b(?:looking for|in|at|near|around|area|suburb|city|town)\b", re.I)


# ---------------------------
# Intent and data extraction
# ---------------------------
def should_handoff(message: str) -> bool:
    lower = message.lower()
    return any(trigger in lower for trigger in HANDOFF_TRIGGERS)


def detect_intent(message: str) -> str:
    text = message.strip()
    for intent, pattern in INTENT_PATTERNS:
        if pattern.search(text):
            return intent
    return "unknown"


def extract_budget(message: str) -> Optional[str]:
    match = re.search(r"[Rr]?\s*(\d[\d,\s]*)", message)
    if not match:
        return None
    amount = int(re.sub(r"[,\s]", "", match.group(1)))
    if BUDGET_MIN <= amount <= BUDGET_MAX:
        return format_budget(amount)
    return None


def extract_location(message: str) -> Optional[str]:
    cleaned = re.sub(r"\s+", " ", LOCATION_FILLER.sub("", message)).strip()
    if 3 <= len(cleaned) <= 50:
        return cleaned.capitalize()
    return None


def extract_move_in(message: str, today: Optional[datetime] = None) -> Optional[str]:
    lower = message.lower().strip()

    if re.search(r"asap|immediately|urgent", lower):
        return "ASAP"
    if re.search(r"next\s+week", lower):
        return "Next week"
    if re.search(r"next\s+month", lower):
        return "Next month"
    if re.search(r"this\s+month", lower):
        return "This month"

    today = today or datetime.now()
    for index, month in enumerate(MONTHS, 1):
        if month in lower:
            year = today.year if index >= today.month else today.year + 1
            return f"{month.capitalize()} {year}"

    if lower and len(lower) <= 20:
        return message.strip()

    return None


# ---------------------------
# Message processing
# ---------------------------
def _support_phone() -> str:
    return Config.SUPPORT_PHONE or "(contact support)"


def _reply(conversation: Dict[str, Any], response: str, confidence: float, intent: Optional[str] = None):
    conversation_store.add_message(conversation["id"], {
        "role": "assistant",
        "content": response,
        "confidence": confidence,
        "intent": intent,
    })
    analytics_service.log_message(conversation, {"intent": intent, "confidence": confidence}, "outbound")


def process_message(phone: str, body: str, channel: str = "sms") -> Dict[str, Any]:
    """Handle one inbound message and return {response, conversation, lead}"""
    body = body or ""

    lead = lead_store.find_by_phone(phone)
    if not lead:
        lead = lead_store.create({"phone": phone, "source": channel})
        analytics_service.log_lead_created(lead, channel)

    conversation = conversation_store.find_active_by_lead_id(lead["id"])
    if not conversation:
        conversation = conversation_store.create(lead["id"], channel)
        analytics_service.log_conversation_started(conversation, lead)

    intent = detect_intent(body)
    conversation = conversation_store.add_message(conversation["id"], {
        "role": "user",
        "content": body,
        "intent": intent,
    })
    analytics_service.log_message(conversation, {"intent": intent}, "inbound")

    if should_handoff(body):
        response = agent_config.get_handoff_message(_support_phone())
        conversation = conversation_store.handoff(conversation["id"], "user_requested")
        _reply(conversation, response, 1.0, "handoff")
        analytics_service.log_handoff(conversation, "user_requested")
    elif ai_services.is_configured() and agent_config.is_ai_enabled():
        try:
            response = _process_with_ai(body, conversation, lead)
        except Exception as e:
            logger.error(f"❌ AI processing error, falling back to templates: {e}")
            conversation = conversation_store.find_by_id(conversation["id"])
            response = _process_with_templates(body, conversation, lead, channel)
    else:
        response = _process_with_templates(body, conversation, lead, channel)

    return {
        "response": response,
        "conversation": conversation_store.find_by_id(conversation["id"]),
        "lead": lead_store.find_by_id(lead["id"]),
    }


def _process_with_ai(body: str, conversation: Dict[str, Any], lead: Dict[str, Any]) -> str:
    channel = conversation.get("channel")
    context = dict(conversation.get("context") or {})
    collected = dict(context.get("collected_data") or {})

    result = ai_services.generate_response(
        body,
        state=conversation["state"],
        messages=conversation.get("messages", []),
        collected_data=collected,
        brand_name=agent_config.get_brand_name(),
        confidence_threshold=agent_config.get_confidence_threshold(),
    )

    if result["should_handoff"]:
        reason = result.get("handoff_reason") or "ai_uncertain"
        conversation = conversation_store.handoff(conversation["id"], reason)
        _reply(conversation, result["response"], result["confidence"], result["intent"])
        analytics_service.log_handoff(conversation, reason)
        return result["response"]

    new_state = conversation["state"]
    if new_state == States.NEW_LEAD:
        new_state = States.GREETING
    extracted = result.get("extracted_data") or {}

    if extracted.get("budget"):
        lead = lead_store.update_qualification(lead["id"], {"budget": extracted["budget"]})
        collected["budget"] = extracted["budget"]
        analytics_service.log_qualification_step(lead, "budget", extracted["budget"], channel)
        if new_state == States.GREETING:
            new_state = States.QUALIFICATION
            context["current_field"] = "location"

    if extracted.get("location"):
        lead = lead_store.update_qualification(lead["id"], {"location": extracted["location"]})
        collected["location"] = extracted["location"]
        analytics_service.log_qualification_step(lead, "location", extracted["location"], channel)
        context["current_field"] = "move_in_date"

    if extracted.get("move_in_date"):
        lead = lead_store.update_qualification(lead["id"], {"move_in_date": extracted["move_in_date"]})
        collected["move_in_date"] = extracted["move_in_date"]
        analytics_service.log_qualification_step(lead, "move_in_date", extracted["move_in_date"], channel)

    if extracted and lead["qualification"].get("completed") and new_state != States.ACTION:
        new_state = States.ACTION
        context["current_field"] = None
        analytics_service.log_lead_qualified(lead, channel)

    if result["intent"] in ("view_properties", "schedule_viewing", "apply"):
        new_state = States.ACTION
        if result["intent"] == "schedule_viewing":
            analytics_service.log_conversion(lead, "viewing_booked", channel)
        elif result["intent"] == "apply":
            analytics_service.log_conversion(lead, "application_started", channel)

    context["collected_data"] = collected
    context["last_intent"] = result["intent"]
    conversation = conversation_store.update_state(conversation["id"], new_state, context)

    _reply(conversation, result["response"], result["confidence"], result["intent"])
    return result["response"]


def _process_with_templates(body: str, conversation: Dict[str, Any], lead: Dict[str, Any], channel: str) -> str:
    state = conversation["state"]
    context = conversation.get("context") or {}
    collected = dict(context.get("collected_data") or {})
    attempts = context.get("attempts", 0)
    new_state = state
    updates: Dict[str, Any] = {}
    close_outcome = None

    if state == States.GREETING:
        budget = extract_budget(body)
        if budget:
            lead_store.update_qualification(lead["id"], {"budget": budget})
            collected["budget"] = budget
            updates = {"collected_data": collected, "current_field": "location", "attempts": 0}
            response = TEMPLATES["ask_location"]
            new_state = States.QUALIFICATION
            analytics_service.log_qualification_step(lead, "budget", budget, channel)
        else:
            response = TEMPLATES["ask_budget_again"]
            updates = {"attempts": attempts + 1}

    elif state == States.QUALIFICATION:
        response, new_state, updates = _handle_qualification(body, lead, context, collected, channel)

    elif state == States.ACTION:
        response, close_outcome = _handle_action(body, lead, channel)

    else:
        response = agent_config.get_greeting_message()
        new_state = States.GREETING

    if new_state != state or updates:
        conversation = conversation_store.update_state(conversation["id"], new_state, updates)

    if close_outcome:
        response = f"{response}\n\n{agent_config.get_closed_message()}"

    _reply(conversation, response, TEMPLATE_CONFIDENCE)

    if close_outcome:
        conversation_store.close(conversation["id"], close_outcome)

    return response


def _handle_qualification(body, lead, context, collected, channel):
    current_field = context.get("current_field") or "location"
    attempts = context.get("attempts", 0)

    if current_field == "location":
        location = extract_location(body)
        if not location:
            return TEMPLATES["ask_location_again"], States.QUALIFICATION, {"attempts": attempts + 1}

        lead_store.update_qualification(lead["id"], {"location": location})
        collected["location"] = location
        analytics_service.log_qualification_step(lead, "location", location, channel)
        updates = {"collected_data": collected, "current_field": "move_in_date", "attempts": 0}
        return TEMPLATES["ask_move_in"], States.QUALIFICATION, updates

    move_in = extract_move_in(body)
    if not move_in:
        return TEMPLATES["ask_move_in_again"], States.QUALIFICATION, {"attempts": attempts + 1}

    lead = lead_store.update_qualification(lead["id"], {"move_in_date": move_in})
    collected["move_in_date"] = move_in
    analytics_service.log_qualification_step(lead, "move_in_date", move_in, channel)

    qualification = lead.get("qualification") or {}
    response = TEMPLATES["qualified"].format(
        budget=collected.get("budget") or qualification.get("budget") or "Not specified",
        location=collected.get("location") or qualification.get("location") or "Not specified",
        move_in_date=move_in,
    )

    analytics_service.log_lead_qualified(lead, channel)
    updates = {"collected_data": collected, "current_field": None, "attempts": 0}
    return response, States.ACTION, updates


def _handle_action(body, lead, channel):
    """Returns (response, close_outcome)"""
    text = body.strip()

    if ACTION_PATTERNS["view_properties"].search(text):
        return TEMPLATES["view_properties"].format(listings_link=settings.LISTINGS_URL), None

    if ACTION_PATTERNS["schedule_viewing"].search(text):
        analytics_service.log_conversion(lead, "viewing_booked", channel)
        return TEMPLATES["schedule_viewing"].format(viewing_link=settings.VIEWING_URL), None

    if ACTION_PATTERNS["start_application"].search(text):
        analytics_service.log_conversion(lead, "application_started", channel)
        return TEMPLATES["start_application"].format(application_link=settings.APPLICATION_URL), "application_started"

    return TEMPLATES["action_menu"], None


# ---------------------------
# Outreach
# ---------------------------
def send_auto_response(phone: str, channel: str = "sms") -> Dict[str, Any]:
    """Open a conversation with a lead by sending them the first reply"""
    result = process_message(phone, "Hi", channel)

    if channel == "whatsapp":
        delivery = lead_communication.send_whatsapp(phone, result["response"])
    else:
        delivery = lead_communication.send_sms(phone, result["response"])

    return {**result, "delivery": delivery}


def initiate_follow_up_call(phone: str) -> Dict[str, Any]:
    result = lead_communication.initiate_call(phone, settings.VOICE_WEBHOOK_URL)
    if result["success"]:
        logger.info(f"📞 Follow-up call initiated to {phone}")
    return result
