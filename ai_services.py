"""
AI reasoning for lead conversations
Groq LLM replies in a fixed JSON contract, with safety guardrails,
confidence scoring and a keyword fallback when the LLM is unavailable.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from groq import Groq, GroqError

from config import Config, settings
from real_estate_data import BRAND_INFO

logger = logging.getLogger(__name__)

SAFETY_RULES = [
    "Never negotiate prices or rental amounts",
    "Never make policy promises or guarantees",
    "Never provide legal advice",
    "Never share personal information of other tenants or owners",
    "Always recommend speaking to a human for complex issues",
    "If uncertain, acknowledge uncertainty and offer to connect with team",
]

FORBIDDEN_TOPICS = [
    "price negotiation",
    "discount",
    "reduce rent",
    "lower price",
    "legal advice",
    "eviction rights",
    "sue",
    "lawyer",
    "court",
    "discrimination",
]

INTENTS = [
    "greeting", "budget", "location", "move_in", "view_properties",
    "schedule_viewing", "apply", "handoff", "unknown",
]

STATE_PROMPTS = {
    "NEW_LEAD": "This is a new lead making first contact. Welcome them warmly and ask about their rental budget.",
    "GREETING": (
        "The user should be providing their budget. Extract the budget amount (in South African Rand) "
        "if mentioned. If unclear, politely ask for clarification."
    ),
    "QUALIFICATION": (
        "We are collecting lead information. Based on context, we need:\n"
        "- If asking for location: Extract the area/suburb they want to live in\n"
        "- If asking for move-in date: Extract when they want to move (ASAP, next month, specific date)\n"
        "Respond appropriately based on what information is still needed."
    ),
    "ACTION": (
        "The lead is qualified. They can:\n1. View available properties\n2. Schedule a viewing\n"
        "3. Start an application\nHelp them with their choice or clarify if needed."
    ),
    "HANDOFF": "The conversation has been escalated to a human. Let them know someone will be in touch.",
    "CLOSED": "The conversation is complete. Thank them and let them know they can reach out anytime.",
}

LOW_CONFIDENCE_SUFFIX = (
    "\n\nIf you'd prefer to speak with someone directly, just say 'human' "
    "and I'll connect you with our team."
)

ACTION_MENU = "1️⃣ View available properties\n2️⃣ Schedule a viewing\n3️⃣ Start an application"

BUDGET_MIN = 1000
BUDGET_MAX = 100000


def build_system_prompt(brand_name: str) -> str:
    rules = "\n".join(f"{i}. {rule}" for i, rule in enumerate(SAFETY_RULES, 1))
    return f"""You are a friendly, professional rental assistant for {brand_name}, a property rental platform. Your job is to help potential tenants find their perfect home.

IMPORTANT RULES:
{rules}

FORBIDDEN TOPICS (immediately hand off to human):
{", ".join(FORBIDDEN_TOPICS)}

RESPONSE FORMAT:
You must respond with valid JSON in this exact format:
{{
    "response": "Your friendly response message to the user",
    "confidence": 0.95,
    "intent": "{"|".join(INTENTS)}",
    "extracted_data": {{
        "budget": null,
        "location": null,
        "move_in_date": null
    }},
    "should_handoff": false,
    "handoff_reason": null
}}

CONFIDENCE SCORING:
- 0.9-1.0: Very confident, clear user intent
- 0.7-0.89: Reasonably confident
- 0.5-0.69: Uncertain, may need clarification
- Below 0.5: Should hand off to human

Always be warm, helpful, and concise. Use emoji sparingly but appropriately."""


def contains_forbidden_topic(message: str) -> bool:
    lower = message.lower()
    return any(re.search(rf"\b{re.escape(topic)}\b", lower) for topic in FORBIDDEN_TOPICS)


def format_budget(amount: int) -> str:
    return f"R{amount:,}"


def sanitize_extracted_data(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Keep only plausible qualification values"""
    if not isinstance(data, dict):
        return {}

    sanitized = {}

    if data.get("budget"):
        digits = re.sub(r"[^\d]", "", str(data["budget"]))
        if digits and BUDGET_MIN <= int(digits) <= BUDGET_MAX:
            sanitized["budget"] = format_budget(int(digits))

    if isinstance(data.get("location"), str) and data["location"].strip():
        sanitized["location"] = data["location"].strip()[:100]

    if isinstance(data.get("move_in_date"), str) and data["move_in_date"].strip():
        sanitized["move_in_date"] = data["move_in_date"].strip()[:50]

    return sanitized


def score_confidence(intent: str, extracted_data: Optional[Dict[str, Any]] = None) -> float:
    score = 0.8
    if intent in ("greeting", "budget", "location", "move_in", "handoff"):
        score += 0.1
    if intent == "unknown":
        score -= 0.2
    if extracted_data:
        score += 0.1
    return min(max(score, 0.0), 1.0)


def _result(response, confidence, intent, extracted_data=None, should_handoff=False, handoff_reason=None):
    return {
        "response": response,
        "confidence": confidence,
        "intent": intent,
        "extracted_data": extracted_data or {},
        "should_handoff": should_handoff,
        "handoff_reason": handoff_reason,
    }


class AIServices:
    def __init__(self):
        self.config = Config()
        self.groq_client = None

        if self.config.GROQ_API_KEY:
            self.groq_client = Groq(api_key=self.config.GROQ_API_KEY)
            logger.info("🤖 Groq client initialized")
        else:
            logger.info("🤖 GROQ_API_KEY not set, AI replies use the keyword fallback")

    def is_configured(self) -> bool:
        return self.groq_client is not None

    def generate_response(
        self,
        message: str,
        state: str = "NEW_LEAD",
        messages: Optional[List[Dict[str, Any]]] = None,
        collected_data: Optional[Dict[str, Any]] = None,
        brand_name: str = BRAND_INFO["name"],
        confidence_threshold: Optional[float] = None,
    ) -> Dict[str, Any]:
        messages = messages or []
        collected_data = collected_data or {}
        threshold = self.config.AI_CONFIDENCE_THRESHOLD if confidence_threshold is None else confidence_threshold

        if contains_forbidden_topic(message):
            return _result(
                "I understand you have questions about that topic. Let me connect you with a member of "
                "our team who can help you better. Someone will be in touch shortly.",
                1.0, "handoff", should_handoff=True, handoff_reason="forbidden_topic",
            )

        if not self.groq_client:
            logger.info("🤖 [STUB MODE] Using fallback response")
            return self.generate_fallback_response(message, state)

        state_prompt = STATE_PROMPTS.get(state, STATE_PROMPTS["NEW_LEAD"])
        history = [
            {"role": "user" if m.get("role") == "user" else "assistant", "content": m.get("content", "")}
            for m in messages[-self.config.MAX_CONVERSATION_HISTORY:]
        ]

        try:
            completion = self.groq_client.chat.completions.create(
                model=self.config.LLM_MODEL,
                messages=[
                    {"role": "system", "content": build_system_prompt(brand_name)},
                    {
                        "role": "system",
                        "content": f"Current State: {state}\n{state_prompt}\n\n"
                                   f"Data collected so far: {json.dumps(collected_data)}",
                    },
                    *history,
                    {"role": "user", "content": message},
                ],
                max_tokens=self.config.MAX_TOKENS,
                temperature=self.config.TEMPERATURE,
                response_format={"type": "json_object"},
            )

            parsed = json.loads(completion.choices[0].message.content)
            if not isinstance(parsed, dict):
                raise ValueError("LLM reply is not a JSON object")

            try:
                confidence = float(parsed.get("confidence", 0.5))
            except (TypeError, ValueError):
                confidence = 0.5

            result = _result(
                parsed.get("response") or "I'm here to help! Could you tell me more about what you're looking for?",
                min(max(confidence, 0.0), 1.0),
                parsed.get("intent") or "unknown",
                sanitize_extracted_data(parsed.get("extracted_data")),
                bool(parsed.get("should_handoff")),
                parsed.get("handoff_reason"),
            )

            if result["confidence"] < threshold and not result["should_handoff"]:
                result["should_handoff"] = True
                result["handoff_reason"] = "low_confidence"
                result["response"] += LOW_CONFIDENCE_SUFFIX

            logger.info(f"🤖 AI Response (confidence: {result['confidence']:.2f}, intent: {result['intent']})")
            return result

        except (GroqError, ValueError, KeyError, IndexError, AttributeError, TypeError) as e:
            logger.error(f"❌ AI generation error: {e}")
            return self.generate_fallback_response(message, state)

    def generate_fallback_response(self, message: str, state: str = "NEW_LEAD") -> Dict[str, Any]:
        """Keyword rules used when the LLM is unavailable"""
        lower = message.lower()

        if re.search(r"\b(human|agent|person|help|speak|call me)\b", lower):
            return _result(
                "I'm connecting you with a member of our team. Someone will be in touch shortly.",
                0.95, "handoff", should_handoff=True, handoff_reason="user_requested",
            )

        extracted = {}

        if state == "NEW_LEAD":
            response = (
                f"Hi! 👋 Thanks for reaching out to {BRAND_INFO['name']}. I'm here to help you find your "
                "perfect rental home.\n\nTo get started, could you tell me your approximate monthly budget for rent?"
            )
            intent = "greeting"

        elif state == "GREETING":
            match = re.search(r"(?:r|zar)?\s*(\d{1,3}(?:[,\s]?\d{3})*)", lower)
            if match:
                amount = int(re.sub(r"[,\s]", "", match.group(1)))
                intent = "budget"
                if BUDGET_MIN <= amount <= BUDGET_MAX:
                    extracted["budget"] = format_budget(amount)
                    response = "Great! And which area or suburb are you looking to live in?"
                else:
                    response = "Could you tell me your monthly rent budget? For example, 'R5000' or 'around R8000'."
            else:
                response = "I didn't quite catch your budget. How much are you looking to spend on rent per month?"
                intent = "unknown"

        elif state == "QUALIFICATION":
            response = (
                "Thanks for that information! We're building your rental profile. Would you like to:\n\n"
                f"{ACTION_MENU}\n\nReply with 1, 2, or 3."
            )
            intent = "qualification"

        elif state == "ACTION":
            if re.search(r"\b(1|view|properties|list)", lower):
                response = f"Check our available properties at:\n{settings.LISTINGS_URL}\n\nReply 'viewing' to schedule a visit!"
                intent = "view_properties"
            elif re.search(r"\b(2|viewing|visit|see)", lower):
                response = f"To schedule a viewing, please visit:\n{settings.VIEWING_URL}\n\nOr reply 'call' and we'll call you."
                intent = "schedule_viewing"
            elif re.search(r"\b(3|apply|application)", lower):
                response = f"Start your application here:\n{settings.APPLICATION_URL}\n\nThis takes about 5 minutes."
                intent = "apply"
            else:
                response = f"Please reply with:\n{ACTION_MENU}"
                intent = "unknown"

        else:
            response = "Thanks for reaching out! How can I help you with your rental search today?"
            intent = "greeting"

        return _result(response, 0.7, intent, extracted)


ai_services = AIServices()
