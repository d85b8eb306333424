"""
Tests for the lead qualification state machine (template mode)
"""

from datetime import datetime

import pytest

import conversation_engine
from agent_config import agent_config
from analytics_service import analytics_service
from config import Config
from conversation_store import States, conversation_store
from lead_store import lead_store

PHONE = "+27821234567"


def _say(body, phone=PHONE, channel="sms"):
    return conversation_engine.process_message(phone, body, channel)


def test_first_message_creates_lead_and_greets():
    result = _say("Hi")

    assert result["response"] == agent_config.get_greeting_message()
    assert result["conversation"]["state"] == States.GREETING
    assert result["lead"]["phone"] == PHONE
    assert result["lead"]["source"] == "sms"
    assert [m["role"] for m in result["conversation"]["messages"]] == ["user", "assistant"]


def test_same_phone_reuses_lead_and_conversation():
    first = _say("Hi")
    second = _say("+27 82 123 4567 here again", phone="+27 82 123 4567")

    assert second["lead"]["id"] == first["lead"]["id"]
    assert second["conversation"]["id"] == first["conversation"]["id"]
    assert len(lead_store.get_all()) == 1


def test_full_qualification_flow():
    _say("Hi")

    result = _say("My budget is R8000")
    assert result["conversation"]["state"] == States.QUALIFICATION
    assert result["response"] == conversation_engine.TEMPLATES["ask_location"]

    result = _say("Sandton")
    assert result["response"] == conversation_engine.TEMPLATES["ask_move_in"]
    assert result["conversation"]["context"]["current_field"] == "move_in_date"

    result = _say("next month")
    assert result["conversation"]["state"] == States.ACTION
    assert "💰 Budget: R8,000" in result["response"]
    assert "📍 Location: Sandton" in result["response"]
    assert "📅 Move-in: Next month" in result["response"]

    lead = result["lead"]
    assert lead["status"] == "qualified"
    assert lead["qualification"] == {
        "budget": "R8,000",
        "location": "Sandton",
        "move_in_date": "Next month",
        "bedrooms": None,
        "completed": True,
    }


def _qualify():
    for body in ("Hi", "8000", "Sandton", "ASAP"):
        result = _say(body)
    return result


def test_unclear_budget_asks_again_and_counts_attempts():
    _say("Hi")
    result = _say("not sure yet")

    assert result["response"] == conversation_engine.TEMPLATES["ask_budget_again"]
    assert result["conversation"]["state"] == States.GREETING
    assert result["conversation"]["context"]["attempts"] == 1


def test_action_menu_options():
    _qualify()

    result = _say("1")
    assert "our-properties.html" in result["response"]
    assert result["conversation"]["state"] == States.ACTION

    result = _say("2")
    assert "contact.html" in result["response"]

    result = _say("what now")
    assert result["response"] == conversation_engine.TEMPLATES["action_menu"]


def test_starting_an_application_closes_the_conversation():
    qualified = _qualify()

    result = _say("3")
    assert "application.html" in result["response"]
    assert result["response"].endswith(agent_config.get_closed_message())
    assert result["conversation"]["state"] == States.CLOSED
    assert result["conversation"]["context"]["outcome"] == "application_started"

    # A later message opens a fresh conversation for the same lead
    again = _say("Hello")
    assert again["conversation"]["id"] != qualified["conversation"]["id"]
    assert again["lead"]["id"] == qualified["lead"]["id"]


def test_closing_reply_uses_configured_message():
    agent_config.update_config({"closed_message": "Cheers from {brand}."})
    _qualify()

    result = _say("apply")

    assert result["response"].endswith("\n\nCheers from Rentify.")


def test_handoff_request(monkeypatch):
    monkeypatch.setattr(Config, "SUPPORT_PHONE", "+27110000000")
    _say("Hi")

    result = _say("Can I speak to a human please")

    assert result["conversation"]["state"] == States.HANDOFF
    assert result["conversation"]["handoff_reason"] == "user_requested"
    assert "+27110000000" in result["response"]
    assert result["conversation"]["messages"][-1]["confidence"] == 1.0


def test_conversation_events_are_logged():
    _qualify()
    _say("3")

    types = [e["type"] for e in analytics_service.store.read()]
    assert types.count("lead_created") == 1
    assert types.count("conversation_started") == 1
    assert types.count("qualification_step") == 3
    assert types.count("lead_qualified") == 1
    assert types.count("conversion") == 1
    assert types.count("message_received") == types.count("message_sent") == 5


def test_channel_is_recorded():
    result = _say("Hi", channel="whatsapp")

    assert result["lead"]["source"] == "whatsapp"
    assert result["conversation"]["channel"] == "whatsapp"
    assert conversation_store.get_stats() == {"total": 1, "active": 1, "handoffs": 0, "closed": 0}


@pytest.mark.parametrize("message, expected", [
    ("I can afford R5000", "budget"),
    ("Looking for something in Sandton", "location"),
    ("We can move asap", "move_in"),
    ("yes", "yes"),
    ("apply", "start_application"),
    ("hello there", "unknown"),
])
def test_detect_intent(message, expected):
    assert conversation_engine.detect_intent(message) == expected


def test_extract_budget_bounds():
    assert conversation_engine.extract_budget("around R12 500 a month") == "R12,500"
    assert conversation_engine.extract_budget("R500") is None
    assert conversation_engine.extract_budget("no idea") is None


def test_extract_location_strips_filler():
    assert conversation_engine.extract_location("near Rosebank area") == "Rosebank"
    assert conversation_engine.extract_location("in") is None


def test_extract_move_in_month_rolls_to_next_year():
    today = datetime(2026, 10, 18)

    assert conversation_engine.extract_move_in("March", today) == "March 2027"
    assert conversation_engine.extract_move_in("in december", today) == "December 2026"
    assert conversation_engine.extract_move_in("immediately", today) == "ASAP"
    assert conversation_engine.extract_move_in("next week", today) == "Next week"


def test_send_auto_response_uses_stub_sms():
    result = conversation_engine.send_auto_response(PHONE)

    assert result["delivery"]["success"] is True
    assert result["delivery"]["stub"] is True
    assert result["conversation"]["state"] == States.GREETING


def test_follow_up_call_in_stub_mode():
    result = conversation_engine.initiate_follow_up_call(PHONE)

    assert result["success"] is True
    assert result["call_id"].startswith("stub_call_")
