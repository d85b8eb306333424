"""
Lead Communication
SMS, WhatsApp and voice via Twilio. Without credentials every send is a
logged no-op that reports success ("stub mode").
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import requests
from twilio.base.exceptions import TwilioException
from twilio.request_validator import RequestValidator
from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse
from twilio.twiml.voice_response import Gather, VoiceResponse

from config import Config

logger = logging.getLogger(__name__)

_twilio_client: Optional[Client] = None


def is_configured() -> bool:
    return bool(Config.TWILIO_ACCOUNT_SID and Config.TWILIO_AUTH_TOKEN and Config.TWILIO_PHONE_NUMBER)


def get_client() -> Optional[Client]:
    global _twilio_client
    if _twilio_client is None and is_configured():
        _twilio_client = Client(Config.TWILIO_ACCOUNT_SID, Config.TWILIO_AUTH_TOKEN)
        logger.info("📞 Twilio client initialized")
    return _twilio_client


def _stub_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}"


def _preview(body: str) -> str:
    return body[:50] + "..." if len(body) > 50 else body


# ---------------------------
# Messaging
# ---------------------------
def send_sms(to: str, body: str) -> Dict[str, Any]:
    logger.debug(f"📱 [SMS_OUT] to={to} body={_preview(body)!r}")

    client = get_client()
    if client is None:
        logger.info(f"📱 [STUB MODE] SMS would be sent to: {to}")
        return {"success": True, "message_id": _stub_id("stub"), "stub": True}

    try:
        message = client.messages.create(body=body, from_=Config.TWILIO_PHONE_NUMBER, to=to)
        logger.info(f"✅ SMS sent: {message.sid}")
        return {"success": True, "message_id": message.sid}
    except (TwilioException, requests.RequestException) as e:
        logger.error(f"❌ SMS failed: {e}")
        return {"success": False, "error": str(e)}


def send_whatsapp(to: str, body: str) -> Dict[str, Any]:
    logger.debug(f"💬 [WHATSAPP_OUT] to={to} body={_preview(body)!r}")

    client = get_client()
    if client is None:
        logger.info(f"💬 [STUB MODE] WhatsApp would be sent to: {to}")
        return {"success": True, "message_id": _stub_id("stub_wa"), "stub": True}

    whatsapp_to = to if to.startswith("whatsapp:") else f"whatsapp:{to}"
    whatsapp_from = f"whatsapp:{Config.TWILIO_PHONE_NUMBER}"

    try:
        message = client.messages.create(body=body, from_=whatsapp_from, to=whatsapp_to)
        logger.info(f"✅ WhatsApp sent: {message.sid}")
        return {"success": True, "message_id": message.sid}
    except (TwilioException, requests.RequestException) as e:
        logger.error(f"❌ WhatsApp failed: {e}")
        return {"success": False, "error": str(e)}


# ---------------------------
# Voice
# ---------------------------
def initiate_call(to: str, twiml_url: str) -> Dict[str, Any]:
    logger.debug(f"📞 [CALL_OUT] to={to} url={twiml_url}")

    client = get_client()
    if client is None:
        logger.info(f"📞 [STUB MODE] Call would be initiated to: {to}")
        return {"success": True, "call_id": _stub_id("stub_call"), "stub": True}

    try:
        call = client.calls.create(url=twiml_url, from_=Config.TWILIO_PHONE_NUMBER, to=to)
        logger.info(f"✅ Call initiated: {call.sid}")
        return {"success": True, "call_id": call.sid}
    except (TwilioException, requests.RequestException) as e:
        logger.error(f"❌ Call failed: {e}")
        return {"success": False, "error": str(e)}


def generate_sms_twiml(message: str) -> str:
    response = MessagingResponse()
    response.message(message)
    return str(response)


def generate_voice_twiml(
    message: str,
    voice: Optional[str] = None,
    language: Optional[str] = None,
    gather: bool = False,
    gather_url: Optional[str] = None,
    gather_prompt: Optional[str] = None,
) -> str:
    voice = voice or Config.VOICE_NAME
    language = language or Config.VOICE_LANGUAGE

    response = VoiceResponse()
    response.say(message, voice=voice, language=language)

    if gather:
        speech = Gather(input="speech", timeout=5, action=gather_url, method="POST")
        speech.say(gather_prompt or "Please respond.", voice=voice, language=language)
        response.append(speech)

    return str(response)


# ---------------------------
# Inbound webhooks
# ---------------------------
def validate_webhook(signature: Optional[str], url: str, params: Mapping[str, Any]) -> bool:
    if not is_configured():
        return True

    validator = RequestValidator(Config.TWILIO_AUTH_TOKEN)
    return validator.validate(url, dict(params), signature or "")


def parse_incoming_message(form: Mapping[str, Any]) -> Dict[str, Any]:
    sender = form.get("From") or ""
    try:
        num_media = int(form.get("NumMedia") or 0)
    except ValueError:
        num_media = 0

    return {
        "message_id": form.get("MessageSid") or form.get("SmsSid"),
        "from": sender,
        "to": form.get("To"),
        "body": form.get("Body") or "",
        "num_media": num_media,
        "channel": "whatsapp" if sender.startswith("whatsapp:") else "sms",
        "timestamp": datetime.now().isoformat(),
    }


def parse_incoming_call(form: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "call_id": form.get("CallSid"),
        "from": form.get("From"),
        "to": form.get("To"),
        "status": form.get("CallStatus"),
        "direction": form.get("Direction"),
        "speech_result": form.get("SpeechResult") or None,
        "timestamp": datetime.now().isoformat(),
    }
