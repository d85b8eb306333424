"""
Webhook API Router
Inbound Twilio SMS, WhatsApp and voice webhooks feeding the conversation engine
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field

import config
import conversation_engine
import lead_communication
from config import settings
from conversation_store import TERMINAL_STATES
from errors import BadRequestError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["Webhooks"])

SMS_ERROR_MESSAGE = "Sorry, we encountered an issue. Please try again or call us directly."
WHATSAPP_ERROR_MESSAGE = "Sorry, we encountered an issue. Please try again."
VOICE_ERROR_MESSAGE = "Sorry, we are experiencing technical difficulties. Please call back later or visit our website."
GATHER_ERROR_MESSAGE = "Sorry, I had trouble understanding. Let me connect you with a member of our team."

ENDED_CALL_STATUSES = ("completed", "failed", "no-answer", "busy", "canceled")


class TestMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(None, alias="from")
    body: Optional[str] = None


def public_url(request: Request) -> str:
    """Public URL as Twilio signed it, rebuilt from BASE_URL"""
    url = f"{config.BASE_URL}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


async def verify_twilio_signature(request: Request):
    """Reject requests not signed by Twilio; skipped in stub mode"""
    if not lead_communication.is_configured():
        return

    form = await request.form()
    signature = request.headers.get("X-Twilio-Signature")
    if not lead_communication.validate_webhook(signature, public_url(request), dict(form)):
        logger.error("❌ Invalid Twilio webhook signature")
        raise ForbiddenError("Forbidden")


def _xml(twiml: str) -> Response:
    return Response(content=twiml, media_type="text/xml")


def _voice(message: str, gather: bool = False, prompt: Optional[str] = None) -> Response:
    return _xml(lead_communication.generate_voice_twiml(
        message,
        voice=settings.VOICE_NAME,
        language=settings.VOICE_LANGUAGE,
        gather=gather,
        gather_url=settings.VOICE_GATHER_URL if gather else None,
        gather_prompt=prompt,
    ))


# ---------------------------
# Messaging
# ---------------------------
@router.post("/sms", dependencies=[Depends(verify_twilio_signature)])
async def inbound_sms(request: Request):
    message = lead_communication.parse_incoming_message(await request.form())
    logger.info(f"📱 Inbound SMS from {message['from']}: {message['body']}")

    try:
        result = conversation_engine.process_message(message["from"], message["body"], "sms")
        return _xml(lead_communication.generate_sms_twiml(result["response"]))
    except Exception as e:
        logger.exception(f"❌ SMS webhook error: {e}")
        return _xml(lead_communication.generate_sms_twiml(SMS_ERROR_MESSAGE))


@router.post("/whatsapp", dependencies=[Depends(verify_twilio_signature)])
async def inbound_whatsapp(request: Request):
    message = lead_communication.parse_incoming_message(await request.form())
    phone = message["from"].replace("whatsapp:", "")
    logger.info(f"💬 Inbound WhatsApp from {phone}: {message['body']}")

    try:
        result = conversation_engine.process_message(phone, message["body"], "whatsapp")
        return _xml(lead_communication.generate_sms_twiml(result["response"]))
    except Exception as e:
        logger.exception(f"❌ WhatsApp webhook error: {e}")
        return _xml(lead_communication.generate_sms_twiml(WHATSAPP_ERROR_MESSAGE))


# ---------------------------
# Voice
# ---------------------------
@router.post("/voice", dependencies=[Depends(verify_twilio_signature)])
async def inbound_call(request: Request):
    call = lead_communication.parse_incoming_call(await request.form())
    logger.info(f"📞 Inbound call from {call['from']}")

    try:
        result = conversation_engine.process_message(call["from"], "INCOMING_CALL", "voice")
        return _voice(result["response"], gather=True, prompt="Please tell me about your rental needs.")
    except Exception as e:
        logger.exception(f"❌ Voice webhook error: {e}")
        return _voice(VOICE_ERROR_MESSAGE)


@router.post("/voice/gather", dependencies=[Depends(verify_twilio_signature)])
async def voice_gather(request: Request):
    call = lead_communication.parse_incoming_call(await request.form())
    speech = call["speech_result"]
    logger.info(f"🎤 Speech from {call['from']}: {speech}")

    if not speech:
        return _voice(
            "I didn't catch that. Could you please repeat?",
            gather=True,
            prompt="Please tell me what you are looking for.",
        )

    try:
        result = conversation_engine.process_message(call["from"], speech, "voice")
        keep_gathering = result["conversation"]["state"] not in TERMINAL_STATES
        return _voice(result["response"], gather=keep_gathering, prompt="Please respond." if keep_gathering else None)
    except Exception as e:
        logger.exception(f"❌ Voice gather webhook error: {e}")
        return _voice(GATHER_ERROR_MESSAGE)


# ---------------------------
# Status callbacks
# ---------------------------
@router.post("/voice/status", dependencies=[Depends(verify_twilio_signature)])
async def voice_status(request: Request):
    form = await request.form()
    status = form.get("CallStatus")
    duration = form.get("CallDuration") or 0
    logger.info(f"📞 Call {form.get('CallSid')} status: {status} ({duration}s)")

    if status in ENDED_CALL_STATUSES:
        logger.info(f"📊 Call ended: {form.get('From')} - {status} after {duration}s")

    return Response(status_code=200)


@router.post("/status", dependencies=[Depends(verify_twilio_signature)])
async def message_status(request: Request):
    form = await request.form()
    logger.info(f"📊 Message {form.get('MessageSid')} to {form.get('To')}: {form.get('MessageStatus')}")

    if form.get("ErrorCode"):
        logger.error(f"❌ Message error {form.get('ErrorCode')}: {form.get('ErrorMessage')}")

    return Response(status_code=200)


# ---------------------------
# Development helpers
# ---------------------------
@router.post("/test/sms")
async def test_sms(data: TestMessage):
    """Simulate an inbound SMS without Twilio"""
    if config.IS_PRODUCTION:
        raise NotFoundError("Endpoint not found")

    if not data.from_ or not data.body:
        raise BadRequestError("Missing from or body")

    logger.info(f"🧪 Test SMS from {data.from_}: {data.body}")
    result = conversation_engine.process_message(data.from_, data.body, "sms")
    lead = result["lead"]
    conversation = result["conversation"]

    return {
        "success": True,
        "response": result["response"],
        "lead": {
            "id": lead["id"],
            "phone": lead["phone"],
            "status": lead["status"],
            "qualification": lead["qualification"],
        },
        "conversation": {
            "id": conversation["id"],
            "state": conversation["state"],
            "message_count": len(conversation["messages"]),
        },
    }


@router.get("/health")
async def webhook_health():
    return {
        "status": "OK",
        "twilio_configured": lead_communication.is_configured(),
        "endpoints": {
            "sms": "/api/webhook/sms",
            "whatsapp": "/api/webhook/whatsapp",
            "voice": "/api/webhook/voice",
            "voice_gather": "/api/webhook/voice/gather",
            "voice_status": "/api/webhook/voice/status",
            "status": "/api/webhook/status",
        },
    }
