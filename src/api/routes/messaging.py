"""SMS and WhatsApp endpoints.

Webhooks receive Twilio's form posts and answer synchronously with
TwiML.  They always return HTTP 200: a failure becomes the apology text
rather than a provider retry.  The remaining endpoints serve the web
SMS setup page (web-initiated conversations, outbound sends and phone
verification codes).
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from config.languages import DEFAULT_LANGUAGE
from src.errors import ValidationFailure
from src.models.enums import ChannelType
from src.pipeline.router import APOLOGY_MESSAGE
from src.services.messaging import MessagingService, sanitize_phone

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

sms_router = APIRouter(prefix="/sms", tags=["sms"])
whatsapp_router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])

_TWIML_MEDIA_TYPE = "text/xml"


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SMSConversationRequest(_CamelModel):
    sms_number: str = Field(default="", alias="smsNumber")
    message: str = ""
    language: str = "auto"


class SMSConversationResponse(BaseModel):
    success: bool
    response: str
    language: str


class SendSMSRequest(_CamelModel):
    to: str = ""
    body: str = ""


class SendSMSResponse(BaseModel):
    success: bool
    sid: str | None = None
    segments: int = 0


class SendVerificationRequest(_CamelModel):
    phone_number: str = Field(default="", alias="phoneNumber")


class VerifyCodeRequest(_CamelModel):
    phone_number: str = Field(default="", alias="phoneNumber")
    code: str = ""


class StatusMessageResponse(BaseModel):
    success: bool
    message: str


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


def _twiml(segments: list[str]) -> Response:
    return Response(content=MessagingService.render_twiml(segments), media_type=_TWIML_MEDIA_TYPE)


async def _handle_webhook(request: Request, channel: ChannelType) -> Response:
    state = request.app.state
    try:
        form = await request.form()
        incoming = MessagingService.parse_webhook(form, channel)
    except ValidationFailure as exc:
        logger.warning("api.webhook_rejected", channel=channel.value, reason=exc.message)
        return _twiml([exc.message])
    except Exception:
        logger.error("api.webhook_parse_failed", channel=channel.value, exc_info=True)
        return _twiml([APOLOGY_MESSAGE])

    payload = await state.message_router.handle_inbound_message(channel, incoming.from_number, incoming.text)
    return _twiml(payload.segments)


@sms_router.post("/webhook")
async def sms_webhook(request: Request) -> Response:
    """Twilio inbound SMS webhook."""
    return await _handle_webhook(request, ChannelType.SMS)


@whatsapp_router.post("/webhook")
async def whatsapp_webhook(request: Request) -> Response:
    """Twilio inbound WhatsApp webhook."""
    return await _handle_webhook(request, ChannelType.WHATSAPP)


# ---------------------------------------------------------------------------
# Web-initiated SMS endpoints
# ---------------------------------------------------------------------------


@sms_router.post("/message", response_model=SMSConversationResponse)
async def sms_message(body: SMSConversationRequest, request: Request) -> SMSConversationResponse:
    """Run a message through the SMS conversation for *smsNumber* and return the reply text.

    Shares the session used by the SMS webhook for the same number.
    """
    if not body.sms_number.strip() or not body.message.strip():
        raise HTTPException(status_code=400, detail='Both "smsNumber" and "message" are required.')

    try:
        phone = sanitize_phone(body.sms_number)
    except ValidationFailure as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    payload = await request.app.state.message_router.handle_inbound_message(
        ChannelType.SMS, phone, body.message, body.language
    )
    return SMSConversationResponse(success=payload.success, response=payload.text, language=payload.language)


@sms_router.post("/send", response_model=SendSMSResponse)
async def send_sms(body: SendSMSRequest, request: Request) -> SendSMSResponse:
    """Send an outbound SMS, one message per 160-character segment.

    ``sid`` is the provider id of the first segment.
    """
    if not body.to.strip() or not body.body.strip():
        raise HTTPException(status_code=400, detail='Both "to" and "body" are required.')

    payload = request.app.state.formatter.format(
        body.body, ChannelType.SMS, identifier=body.to, language=DEFAULT_LANGUAGE
    )
    statuses = await request.app.state.messaging.deliver(payload)
    if not statuses or not all(status.ok for status in statuses):
        raise HTTPException(status_code=502, detail="Failed to send SMS.")
    return SendSMSResponse(success=True, sid=statuses[0].provider_message_id, segments=len(statuses))


@sms_router.post("/send-verification", response_model=StatusMessageResponse)
async def send_verification(body: SendVerificationRequest, request: Request) -> StatusMessageResponse:
    """Text a fresh 4-digit verification code to *phoneNumber*."""
    if not body.phone_number.strip():
        raise HTTPException(status_code=400, detail="Phone number is required.")
    try:
        phone = sanitize_phone(body.phone_number)
    except ValidationFailure as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    codes = request.app.state.verification_codes
    code = codes.issue(phone)
    status = await request.app.state.messaging.send(phone, codes.message_for(code), ChannelType.SMS)
    if not status.ok:
        raise HTTPException(status_code=502, detail="Failed to send verification code.")
    return StatusMessageResponse(success=True, message="Verification code sent!")


@sms_router.post("/verify-code", response_model=StatusMessageResponse)
async def verify_code(body: VerifyCodeRequest, request: Request) -> StatusMessageResponse:
    """Check a verification code; a correct code can only be used once."""
    if not body.phone_number.strip() or not body.code.strip():
        raise HTTPException(status_code=400, detail="Phone number and code are required.")
    try:
        phone = sanitize_phone(body.phone_number)
    except ValidationFailure as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    if not request.app.state.verification_codes.verify(phone, body.code):
        raise HTTPException(status_code=400, detail="Invalid or expired verification code.")
    return StatusMessageResponse(success=True, message="Phone number verified successfully!")
