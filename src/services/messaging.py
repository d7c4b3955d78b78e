"""SMS and WhatsApp transport for GramCare.

Two concerns live here:

1. **Outbound delivery** -- segments produced by the channel formatter
   are sent one message per segment through a provider: Twilio's REST
   API (over httpx) in production, or a logging mock in development.
   Delivery outcomes are returned as :class:`DeliveryStatus` and never
   raised to the caller.

2. **Inbound webhooks** -- Twilio posts form-encoded ``Body``/``From``
   fields for both SMS and WhatsApp.  :meth:`MessagingService.parse_webhook`
   turns them into an :class:`IncomingMessage`, and
   :meth:`MessagingService.render_twiml` builds the synchronous TwiML
   reply (one ``<Message>`` per segment).
"""

from __future__ import annotations

import re
import time
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Final, Mapping, Sequence
from uuid import uuid4

import httpx
import structlog
from pydantic import BaseModel, Field
from twilio.twiml.messaging_response import MessagingResponse

from src.errors import ValidationFailure
from src.models.enums import ChannelType
from src.models.payload import SMSPayload

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TWILIO_API_BASE: Final[str] = "https://api.twilio.com/2010-04-01"
WHATSAPP_PREFIX: Final[str] = "whatsapp:"

_PHONE_RE: Final[re.Pattern[str]] = re.compile(r"^\+?(\d{7,15})$")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class DeliveryState(StrEnum):
    """Unified message delivery states across providers."""

    __slots__ = ()

    QUEUED = "queued"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    MOCK = "mock"


_PROVIDER_STATES: Final[dict[str, DeliveryState]] = {
    "accepted": DeliveryState.QUEUED,
    "scheduled": DeliveryState.QUEUED,
    "queued": DeliveryState.QUEUED,
    "sending": DeliveryState.SENT,
    "sent": DeliveryState.SENT,
    "delivered": DeliveryState.DELIVERED,
    "undelivered": DeliveryState.FAILED,
    "failed": DeliveryState.FAILED,
    "mock": DeliveryState.MOCK,
}


class DeliveryStatus(BaseModel):
    """Outcome of one outbound message."""

    message_id: str = Field(default_factory=lambda: uuid4().hex)
    channel: ChannelType
    to: str
    status: DeliveryState = DeliveryState.QUEUED
    provider: str = ""
    provider_message_id: str | None = None
    error_message: str | None = None
    sent_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status is not DeliveryState.FAILED


class IncomingMessage(BaseModel):
    """A message received from a Twilio SMS or WhatsApp webhook."""

    message_id: str = Field(default_factory=lambda: uuid4().hex)
    channel: ChannelType
    from_number: str
    text: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


# ---------------------------------------------------------------------------
# Phone number utilities
# ---------------------------------------------------------------------------


def strip_channel_prefix(number: str) -> str:
    """Remove Twilio's ``whatsapp:`` address prefix, if present."""
    number = number.strip()
    if number.lower().startswith(WHATSAPP_PREFIX):
        return number[len(WHATSAPP_PREFIX):]
    return number


def sanitize_phone(number: str) -> str:
    """Normalise a phone number to E.164 (``+<country><number>``).

    Strips the ``whatsapp:`` prefix, spaces, dashes and parentheses.

    Raises
    ------
    ValidationFailure
        If what remains is not 7 to 15 digits.
    """
    cleaned = re.sub(r"[\s\-\(\)]+", "", strip_channel_prefix(number))
    match = _PHONE_RE.match(cleaned)
    if not match:
        raise ValidationFailure(f"Invalid phone number: {number!r}", field="phone")
    return f"+{match.group(1)}"


def mask_phone(number: str) -> str:
    """``+919876543210`` -> ``+91******3210`` for log output."""
    if len(number) <= 6:
        return "*" * len(number)
    return number[:3] + "*" * (len(number) - 7) + number[-4:]


# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


class _ProviderBase:
    name: str = ""

    async def send(self, to: str, body: str, *, from_number: str) -> dict[str, Any]:
        raise NotImplementedError


class _TwilioProvider(_ProviderBase):
    """Twilio Programmable Messaging REST API."""

    name = "twilio"

    def __init__(self, account_sid: str, auth_token: str, client: httpx.AsyncClient) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._client = client

    async def send(self, to: str, body: str, *, from_number: str) -> dict[str, Any]:
        response = await self._client.post(
            f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json",
            data={"To": to, "From": from_number, "Body": body},
            auth=(self._account_sid, self._auth_token),
        )
        response.raise_for_status()
        return response.json()


class _MockProvider(_ProviderBase):
    """Logs instead of sending; for local development and tests."""

    name = "mock"

    async def send(self, to: str, body: str, *, from_number: str) -> dict[str, Any]:
        logger.info(
            "mock_sms.sent",
            to=mask_phone(strip_channel_prefix(to)),
            message_preview=body[:80],
            length=len(body),
        )
        return {"status": "mock", "sid": f"mock_{uuid4().hex[:12]}"}


# ---------------------------------------------------------------------------
# Messaging Service
# ---------------------------------------------------------------------------


class MessagingService:
    """Outbound delivery and webhook handling for SMS and WhatsApp.

    Usage::

        service = MessagingService(
            provider="twilio",
            account_sid="AC...",
            auth_token="...",
            sms_from="+15550001111",
            whatsapp_from="+14155238886",
        )
        status = await service.send("+919876543210", "Hello!")
        statuses = await service.deliver(sms_payload)
    """

    __slots__ = ("_http", "_owns_http", "_provider", "_sms_from", "_whatsapp_from")

    def __init__(
        self,
        provider: str = "mock",
        *,
        account_sid: str = "",
        auth_token: str = "",
        sms_from: str = "",
        whatsapp_from: str = "",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._sms_from = sms_from
        self._whatsapp_from = whatsapp_from
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout_seconds)

        if provider == "twilio":
            if not (account_sid and auth_token):
                raise ValueError("Twilio provider requires an account SID and auth token.")
            self._provider: _ProviderBase = _TwilioProvider(account_sid, auth_token, self._http)
        elif provider == "mock":
            self._provider = _MockProvider()
        else:
            raise ValueError(f"Unknown messaging provider {provider!r}. Supported: mock, twilio.")

        logger.info("messaging_service.initialised", provider=self._provider.name)

    @property
    def provider_name(self) -> str:
        return self._provider.name

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _addresses(self, to: str, channel: ChannelType) -> tuple[str, str]:
        if channel is ChannelType.WHATSAPP:
            return f"{WHATSAPP_PREFIX}{to}", f"{WHATSAPP_PREFIX}{self._whatsapp_from}"
        return to, self._sms_from

    async def send(
        self,
        to: str,
        body: str,
        channel: ChannelType = ChannelType.SMS,
    ) -> DeliveryStatus:
        """Send one message.  Failures are reported in the returned status."""
        start = time.perf_counter()
        try:
            phone = sanitize_phone(to)
        except ValidationFailure as exc:
            return DeliveryStatus(
                channel=channel,
                to=to,
                status=DeliveryState.FAILED,
                provider=self._provider.name,
                error_message=exc.message,
            )

        log = logger.bind(channel=channel.value, to=mask_phone(phone), provider=self._provider.name)
        recipient, sender = self._addresses(phone, channel)

        try:
            result = await self._provider.send(recipient, body, from_number=sender)
        except Exception as exc:
            log.error("messaging.send_failed", error=str(exc), exc_info=True)
            return DeliveryStatus(
                channel=channel,
                to=phone,
                status=DeliveryState.FAILED,
                provider=self._provider.name,
                error_message=str(exc),
            )

        status = DeliveryStatus(
            channel=channel,
            to=phone,
            status=_PROVIDER_STATES.get(str(result.get("status", "")).lower(), DeliveryState.SENT),
            provider=self._provider.name,
            provider_message_id=str(result.get("sid", "")) or None,
            sent_at=datetime.now(UTC),
        )
        log.info(
            "messaging.sent",
            status=status.status.value,
            provider_id=status.provider_message_id,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return status

    async def deliver(self, payload: SMSPayload) -> list[DeliveryStatus]:
        """Send every segment of *payload* in order, one message each."""
        statuses = [await self.send(payload.to, segment, payload.channel) for segment in payload.segments]
        failed = sum(1 for s in statuses if not s.ok)
        if failed:
            logger.warning("messaging.delivery_incomplete", segments=len(statuses), failed=failed)
        return statuses

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    @staticmethod
    def parse_webhook(form: Mapping[str, Any], channel: ChannelType) -> IncomingMessage:
        """Parse a Twilio webhook form into an :class:`IncomingMessage`.

        Raises
        ------
        ValidationFailure
            If the ``From`` field is missing.
        """
        from_number = strip_channel_prefix(str(form.get("From") or ""))
        if not from_number:
            raise ValidationFailure("Missing sender phone number.", field="From")

        incoming = IncomingMessage(
            message_id=str(form.get("MessageSid") or uuid4().hex),
            channel=channel,
            from_number=from_number,
            text=str(form.get("Body") or "").strip(),
        )
        logger.info(
            "messaging.received",
            channel=channel.value,
            from_number=mask_phone(from_number),
            text_length=len(incoming.text),
        )
        return incoming

    @staticmethod
    def render_twiml(segments: Sequence[str]) -> str:
        """TwiML ``<Response>`` with one ``<Message>`` per segment."""
        response = MessagingResponse()
        for segment in segments:
            response.message(segment)
        return str(response)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
