from __future__ import annotations

from pydantic import BaseModel, Field

from src.models.enums import ChannelType


class ChatPayload(BaseModel):
    """Single structured reply for the web chat / JSON API channel."""

    success: bool = True
    response: str
    language: str
    confidence: float | None = None
    category: str | None = None
    suggestions: list[str] = Field(default_factory=list)
    session_id: str | None = None
    error: str | None = None


class SMSPayload(BaseModel):
    """Ordered transport-sized segments for SMS or WhatsApp delivery."""

    success: bool = True
    channel: ChannelType
    to: str
    language: str
    text: str
    segments: list[str] = Field(default_factory=list)


ChannelPayload = ChatPayload | SMSPayload
