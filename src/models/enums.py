from __future__ import annotations

from enum import StrEnum


class ChannelType(StrEnum):
    __slots__ = ()

    WEB = "web"
    SMS = "sms"
    WHATSAPP = "whatsapp"

    @property
    def is_segmented(self) -> bool:
        """SMS and WhatsApp replies are split into transport-sized segments."""
        return self is not ChannelType.WEB


class HealthCategory(StrEnum):
    __slots__ = ()

    GENERAL = "general"
    EMERGENCY = "emergency"
    SYMPTOMS = "symptoms"
    DISEASE_INFO = "disease_info"
    PREVENTION = "prevention"


class Urgency(StrEnum):
    __slots__ = ()

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TurnState(StrEnum):
    """Lifecycle of a single inbound message inside the router."""

    __slots__ = ()

    RECEIVED = "received"
    LANGUAGE_RESOLVED = "language_resolved"
    CLASSIFIED = "classified"
    COMPOSED = "composed"
    FORMATTED = "formatted"
    SESSION_UPDATED = "session_updated"
    SENT = "sent"
    ERROR_REPLIED = "error_replied"
