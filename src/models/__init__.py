from src.models.enums import ChannelType, HealthCategory, TurnState, Urgency
from src.models.intent import IntentContext
from src.models.knowledge import AlertEntry, FAQEntry
from src.models.payload import ChannelPayload, ChatPayload, SMSPayload
from src.models.session import HistoryEntry, Session, UserProfile

__all__ = [
    "AlertEntry",
    "ChannelPayload",
    "ChannelType",
    "ChatPayload",
    "FAQEntry",
    "HealthCategory",
    "HistoryEntry",
    "IntentContext",
    "SMSPayload",
    "Session",
    "TurnState",
    "Urgency",
    "UserProfile",
]
