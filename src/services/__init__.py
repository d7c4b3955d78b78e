"""GramCare service layer -- sessions, language, intent, composition and transports.

Only the pure-Python services are re-exported here.  The GCP-backed
adapters (``src.services.translation``, ``src.services.ai``) are imported
from their own modules so that ``import src.services`` does not load the
Google client libraries.
"""

from __future__ import annotations

from src.services.cache import TTLCache
from src.services.composer import ResponseComposer
from src.services.formatter import ChannelFormatter, segment_message
from src.services.intent import HEALTH_KEYWORDS, IntentClassifier
from src.services.language import LanguageResolver
from src.services.session_store import SessionStore

__all__ = [
    "ChannelFormatter",
    "HEALTH_KEYWORDS",
    "IntentClassifier",
    "LanguageResolver",
    "ResponseComposer",
    "SessionStore",
    "TTLCache",
    "segment_message",
]
