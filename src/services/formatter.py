"""Channel-specific shaping of composed replies.

Web chat gets a single structured :class:`ChatPayload`.  SMS and
WhatsApp get the text split into ordered segments of at most
:data:`SMS_SEGMENT_LENGTH` characters, broken only between words.
"""

from __future__ import annotations

from typing import Final, Mapping

from src.models.enums import ChannelType, HealthCategory
from src.models.intent import IntentContext
from src.models.payload import ChannelPayload, ChatPayload, SMSPayload

SMS_SEGMENT_LENGTH: Final[int] = 160

CATEGORY_SUGGESTIONS: Final[Mapping[HealthCategory, tuple[str, ...]]] = {
    HealthCategory.EMERGENCY: ("Find nearest hospital", "Call 108"),
    HealthCategory.SYMPTOMS: ("General care tips", "When to see a doctor", "Find nearby clinic"),
    HealthCategory.DISEASE_INFO: ("Symptoms", "Prevention", "Treatment options"),
    HealthCategory.PREVENTION: ("Vaccination schedule", "Hygiene practices", "Healthy diet"),
    HealthCategory.GENERAL: ("Check symptoms", "Disease prevention", "Health alerts"),
}


def segment_message(text: str, limit: int = SMS_SEGMENT_LENGTH) -> list[str]:
    """Greedily pack words into segments no longer than *limit*.

    Words are separated by single spaces inside a segment, so joining the
    result with ``" "`` reproduces the space-normalised input.  A single
    word longer than *limit* is emitted as its own segment, unsplit.
    """
    segments: list[str] = []
    current = ""
    for word in (w for w in text.split(" ") if w):
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= limit:
            current = f"{current} {word}"
        else:
            segments.append(current)
            current = word
    if current:
        segments.append(current)
    return segments


class ChannelFormatter:
    def __init__(self, segment_length: int = SMS_SEGMENT_LENGTH) -> None:
        self._segment_length = segment_length

    def format(
        self,
        text: str,
        channel: ChannelType,
        *,
        identifier: str,
        language: str,
        intent: IntentContext | None = None,
        session_id: str | None = None,
    ) -> ChannelPayload:
        if channel.is_segmented:
            return SMSPayload(
                channel=channel,
                to=identifier,
                language=language,
                text=text,
                segments=segment_message(text, self._segment_length),
            )

        payload = ChatPayload(response=text, language=language, session_id=session_id)
        if intent is not None:
            payload.confidence = intent.confidence
            payload.category = intent.category.value
            payload.suggestions = list(CATEGORY_SUGGESTIONS[intent.category])
        return payload

    def error(
        self,
        message: str,
        channel: ChannelType,
        *,
        identifier: str,
        language: str,
        session_id: str | None = None,
    ) -> ChannelPayload:
        """Payload for a rejected or failed turn."""
        if channel.is_segmented:
            payload = self.format(message, channel, identifier=identifier, language=language)
            payload.success = False
            return payload
        return ChatPayload(
            success=False,
            response=message,
            language=language,
            session_id=session_id,
            error=message,
        )
