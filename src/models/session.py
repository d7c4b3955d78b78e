"""Per-user conversational state.

A session is keyed by ``(channel, identifier)`` where the identifier is
a phone number for SMS/WhatsApp or a session token for web chat.  It is
soft context only: losing it on restart is acceptable.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from config.languages import DEFAULT_LANGUAGE
from src.models.enums import ChannelType

DEFAULT_HISTORY_LIMIT = 10


class HistoryEntry(BaseModel):
    role: Literal["user", "assistant"]
    message: str


class UserProfile(BaseModel):
    preferred_language: str | None = None
    location: str | None = None
    age: int | None = None


class Session(BaseModel):
    model_config = {"validate_assignment": True}

    channel: ChannelType
    identifier: str
    language: str = DEFAULT_LANGUAGE
    history: list[HistoryEntry] = Field(default_factory=list)
    profile: UserProfile = Field(default_factory=UserProfile)
    last_activity: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def record_turn(
        self,
        user_message: str,
        assistant_message: str,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        """Append the user/assistant pair and keep only the newest *limit* entries."""
        self.history.append(HistoryEntry(role="user", message=user_message))
        self.history.append(HistoryEntry(role="assistant", message=assistant_message))
        if len(self.history) > limit:
            self.history = self.history[-limit:]
