"""Tests for data models: enums, sessions, intents and payloads."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.models.enums import ChannelType, HealthCategory, TurnState, Urgency
from src.models.intent import IntentContext
from src.models.payload import ChatPayload, SMSPayload
from src.models.session import HistoryEntry, Session, UserProfile


# -----------------------------------------------------------------------
# Enum tests
# -----------------------------------------------------------------------


class TestChannelType:
    def test_values(self) -> None:
        assert {e.value for e in ChannelType} == {"web", "sms", "whatsapp"}

    def test_str_enum_behavior(self) -> None:
        assert str(ChannelType.SMS) == "sms", "StrEnum value should be directly usable as string"
        assert ChannelType.WHATSAPP == "whatsapp"

    def test_segmented_channels(self) -> None:
        assert ChannelType.SMS.is_segmented
        assert ChannelType.WHATSAPP.is_segmented
        assert not ChannelType.WEB.is_segmented


class TestHealthCategory:
    def test_values(self) -> None:
        expected = {"general", "emergency", "symptoms", "disease_info", "prevention"}
        assert {e.value for e in HealthCategory} == expected


class TestUrgency:
    def test_values(self) -> None:
        assert {e.value for e in Urgency} == {"low", "medium", "high"}


class TestTurnState:
    def test_length(self) -> None:
        assert len(TurnState) == 8, "TurnState should have 8 members"

    def test_error_state(self) -> None:
        assert TurnState.ERROR_REPLIED == "error_replied"


# -----------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------


class TestSession:
    def test_defaults(self) -> None:
        session = Session(channel=ChannelType.SMS, identifier="+919876543210")
        assert session.language == "en"
        assert session.history == []
        assert session.profile == UserProfile()
        assert session.last_activity.tzinfo is not None

    def test_record_turn_appends_pair(self) -> None:
        session = Session(channel=ChannelType.WEB, identifier="abc")
        session.record_turn("hello", "namaste")
        assert session.history == [
            HistoryEntry(role="user", message="hello"),
            HistoryEntry(role="assistant", message="namaste"),
        ]

    def test_history_is_bounded(self) -> None:
        session = Session(channel=ChannelType.WEB, identifier="abc")
        for i in range(8):
            session.record_turn(f"q{i}", f"a{i}")
        assert len(session.history) == 10
        assert session.history[0] == HistoryEntry(role="user", message="q3")
        assert session.history[-1] == HistoryEntry(role="assistant", message="a7")

    def test_custom_history_limit(self) -> None:
        session = Session(channel=ChannelType.WEB, identifier="abc")
        session.record_turn("q0", "a0", limit=2)
        session.record_turn("q1", "a1", limit=2)
        assert [h.message for h in session.history] == ["q1", "a1"]

    def test_invalid_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HistoryEntry(role="system", message="x")


# -----------------------------------------------------------------------
# Intent
# -----------------------------------------------------------------------


class TestIntentContext:
    def test_defaults(self) -> None:
        intent = IntentContext()
        assert intent.category is HealthCategory.GENERAL
        assert intent.urgency is Urgency.LOW
        assert intent.confidence == 0.3

    def test_confidence_with_keywords(self) -> None:
        intent = IntentContext(HealthCategory.SYMPTOMS, Urgency.LOW, ("fever",))
        assert intent.confidence == 0.8

    def test_frozen(self) -> None:
        intent = IntentContext()
        with pytest.raises(AttributeError):
            intent.category = HealthCategory.EMERGENCY  # type: ignore[misc]


# -----------------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------------


class TestPayloads:
    def test_chat_payload_serialization(self) -> None:
        payload = ChatPayload(response="hi", language="en", category="general", suggestions=["Health alerts"])
        data = payload.model_dump()
        assert data["success"] is True
        assert data["response"] == "hi"
        assert data["error"] is None

    def test_sms_payload_defaults(self) -> None:
        payload = SMSPayload(channel=ChannelType.SMS, to="+919876543210", language="en", text="hi")
        assert payload.success is True
        assert payload.segments == []
