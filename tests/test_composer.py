"""Tests for reply composition."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.data.knowledge_base import FAQRepository
from src.models.enums import HealthCategory, Urgency
from src.models.intent import IntentContext
from src.models.knowledge import FAQEntry
from src.services.ai import AIResponse
from src.services.composer import (
    CATEGORY_TEMPLATES,
    DISCLAIMERS,
    HELP_TEMPLATES,
    WELCOME_TEMPLATES,
    ResponseComposer,
    render_template,
)

DISCLAIMER_EN = "\n\nDisclaimer: This is informational only, not a medical diagnosis."

WATER_FAQ = FAQEntry(
    question="How much water should I drink?",
    keywords=["water", "dehydration"],
    answer={"english": "Drink 8 glasses a day.", "hindi": "रोज़ 8 गिलास पानी पिएँ।"},
)


@pytest.fixture
def faqs() -> FAQRepository:
    return FAQRepository([WATER_FAQ])


def _translator(result: str | None = None, error: Exception | None = None) -> AsyncMock:
    translator = AsyncMock()
    if error is not None:
        translator.translate.side_effect = error
    else:
        translator.translate.return_value = result
    return translator


def _ai(response: AIResponse | None = None, error: Exception | None = None, enabled: bool = True) -> MagicMock:
    ai = MagicMock()
    ai.enabled = enabled
    ai.respond = AsyncMock()
    if error is not None:
        ai.respond.side_effect = error
    else:
        ai.respond.return_value = response
    return ai


SYMPTOMS = IntentContext(HealthCategory.SYMPTOMS, Urgency.LOW, ("fever", "cough"))
EMERGENCY = IntentContext(HealthCategory.EMERGENCY, Urgency.HIGH, ("emergency", "hospital"))


# -----------------------------------------------------------------------
# Templates
# -----------------------------------------------------------------------


class TestTemplates:
    async def test_symptoms_template_interpolates_keywords(self, faqs: FAQRepository) -> None:
        reply = await ResponseComposer(faqs).compose("I have fever and cough", SYMPTOMS, "en")
        assert "I understand you're experiencing fever, cough." in reply
        assert reply.endswith(DISCLAIMER_EN)

    async def test_emergency_template_mentions_108(self, faqs: FAQRepository) -> None:
        reply = await ResponseComposer(faqs).compose("emergency help hospital", EMERGENCY, "en")
        assert reply == CATEGORY_TEMPLATES[HealthCategory.EMERGENCY] + DISCLAIMER_EN
        assert "108" in reply

    async def test_disease_template(self, faqs: FAQRepository) -> None:
        intent = IntentContext(HealthCategory.DISEASE_INFO, Urgency.LOW, ("malaria",))
        reply = await ResponseComposer(faqs).compose("malaria", intent, "en")
        assert reply.startswith("I can provide information about malaria.")

    def test_every_category_has_a_template(self) -> None:
        for category in HealthCategory:
            assert render_template(IntentContext(category))

    async def test_general_without_faq_match_uses_generic_template(self, faqs: FAQRepository) -> None:
        reply = await ResponseComposer(faqs).compose("hello", IntentContext(), "en")
        assert reply == CATEGORY_TEMPLATES[HealthCategory.GENERAL] + DISCLAIMER_EN


# -----------------------------------------------------------------------
# FAQ lookup
# -----------------------------------------------------------------------


class TestFAQ:
    async def test_faq_supersedes_generic_reply(self, faqs: FAQRepository) -> None:
        reply = await ResponseComposer(faqs).compose("how much water?", IntentContext(), "en")
        assert reply == "Drink 8 glasses a day." + DISCLAIMER_EN

    async def test_faq_answer_in_resolved_language(self, faqs: FAQRepository) -> None:
        translator = _translator("should not be used")
        reply = await ResponseComposer(faqs, translator).compose("water", IntentContext(), "hi")
        assert reply == "रोज़ 8 गिलास पानी पिएँ।" + DISCLAIMERS["hi"]
        translator.translate.assert_not_awaited()

    async def test_faq_falls_back_to_english_answer(self, faqs: FAQRepository) -> None:
        reply = await ResponseComposer(faqs).compose("water", IntentContext(), "ta")
        assert reply == "Drink 8 glasses a day." + DISCLAIMER_EN

    async def test_faq_not_consulted_for_classified_messages(self, faqs: FAQRepository) -> None:
        intent = IntentContext(HealthCategory.SYMPTOMS, Urgency.LOW, ("fever",))
        reply = await ResponseComposer(faqs).compose("fever and no water", intent, "en")
        assert "Drink 8 glasses" not in reply


# -----------------------------------------------------------------------
# Translation
# -----------------------------------------------------------------------


class TestTranslation:
    async def test_template_is_translated(self, faqs: FAQRepository) -> None:
        translator = _translator("अनुवादित")
        reply = await ResponseComposer(faqs, translator).compose("मुझे बुखार", SYMPTOMS, "hi")
        assert reply == "अनुवादित" + DISCLAIMERS["hi"]
        translator.translate.assert_awaited_once_with(render_template(SYMPTOMS), "hi")

    async def test_english_is_never_translated(self, faqs: FAQRepository) -> None:
        translator = _translator("x")
        await ResponseComposer(faqs, translator).compose("fever", SYMPTOMS, "en")
        translator.translate.assert_not_awaited()

    async def test_translation_failure_keeps_english_template(self, faqs: FAQRepository) -> None:
        translator = _translator(error=RuntimeError("API down"))
        reply = await ResponseComposer(faqs, translator).compose("fever cough", SYMPTOMS, "hi")
        assert reply == render_template(SYMPTOMS) + DISCLAIMER_EN

    async def test_translation_timeout_keeps_english_template(self, faqs: FAQRepository) -> None:
        async def slow(text: str, language: str) -> str:
            await asyncio.sleep(1)
            return "late"

        translator = AsyncMock()
        translator.translate.side_effect = slow
        composer = ResponseComposer(faqs, translator, translation_timeout=0.01)
        reply = await composer.compose("fever cough", SYMPTOMS, "ta")
        assert reply == render_template(SYMPTOMS) + DISCLAIMER_EN


# -----------------------------------------------------------------------
# Generative AI
# -----------------------------------------------------------------------


class TestAI:
    async def test_ai_success_is_used_verbatim(self, faqs: FAQRepository) -> None:
        ai = _ai(AIResponse(success=True, response="Rest and drink fluids.", provider="gemini"))
        translator = _translator("x")
        composer = ResponseComposer(faqs, translator, ai, ai_provider="gemini")

        reply = await composer.compose("fever", SYMPTOMS, "en")

        assert reply == "Rest and drink fluids." + DISCLAIMER_EN
        ai.respond.assert_awaited_once_with("fever", "en", "gemini")
        translator.translate.assert_not_awaited()

    async def test_ai_failure_result_falls_back(self, faqs: FAQRepository) -> None:
        ai = _ai(AIResponse(success=False))
        reply = await ResponseComposer(faqs, ai=ai).compose("fever", SYMPTOMS, "en")
        assert reply == render_template(SYMPTOMS) + DISCLAIMER_EN

    async def test_ai_exception_falls_back(self, faqs: FAQRepository) -> None:
        ai = _ai(error=RuntimeError("503"))
        reply = await ResponseComposer(faqs, ai=ai).compose("water", IntentContext(), "en")
        assert reply == "Drink 8 glasses a day." + DISCLAIMER_EN

    async def test_disabled_ai_is_not_called(self, faqs: FAQRepository) -> None:
        ai = _ai(AIResponse(success=True, response="nope"), enabled=False)
        await ResponseComposer(faqs, ai=ai).compose("fever", SYMPTOMS, "en")
        ai.respond.assert_not_awaited()

    async def test_ai_timeout_falls_back(self, faqs: FAQRepository) -> None:
        async def slow(*args: object) -> AIResponse:
            await asyncio.sleep(1)
            return AIResponse(success=True, response="late")

        ai = _ai()
        ai.respond.side_effect = slow
        composer = ResponseComposer(faqs, ai=ai, ai_timeout=0.01)
        reply = await composer.compose("fever", SYMPTOMS, "en")
        assert reply == render_template(SYMPTOMS) + DISCLAIMER_EN


# -----------------------------------------------------------------------
# Fixed replies
# -----------------------------------------------------------------------


class TestFixedReplies:
    async def test_welcome_english_and_hindi(self, faqs: FAQRepository) -> None:
        composer = ResponseComposer(faqs)
        assert await composer.welcome("en") == WELCOME_TEMPLATES["en"]
        assert (await composer.welcome("hi")).startswith("नमस्ते! मैं ग्रामकेयर हूँ")

    async def test_help_other_language_is_translated(self, faqs: FAQRepository) -> None:
        translator = _translator("உதவி")
        composer = ResponseComposer(faqs, translator)
        assert await composer.help("ta") == "உதவி"
        translator.translate.assert_awaited_once_with(HELP_TEMPLATES["en"], "ta")

    async def test_help_without_translator_is_english(self, faqs: FAQRepository) -> None:
        assert await ResponseComposer(faqs).help("bn") == HELP_TEMPLATES["en"]

    def test_disclaimer_fallback(self) -> None:
        assert ResponseComposer.disclaimer("kn") == DISCLAIMER_EN
        assert ResponseComposer.disclaimer("hi") == DISCLAIMERS["hi"]

    def test_fallback_is_english_template(self) -> None:
        assert ResponseComposer.fallback(EMERGENCY) == CATEGORY_TEMPLATES[HealthCategory.EMERGENCY] + DISCLAIMER_EN
