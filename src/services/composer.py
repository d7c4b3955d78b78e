"""Reply composition for classified health messages.

Composition is an ordered list of strategies, each returning the final
reply text or ``None``:

1. the generative AI responder, when enabled
2. the FAQ lookup (general messages only), then the category template

Every composed reply carries the medical disclaimer.  Translation and AI
calls are bounded by timeouts; any failure degrades to the English
template instead of reaching the user.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Final, Mapping

import structlog

from config.languages import DEFAULT_LANGUAGE
from src.models.enums import HealthCategory

if TYPE_CHECKING:
    from src.data.knowledge_base import FAQRepository
    from src.models.intent import IntentContext
    from src.services.ai import Responder
    from src.services.translation import Translator

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

CATEGORY_TEMPLATES: Final[Mapping[HealthCategory, str]] = {
    HealthCategory.EMERGENCY: (
        "This seems like an emergency situation. Please contact your nearest hospital "
        "or call emergency services immediately. For immediate help, call 108 (India) "
        "or your local emergency number."
    ),
    HealthCategory.SYMPTOMS: (
        "I understand you're experiencing {keywords}. While I can provide general "
        "information, it's important to consult with a healthcare professional for "
        "proper diagnosis and treatment. Would you like me to provide some general care "
        "tips or help you find nearby healthcare facilities?"
    ),
    HealthCategory.DISEASE_INFO: (
        "I can provide information about {keywords}. What specific information would "
        "you like to know? For example: symptoms, prevention, treatment options, or "
        "when to see a doctor?"
    ),
    HealthCategory.PREVENTION: (
        "Prevention is key to good health! I can help you with information about "
        "vaccinations, hygiene practices, and preventive care. What specific prevention "
        "topic interests you?"
    ),
    HealthCategory.GENERAL: (
        "Hello! I'm GramCare, your health assistant. I can help you with health "
        "information, symptoms, disease prevention, and vaccination schedules. "
        "How can I assist you today?"
    ),
}

WELCOME_TEMPLATES: Final[Mapping[str, str]] = {
    "en": CATEGORY_TEMPLATES[HealthCategory.GENERAL],
    "hi": (
        "नमस्ते! मैं ग्रामकेयर हूँ, आपका स्वास्थ्य सहायक। मैं आपको स्वास्थ्य संबंधी जानकारी, "
        "लक्षणों, बीमारियों की रोकथाम और टीकाकरण कार्यक्रमों में मदद कर सकता हूँ। "
        "आज मैं आपकी कैसे सहायता कर सकता हूँ?"
    ),
}

HELP_TEMPLATES: Final[Mapping[str, str]] = {
    "en": (
        "How can I help you? You can ask me about symptoms, diseases, prevention, "
        "vaccination, or health alerts."
    ),
    "hi": (
        "मैं आपकी कैसे मदद कर सकता हूँ? आप मुझसे लक्षणों, बीमारियों, रोकथाम, "
        "टीकाकरण या स्वास्थ्य अलर्ट के बारे में पूछ सकते हैं।"
    ),
}

DISCLAIMERS: Final[Mapping[str, str]] = {
    "en": "\n\nDisclaimer: This is informational only, not a medical diagnosis.",
    "hi": "\n\nअस्वीकरण: यह केवल जानकारी के लिए है, चिकित्सा निदान नहीं।",
}

ComposeStrategy = Callable[[str, "IntentContext", str], Awaitable["str | None"]]


def render_template(intent: IntentContext) -> str:
    """English base reply for *intent*, with matched keywords interpolated."""
    template = CATEGORY_TEMPLATES[intent.category]
    return template.format(keywords=", ".join(intent.matched_keywords))


class ResponseComposer:
    """Builds the reply text for a classified message.

    Parameters
    ----------
    faqs:
        FAQ lookup consulted for general messages.
    translator:
        Translation collaborator; ``None`` means replies stay in English.
    ai:
        Optional generative responder consulted before the templates.
    """

    def __init__(
        self,
        faqs: FAQRepository,
        translator: Translator | None = None,
        ai: Responder | None = None,
        *,
        translation_timeout: float = 5.0,
        ai_timeout: float = 12.0,
        ai_provider: str = "auto",
    ) -> None:
        self._faqs = faqs
        self._translator = translator
        self._ai = ai
        self._translation_timeout = translation_timeout
        self._ai_timeout = ai_timeout
        self._ai_provider = ai_provider
        self._strategies: tuple[tuple[str, ComposeStrategy], ...] = (
            ("ai", self._from_ai),
            ("template", self._from_templates),
        )

    async def compose(self, text: str, intent: IntentContext, language: str) -> str:
        for source, strategy in self._strategies:
            reply = await strategy(text, intent, language)
            if reply is not None:
                logger.debug("composer.composed", source=source, category=intent.category.value)
                return reply
        return render_template(intent) + self.disclaimer(language)

    # ------------------------------------------------------------------
    # Fixed replies
    # ------------------------------------------------------------------

    async def welcome(self, language: str) -> str:
        return await self._fixed(WELCOME_TEMPLATES, language)

    async def help(self, language: str) -> str:
        return await self._fixed(HELP_TEMPLATES, language)

    async def _fixed(self, templates: Mapping[str, str], language: str) -> str:
        if language in templates:
            return templates[language]
        return await self.localize(templates[DEFAULT_LANGUAGE], language)

    @classmethod
    def fallback(cls, intent: IntentContext) -> str:
        """English template reply with the English disclaimer; no external calls."""
        return render_template(intent) + cls.disclaimer(DEFAULT_LANGUAGE)

    @staticmethod
    def disclaimer(language: str) -> str:
        return DISCLAIMERS.get(language, DISCLAIMERS[DEFAULT_LANGUAGE])

    async def localize(self, text: str, language: str) -> str:
        """Translate an English template, returning it unchanged on any failure."""
        if language == DEFAULT_LANGUAGE or self._translator is None:
            return text
        try:
            return await asyncio.wait_for(
                self._translator.translate(text, language),
                timeout=self._translation_timeout,
            )
        except Exception as exc:
            logger.warning("composer.translation_failed", language=language, error=repr(exc))
            return text

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _from_ai(self, text: str, intent: IntentContext, language: str) -> str | None:
        if self._ai is None or not self._ai.enabled:
            return None
        try:
            result = await asyncio.wait_for(
                self._ai.respond(text, language, self._ai_provider),
                timeout=self._ai_timeout,
            )
        except Exception as exc:
            logger.warning("composer.ai_failed", error=repr(exc))
            return None
        if not result.success or not result.response:
            return None
        return result.response + self.disclaimer(language)

    async def _from_templates(self, text: str, intent: IntentContext, language: str) -> str:
        if intent.category is HealthCategory.GENERAL:
            faq = self._faqs.find_best_match(text)
            if faq is not None:
                logger.debug("composer.faq_match", question=faq.question)
                answer_language = language if language in faq.answer else DEFAULT_LANGUAGE
                return faq.answer_for(language) + self.disclaimer(answer_language)

        base = render_template(intent)
        reply = await self.localize(base, language)
        # An untranslated reply keeps the English disclaimer.
        return reply + self.disclaimer(language if reply != base else DEFAULT_LANGUAGE)
