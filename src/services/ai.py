"""Vertex AI Gemini responder for GramCare.

Optional generative path consulted before the keyword templates.  It is
feature-flagged off by default; when disabled or when the requested
provider is unknown, :meth:`AIService.respond` reports failure without
touching the network.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Final, Protocol, runtime_checkable

import structlog
import vertexai
from google.api_core.exceptions import GoogleAPIError
from vertexai.generative_models import (
    Content,
    GenerationConfig,
    GenerativeModel,
    Part,
)

from config.languages import get_language
from src.errors import ExternalServiceFailure

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

GRAMCARE_SYSTEM_PROMPT: Final[str] = """\
You are GramCare, a friendly health information assistant for people in \
rural India who reach you over SMS, WhatsApp and a simple web chat.

- Give general, practical health information in short, simple sentences.
- Never diagnose and never prescribe medicines or doses.
- For anything that sounds urgent (chest pain, difficulty breathing, \
heavy bleeding, unconsciousness, snake bite), tell the person to call 108 \
or go to the nearest hospital immediately.
- Recommend seeing a doctor or the local health worker (ASHA / PHC) when \
symptoms persist.
- Keep replies under 600 characters. Do not use markdown.
- Always reply in the language you are asked to reply in.\
"""

_PROVIDERS: Final[tuple[str, ...]] = ("gemini",)


@dataclass(slots=True)
class AIResponse:
    """Result returned by :meth:`AIService.respond`."""

    success: bool
    response: str = ""
    provider: str = ""
    processing_time_ms: float = 0.0


@runtime_checkable
class Responder(Protocol):
    @property
    def enabled(self) -> bool: ...

    async def respond(self, text: str, language: str, provider_preference: str = "auto") -> AIResponse: ...


class AIService:
    """Async interface to Vertex AI Gemini."""

    def __init__(
        self,
        project_id: str,
        region: str = "asia-south1",
        model_name: str = "gemini-2.0-flash",
        *,
        enabled: bool = False,
    ) -> None:
        self._project_id = project_id
        self._region = region
        self._model_name = model_name
        self._enabled = enabled
        self._model: GenerativeModel | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _get_model(self) -> GenerativeModel:
        """Lazily initialize the Vertex AI SDK and model handle."""
        if self._model is None:
            vertexai.init(project=self._project_id, location=self._region)
            self._model = GenerativeModel(
                model_name=self._model_name,
                system_instruction=[Part.from_text(GRAMCARE_SYSTEM_PROMPT)],
            )
            logger.info("ai.initialized", region=self._region, model=self._model_name)
        return self._model

    @staticmethod
    def _pick_provider(preference: str) -> str | None:
        preference = (preference or "auto").lower()
        if preference == "auto":
            return _PROVIDERS[0]
        return preference if preference in _PROVIDERS else None

    async def respond(
        self,
        text: str,
        language: str,
        provider_preference: str = "auto",
    ) -> AIResponse:
        """Generate a free-form health answer in *language*.

        Raises
        ------
        ExternalServiceFailure
            If the Vertex AI call fails.
        """
        if not self._enabled:
            return AIResponse(success=False)

        provider = self._pick_provider(provider_preference)
        if provider is None:
            logger.warning("ai.unknown_provider", preference=provider_preference)
            return AIResponse(success=False)

        start = time.perf_counter()
        lang = get_language(language)
        language_name = lang.name_english if lang else "English"

        contents = [
            Content(
                role="user",
                parts=[Part.from_text(f"Reply in {language_name}.\n\nUser message: {text}")],
            )
        ]
        try:
            response = await self._get_model().generate_content_async(
                contents=contents,
                generation_config=GenerationConfig(
                    temperature=0.3,
                    top_p=0.95,
                    max_output_tokens=512,
                ),
            )
        except GoogleAPIError as exc:
            raise ExternalServiceFailure(provider, str(exc)) from exc
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

        answer = (response.text or "").strip()
        if not answer:
            logger.warning("ai.empty_response", provider=provider)
            return AIResponse(success=False, provider=provider, processing_time_ms=elapsed_ms)

        logger.info("ai.responded", provider=provider, chars=len(answer), elapsed_ms=elapsed_ms)
        return AIResponse(
            success=True,
            response=answer,
            provider=provider,
            processing_time_ms=elapsed_ms,
        )
