"""Google Cloud Translation v3 adapter with caching.

Wraps the GCP ``TranslationServiceAsyncClient``.  Translations are cached
by ``(text, target language)`` so the fixed reply templates only hit the
API once per language.  API errors are raised as
:class:`~src.errors.ExternalServiceFailure`; callers decide the fallback.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import structlog
from google.api_core.exceptions import GoogleAPIError
from google.cloud.translate_v3 import (
    DetectLanguageRequest,
    TranslateTextRequest,
    TranslationServiceAsyncClient,
)

from config.languages import DEFAULT_LANGUAGE, get_language, normalize_language
from src.errors import ExternalServiceFailure
from src.services.cache import TTLCache, stable_hash

logger = structlog.get_logger(__name__)


@runtime_checkable
class Translator(Protocol):
    async def translate(self, text: str, target_language: str) -> str: ...


@runtime_checkable
class LanguageDetector(Protocol):
    async def detect(self, text: str) -> str | None: ...


def translation_cache_key(text: str, target_language: str) -> str:
    return f"tr:{target_language}:{stable_hash(text)}"


def _gcp_code(lang: str) -> str:
    config = get_language(lang)
    return config.gcp_translation_code if config else lang


class TranslationService:
    """Async Google Cloud Translation v3 wrapper with transparent caching.

    Parameters
    ----------
    project_id:
        GCP project identifier.
    region:
        Location for the Translation API (``"global"`` in most setups).
    cache:
        Cache for translated texts.
    client:
        Optional pre-built client; one is created from application
        default credentials otherwise.
    """

    __slots__ = ("_cache", "_client", "_parent")

    def __init__(
        self,
        project_id: str,
        region: str,
        cache: TTLCache,
        client: TranslationServiceAsyncClient | None = None,
    ) -> None:
        self._cache = cache
        self._client = client if client is not None else TranslationServiceAsyncClient()
        self._parent = f"projects/{project_id}/locations/{region}"

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str = DEFAULT_LANGUAGE,
    ) -> str:
        """Translate *text* into *target_language*, serving repeats from cache."""
        if target_language == source_language or not text:
            return text

        cache_key = translation_cache_key(text, target_language)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            logger.debug("translation.cache_hit", key=cache_key)
            return cached

        request = TranslateTextRequest(
            parent=self._parent,
            contents=[text],
            source_language_code=_gcp_code(source_language),
            target_language_code=_gcp_code(target_language),
            mime_type="text/plain",
        )
        try:
            response = await self._client.translate_text(request=request)
        except GoogleAPIError as exc:
            raise ExternalServiceFailure("translation", str(exc)) from exc
        translated = response.translations[0].translated_text

        await self._cache.set(cache_key, translated)
        logger.info(
            "translation.completed",
            target_lang=target_language,
            chars=len(text),
        )
        return translated

    async def detect(self, text: str) -> str | None:
        """Return the supported language code for *text*, or ``None`` if undetermined."""
        request = DetectLanguageRequest(
            parent=self._parent,
            content=text,
            mime_type="text/plain",
        )
        try:
            response = await self._client.detect_language(request=request)
        except GoogleAPIError as exc:
            raise ExternalServiceFailure("language_detection", str(exc)) from exc

        if not response.languages:
            logger.warning("translation.detect_no_result", text_len=len(text))
            return None

        top = response.languages[0]
        code = normalize_language(top.language_code)
        logger.info(
            "translation.detect_completed",
            raw=top.language_code,
            lang=code,
            confidence=round(top.confidence, 3),
        )
        return code

    async def close(self) -> None:
        """Release underlying gRPC resources."""
        transport = self._client.transport
        if hasattr(transport, "close"):
            await transport.close()  # type: ignore[misc]
