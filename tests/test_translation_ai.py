"""Tests for the Google Cloud Translation and Vertex AI adapters (clients mocked)."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable

from src.errors import ExternalServiceFailure
from src.services.ai import AIService
from src.services.cache import TTLCache
from src.services.translation import TranslationService, translation_cache_key


def _translate_result(text: str) -> SimpleNamespace:
    return SimpleNamespace(translations=[SimpleNamespace(translated_text=text)])


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.translate_text = AsyncMock(return_value=_translate_result("नमस्ते"))
    client.detect_language = AsyncMock(
        return_value=SimpleNamespace(languages=[SimpleNamespace(language_code="hi-IN", confidence=0.97)])
    )
    return client


@pytest.fixture
def service(client: MagicMock) -> TranslationService:
    return TranslationService("demo-project", "global", TTLCache(max_size=10, ttl_seconds=60), client=client)


# -----------------------------------------------------------------------
# Translation
# -----------------------------------------------------------------------


class TestTranslationService:
    async def test_translate(self, service: TranslationService, client: MagicMock) -> None:
        assert await service.translate("Hello", "hi") == "नमस्ते"

        request = client.translate_text.await_args.kwargs["request"]
        assert request.parent == "projects/demo-project/locations/global"
        assert list(request.contents) == ["Hello"]
        assert request.target_language_code == "hi"

    async def test_repeat_is_served_from_cache(self, service: TranslationService, client: MagicMock) -> None:
        await service.translate("Hello", "hi")
        await service.translate("Hello", "hi")
        assert client.translate_text.await_count == 1

    async def test_cache_is_keyed_by_language(self) -> None:
        assert translation_cache_key("Hello", "hi") != translation_cache_key("Hello", "ta")

    async def test_same_language_skips_api(self, service: TranslationService, client: MagicMock) -> None:
        assert await service.translate("Hello", "en") == "Hello"
        client.translate_text.assert_not_awaited()

    async def test_api_error_is_wrapped(self, service: TranslationService, client: MagicMock) -> None:
        client.translate_text.side_effect = ServiceUnavailable("down")
        with pytest.raises(ExternalServiceFailure) as exc_info:
            await service.translate("Hello", "hi")
        assert exc_info.value.service == "translation"

    async def test_detect_normalises_code(self, service: TranslationService) -> None:
        assert await service.detect("मुझे बुखार है और सिर दर्द") == "hi"

    async def test_detect_without_result(self, service: TranslationService, client: MagicMock) -> None:
        client.detect_language.return_value = SimpleNamespace(languages=[])
        assert await service.detect("???") is None

    async def test_detect_error_is_wrapped(self, service: TranslationService, client: MagicMock) -> None:
        client.detect_language.side_effect = ServiceUnavailable("down")
        with pytest.raises(ExternalServiceFailure):
            await service.detect("some longer text")


# -----------------------------------------------------------------------
# AI
# -----------------------------------------------------------------------


def _ai_with_model(text: str = "Drink water and rest.") -> tuple[AIService, MagicMock]:
    service = AIService("demo-project", enabled=True)
    model = MagicMock()
    model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text=text))
    service._model = model
    return service, model


class TestAIService:
    async def test_disabled(self) -> None:
        service = AIService("demo-project")
        assert service.enabled is False
        result = await service.respond("fever", "en")
        assert result.success is False

    async def test_unknown_provider(self) -> None:
        service, model = _ai_with_model()
        result = await service.respond("fever", "en", "openai")
        assert result.success is False
        model.generate_content_async.assert_not_awaited()

    async def test_respond(self) -> None:
        service, model = _ai_with_model()
        result = await service.respond("I have fever", "hi", "auto")

        assert result.success is True
        assert result.response == "Drink water and rest."
        assert result.provider == "gemini"
        prompt = model.generate_content_async.await_args.kwargs["contents"][0]
        assert "Reply in Hindi." in prompt.parts[0].text

    async def test_empty_answer(self) -> None:
        service, _ = _ai_with_model("   ")
        result = await service.respond("fever", "en")
        assert result.success is False

    async def test_sdk_error_is_wrapped(self) -> None:
        service, model = _ai_with_model()
        model.generate_content_async.side_effect = ServiceUnavailable("down")
        with pytest.raises(ExternalServiceFailure) as exc_info:
            await service.respond("fever", "en")
        assert exc_info.value.service == "gemini"
