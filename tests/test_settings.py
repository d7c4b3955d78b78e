"""Tests for settings validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from config.settings import Settings


class TestDefaultLanguage:
    def test_default(self) -> None:
        assert Settings(default_language="en").default_language == "en"

    def test_alias_is_normalised(self) -> None:
        assert Settings(default_language="Hindi").default_language == "hi"

    @pytest.mark.parametrize("value", ["xx", "klingon", ""])
    def test_unsupported_is_rejected(self, value: str) -> None:
        with pytest.raises(ValidationError):
            Settings(default_language=value)


class TestTurnDeadline:
    def test_webhook_deadline_fits_provider_timeout(self) -> None:
        assert Settings().webhook_turn_deadline_seconds < 15
