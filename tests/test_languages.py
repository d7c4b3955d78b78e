"""Tests for language configuration."""

from __future__ import annotations

import pytest

from config.languages import (
    DEFAULT_LANGUAGE,
    LANGUAGE_CODE_MAP,
    LANGUAGES,
    LanguageConfig,
    detect_script_language,
    get_language,
    get_supported_languages,
    normalize_language,
)


# -----------------------------------------------------------------------
# LANGUAGES registry tests
# -----------------------------------------------------------------------


class TestLanguagesRegistry:
    def test_expected_language_codes(self) -> None:
        expected = {"en", "hi", "bn", "as", "te", "ta", "mr", "gu", "kn", "ml", "pa", "or", "ur"}
        assert set(LANGUAGES) == expected

    def test_default_language_is_english(self) -> None:
        assert DEFAULT_LANGUAGE == "en"
        assert DEFAULT_LANGUAGE in LANGUAGES

    def test_all_entries_are_language_config(self) -> None:
        for code, config in LANGUAGES.items():
            assert isinstance(config, LanguageConfig)
            assert config.code == code, f"LANGUAGES['{code}'] has mismatched code {config.code!r}"

    def test_hindi_config(self) -> None:
        hi = LANGUAGES["hi"]
        assert hi.name_english == "Hindi"
        assert hi.script == "Devanagari"
        assert hi.script_range == (0x0900, 0x097F)

    def test_shared_scripts_have_no_range(self) -> None:
        # Marathi shares Devanagari with Hindi; Assamese shares Bengali.
        assert LANGUAGES["mr"].script_range is None
        assert LANGUAGES["as"].script_range is None
        assert LANGUAGES["en"].script_range is None

    def test_alias_targets_are_supported(self) -> None:
        for alias, code in LANGUAGE_CODE_MAP.items():
            assert code in LANGUAGES, f"alias {alias!r} points at unsupported {code!r}"


# -----------------------------------------------------------------------
# Lookup helpers
# -----------------------------------------------------------------------


class TestNormalizeLanguage:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("hi", "hi"),
            ("HI", "hi"),
            (" hi ", "hi"),
            ("hin", "hi"),
            ("hi-IN", "hi"),
            ("hindi", "hi"),
            ("Hindi", "hi"),
            ("english", "en"),
            ("oriya", "or"),
            ("bn-BD", "bn"),
        ],
    )
    def test_aliases(self, raw: str, expected: str) -> None:
        assert normalize_language(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "auto", "fr", "xx-yy", "klingon"])
    def test_unsupported_returns_none(self, raw: str | None) -> None:
        assert normalize_language(raw) is None

    def test_get_language_resolves_alias(self) -> None:
        config = get_language("hindi")
        assert config is not None
        assert config.code == "hi"

    def test_get_language_unknown(self) -> None:
        assert get_language("zz") is None

    def test_supported_languages_in_registry_order(self) -> None:
        codes = [lang.code for lang in get_supported_languages()]
        assert codes == list(LANGUAGES)
        assert codes[0] == "en"


# -----------------------------------------------------------------------
# Script heuristic
# -----------------------------------------------------------------------


class TestDetectScriptLanguage:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("मुझे बुखार है", "hi"),
            ("আমার জ্বর", "bn"),
            ("నాకు జ్వరం", "te"),
            ("எனக்கு காய்ச்சல்", "ta"),
            ("મને તાવ છે", "gu"),
            ("ನನಗೆ ಜ್ವರ", "kn"),
            ("എനിക്ക് പനി", "ml"),
            ("ਮੈਨੂੰ ਬੁਖਾਰ", "pa"),
            ("ମୋର ଜ୍ୱର", "or"),
            ("مجھے بخار ہے", "ur"),
        ],
    )
    def test_scripts(self, text: str, expected: str) -> None:
        assert detect_script_language(text) == expected

    def test_mixed_text_uses_first_native_character(self) -> None:
        assert detect_script_language("fever बुखार") == "hi"

    @pytest.mark.parametrize("text", ["", "I have a fever", "12345 !?", "🙂👍"])
    def test_latin_and_symbols_do_not_match(self, text: str) -> None:
        assert detect_script_language(text) is None
