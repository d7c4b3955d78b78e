"""Languages GramCare can converse in.

Each ``LanguageConfig`` carries the ISO code, English and native names,
the script, the code accepted by Google Cloud Translation, and (where the
script is unambiguous) the Unicode block used to recognise the language
from raw text without calling a detection service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

__all__ = [
    "DEFAULT_LANGUAGE",
    "LanguageConfig",
    "LANGUAGES",
    "LANGUAGE_CODE_MAP",
    "detect_script_language",
    "get_language",
    "get_supported_languages",
    "normalize_language",
]

DEFAULT_LANGUAGE: Final[str] = "en"


@dataclass(frozen=True, slots=True)
class LanguageConfig:
    """Immutable descriptor for a single supported language."""

    code: str
    """ISO 639-1 code."""

    name_english: str
    name_native: str
    script: str

    gcp_translation_code: str
    """BCP-47 / ISO code accepted by Google Cloud Translation API."""

    script_range: tuple[int, int] | None = None
    """Inclusive Unicode code point range that identifies this language.

    ``None`` when the script is shared with a more common language (e.g.
    Marathi and Devanagari) or is Latin.
    """


# ---------------------------------------------------------------------------
# Language registry
# ---------------------------------------------------------------------------

LANGUAGES: Final[dict[str, LanguageConfig]] = {
    "en": LanguageConfig("en", "English", "English", "Latin", "en"),
    "hi": LanguageConfig("hi", "Hindi", "हिन्दी", "Devanagari", "hi", (0x0900, 0x097F)),
    "bn": LanguageConfig("bn", "Bengali", "বাংলা", "Bengali", "bn", (0x0980, 0x09FF)),
    "as": LanguageConfig("as", "Assamese", "অসমীয়া", "Bengali", "as"),
    "te": LanguageConfig("te", "Telugu", "తెలుగు", "Telugu", "te", (0x0C00, 0x0C7F)),
    "ta": LanguageConfig("ta", "Tamil", "தமிழ்", "Tamil", "ta", (0x0B80, 0x0BFF)),
    "mr": LanguageConfig("mr", "Marathi", "मराठी", "Devanagari", "mr"),
    "gu": LanguageConfig("gu", "Gujarati", "ગુજરાતી", "Gujarati", "gu", (0x0A80, 0x0AFF)),
    "kn": LanguageConfig("kn", "Kannada", "ಕನ್ನಡ", "Kannada", "kn", (0x0C80, 0x0CFF)),
    "ml": LanguageConfig("ml", "Malayalam", "മലയാളം", "Malayalam", "ml", (0x0D00, 0x0D7F)),
    "pa": LanguageConfig("pa", "Punjabi", "ਪੰਜਾਬੀ", "Gurmukhi", "pa", (0x0A00, 0x0A7F)),
    "or": LanguageConfig("or", "Odia", "ଓଡ଼ିଆ", "Odia", "or", (0x0B00, 0x0B7F)),
    "ur": LanguageConfig("ur", "Urdu", "اردو", "Perso-Arabic", "ur", (0x0600, 0x06FF)),
}


# ---------------------------------------------------------------------------
# Alias map  --  ISO 639-3, region tags and English names -> canonical code
# ---------------------------------------------------------------------------

LANGUAGE_CODE_MAP: Final[dict[str, str]] = {
    # ISO 639-3
    "eng": "en",
    "hin": "hi",
    "ben": "bn",
    "asm": "as",
    "tel": "te",
    "tam": "ta",
    "mar": "mr",
    "guj": "gu",
    "kan": "kn",
    "mal": "ml",
    "pan": "pa",
    "ori": "or",
    "odi": "or",
    "urd": "ur",
    # Region-tagged variants
    "en-in": "en",
    "en-us": "en",
    "en-gb": "en",
    "hi-in": "hi",
    "bn-in": "bn",
    "bn-bd": "bn",
    "as-in": "as",
    "te-in": "te",
    "ta-in": "ta",
    "mr-in": "mr",
    "gu-in": "gu",
    "kn-in": "kn",
    "ml-in": "ml",
    "pa-in": "pa",
    "or-in": "or",
    "ur-in": "ur",
    # English names, as used by the bundled data files
    "english": "en",
    "hindi": "hi",
    "bengali": "bn",
    "bangla": "bn",
    "assamese": "as",
    "telugu": "te",
    "tamil": "ta",
    "marathi": "mr",
    "gujarati": "gu",
    "kannada": "kn",
    "malayalam": "ml",
    "punjabi": "pa",
    "odia": "or",
    "oriya": "or",
    "urdu": "ur",
}

_SCRIPT_RANGES: Final[tuple[tuple[int, int, str], ...]] = tuple(
    (lang.script_range[0], lang.script_range[1], lang.code)
    for lang in LANGUAGES.values()
    if lang.script_range is not None
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def normalize_language(code: str | None) -> str | None:
    """Return the canonical supported code for *code*, or ``None``.

    Accepts canonical codes, ISO 639-3 codes, region-tagged codes and
    English language names, case-insensitively.
    """
    if not code:
        return None
    key = code.strip().lower()
    canonical = LANGUAGE_CODE_MAP.get(key, key)
    return canonical if canonical in LANGUAGES else None


def get_language(code: str) -> LanguageConfig | None:
    """Return the ``LanguageConfig`` for *code*, checking aliases."""
    canonical = normalize_language(code)
    return LANGUAGES.get(canonical) if canonical else None


def get_supported_languages() -> list[LanguageConfig]:
    """Return all supported languages in registry order."""
    return list(LANGUAGES.values())


def detect_script_language(text: str) -> str | None:
    """Return the language whose script block first appears in *text*.

    Only characters inside a registered ``script_range`` count, so Latin
    text, digits and emoji never match.
    """
    for char in text:
        point = ord(char)
        for low, high, code in _SCRIPT_RANGES:
            if low <= point <= high:
                return code
    return None
