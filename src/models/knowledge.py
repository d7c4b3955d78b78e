"""Read-only health FAQ and outbreak alert records.

Both are loaded once at startup from bundled JSON.  Language-keyed
maps accept either codes (``"hi"``) or English names (``"hindi"``) and
are normalised to codes on load.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.languages import DEFAULT_LANGUAGE, normalize_language


def _normalise_language_map(value: dict[str, str]) -> dict[str, str]:
    normalised: dict[str, str] = {}
    for raw_code, text in value.items():
        code = normalize_language(raw_code)
        if code is not None and text:
            normalised.setdefault(code, text)
    if DEFAULT_LANGUAGE not in normalised:
        raise ValueError("an English text is required")
    return normalised


class FAQEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    keywords: list[str] = Field(default_factory=list)
    answer: dict[str, str]

    @field_validator("answer")
    @classmethod
    def _check_answer(cls, value: dict[str, str]) -> dict[str, str]:
        return _normalise_language_map(value)

    def answer_for(self, language: str) -> str:
        return self.answer.get(language, self.answer[DEFAULT_LANGUAGE])


class AlertEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location: str
    affected_areas: list[str] = Field(default_factory=list, alias="affectedAreas")
    message: dict[str, str]

    @field_validator("message")
    @classmethod
    def _check_message(cls, value: dict[str, str]) -> dict[str, str]:
        return _normalise_language_map(value)

    def message_for(self, language: str) -> str:
        return self.message.get(language, self.message[DEFAULT_LANGUAGE])

    def covers(self, location: str) -> bool:
        """Case-insensitive substring match on the location or any affected area."""
        needle = location.lower()
        if needle in self.location.lower():
            return True
        return any(needle in area.lower() for area in self.affected_areas)
