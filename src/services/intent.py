"""Keyword-based health intent classification.

Pure and deterministic: case-insensitive substring matching against four
fixed keyword tables, with emergency taking precedence over everything
else.  No external calls.
"""

from __future__ import annotations

from typing import Final, Mapping

from src.models.enums import HealthCategory, Urgency
from src.models.intent import IntentContext

HEALTH_KEYWORDS: Final[Mapping[str, tuple[str, ...]]] = {
    "symptoms": ("fever", "cough", "headache", "pain", "nausea", "vomiting", "diarrhea", "fatigue"),
    "diseases": ("covid", "malaria", "dengue", "typhoid", "diabetes", "hypertension", "tuberculosis"),
    "prevention": ("vaccine", "vaccination", "immunization", "hygiene", "sanitize", "mask"),
    "emergency": ("emergency", "urgent", "severe", "critical", "hospital", "ambulance"),
}

# Symptom matches above this count raise urgency to medium.
MEDIUM_URGENCY_SYMPTOM_COUNT: Final[int] = 2


class IntentClassifier:
    """Scores text against the keyword tables.

    Evaluation order: emergency, symptoms, diseases, prevention, general.
    The first table with a match decides the category.
    """

    __slots__ = ("_keywords",)

    def __init__(self, keywords: Mapping[str, tuple[str, ...]] = HEALTH_KEYWORDS) -> None:
        self._keywords = {name: tuple(k.lower() for k in words) for name, words in keywords.items()}

    def _matches(self, table: str, text: str) -> tuple[str, ...]:
        return tuple(keyword for keyword in self._keywords.get(table, ()) if keyword in text)

    def classify(self, text: str) -> IntentContext:
        lowered = text.lower()

        emergency = self._matches("emergency", lowered)
        if emergency:
            return IntentContext(HealthCategory.EMERGENCY, Urgency.HIGH, emergency)

        symptoms = self._matches("symptoms", lowered)
        if symptoms:
            urgency = Urgency.MEDIUM if len(symptoms) > MEDIUM_URGENCY_SYMPTOM_COUNT else Urgency.LOW
            return IntentContext(HealthCategory.SYMPTOMS, urgency, symptoms)

        diseases = self._matches("diseases", lowered)
        if diseases:
            return IntentContext(HealthCategory.DISEASE_INFO, Urgency.LOW, diseases)

        prevention = self._matches("prevention", lowered)
        if prevention:
            return IntentContext(HealthCategory.PREVENTION, Urgency.LOW, prevention)

        return IntentContext()
