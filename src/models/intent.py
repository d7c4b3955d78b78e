from __future__ import annotations

from dataclasses import dataclass

from src.models.enums import HealthCategory, Urgency


@dataclass(frozen=True, slots=True)
class IntentContext:
    """Coarse health-topic classification of one message.

    Derived on every turn and never stored.  ``matched_keywords`` keeps
    the order of the keyword table so replies interpolate deterministically.
    """

    category: HealthCategory = HealthCategory.GENERAL
    urgency: Urgency = Urgency.LOW
    matched_keywords: tuple[str, ...] = ()

    @property
    def confidence(self) -> float:
        return 0.8 if self.matched_keywords else 0.3
