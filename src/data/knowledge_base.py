"""Static health FAQ and outbreak alert data.

Loads the bundled ``health_faqs.json`` and ``outbreak_alerts.json`` once
at application startup.  The data is treated as immutable for the life of
the process.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import orjson
import structlog

from src.models.knowledge import AlertEntry, FAQEntry

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

_DATA_DIR: Path = Path(__file__).resolve().parent
FAQ_PATH: Path = _DATA_DIR / "health_faqs.json"
ALERTS_PATH: Path = _DATA_DIR / "outbreak_alerts.json"

ALL_LOCATIONS = "all"
MAX_ALERTS_PER_REPLY = 2


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _read_records(path: Path, root_key: str) -> list[dict]:
    raw = orjson.loads(path.read_bytes())
    records = raw.get(root_key, []) if isinstance(raw, dict) else raw
    if not isinstance(records, list):
        raise ValueError(f"{path.name}: expected a list under {root_key!r}")
    return records


def load_faqs(path: Path | None = None) -> list[FAQEntry]:
    """Load FAQ entries, skipping records that fail validation."""
    path = path or FAQ_PATH
    entries: list[FAQEntry] = []
    for idx, record in enumerate(_read_records(path, "faqs")):
        try:
            entries.append(FAQEntry.model_validate(record))
        except ValueError:
            logger.warning("knowledge.faq_invalid", index=idx, path=str(path), exc_info=True)
    logger.info("knowledge.faqs_loaded", count=len(entries))
    return entries


def load_alerts(path: Path | None = None) -> list[AlertEntry]:
    """Load outbreak alerts, skipping records that fail validation."""
    path = path or ALERTS_PATH
    entries: list[AlertEntry] = []
    for idx, record in enumerate(_read_records(path, "alerts")):
        try:
            entries.append(AlertEntry.model_validate(record))
        except ValueError:
            logger.warning("knowledge.alert_invalid", index=idx, path=str(path), exc_info=True)
    logger.info("knowledge.alerts_loaded", count=len(entries))
    return entries


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class FAQRepository:
    """Keyword-scored lookup over the FAQ list.

    Scoring per entry: +2 for each keyword found in the message, +1 for
    each question word longer than three characters found in the message.
    The strictly highest positive score wins; the first entry wins ties.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[FAQEntry]) -> None:
        self._entries = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def score(entry: FAQEntry, message: str) -> int:
        message = message.lower()
        score = sum(2 for keyword in entry.keywords if keyword.lower() in message)
        score += sum(1 for word in entry.question.lower().split(" ") if len(word) > 3 and word in message)
        return score

    def find_best_match(self, message: str) -> FAQEntry | None:
        best: FAQEntry | None = None
        best_score = 0
        for entry in self._entries:
            score = self.score(entry, message)
            if score > best_score:
                best, best_score = entry, score
        return best


class AlertRepository:
    """Outbreak alerts queried by location substring."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[AlertEntry]) -> None:
        self._entries = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, location: str) -> list[AlertEntry]:
        if location.strip().lower() == ALL_LOCATIONS:
            return list(self._entries)
        return [alert for alert in self._entries if alert.covers(location)]

    def render(self, location: str, language: str) -> str:
        """Human-readable alert summary for *location* (at most two alerts)."""
        alerts = self.find(location)
        hindi = language == "hi"

        if not alerts:
            if hindi:
                return f"{location} के लिए कोई सक्रिय अलर्ट नहीं मिला। 🟢"
            return f"No active alerts found for {location}. 🟢"

        header = f"{location} के लिए स्वास्थ्य अलर्ट:" if hindi else f"Health alerts for {location}:"
        lines = [header]
        for idx, alert in enumerate(alerts[:MAX_ALERTS_PER_REPLY], start=1):
            lines.append(f"{idx}. {alert.message_for(language)}")
        return "\n\n".join(lines)
