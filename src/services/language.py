"""Working-language resolution for an inbound message.

Strategies are tried in order and the first one returning a code wins:

1. explicit selection from the caller (anything but ``"auto"``)
2. script heuristic on the text (persisted to the profile)
3. the session's stored preferred language
4. the external detection service for texts longer than the threshold
   (persisted to the profile on success)

If none applies the default language is returned.  Detection failures
and timeouts are logged and skipped; :meth:`LanguageResolver.resolve`
never raises.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable

import structlog

from config.languages import DEFAULT_LANGUAGE, detect_script_language, normalize_language

if TYPE_CHECKING:
    from src.models.session import Session
    from src.services.session_store import SessionStore
    from src.services.translation import LanguageDetector

logger = structlog.get_logger(__name__)

AUTO = "auto"

LanguageStrategy = Callable[[str, "Session", "str | None"], Awaitable["str | None"]]


class LanguageResolver:
    def __init__(
        self,
        sessions: SessionStore,
        detector: LanguageDetector | None = None,
        *,
        min_detection_length: int = 10,
        timeout_seconds: float = 3.0,
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self._sessions = sessions
        self._detector = detector
        self._min_detection_length = min_detection_length
        self._timeout = timeout_seconds
        self._default = default_language
        self._strategies: tuple[tuple[str, LanguageStrategy], ...] = (
            ("explicit", self._explicit),
            ("script", self._script),
            ("preferred", self._preferred),
            ("detected", self._detected),
        )

    @property
    def default_language(self) -> str:
        return self._default

    async def resolve(self, text: str, session: Session, explicit_language: str | None = None) -> str:
        for source, strategy in self._strategies:
            code = await strategy(text, session, explicit_language)
            if code is not None:
                logger.debug("language.resolved", source=source, language=code)
                return code
        return self._default

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _explicit(self, text: str, session: Session, explicit: str | None) -> str | None:
        if not explicit or explicit.strip().lower() == AUTO:
            return None
        code = normalize_language(explicit)
        if code is None:
            logger.warning("language.unsupported_explicit", requested=explicit)
        return code

    async def _script(self, text: str, session: Session, explicit: str | None) -> str | None:
        code = detect_script_language(text)
        if code is not None:
            self._persist(session, code)
        return code

    async def _preferred(self, text: str, session: Session, explicit: str | None) -> str | None:
        return normalize_language(session.profile.preferred_language)

    async def _detected(self, text: str, session: Session, explicit: str | None) -> str | None:
        if self._detector is None or len(text) <= self._min_detection_length:
            return None
        try:
            detected = await asyncio.wait_for(self._detector.detect(text), timeout=self._timeout)
        except Exception as exc:
            logger.warning("language.detection_failed", error=repr(exc))
            return None
        code = normalize_language(detected)
        if code is not None:
            self._persist(session, code)
        return code

    def _persist(self, session: Session, code: str) -> None:
        self._sessions.update(session.channel, session.identifier, profile={"preferred_language": code})
