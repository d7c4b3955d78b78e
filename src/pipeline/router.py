"""Inbound message router for GramCare.

Single entry point for every channel.  Each message moves through

    received -> language_resolved -> classified -> composed
             -> formatted -> session_updated -> sent

and ends either in ``sent`` or, when anything raises, in
``error_replied`` with the fixed apology.  The whole turn runs under the
sender's session lock so concurrent messages from one identifier cannot
lose history updates.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final
from uuid import uuid4

import structlog

from src.errors import UnhandledInternalError, ValidationFailure
from src.models.enums import ChannelType, TurnState
from src.services.messaging import mask_phone

if TYPE_CHECKING:
    from src.data.knowledge_base import AlertRepository
    from src.models.intent import IntentContext
    from src.models.payload import ChannelPayload
    from src.models.session import Session
    from src.services.composer import ResponseComposer
    from src.services.formatter import ChannelFormatter
    from src.services.intent import IntentClassifier
    from src.services.language import LanguageResolver
    from src.services.session_store import SessionStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

APOLOGY_MESSAGE: Final[str] = "Sorry, I encountered an error. Please try again later."

# Exact commands that switch the session language.
LANGUAGE_COMMANDS: Final[dict[str, str]] = {"hi": "hi", "en": "en"}
HELP_COMMAND: Final[str] = "help"
ALERTS_COMMAND: Final[str] = "alerts"
ALERTS_DEFAULT_LOCATION: Final[str] = "all"


@dataclass(slots=True)
class _Reply:
    text: str
    language: str
    intent: IntentContext | None = None


class _TurnTrace:
    """Current state of one turn, logged on every transition."""

    __slots__ = ("log", "state")

    def __init__(self, log: structlog.stdlib.BoundLogger) -> None:
        self.log = log
        self.state = TurnState.RECEIVED
        log.debug("router.state", state=self.state.value)

    def advance(self, state: TurnState) -> None:
        self.state = state
        self.log.debug("router.state", state=state.value)


class MessageRouter:
    """Orchestrates language resolution, classification, composition and formatting."""

    __slots__ = (
        "_alerts",
        "_classifier",
        "_composer",
        "_formatter",
        "_resolver",
        "_sessions",
        "_turn_deadline",
    )

    def __init__(
        self,
        sessions: SessionStore,
        resolver: LanguageResolver,
        classifier: IntentClassifier,
        composer: ResponseComposer,
        formatter: ChannelFormatter,
        alerts: AlertRepository,
        *,
        turn_deadline_seconds: float | None = None,
    ) -> None:
        self._sessions = sessions
        self._resolver = resolver
        self._classifier = classifier
        self._composer = composer
        self._formatter = formatter
        self._alerts = alerts
        self._turn_deadline = turn_deadline_seconds

    async def handle_inbound_message(
        self,
        channel: ChannelType,
        identifier: str,
        raw_text: str,
        explicit_language: str | None = None,
        *,
        session_id: str | None = None,
    ) -> ChannelPayload:
        """Process one inbound message and return the channel payload.

        Never raises.  Missing identifiers yield an error payload and any
        other failure yields the apology payload.
        """
        start = time.perf_counter()
        identifier = (identifier or "").strip()
        trace = _TurnTrace(
            logger.bind(turn_id=uuid4().hex[:12], channel=channel.value, identifier=mask_phone(identifier))
        )
        language = self._resolver.default_language

        try:
            if not identifier:
                raise ValidationFailure("A sender identifier is required.", field="identifier")

            async with self._sessions.lock(channel, identifier):
                session = self._sessions.get(channel, identifier)
                language = session.language
                text = (raw_text or "").strip()

                reply = await self._run_command(text, session, explicit_language)
                if reply is not None:
                    trace.advance(TurnState.COMPOSED)
                else:
                    reply = await self._run_pipeline_within_deadline(channel, text, session, explicit_language, trace)
                language = reply.language

                payload = self._formatter.format(
                    reply.text,
                    channel,
                    identifier=identifier,
                    language=reply.language,
                    intent=reply.intent,
                    session_id=session_id,
                )
                trace.advance(TurnState.FORMATTED)

                self._sessions.update(channel, identifier, language=reply.language)
                self._sessions.append_turn(channel, identifier, text, reply.text)
                trace.advance(TurnState.SESSION_UPDATED)

        except ValidationFailure as exc:
            trace.log.warning("router.rejected", field=exc.field, reason=exc.message)
            return self._formatter.error(
                exc.message, channel, identifier=identifier, language=language, session_id=session_id
            )
        except Exception as exc:
            error = UnhandledInternalError(trace.state.value, exc)
            trace.advance(TurnState.ERROR_REPLIED)
            trace.log.error("router.turn_failed", stage=error.stage, error=str(error), exc_info=True)
            return self._formatter.error(
                APOLOGY_MESSAGE, channel, identifier=identifier, language=language, session_id=session_id
            )

        trace.advance(TurnState.SENT)
        trace.log.info(
            "router.turn_completed",
            language=language,
            category=reply.intent.category.value if reply.intent else "command",
            elapsed_ms=_elapsed_ms(start),
        )
        return payload

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _run_pipeline_within_deadline(
        self,
        channel: ChannelType,
        text: str,
        session: Session,
        explicit_language: str | None,
        trace: _TurnTrace,
    ) -> _Reply:
        """Run the pipeline, bounded by the turn deadline on segmented channels.

        Past the deadline the English template for the message is returned.
        """
        if not channel.is_segmented or self._turn_deadline is None:
            return await self._run_pipeline(text, session, explicit_language, trace)
        try:
            return await asyncio.wait_for(
                self._run_pipeline(text, session, explicit_language, trace),
                timeout=self._turn_deadline,
            )
        except TimeoutError:
            intent = self._classifier.classify(text)
            trace.log.warning("router.turn_deadline_exceeded", deadline_seconds=self._turn_deadline)
            trace.advance(TurnState.COMPOSED)
            return _Reply(self._composer.fallback(intent), session.language, intent)

    async def _run_pipeline(
        self,
        text: str,
        session: Session,
        explicit_language: str | None,
        trace: _TurnTrace,
    ) -> _Reply:
        language = await self._resolver.resolve(text, session, explicit_language)
        trace.advance(TurnState.LANGUAGE_RESOLVED)

        intent = self._classifier.classify(text)
        trace.advance(TurnState.CLASSIFIED)
        trace.log.debug(
            "router.classified",
            category=intent.category.value,
            urgency=intent.urgency.value,
            keywords=list(intent.matched_keywords),
        )

        reply = await self._composer.compose(text, intent, language)
        trace.advance(TurnState.COMPOSED)
        return _Reply(reply, language, intent)

    async def _run_command(
        self,
        text: str,
        session: Session,
        explicit_language: str | None,
    ) -> _Reply | None:
        """Handle the literal commands; ``None`` when *text* is not one."""
        lowered = text.lower()

        if lowered in LANGUAGE_COMMANDS:
            language = LANGUAGE_COMMANDS[lowered]
            self._sessions.update(session.channel, session.identifier, profile={"preferred_language": language})
            return _Reply(await self._composer.welcome(language), language)

        if not text:
            language = await self._resolver.resolve(text, session, explicit_language or session.language)
            return _Reply(await self._composer.welcome(language), language)

        if lowered == HELP_COMMAND:
            language = await self._resolver.resolve(text, session, explicit_language)
            return _Reply(await self._composer.help(language), language)

        if lowered.startswith(ALERTS_COMMAND):
            language = await self._resolver.resolve(text, session, explicit_language)
            location = text[len(ALERTS_COMMAND):].strip() or ALERTS_DEFAULT_LOCATION
            return _Reply(self._alerts.render(location, language), language)

        return None


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
