"""In-memory session store with idle eviction.

Owns every :class:`~src.models.session.Session` for the lifetime of the
process.  Sessions are created lazily on first contact, refreshed on
every update and swept once idle for longer than the TTL.

Concurrency
-----------
All access happens on the event loop, so individual ``get``/``update``
calls are atomic.  A turn, however, spans awaits (translation, AI), so
callers wrap the whole read-modify-write in ``async with store.lock(...)``.
Locks are per ``(channel, identifier)``; the sweeper never waits on them
and simply skips sessions that are mid-turn.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any, Callable

import structlog

from config.languages import DEFAULT_LANGUAGE
from src.models.enums import ChannelType
from src.models.session import DEFAULT_HISTORY_LIMIT, Session, UserProfile

logger = structlog.get_logger(__name__)

SessionKey = tuple[ChannelType, str]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionStore:
    """Keyed per-user conversational state.

    Parameters
    ----------
    ttl:
        Idle time after which a session is evicted by :meth:`sweep`.
    sweep_interval_seconds:
        Period of the background sweeper started by :meth:`start`.
    history_limit:
        Maximum number of history entries kept per session.
    clock:
        Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = timedelta(hours=24),
        sweep_interval_seconds: float = 3600.0,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        default_language: str = DEFAULT_LANGUAGE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ttl = ttl
        self._sweep_interval = sweep_interval_seconds
        self._history_limit = history_limit
        self._default_language = default_language
        self._clock = clock
        self._sessions: dict[SessionKey, Session] = {}
        self._locks: dict[SessionKey, asyncio.Lock] = {}
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, channel: ChannelType, identifier: str) -> Session:
        """Return the session for ``(channel, identifier)``, creating it if absent."""
        key = (channel, identifier)
        session = self._sessions.get(key)
        if session is None:
            session = Session(
                channel=channel,
                identifier=identifier,
                language=self._default_language,
                last_activity=self._clock(),
            )
            self._sessions[key] = session
            logger.debug("session.created", channel=channel.value, sessions=len(self._sessions))
        return session

    def peek(self, channel: ChannelType, identifier: str) -> Session | None:
        return self._sessions.get((channel, identifier))

    def update(self, channel: ChannelType, identifier: str, **fields: Any) -> Session:
        """Merge *fields* into the session and refresh its last activity.

        ``profile`` may be a partial mapping; it is merged into the
        existing profile rather than replacing it.
        """
        session = self.get(channel, identifier)
        profile = fields.pop("profile", None)
        if profile is not None:
            if isinstance(profile, UserProfile):
                profile = profile.model_dump(exclude_unset=True)
            session.profile = session.profile.model_copy(update=profile)
        for name, value in fields.items():
            setattr(session, name, value)
        session.last_activity = self._clock()
        return session

    def append_turn(
        self,
        channel: ChannelType,
        identifier: str,
        user_message: str,
        assistant_message: str,
    ) -> Session:
        session = self.get(channel, identifier)
        session.record_turn(user_message, assistant_message, limit=self._history_limit)
        session.last_activity = self._clock()
        return session

    def lock(self, channel: ChannelType, identifier: str) -> asyncio.Lock:
        """Return the mutual-exclusion lock guarding one session's turns."""
        key = (channel, identifier)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def sweep(self, now: datetime | None = None) -> int:
        """Remove sessions idle for longer than the TTL.  Returns the count removed."""
        cutoff = (now or self._clock()) - self._ttl
        expired = [
            key
            for key, session in self._sessions.items()
            if session.last_activity < cutoff and not self._is_busy(key)
        ]
        for key in expired:
            del self._sessions[key]
            self._locks.pop(key, None)

        # Locks can outlive their session (e.g. a turn that failed before
        # the session was created); drop the idle ones.
        for key in [k for k, lock in self._locks.items() if k not in self._sessions and not lock.locked()]:
            del self._locks[key]

        if expired:
            logger.info("session.sweep", evicted=len(expired), remaining=len(self._sessions))
        return len(expired)

    def _is_busy(self, key: SessionKey) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic background sweep on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run_sweeper())

    async def close(self) -> None:
        """Stop the sweeper and drop every session."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._sessions.clear()
        self._locks.clear()
        logger.info("session.store_closed")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run_sweeper(self) -> None:
        logger.info("session.sweeper_started", interval_seconds=self._sweep_interval)
        try:
            while True:
                await asyncio.sleep(self._sweep_interval)
                try:
                    self.sweep()
                except Exception:
                    logger.error("session.sweep_failed", exc_info=True)
        except asyncio.CancelledError:
            logger.info("session.sweeper_stopped")
            raise
