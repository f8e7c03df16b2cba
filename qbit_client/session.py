"""
qBittorrent Session Cache

Holds the current SID cookie and collapses concurrent refresh demand into a
single login call per expiry event.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .types import DEFAULT_SESSION_TTL


logger = logging.getLogger("qbit_client")

Clock = Callable[[], float]


def _detached_copy(error: BaseException) -> BaseException:
    """Copy of an exception without its traceback, so each waiter raises its own instance."""
    cls = type(error)
    clone = cls.__new__(cls)
    clone.args = error.args
    clone.__dict__.update(error.__dict__)
    clone.__cause__ = error.__cause__
    return clone


@dataclass(frozen=True)
class Session:
    """A session token and the clock reading taken just before it was requested."""

    token: str
    created_at: float


class _BaseSessionCache:
    """State and expiry policy shared by the sync and async caches."""

    def __init__(self, ttl: float = DEFAULT_SESSION_TTL, clock: Optional[Clock] = None) -> None:
        self._ttl = ttl
        self._clock = clock or time.monotonic
        self._session: Optional[Session] = None
        self._refreshing = False
        # Bumped after every completed login attempt, successful or not
        self._generation = 0
        self._last_failure: Optional[BaseException] = None

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def refreshing(self) -> bool:
        """Whether a login is currently in flight."""
        return self._refreshing

    def snapshot(self) -> Optional[Session]:
        """Read-only view of the current session."""
        return self._session

    def is_expired(self, session: Optional[Session] = None) -> bool:
        """Check if the given (or current) session is expired. No session counts as expired."""
        if session is None:
            session = self._session
        if session is None:
            return True
        return self._clock() - session.created_at >= self._ttl

    def invalidate(self) -> None:
        """Drop the current session so the next request logs in again."""
        self._session = None

    def _waited_result(self, generation: int) -> Optional[str]:
        """
        Outcome of an attempt that finished while this caller waited for the lock.

        Returns the fresh token, re-raises the attempt's failure, or returns
        None when no attempt completed in the meantime.
        """
        if self._generation == generation:
            return None
        if self._last_failure is not None:
            raise _detached_copy(self._last_failure)
        session = self._session
        if session is not None and not self.is_expired(session):
            return session.token
        return None

    def _begin(self) -> float:
        self._refreshing = True
        return self._clock()

    def _succeed(self, token: str, started_at: float) -> str:
        self._session = Session(token, started_at)
        self._last_failure = None
        self._generation += 1
        logger.debug("Session refreshed (generation=%d)", self._generation)
        return token

    def _fail(self, error: BaseException) -> None:
        self._last_failure = _detached_copy(error)
        self._generation += 1
        logger.debug("Session refresh failed: %s", type(error).__name__)


class SessionCache(_BaseSessionCache):
    """Thread-safe session cache with single-flight refresh."""

    def __init__(
        self,
        authenticate: Callable[[], str],
        ttl: float = DEFAULT_SESSION_TTL,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(ttl, clock)
        self._authenticate = authenticate
        self._lock = threading.Lock()

    def get_token(self) -> str:
        """Return a valid token, logging in first if the session has expired."""
        session = self._session
        if session is not None and not self.is_expired(session):
            return session.token
        return self._refresh(force=False)

    def refresh(self) -> str:
        """Force a new login."""
        return self._refresh(force=True)

    def _refresh(self, force: bool) -> str:
        generation = self._generation
        with self._lock:
            token = self._waited_result(generation)
            if token is not None:
                return token
            session = self._session
            if not force and session is not None and not self.is_expired(session):
                return session.token

            started_at = self._begin()
            try:
                token = self._authenticate()
            except Exception as error:
                self._fail(error)
                raise
            finally:
                self._refreshing = False
            return self._succeed(token, started_at)


class AsyncSessionCache(_BaseSessionCache):
    """asyncio session cache with single-flight refresh."""

    def __init__(
        self,
        authenticate: Callable[[], Awaitable[str]],
        ttl: float = DEFAULT_SESSION_TTL,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(ttl, clock)
        self._authenticate = authenticate
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        """Return a valid token, logging in first if the session has expired."""
        session = self._session
        if session is not None and not self.is_expired(session):
            return session.token
        return await self._refresh(force=False)

    async def refresh(self) -> str:
        """Force a new login."""
        return await self._refresh(force=True)

    async def _refresh(self, force: bool) -> str:
        generation = self._generation
        async with self._lock:
            token = self._waited_result(generation)
            if token is not None:
                return token
            session = self._session
            if not force and session is not None and not self.is_expired(session):
                return session.token

            started_at = self._begin()
            try:
                token = await self._authenticate()
            except Exception as error:
                self._fail(error)
                raise
            finally:
                self._refreshing = False
            return self._succeed(token, started_at)
