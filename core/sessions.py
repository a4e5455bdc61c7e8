# =============================================================================
# core/sessions.py  —  In-memory Session Store
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Keeps every live conversation in RAM, keyed by session id.  One store
#   instance is created at process start (by the API app) and closed on
#   shutdown; nothing here is module-level global state.
#
# LEASES:
#   A request must hold the session's lease for its whole lifetime.  Leases
#   are non-blocking: if a second request for the same session arrives while
#   the first is running, `lease()` raises SessionConflictError and the API
#   answers 409.  The sweeper never evicts a leased session.
#
# EVICTION:
#   `evict_idle()` drops sessions whose `last_active_at` is older than the idle
#   timeout.  `start_sweeper()` runs it periodically on the event loop.
# =============================================================================

import asyncio
import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from core.errors import SessionConflictError
from core.models import Session, Turn, utcnow

logger = logging.getLogger(__name__)


class SessionLease:
    """Exclusive right to run one request against a session."""

    def __init__(self, store: "SessionStore", session_id: str):
        self._store = store
        self.session_id = session_id
        self._released = False

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._store._release(self.session_id)

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.release()


class SessionStore:
    def __init__(self, idle_timeout: float = 1800.0):
        self.idle_timeout = timedelta(seconds=idle_timeout)
        self._sessions: dict[str, Session] = {}
        self._leased: set[str] = set()
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------
    def get_or_create(self, session_id: str) -> Session:
        """Return the session, creating it on first use.  Marks it active."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(id=session_id)
                self._sessions[session_id] = session
                logger.info(f"Created session {session_id}")
            session.last_active_at = utcnow()
            return session

    def append(self, session_id: str, turn: Turn) -> None:
        """Append a finished turn.  Raises KeyError for an unknown session."""
        with self._lock:
            session = self._sessions[session_id]
            session.turns.append(turn)
            session.last_active_at = utcnow()

    def evict_idle(self, now: Optional[datetime] = None) -> list[str]:
        """Remove sessions idle past the timeout and return their ids."""
        now = now or utcnow()
        cutoff = now - self.idle_timeout
        with self._lock:
            expired = [
                sid
                for sid, session in self._sessions.items()
                if session.last_active_at < cutoff and sid not in self._leased
            ]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info(f"Evicted {len(expired)} idle session(s)")
        return expired

    # -------------------------------------------------------------------------
    # Leases
    # -------------------------------------------------------------------------
    def lease(self, session_id: str) -> SessionLease:
        """Take the session's lease or raise SessionConflictError."""
        with self._lock:
            if session_id in self._leased:
                raise SessionConflictError(session_id)
            self._leased.add(session_id)
        return SessionLease(self, session_id)

    def is_leased(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._leased

    def _release(self, session_id: str) -> None:
        with self._lock:
            self._leased.discard(session_id)
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_active_at = utcnow()

    # -------------------------------------------------------------------------
    # Background sweep
    # -------------------------------------------------------------------------
    def start_sweeper(self, interval: float) -> asyncio.Task:
        """Start the periodic eviction task on the running loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever(interval))
        return self._sweeper

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.evict_idle()

    async def close(self) -> None:
        """Stop the sweeper and drop every session."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        with self._lock:
            self._sessions.clear()
            self._leased.clear()
