"""
Session Registry - in-memory state for live classroom broadcasts.

Holds, per session:
- ordered message history (provisional/final only, capped, oldest evicted)
- the single most recent interim message, replayed to late-joining listeners
- creation and last-activity times for the idle sweeper

Thread-safe: every mutation happens under one lock, so replace-by-timestamp can't
interleave with an append from another in-flight translation.
"""

import bisect
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from classcast.config.constants import SESSION_HISTORY_MAX_MESSAGES, SESSION_ID_PREFIX
from .exceptions import InterimMessageNotAllowedError
from .messages import BroadcastMessage

logger = logging.getLogger(__name__)


@dataclass
class BroadcastSession:
    """Mutable session state. Only the registry touches this directly."""
    id: str
    created_at: float
    last_activity: float
    messages: List[BroadcastMessage] = field(default_factory=list)
    last_interim: Optional[BroadcastMessage] = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of a session handed out to callers."""
    id: str
    created_at: float
    last_activity: float
    messages: Tuple[BroadcastMessage, ...]
    last_interim: Optional[BroadcastMessage]


class SessionRegistry:
    """Process-wide map of session id -> session state."""

    def __init__(
        self,
        max_messages: int = SESSION_HISTORY_MAX_MESSAGES,
        clock: Callable[[], float] = time.time,
    ):
        self._sessions: Dict[str, BroadcastSession] = {}
        self._max_messages = max_messages
        self._clock = clock
        self._lock = threading.Lock()

    def _new_session_id(self) -> str:
        return f"{SESSION_ID_PREFIX}{int(self._clock() * 1000)}-{uuid.uuid4().hex[:6]}"

    # === Lifecycle ===

    def create(self) -> str:
        """Create a new empty session and return its id."""
        now = self._clock()
        with self._lock:
            session_id = self._new_session_id()
            while session_id in self._sessions:
                session_id = self._new_session_id()
            self._sessions[session_id] = BroadcastSession(
                id=session_id, created_at=now, last_activity=now
            )
        logger.info(f"Created broadcast session {session_id}")
        return session_id

    def end(self, session_id: str) -> bool:
        """Remove a session. Returns False if it didn't exist."""
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is None:
            return False
        logger.info(f"Ended broadcast session {session_id} ({len(removed.messages)} messages)")
        return True

    # === Queries ===

    def get(self, session_id: str) -> Optional[SessionSnapshot]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return SessionSnapshot(
                id=session.id,
                created_at=session.created_at,
                last_activity=session.last_activity,
                messages=tuple(session.messages),
                last_interim=session.last_interim,
            )

    def exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def history(self, session_id: str, since: int = 0) -> List[BroadcastMessage]:
        """Messages newer than `since` (ms), oldest first."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return []
            return [m for m in session.messages if m.timestamp > since]

    def last_interim(self, session_id: str) -> Optional[BroadcastMessage]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.last_interim if session else None

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())

    def count(self) -> int:
        return len(self._sessions)

    # === Mutations ===

    def touch(self, session_id: str) -> bool:
        """Record activity on a session. Returns False if it doesn't exist."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            session.last_activity = self._clock()
            return True

    def append_or_replace(self, session_id: str, message: BroadcastMessage) -> bool:
        """
        Store a provisional or final message.

        Replaces in place if a message with the same timestamp exists, otherwise
        inserts in timestamp order and evicts the oldest entries beyond the cap.
        Returns False (no-op) if the session no longer exists, or if history is
        full and the message is older than everything retained.
        """
        if message.interim:
            raise InterimMessageNotAllowedError("Interim messages are never stored in history")

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.debug(f"Dropping {message.kind.value} message for missing session {session_id}")
                return False

            for index, existing in enumerate(session.messages):
                if existing.timestamp == message.timestamp:
                    session.messages[index] = message
                    return True

            if (
                session.messages
                and len(session.messages) >= self._max_messages
                and message.timestamp < session.messages[0].timestamp
            ):
                logger.debug(
                    f"Dropping {message.kind.value} @{message.timestamp} for session {session_id}; "
                    f"older than retained history"
                )
                return False

            # Utterances overlap, so completion order is not submission order
            bisect.insort(session.messages, message, key=lambda m: m.timestamp)
            overflow = len(session.messages) - self._max_messages
            if overflow > 0:
                del session.messages[:overflow]
            return True

    def set_last_interim(self, session_id: str, message: BroadcastMessage) -> bool:
        """
        Keep `message` as the session's last interim unless a newer one is already
        stored (translations can finish out of submission order).
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            current = session.last_interim
            if current is not None and current.timestamp > message.timestamp:
                return False
            session.last_interim = message
            return True

    def clear_last_interim(self, session_id: str, before: int) -> bool:
        """Drop the last interim if it was submitted before timestamp `before`."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.last_interim is None:
                return False
            if session.last_interim.timestamp >= before:
                return False
            session.last_interim = None
            return True

    def expire_idle(self, max_idle_seconds: float) -> List[str]:
        """Remove sessions idle for longer than `max_idle_seconds`; return their ids."""
        cutoff = self._clock() - max_idle_seconds
        with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if session.last_activity < cutoff
            ]
            for sid in expired:
                del self._sessions[sid]
        for sid in expired:
            logger.info(f"Expired idle broadcast session {sid}")
        return expired
