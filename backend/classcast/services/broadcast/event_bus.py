"""
Event Bus - in-process publish/subscribe keyed by session id.

Publishing is synchronous and never suspends: each subscriber callback is called
inline and must only hand the message off (e.g. put it on a queue). No buffering -
a subscriber only sees messages published while it is subscribed.
"""

import itertools
import logging
import threading
from typing import Callable, Dict, List

from .messages import BroadcastMessage

logger = logging.getLogger(__name__)

# Signature: (message) -> None
Subscriber = Callable[[BroadcastMessage], None]

# Signature: (session_id, message) -> None; sees every publish on every session
PublishTap = Callable[[str, BroadcastMessage], None]


class Subscription:
    """Handle returned by `EventBus.subscribe`. Unsubscribing twice is harmless."""

    def __init__(self, bus: "EventBus", session_id: str, token: int):
        self._bus = bus
        self.session_id = session_id
        self._token = token
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self):
        if self._active:
            self._active = False
            self._bus._remove(self.session_id, self._token)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()


class EventBus:
    """Fan-out of broadcast messages to every listener of a session."""

    def __init__(self):
        # session_id -> {token: callback}
        self._subscribers: Dict[str, Dict[int, Subscriber]] = {}
        self._taps: List[PublishTap] = []
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, session_id: str, callback: Subscriber) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._subscribers.setdefault(session_id, {})[token] = callback
        logger.debug(f"Subscriber {token} added to session {session_id}")
        return Subscription(self, session_id, token)

    def _remove(self, session_id: str, token: int):
        with self._lock:
            callbacks = self._subscribers.get(session_id)
            if not callbacks:
                return
            callbacks.pop(token, None)
            if not callbacks:
                del self._subscribers[session_id]
        logger.debug(f"Subscriber {token} removed from session {session_id}")

    def add_tap(self, tap: PublishTap):
        """Observe every local publish (used by the cross-instance relay)."""
        with self._lock:
            self._taps.append(tap)

    def remove_tap(self, tap: PublishTap):
        with self._lock:
            if tap in self._taps:
                self._taps.remove(tap)

    def publish(self, session_id: str, message: BroadcastMessage, *, notify_taps: bool = True) -> int:
        """
        Deliver `message` to every current subscriber of `session_id`.

        A failing callback is logged and skipped; the others still receive the
        message. Returns the number of callbacks that accepted it.
        """
        with self._lock:
            callbacks = list(self._subscribers.get(session_id, {}).values())
            taps = list(self._taps) if notify_taps else []

        delivered = 0
        for callback in callbacks:
            try:
                callback(message)
                delivered += 1
            except Exception as e:
                logger.error(f"Subscriber callback failed for session {session_id}: {e}")

        for tap in taps:
            try:
                tap(session_id, message)
            except Exception as e:
                logger.error(f"Publish tap failed for session {session_id}: {e}")

        return delivered

    def subscriber_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(session_id, {}))

    def total_subscribers(self) -> int:
        with self._lock:
            return sum(len(callbacks) for callbacks in self._subscribers.values())
