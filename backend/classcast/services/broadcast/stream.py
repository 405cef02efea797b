"""
Listener Stream - one server-sent-events channel per connected student.

Sequence on connect:
    1. "connected" event (with whether the session exists)
    2. replay of the session's last interim, if one is in flight
    3. every subsequent bus message, rendered for the listener's locale
    plus a ": heartbeat" comment every interval so proxies keep the connection open.

Closing the generator (client disconnect) unsubscribes from the bus.
"""

import asyncio
import json
import logging
import time
from typing import Any, AsyncIterator, Dict

from classcast.config.constants import STREAM_HEARTBEAT_INTERVAL_SEC, STREAM_LISTENER_QUEUE_SIZE
from classcast.schemas.broadcast import ConnectedEvent, MessageEvent
from classcast.services.metrics import active_listeners_gauge
from .event_bus import EventBus
from .messages import BroadcastMessage
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

HEARTBEAT_FRAME = ": heartbeat\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable nginx buffering
}


def format_event(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class ListenerStream:
    def __init__(
        self,
        registry: SessionRegistry,
        bus: EventBus,
        session_id: str,
        locale: str,
        *,
        heartbeat_interval: float = STREAM_HEARTBEAT_INTERVAL_SEC,
        queue_size: int = STREAM_LISTENER_QUEUE_SIZE,
    ):
        self.registry = registry
        self.bus = bus
        self.session_id = session_id
        self.locale = locale
        self._heartbeat_interval = heartbeat_interval
        self._queue: "asyncio.Queue[BroadcastMessage]" = asyncio.Queue(maxsize=queue_size)

    def _on_message(self, message: BroadcastMessage):
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                f"Listener queue full for session {self.session_id} ({self.locale}); "
                f"dropping message @{message.timestamp}"
            )

    def connected_event(self) -> Dict[str, Any]:
        return ConnectedEvent(
            active=self.registry.exists(self.session_id),
            timestamp=int(time.time() * 1000),
        ).model_dump()

    def _render(self, message: BroadcastMessage) -> str:
        return format_event(MessageEvent(**message.to_event(self.locale)).model_dump())

    async def events(self) -> AsyncIterator[str]:
        """Yield SSE frames until the consumer stops iterating."""
        loop = asyncio.get_running_loop()
        # Subscribe before the replay so nothing published in between is lost
        subscription = self.bus.subscribe(self.session_id, self._on_message)
        active_listeners_gauge.inc()
        logger.info(f"Listener joined session {self.session_id} (locale: {self.locale})")

        try:
            yield format_event(self.connected_event())

            last_interim = self.registry.last_interim(self.session_id)
            if last_interim is not None:
                yield self._render(last_interim)

            next_heartbeat = loop.time() + self._heartbeat_interval
            while True:
                timeout = max(next_heartbeat - loop.time(), 0)
                try:
                    message = await asyncio.wait_for(self._queue.get(), timeout=timeout)
                except asyncio.TimeoutError:
                    yield HEARTBEAT_FRAME
                    next_heartbeat = loop.time() + self._heartbeat_interval
                    continue
                yield self._render(message)
        finally:
            subscription.unsubscribe()
            active_listeners_gauge.dec()
            logger.info(f"Listener left session {self.session_id} (locale: {self.locale})")
