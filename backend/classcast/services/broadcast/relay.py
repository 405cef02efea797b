"""
Redis Event Relay - share live broadcast events between backend instances.

Each instance still owns its sessions' history; the relay only forwards bus
publishes, so a student connected to instance B sees captions produced on
instance A.

Outgoing: a bus tap publishes every local message to
    channel:broadcast:{session_id}
Incoming: a listener pattern-subscribes to channel:broadcast:* and republishes
remote messages on the local bus without tapping them again.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Optional

from classcast.config.constants import RELAY_CHANNEL_PREFIX, RELAY_RECONNECT_DELAY_SEC
from .event_bus import EventBus
from .messages import BroadcastMessage
from .tasks import TaskSupervisor

logger = logging.getLogger(__name__)


class RedisEventRelay:
    def __init__(
        self,
        bus: EventBus,
        redis_getter: Callable[[], Awaitable[Any]],
        supervisor: TaskSupervisor,
        instance_id: Optional[str] = None,
    ):
        self.bus = bus
        self._get_redis = redis_getter
        self.supervisor = supervisor
        self.instance_id = instance_id or uuid.uuid4().hex
        self._attached = False

    def channel_for(self, session_id: str) -> str:
        return f"{RELAY_CHANNEL_PREFIX}{session_id}"

    def attach(self):
        if not self._attached:
            self.bus.add_tap(self._on_local_publish)
            self._attached = True

    def detach(self):
        if self._attached:
            self.bus.remove_tap(self._on_local_publish)
            self._attached = False

    def _on_local_publish(self, session_id: str, message: BroadcastMessage):
        self.supervisor.spawn(self.forward(session_id, message), name=f"relay:{session_id}")

    def encode(self, session_id: str, message: BroadcastMessage) -> str:
        return json.dumps({
            "origin": self.instance_id,
            "session_id": session_id,
            "message": message.to_dict(),
        }, ensure_ascii=False)

    async def forward(self, session_id: str, message: BroadcastMessage):
        try:
            redis = await self._get_redis()
            await redis.publish(self.channel_for(session_id), self.encode(session_id, message))
        except Exception as e:
            logger.error(f"Failed to relay message for session {session_id}: {e}")

    def handle_payload(self, raw: Any) -> bool:
        """Republish a relayed message locally. Returns True if it was delivered to the bus."""
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            data = json.loads(raw)
            if data.get("origin") == self.instance_id:
                return False
            session_id = data["session_id"]
            message = BroadcastMessage.from_dict(data["message"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed relay payload: {e}")
            return False

        self.bus.publish(session_id, message, notify_taps=False)
        return True

    async def listen(self):
        """Background loop forwarding remote messages onto the local bus."""
        while True:
            pubsub = None
            try:
                redis = await self._get_redis()
                pubsub = redis.pubsub()
                await pubsub.psubscribe(f"{RELAY_CHANNEL_PREFIX}*")
                logger.info("✅ Subscribed to broadcast relay channels")

                async for item in pubsub.listen():
                    if item["type"] == "pmessage":
                        self.handle_payload(item["data"])
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Relay subscription error: {e}")
            finally:
                if pubsub is not None:
                    try:
                        await pubsub.close()
                    except Exception as e:
                        logger.debug(f"Error closing relay pubsub: {e}")

            await asyncio.sleep(RELAY_RECONNECT_DELAY_SEC)
