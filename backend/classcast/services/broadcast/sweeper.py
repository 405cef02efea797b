"""
Session Sweeper - ends broadcasts the teacher forgot to close.

Runs continuously and removes sessions with no submissions for longer than the
idle timeout, marking them ended in storage. Orchestration still in flight for an
expired session finishes as a no-op against the registry.
"""

import asyncio
import logging
from typing import List, Optional

from classcast.config.constants import SESSION_IDLE_TIMEOUT_SEC, SESSION_SWEEP_INTERVAL_SEC
from .registry import SessionRegistry
from .storage import BroadcastStorage

logger = logging.getLogger(__name__)


class SessionSweeper:
    def __init__(
        self,
        registry: SessionRegistry,
        storage: Optional[BroadcastStorage] = None,
        *,
        idle_timeout: float = SESSION_IDLE_TIMEOUT_SEC,
        interval: float = SESSION_SWEEP_INTERVAL_SEC,
    ):
        self.registry = registry
        self.storage = storage
        self.idle_timeout = idle_timeout
        self.interval = interval

    async def sweep_once(self) -> List[str]:
        expired = self.registry.expire_idle(self.idle_timeout)
        if self.storage is not None:
            for session_id in expired:
                await self.storage.record_session_ended(session_id)
        return expired

    async def run(self):
        """Background loop; cancel the task to stop it."""
        logger.info("Starting session sweeper background task")

        while True:
            try:
                expired = await self.sweep_once()
                if expired:
                    logger.info(f"Sweeper ended {len(expired)} idle sessions")
            except Exception as e:
                logger.error(f"Session sweep error: {e}")

            await asyncio.sleep(self.interval)
