"""
Broadcast Storage - best-effort durable record of sessions and final captions.

The database is optional: every operation swallows and logs its own errors, so
an unavailable Postgres only costs durability across restarts, never a request.
"""

import logging
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from classcast.models.broadcast import BroadcastCaptionRecord, BroadcastSessionRecord, utcnow
from .messages import BroadcastMessage

logger = logging.getLogger(__name__)


class BroadcastStorage:
    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]], enabled: bool = True):
        self._session_factory = session_factory
        self._enabled = enabled and session_factory is not None

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def record_session_created(self, session_code: str) -> bool:
        if not self._enabled:
            return False
        try:
            async with self._session_factory() as db:
                db.add(BroadcastSessionRecord(session_code=session_code, is_active=True))
                await db.commit()
            return True
        except Exception as e:
            logger.warning(f"DB not available, session {session_code} kept in memory only: {e}")
            return False

    async def record_session_ended(self, session_code: str) -> bool:
        if not self._enabled:
            return False
        try:
            async with self._session_factory() as db:
                await db.execute(
                    update(BroadcastSessionRecord)
                    .where(BroadcastSessionRecord.session_code == session_code)
                    .values(is_active=False, ended_at=utcnow())
                )
                await db.commit()
            return True
        except Exception as e:
            logger.warning(f"DB not available, could not mark session {session_code} ended: {e}")
            return False

    async def record_caption(self, session_code: str, message: BroadcastMessage) -> bool:
        """Persist a final caption. Sessions unknown to the database are skipped."""
        if not self._enabled:
            return False
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(BroadcastSessionRecord.id)
                    .where(BroadcastSessionRecord.session_code == session_code)
                )
                session_pk = result.scalar_one_or_none()
                if session_pk is None:
                    logger.debug(f"No stored session {session_code}, caption not persisted")
                    return False

                db.add(BroadcastCaptionRecord(
                    session_id=session_pk,
                    original_text=message.original,
                    translations=dict(message.translations),
                    timestamp_ms=message.timestamp,
                ))
                await db.commit()
            return True
        except Exception as e:
            logger.warning(f"DB not available, caption for {session_code} not persisted: {e}")
            return False
