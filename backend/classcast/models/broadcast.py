"""
Broadcast Models - durable record of classroom sessions and captions.

Only finalized captions are stored; interim and provisional text lives in memory.
"""
from sqlalchemy import Column, String, DateTime, Integer, BigInteger, Boolean, Text, JSON, ForeignKey
from datetime import datetime, UTC

from .database import Base


def utcnow() -> datetime:
    return datetime.now(UTC)


class BroadcastSessionRecord(Base):
    """One live classroom broadcast"""
    __tablename__ = "broadcast_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_code = Column(String(64), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "session_code": self.session_code,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }


class BroadcastCaptionRecord(Base):
    """Finalized caption with its translations"""
    __tablename__ = "broadcast_captions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey('broadcast_sessions.id', ondelete='CASCADE'), nullable=False, index=True)

    original_text = Column(Text, nullable=False)
    translations = Column(JSON, nullable=False)

    # Same millisecond timestamp listeners use to identify the caption
    timestamp_ms = Column(BigInteger, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "original_text": self.original_text,
            "translations": self.translations,
            "timestamp_ms": self.timestamp_ms,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
