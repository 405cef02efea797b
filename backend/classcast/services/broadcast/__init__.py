"""
Broadcast pipeline: live classroom captions with two-phase translation.

Usage:
    from classcast.services.broadcast import TranslationOrchestrator, SessionRegistry, EventBus
"""

from .messages import BroadcastMessage, MessageKind, TimestampClock
from .exceptions import BroadcastError, InterimMessageNotAllowedError, TranslationProviderError
from .registry import SessionRegistry, SessionSnapshot
from .event_bus import EventBus, Subscription
from .tasks import TaskSupervisor
from .storage import BroadcastStorage
from .orchestrator import TranslationOrchestrator
from .stream import ListenerStream
from .sweeper import SessionSweeper
from .relay import RedisEventRelay

__all__ = [
    "BroadcastMessage",
    "MessageKind",
    "TimestampClock",
    "BroadcastError",
    "InterimMessageNotAllowedError",
    "TranslationProviderError",
    "SessionRegistry",
    "SessionSnapshot",
    "EventBus",
    "Subscription",
    "TaskSupervisor",
    "BroadcastStorage",
    "TranslationOrchestrator",
    "ListenerStream",
    "SessionSweeper",
    "RedisEventRelay",
]
