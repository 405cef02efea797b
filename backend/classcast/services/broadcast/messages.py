"""
Broadcast message variants.

A message is exactly one of:
- interim:     in-progress transcript, bus-only, never stored in history
- provisional: fast first-pass translation of a finalized utterance
- final:       quality translation that replaces the provisional one

The `timestamp` (milliseconds since epoch) identifies an utterance across its
provisional and final versions.
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping

from classcast.config.constants import SOURCE_LANGUAGE


class MessageKind(str, Enum):
    INTERIM = "interim"
    PROVISIONAL = "provisional"
    FINAL = "final"


@dataclass(frozen=True)
class BroadcastMessage:
    kind: MessageKind
    original: str
    translations: Mapping[str, str] = field(default_factory=dict)
    timestamp: int = 0

    @classmethod
    def interim_message(cls, original: str, translations: Mapping[str, str], timestamp: int) -> "BroadcastMessage":
        return cls(MessageKind.INTERIM, original, dict(translations), timestamp)

    @classmethod
    def provisional_message(cls, original: str, translations: Mapping[str, str], timestamp: int) -> "BroadcastMessage":
        return cls(MessageKind.PROVISIONAL, original, dict(translations), timestamp)

    @classmethod
    def final_message(cls, original: str, translations: Mapping[str, str], timestamp: int) -> "BroadcastMessage":
        return cls(MessageKind.FINAL, original, dict(translations), timestamp)

    @property
    def interim(self) -> bool:
        return self.kind is MessageKind.INTERIM

    @property
    def provisional(self) -> bool:
        return self.kind is MessageKind.PROVISIONAL

    def translated_for(self, locale: str) -> str:
        """Text for a listener's locale; empty when no translation exists for it."""
        if locale == SOURCE_LANGUAGE:
            return self.original
        return self.translations.get(locale, "")

    def to_event(self, locale: str) -> Dict[str, Any]:
        """Wire payload for one listener."""
        return {
            "type": "message",
            "original": self.original,
            "translated": self.translated_for(locale),
            "timestamp": self.timestamp,
            "provisional": self.provisional,
            "interim": self.interim,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "original": self.original,
            "translations": dict(self.translations),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BroadcastMessage":
        return cls(
            kind=MessageKind(data["kind"]),
            original=data["original"],
            translations=dict(data.get("translations") or {}),
            timestamp=int(data["timestamp"]),
        )


class TimestampClock:
    """
    Strictly increasing millisecond clock.

    Two utterances submitted within the same millisecond still get distinct
    timestamps, so provisional/final replacement never crosses utterances.
    """

    def __init__(self, time_source=time.time):
        self._time_source = time_source
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = int(self._time_source() * 1000)
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now
