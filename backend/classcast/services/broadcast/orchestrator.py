"""
Two-Phase Translation Orchestrator

Turns the teacher's transcribed speech into captions for every target language.

Interim (in-progress) text:
    fast backend x N languages (parallel) -> interim message -> bus
    Kept as the session's single "last interim"; never written to history.

Final text, two sequential phases sharing one timestamp T:
    Phase 1: fast backend x N (parallel)    -> provisional(T) -> history + bus
    Phase 2: quality backend x N (parallel) -> final(T)       -> replaces provisional(T)
                                                               -> cache + bus + storage

Phase 1 is published before Phase 2 starts, so students see a draft within about
a second while Gemini polishes it. Different utterances run independently; their
publishes interleave by completion order.

Fail-safe: backends never raise, and a language the quality backend can't
translate keeps its Phase 1 text. A phase always publishes something.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional, Sequence

from classcast.config.constants import SOURCE_LANGUAGE, TARGET_LANGUAGES
from classcast.services.metrics import messages_published
from classcast.services.protocols import TranslationBackendProtocol
from classcast.services.translation.cache import TranslationCache
from .event_bus import EventBus
from .messages import BroadcastMessage, TimestampClock
from .registry import SessionRegistry
from .storage import BroadcastStorage

logger = logging.getLogger(__name__)


class TranslationOrchestrator:
    def __init__(
        self,
        registry: SessionRegistry,
        bus: EventBus,
        fast_backend: TranslationBackendProtocol,
        quality_backend: TranslationBackendProtocol,
        cache: TranslationCache,
        storage: Optional[BroadcastStorage] = None,
        *,
        source_language: str = SOURCE_LANGUAGE,
        target_languages: Sequence[str] = TARGET_LANGUAGES,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.registry = registry
        self.bus = bus
        self.fast_backend = fast_backend
        self.quality_backend = quality_backend
        self.cache = cache
        self.storage = storage
        self.source_language = source_language
        self.target_languages = tuple(target_languages)
        self._clock = clock or TimestampClock()

    def next_timestamp(self) -> int:
        return self._clock()

    # === Entry points ===

    async def handle_interim(self, session_id: str, text: str, timestamp: Optional[int] = None) -> BroadcastMessage:
        """Translate an in-progress transcript with the fast backend only."""
        timestamp = timestamp if timestamp is not None else self.next_timestamp()

        try:
            translations = await self._fast_fan_out(text)
        except Exception as e:
            logger.error(f"[Interim] Fast fan-out failed for session {session_id}: {e}")
            translations = self._untranslated(text)

        message = BroadcastMessage.interim_message(text, translations, timestamp)
        self.registry.set_last_interim(session_id, message)
        self._publish(session_id, message)
        return message

    async def handle_final(self, session_id: str, text: str, timestamp: Optional[int] = None) -> BroadcastMessage:
        """
        Run both phases for a finalized utterance.

        Returns the last message published (final, or provisional if Phase 2 failed).
        """
        timestamp = timestamp if timestamp is not None else self.next_timestamp()
        logger.info(f"🚀 [Final] Session {session_id} @{timestamp}: '{text[:50]}'")

        provisional = await self._run_provisional_phase(session_id, text, timestamp)

        try:
            return await self._run_final_phase(session_id, text, timestamp, provisional)
        except Exception:
            logger.exception(
                f"[Final] Quality phase failed for session {session_id} @{timestamp}; "
                f"provisional caption stays"
            )
            return provisional

    # === Phases ===

    async def _run_provisional_phase(self, session_id: str, text: str, timestamp: int) -> BroadcastMessage:
        try:
            translations = await self._fast_fan_out(text)
        except Exception as e:
            logger.error(f"[Provisional] Fast fan-out failed for session {session_id}: {e}")
            translations = self._untranslated(text)

        message = BroadcastMessage.provisional_message(text, translations, timestamp)
        if not self.registry.append_or_replace(session_id, message):
            logger.debug(f"[Provisional] Session {session_id} did not store it; publishing only")
        self.registry.clear_last_interim(session_id, before=timestamp)
        self._publish(session_id, message)
        return message

    async def _run_final_phase(
        self,
        session_id: str,
        text: str,
        timestamp: int,
        provisional: BroadcastMessage,
    ) -> BroadcastMessage:
        results = await asyncio.gather(
            *(self._quality_translate(text, lang) for lang in self.target_languages)
        )

        translations: Dict[str, str] = {}
        fresh: Dict[str, str] = {}
        for lang, (translation, from_provider) in zip(self.target_languages, results):
            if translation is None:
                # Quality backend couldn't deliver; keep the draft for this language
                translations[lang] = provisional.translations.get(lang, text)
                continue
            translations[lang] = translation
            if from_provider:
                fresh[lang] = translation

        message = BroadcastMessage.final_message(text, translations, timestamp)
        stored = self.registry.append_or_replace(session_id, message)

        for lang, translation in fresh.items():
            self.cache.set(text, lang, translation)

        self._publish(session_id, message)

        if stored and self.storage is not None:
            await self.storage.record_caption(session_id, message)

        return message

    # === Helpers ===

    async def _fast_fan_out(self, text: str) -> Dict[str, str]:
        results = await asyncio.gather(
            *(
                self.fast_backend.translate(text, self.source_language, lang)
                for lang in self.target_languages
            )
        )
        return dict(zip(self.target_languages, results))

    async def _quality_translate(self, text: str, lang: str):
        """Returns (translation or None, came_from_provider)."""
        cached = self.cache.get(text, lang)
        if cached is not None:
            return cached, False
        translation = await self.quality_backend.try_translate(text, self.source_language, lang)
        return translation, translation is not None

    def _untranslated(self, text: str) -> Dict[str, str]:
        return {lang: text for lang in self.target_languages}

    def _publish(self, session_id: str, message: BroadcastMessage):
        delivered = self.bus.publish(session_id, message)
        messages_published.labels(kind=message.kind.value).inc()
        logger.debug(
            f"Published {message.kind.value} @{message.timestamp} to {delivered} listeners "
            f"of session {session_id}"
        )
