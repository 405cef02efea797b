"""
Fast Translation Backend - Cloud Translation for sub-second drafts.

Consulted first for every utterance (interim and final). Checks the quality
cache before calling the provider, so a phrase Gemini has already translated
shows its polished version even in the draft.
"""

import logging
from typing import Optional

from classcast.config.constants import FAST_TRANSLATE_TIMEOUT_SEC
from classcast.services.protocols import TextTranslationClient
from classcast.services.translation.base import BaseTranslationBackend
from classcast.services.translation.cache import TranslationCache

logger = logging.getLogger(__name__)


def _default_client() -> TextTranslationClient:
    from classcast.services.gcp.translate import GCPTranslationService
    return GCPTranslationService()


class FastTranslationBackend(BaseTranslationBackend):
    name = "fast"

    def __init__(
        self,
        client: Optional[TextTranslationClient] = None,
        *,
        cache: Optional[TranslationCache] = None,
        timeout_sec: float = FAST_TRANSLATE_TIMEOUT_SEC,
        use_default_client: bool = True,
    ):
        super().__init__(
            client,
            client_factory=_default_client if use_default_client else None,
            timeout_sec=timeout_sec,
        )
        self._cache = cache

    async def try_translate(self, text: str, source_lang: str, target_lang: str) -> Optional[str]:
        if self._cache is not None and text:
            cached = self._cache.get(text, target_lang)
            if cached is not None:
                logger.debug(f"[fast] [{target_lang}] Cache hit: '{text[:30]}'")
                return cached
        return await super().try_translate(text, source_lang, target_lang)

    def _call_provider(self, text: str, source_lang: str, target_lang: str) -> str:
        return self._client.translate_text(
            text,
            source_language_code=source_lang,
            target_language_code=target_lang,
        )
