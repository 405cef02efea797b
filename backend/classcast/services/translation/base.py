"""
Shared machinery for translation backends.

Provider SDKs are blocking, so calls run in a dedicated thread pool under
`asyncio.wait_for`. Fail-safe: any error, timeout or missing configuration
yields None from `try_translate` and the source text from `translate`.
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from classcast.config.constants import PROVIDER_EXECUTOR_WORKERS
from classcast.services.metrics import translation_fallbacks, translation_latency

logger = logging.getLogger(__name__)

# Thread pool for blocking provider calls
_provider_executor = ThreadPoolExecutor(
    max_workers=PROVIDER_EXECUTOR_WORKERS, thread_name_prefix="translate"
)


class BaseTranslationBackend:
    """Lazy client initialization, timeout, fallback and metrics for one provider."""

    name = "base"

    def __init__(
        self,
        client: Optional[Any] = None,
        *,
        client_factory: Optional[Callable[[], Any]] = None,
        timeout_sec: float,
    ):
        self._client = client
        self._client_factory = client_factory
        self._timeout = timeout_sec
        self._initialized = client is not None
        self._enabled = True

    def _initialize(self):
        """Lazy initialization of the provider client."""
        if self._initialized:
            return
        self._initialized = True

        if self._client_factory is None:
            logger.warning(f"[{self.name}] No provider configured - translations disabled")
            self._enabled = False
            return

        try:
            self._client = self._client_factory()
        except Exception as e:
            logger.error(f"[{self.name}] Failed to initialize provider client: {e}")
            self._enabled = False

    def is_enabled(self) -> bool:
        """Check if the backend has a working provider client."""
        self._initialize()
        return self._enabled and self._client is not None

    async def try_translate(self, text: str, source_lang: str, target_lang: str) -> Optional[str]:
        """Translate, or return None if the provider could not deliver."""
        if not text or not text.strip() or source_lang == target_lang:
            return text

        if not self.is_enabled():
            translation_fallbacks.labels(backend=self.name, reason="disabled").inc()
            return None

        loop = asyncio.get_running_loop()
        started = time.perf_counter()
        try:
            raw = await asyncio.wait_for(
                loop.run_in_executor(
                    _provider_executor, self._call_provider, text, source_lang, target_lang
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[{self.name}] Timeout after {self._timeout}s for {source_lang}->{target_lang}, "
                f"keeping original"
            )
            translation_fallbacks.labels(backend=self.name, reason="timeout").inc()
            return None
        except Exception as e:
            logger.error(f"[{self.name}] Error translating {source_lang}->{target_lang}: {e}")
            translation_fallbacks.labels(backend=self.name, reason="error").inc()
            return None
        finally:
            translation_latency.labels(backend=self.name, language=target_lang).observe(
                time.perf_counter() - started
            )

        result = self._postprocess(text, raw)
        if result is None:
            logger.warning(f"[{self.name}] Rejected provider output for {target_lang}: {raw!r}")
            translation_fallbacks.labels(backend=self.name, reason="error").inc()
            return None

        logger.debug(f"[{self.name}] [{target_lang}] '{text[:30]}' -> '{result[:30]}'")
        return result

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate; on any failure return `text` unchanged. Never raises."""
        result = await self.try_translate(text, source_lang, target_lang)
        return text if result is None else result

    def _call_provider(self, text: str, source_lang: str, target_lang: str) -> str:
        """Blocking provider call (runs in thread pool)."""
        raise NotImplementedError

    def _postprocess(self, original: str, raw: Optional[str]) -> Optional[str]:
        if raw is None:
            return None
        cleaned = raw.strip()
        return cleaned or None
