"""
Translation Cache for repeated classroom phrases

Caches quality-backend translations keyed by (source text, target language) so a
phrase the teacher repeats skips the slow generative call.

Example benefit:
- Teacher says "조용히 하세요" in the morning -> Gemini translates to Mongolian (~3s)
- Cache stores: ("조용히 하세요", "mn") -> translation
- Teacher says it again later -> cache hit, final caption is immediate

Only quality results go in here; fast/interim text never does.
"""
from collections import OrderedDict
from typing import Callable, Optional, Tuple
import hashlib
import logging
import threading
import time

from classcast.config.constants import (
    CACHE_KEY_HASH_LENGTH,
    TRANSLATION_CACHE_MAX_SIZE,
    TRANSLATION_CACHE_TTL_SEC,
)
from classcast.services.metrics import cache_lookups

logger = logging.getLogger(__name__)


class TranslationCache:
    """LRU cache with per-entry expiry for quality translations."""

    def __init__(
        self,
        maxsize: int = TRANSLATION_CACHE_MAX_SIZE,
        ttl_seconds: float = TRANSLATION_CACHE_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize translation cache.

        Args:
            maxsize: Maximum number of cached translations (default: 500)
            ttl_seconds: Entry lifetime from insertion (default: 30 minutes)
            clock: Monotonic time source, injectable for tests
        """
        # key -> (translation, inserted_at); order = least to most recently used
        self._cache: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()
        self._maxsize = maxsize
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get_cache_key(self, text: str, language: str) -> str:
        """
        Generate cache key for a translation.

        Returns:
            16-character hex hash
        """
        key_str = f"{text.strip()}|{language}"
        return hashlib.md5(key_str.encode()).hexdigest()[:CACHE_KEY_HASH_LENGTH]

    def get(self, text: str, language: str) -> Optional[str]:
        """
        Retrieve a cached translation.

        Returns:
            Translation if cached and not expired, None otherwise
        """
        key = self.get_cache_key(text, language)
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                translation, inserted_at = entry
                if self._clock() - inserted_at < self._ttl:
                    self._cache.move_to_end(key)
                    self._hits += 1
                    cache_lookups.labels(result="hit").inc()
                    logger.debug(f"Translation cache HIT for key {key} (lang: {language})")
                    return translation
                del self._cache[key]
                logger.debug(f"Translation cache entry expired: {key}")

            self._misses += 1
        cache_lookups.labels(result="miss").inc()
        logger.debug(f"Translation cache MISS for key {key}")
        return None

    def set(self, text: str, language: str, translation: str):
        """Store a translation, evicting the least recently used entry when full."""
        key = self.get_cache_key(text, language)
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            elif len(self._cache) >= self._maxsize:
                oldest_key, _ = self._cache.popitem(last=False)
                logger.debug(f"Translation cache evicted oldest entry: {oldest_key}")
            self._cache[key] = (translation, self._clock())

        logger.debug(f"Translation cache PUT for key {key} (lang: {language})")

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dict with hits, misses, hit_rate, size
        """
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0

        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate_percent": round(hit_rate, 2),
            "cache_size": len(self._cache),
            "max_size": self._maxsize
        }

    def clear(self):
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()
        logger.info("Translation cache cleared")
