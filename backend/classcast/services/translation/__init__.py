"""
Translation Module

This module contains the translation backends and their cache:
- TranslationCache: LRU + TTL cache of quality translations
- FastTranslationBackend: Cloud Translation, low latency
- QualityTranslationBackend: Gemini via Vertex AI, higher quality

Usage:
    from classcast.services.translation import FastTranslationBackend, TranslationCache
"""

from classcast.services.translation.cache import TranslationCache
from classcast.services.translation.fast import FastTranslationBackend
from classcast.services.translation.quality import QualityTranslationBackend

__all__ = [
    "TranslationCache",
    "FastTranslationBackend",
    "QualityTranslationBackend",
]
