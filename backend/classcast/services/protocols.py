"""
Protocol definitions for translation providers and backends.

This module defines interfaces (Python Protocols) that allow:
- Swapping implementations (e.g., Cloud Translation -> another MT service)
- Testing without real API credentials
- Clear contracts between components

Usage:
    from classcast.services.protocols import TranslationBackendProtocol

    async def caption(backend: TranslationBackendProtocol, text: str):
        return await backend.translate(text, "ko", "mn")
"""

from typing import Optional, Protocol


class TextTranslationClient(Protocol):
    """
    Interface for machine-translation provider clients (blocking).

    Implementations raise on failure; the backend decides the fallback.
    """

    def translate_text(
        self,
        text: str,
        *,
        source_language_code: str,
        target_language_code: str,
    ) -> str:
        ...


class GenerativeTextClient(Protocol):
    """
    Interface for generative model clients (blocking).

    `generate` returns the model's text output for a prompt.
    """

    def generate(self, prompt: str) -> str:
        ...


class TranslationBackendProtocol(Protocol):
    """
    Interface the orchestrator uses for both backends.

    `translate` never raises and returns the source text on failure;
    `try_translate` returns None on failure so callers can tell the difference.
    """

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        ...

    async def try_translate(self, text: str, source_lang: str, target_lang: str) -> Optional[str]:
        ...
