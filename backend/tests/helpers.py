import asyncio
from typing import Dict, List, Optional

from classcast.services.broadcast import BroadcastStorage


class FakeBackend:
    """
    Async stand-in for a translation backend.

    Returns `responses[lang]` when given, otherwise "<prefix>:<lang>:<text>".
    """

    def __init__(self, prefix: str, responses: Optional[Dict[str, str]] = None,
                 fail: bool = False, delay: float = 0.0):
        self.prefix = prefix
        self.responses = responses or {}
        self.fail = fail
        self.delay = delay
        self.calls: List[tuple] = []

    async def try_translate(self, text, source_lang, target_lang):
        self.calls.append((text, source_lang, target_lang))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            return None
        return self.responses.get(target_lang, f"{self.prefix}:{target_lang}:{text}")

    async def translate(self, text, source_lang, target_lang):
        result = await self.try_translate(text, source_lang, target_lang)
        return text if result is None else result


class RecordingStorage(BroadcastStorage):
    """Storage that remembers what it was asked to persist."""

    def __init__(self):
        super().__init__(None, enabled=False)
        self.created: List[str] = []
        self.ended: List[str] = []
        self.captions: List[tuple] = []

    async def record_session_created(self, session_code):
        self.created.append(session_code)
        return True

    async def record_session_ended(self, session_code):
        self.ended.append(session_code)
        return True

    async def record_caption(self, session_code, message):
        self.captions.append((session_code, message))
        return True


async def wait_for_condition(predicate, timeout: float = 2.0):
    """Poll `predicate` until true, yielding to the event loop in between."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)
