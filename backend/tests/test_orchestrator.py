"""
Tests for the two-phase translation orchestrator.
"""
import asyncio

import pytest

from classcast.config.constants import TARGET_LANGUAGES
from classcast.services.broadcast import (
    MessageKind,
    SessionRegistry,
    TimestampClock,
    TranslationOrchestrator,
)
from classcast.services.translation import (
    FastTranslationBackend,
    QualityTranslationBackend,
    TranslationCache,
)
from tests.helpers import FakeBackend, wait_for_condition


def _subscribe(bus, session_id):
    received = []
    bus.subscribe(session_id, received.append)
    return received


@pytest.mark.asyncio
async def test_provisional_published_before_final(orchestrator, registry, bus, quality_backend):
    session_id = registry.create()
    received = _subscribe(bus, session_id)
    quality_backend.delay = 0.05

    task = asyncio.create_task(orchestrator.handle_final(session_id, "수업을 시작합니다"))
    await wait_for_condition(lambda: len(received) == 1)

    # Phase 1 is out while Phase 2 is still waiting on the quality backend
    assert received[0].kind is MessageKind.PROVISIONAL
    assert not task.done()

    final = await task
    assert [m.kind for m in received] == [MessageKind.PROVISIONAL, MessageKind.FINAL]
    assert received[0].timestamp == received[1].timestamp == final.timestamp


@pytest.mark.asyncio
async def test_final_replaces_provisional_in_history(orchestrator, registry):
    session_id = registry.create()

    final = await orchestrator.handle_final(session_id, "숙제를 내세요")

    history = registry.history(session_id)
    assert len(history) == 1
    assert history[0].timestamp == final.timestamp
    assert history[0].provisional is False
    assert history[0].translations == {
        lang: f"quality:{lang}:숙제를 내세요" for lang in TARGET_LANGUAGES
    }


@pytest.mark.asyncio
async def test_provisional_uses_fast_backend_for_every_language(orchestrator, registry, bus, fast_backend):
    session_id = registry.create()
    received = _subscribe(bus, session_id)

    await orchestrator.handle_final(session_id, "안녕")

    assert sorted(call[2] for call in fast_backend.calls) == sorted(TARGET_LANGUAGES)
    assert all(call[1] == "ko" for call in fast_backend.calls)
    assert received[0].translations == {lang: f"fast:{lang}:안녕" for lang in TARGET_LANGUAGES}


@pytest.mark.asyncio
async def test_interim_never_enters_history(orchestrator, registry, bus):
    session_id = registry.create()
    received = _subscribe(bus, session_id)

    await orchestrator.handle_interim(session_id, "오늘은")
    second = await orchestrator.handle_interim(session_id, "오늘은 수학")

    assert registry.history(session_id) == []
    assert registry.last_interim(session_id) == second
    assert [m.kind for m in received] == [MessageKind.INTERIM, MessageKind.INTERIM]
    assert received[1].translations["mn"] == "fast:mn:오늘은 수학"


@pytest.mark.asyncio
async def test_interim_uses_only_fast_backend(orchestrator, registry, quality_backend):
    session_id = registry.create()

    await orchestrator.handle_interim(session_id, "잠깐만")

    assert quality_backend.calls == []


@pytest.mark.asyncio
async def test_last_interim_keeps_most_recently_submitted(orchestrator, registry):
    session_id = registry.create()

    # Submitted second (later timestamp) but finishes first
    await orchestrator.handle_interim(session_id, "newer", timestamp=2000)
    await orchestrator.handle_interim(session_id, "older", timestamp=1000)

    assert registry.last_interim(session_id).original == "newer"


@pytest.mark.asyncio
async def test_final_clears_earlier_interim(orchestrator, registry):
    session_id = registry.create()

    await orchestrator.handle_interim(session_id, "오늘은 수", timestamp=1000)
    await orchestrator.handle_final(session_id, "오늘은 수학 시간입니다", timestamp=1500)

    assert registry.last_interim(session_id) is None


@pytest.mark.asyncio
async def test_final_keeps_interim_of_next_utterance(orchestrator, registry):
    session_id = registry.create()

    await orchestrator.handle_interim(session_id, "다음 문장", timestamp=3000)
    await orchestrator.handle_final(session_id, "이전 문장", timestamp=2000)

    assert registry.last_interim(session_id).original == "다음 문장"


@pytest.mark.asyncio
async def test_repeated_phrase_served_from_cache(orchestrator, registry, quality_backend, cache):
    session_id = registry.create()

    first = await orchestrator.handle_final(session_id, "조용히 하세요")
    second = await orchestrator.handle_final(session_id, "조용히 하세요")

    assert len(quality_backend.calls) == len(TARGET_LANGUAGES)
    assert second.translations == first.translations
    assert cache.get("조용히 하세요", "ru") == "quality:ru:조용히 하세요"


@pytest.mark.asyncio
async def test_fast_results_are_not_cached(orchestrator, registry, cache):
    session_id = registry.create()

    await orchestrator.handle_interim(session_id, "중간 결과")

    assert len(cache) == 0


@pytest.mark.asyncio
async def test_both_backends_failing_degrades_to_source_text(registry, bus):
    class FailingTranslator:
        def translate_text(self, text, *, source_language_code, target_language_code):
            raise RuntimeError("translation service unavailable")

    class FailingGenerator:
        def generate(self, prompt):
            raise ConnectionError("vertex unreachable")

    cache = TranslationCache()
    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=FastTranslationBackend(FailingTranslator(), cache=cache),
        quality_backend=QualityTranslationBackend(FailingGenerator()),
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()
    received = _subscribe(bus, session_id)

    interim = await orchestrator.handle_interim(session_id, "선생님 말씀")
    final = await orchestrator.handle_final(session_id, "선생님 말씀을 들으세요")

    assert interim.translations == {lang: "선생님 말씀" for lang in TARGET_LANGUAGES}
    assert final.kind is MessageKind.FINAL
    assert final.translations == {lang: "선생님 말씀을 들으세요" for lang in TARGET_LANGUAGES}
    assert len(received) == 3
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_quality_failure_for_one_language_keeps_draft(registry, bus, cache):
    quality = FakeBackend("quality", fail=False)

    async def flaky(text, source_lang, target_lang):
        quality.calls.append((text, source_lang, target_lang))
        return None if target_lang == "vi" else f"quality:{target_lang}:{text}"

    quality.try_translate = flaky
    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=FakeBackend("fast"),
        quality_backend=quality,
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()

    final = await orchestrator.handle_final(session_id, "점심시간")

    assert final.translations["vi"] == "fast:vi:점심시간"
    assert final.translations["mn"] == "quality:mn:점심시간"
    assert cache.get("점심시간", "vi") is None
    assert cache.get("점심시간", "mn") == "quality:mn:점심시간"


@pytest.mark.asyncio
async def test_quality_phase_crash_leaves_provisional(registry, bus, cache):
    class ExplodingBackend(FakeBackend):
        async def try_translate(self, text, source_lang, target_lang):
            raise RuntimeError("unexpected bug")

    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=FakeBackend("fast"),
        quality_backend=ExplodingBackend("quality"),
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()
    received = _subscribe(bus, session_id)

    result = await orchestrator.handle_final(session_id, "체육복 챙기세요")

    assert result.kind is MessageKind.PROVISIONAL
    assert [m.kind for m in received] == [MessageKind.PROVISIONAL]
    assert registry.history(session_id)[0].provisional is True


@pytest.mark.asyncio
async def test_concrete_mongolian_scenario(registry, bus, cache):
    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=FakeBackend("fast", responses={"mn": "Sain baina uu"}),
        quality_backend=FakeBackend("quality", responses={"mn": "Сайн байна уу"}),
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()
    events = []
    bus.subscribe(session_id, lambda m: events.append(m.to_event("mn")))

    await orchestrator.handle_final(session_id, "안녕하세요")

    assert len(events) == 2
    assert events[0]["provisional"] is True
    assert events[0]["translated"] == "Sain baina uu"
    assert events[1]["provisional"] is False
    assert events[1]["translated"] == "Сайн байна уу"
    assert events[0]["timestamp"] == events[1]["timestamp"]


@pytest.mark.asyncio
async def test_history_cap_evicts_oldest(bus, cache):
    registry = SessionRegistry(max_messages=100)
    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=FakeBackend("fast"),
        quality_backend=FakeBackend("quality"),
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()

    for i in range(101):
        await orchestrator.handle_final(session_id, f"문장 {i}")

    history = registry.history(session_id)
    assert len(history) == 100
    assert history[0].original == "문장 1"
    assert history[-1].original == "문장 100"
    assert all(not m.provisional for m in history)


@pytest.mark.asyncio
async def test_overlapping_utterances_proceed_independently(registry, bus, cache):
    quality = FakeBackend("quality")

    async def slow_for_first(text, source_lang, target_lang):
        await asyncio.sleep(0.1 if text == "첫 번째" else 0.0)
        return f"quality:{target_lang}:{text}"

    quality.try_translate = slow_for_first
    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=FakeBackend("fast"),
        quality_backend=quality,
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()
    received = _subscribe(bus, session_id)

    first, second = await asyncio.gather(
        orchestrator.handle_final(session_id, "첫 번째"),
        orchestrator.handle_final(session_id, "두 번째"),
    )

    assert first.timestamp < second.timestamp
    # Second utterance finished its quality pass first
    finals = [m for m in received if m.kind is MessageKind.FINAL]
    assert [m.original for m in finals] == ["두 번째", "첫 번째"]

    history = registry.history(session_id)
    assert [m.original for m in history] == ["첫 번째", "두 번째"]
    assert all(m.kind is MessageKind.FINAL for m in history)


@pytest.mark.asyncio
async def test_session_ended_mid_flight_is_a_no_op(orchestrator, registry, bus, quality_backend, storage):
    session_id = registry.create()
    received = _subscribe(bus, session_id)
    quality_backend.delay = 0.05

    task = asyncio.create_task(orchestrator.handle_final(session_id, "끝"))
    await wait_for_condition(lambda: len(received) == 1)
    registry.end(session_id)

    final = await task

    assert final.kind is MessageKind.FINAL
    assert registry.get(session_id) is None
    assert storage.captions == []


@pytest.mark.asyncio
async def test_interim_for_unknown_session_still_publishes(orchestrator, registry, bus):
    received = _subscribe(bus, "class-missing")

    await orchestrator.handle_interim("class-missing", "누구")

    assert len(received) == 1
    assert registry.last_interim("class-missing") is None


@pytest.mark.asyncio
async def test_final_caption_is_persisted(orchestrator, registry, storage):
    session_id = registry.create()

    final = await orchestrator.handle_final(session_id, "내일 봐요")

    assert storage.captions == [(session_id, final)]


@pytest.mark.asyncio
async def test_history_cap_with_overlapping_utterances(bus, cache):
    quality = FakeBackend("quality")

    async def oldest_finishes_last(text, source_lang, target_lang):
        quality.calls.append((text, source_lang, target_lang))
        await asyncio.sleep(0.1 if text == "s0" else 0.0)
        return f"quality:{target_lang}:{text}"

    quality.try_translate = oldest_finishes_last
    registry = SessionRegistry(max_messages=3)
    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=FakeBackend("fast"),
        quality_backend=quality,
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()

    results = await asyncio.gather(
        *(orchestrator.handle_final(session_id, f"s{i}") for i in range(4))
    )

    history = registry.history(session_id)
    assert [m.original for m in history] == ["s1", "s2", "s3"]
    assert [m.timestamp for m in history] == sorted(r.timestamp for r in results[1:])
    assert all(m.kind is MessageKind.FINAL for m in history)


@pytest.mark.asyncio
async def test_provisionals_stored_in_submission_order(bus, cache):
    fast = FakeBackend("fast")
    quality = FakeBackend("quality")
    release = asyncio.Event()

    async def first_draft_is_slowest(text, source_lang, target_lang):
        if text == "첫째":
            await asyncio.sleep(0.05)
        return f"fast:{target_lang}:{text}"

    async def held_quality(text, source_lang, target_lang):
        await release.wait()
        return f"quality:{target_lang}:{text}"

    fast.translate = first_draft_is_slowest
    quality.try_translate = held_quality
    registry = SessionRegistry(max_messages=3)
    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=fast,
        quality_backend=quality,
        cache=cache,
        clock=TimestampClock(),
    )
    session_id = registry.create()

    tasks = [
        asyncio.create_task(orchestrator.handle_final(session_id, text))
        for text in ("첫째", "둘째", "셋째")
    ]
    await wait_for_condition(lambda: len(registry.history(session_id)) == 3)

    drafts = registry.history(session_id)
    assert [m.original for m in drafts] == ["첫째", "둘째", "셋째"]
    assert all(m.provisional for m in drafts)

    release.set()
    await asyncio.gather(*tasks)

    history = registry.history(session_id)
    assert [m.original for m in history] == ["첫째", "둘째", "셋째"]
    assert all(not m.provisional for m in history)
