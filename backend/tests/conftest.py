import sys
from pathlib import Path

import pytest

# Add backend/ (1 level up from tests/) to sys.path so tests can import 'classcast'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from classcast.services.broadcast import (
    EventBus,
    SessionRegistry,
    TimestampClock,
    TranslationOrchestrator,
)
from classcast.services.translation import TranslationCache
from tests.helpers import FakeBackend, RecordingStorage


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def cache():
    return TranslationCache()


@pytest.fixture
def fast_backend():
    return FakeBackend("fast")


@pytest.fixture
def quality_backend():
    return FakeBackend("quality")


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def orchestrator(registry, bus, fast_backend, quality_backend, cache, storage):
    return TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=fast_backend,
        quality_backend=quality_backend,
        cache=cache,
        storage=storage,
        clock=TimestampClock(),
    )
