"""
Service container - the broadcast pipeline's long-lived objects, wired once.

Endpoints receive this through `app.state.services` instead of reaching for
module-level singletons, so tests can build one with fake backends.
"""

from dataclasses import dataclass
from typing import Optional

from classcast.config.settings import settings
from classcast.services.broadcast import (
    BroadcastStorage,
    EventBus,
    SessionRegistry,
    TaskSupervisor,
    TranslationOrchestrator,
)
from classcast.services.translation import (
    FastTranslationBackend,
    QualityTranslationBackend,
    TranslationCache,
)


@dataclass
class BroadcastServices:
    registry: SessionRegistry
    bus: EventBus
    cache: TranslationCache
    fast_backend: FastTranslationBackend
    quality_backend: QualityTranslationBackend
    orchestrator: TranslationOrchestrator
    supervisor: TaskSupervisor
    storage: BroadcastStorage


def build_services(
    *,
    registry: Optional[SessionRegistry] = None,
    bus: Optional[EventBus] = None,
    cache: Optional[TranslationCache] = None,
    fast_backend: Optional[FastTranslationBackend] = None,
    quality_backend: Optional[QualityTranslationBackend] = None,
    storage: Optional[BroadcastStorage] = None,
) -> BroadcastServices:
    """Wire the pipeline; anything not passed in gets its production default."""
    registry = registry if registry is not None else SessionRegistry()
    bus = bus if bus is not None else EventBus()
    # An empty cache is falsy (it has __len__)
    cache = cache if cache is not None else TranslationCache()
    if fast_backend is None:
        fast_backend = FastTranslationBackend(cache=cache)
    if quality_backend is None:
        quality_backend = QualityTranslationBackend()

    if storage is None:
        from classcast.models.database import AsyncSessionLocal
        storage = BroadcastStorage(AsyncSessionLocal, enabled=settings.PERSISTENCE_ENABLED)

    orchestrator = TranslationOrchestrator(
        registry=registry,
        bus=bus,
        fast_backend=fast_backend,
        quality_backend=quality_backend,
        cache=cache,
        storage=storage,
    )

    return BroadcastServices(
        registry=registry,
        bus=bus,
        cache=cache,
        fast_backend=fast_backend,
        quality_backend=quality_backend,
        orchestrator=orchestrator,
        supervisor=TaskSupervisor(),
        storage=storage,
    )
