"""
ClassCast Backend - Main Application

This is the entry point for the FastAPI application.
It handles:
- REST endpoints for broadcast ingestion and caption history
- Server-sent event streams of live captions for students
- Background tasks for idle-session cleanup and cross-instance relay
"""
from contextlib import asynccontextmanager
import asyncio
import logging
from datetime import datetime, UTC
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from classcast import __version__
from classcast.api import router as api_router
from classcast.config.constants import GRACEFUL_SHUTDOWN_TIMEOUT_SEC, METRICS_SERVER_PORT
from classcast.config.redis import get_redis, close_redis
from classcast.config.settings import settings
from classcast.services.broadcast import RedisEventRelay, SessionSweeper
from classcast.services.container import BroadcastServices, build_services
from classcast.services.metrics import start_metrics_server

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    services: BroadcastServices = app.state.services
    background = []

    # === STARTUP ===
    logger.info("🚀 Starting ClassCast Backend...")

    if services.storage.enabled:
        try:
            from classcast.models.database import init_db
            await init_db()
            logger.info("✅ Database tables created")
        except Exception as e:
            logger.warning(f"⚠️ Database unavailable, continuing in-memory only: {e}")

    sweeper = SessionSweeper(services.registry, services.storage)
    background.append(asyncio.create_task(sweeper.run()))
    logger.info("✅ Session sweeper started")

    relay: Optional[RedisEventRelay] = None
    if settings.REDIS_RELAY_ENABLED:
        await get_redis()
        relay = RedisEventRelay(services.bus, get_redis, services.supervisor)
        relay.attach()
        background.append(asyncio.create_task(relay.listen()))
        logger.info(f"✅ Redis relay started (instance {relay.instance_id})")

    if settings.METRICS_ENABLED:
        start_metrics_server(port=METRICS_SERVER_PORT)

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🛑 Shutting down...")
    for task in background:
        task.cancel()
    await asyncio.gather(*background, return_exceptions=True)
    if relay is not None:
        relay.detach()
    await services.supervisor.shutdown(GRACEFUL_SHUTDOWN_TIMEOUT_SEC)
    if settings.REDIS_RELAY_ENABLED:
        await close_redis()


def create_app(services: Optional[BroadcastServices] = None) -> FastAPI:
    app = FastAPI(
        title="ClassCast Backend",
        description="Live classroom captions with two-phase translation",
        version=__version__,
        lifespan=lifespan
    )
    app.state.services = services or build_services()

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"http://(localhost|127\.0\.0\.1)(:\d+)?",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "ClassCast",
            "version": __version__,
            "status": "running"
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        state: BroadcastServices = app.state.services
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "active_sessions": state.registry.count(),
            "listeners": state.bus.total_subscribers(),
            "pending_translations": state.supervisor.pending,
            "cache": state.cache.get_stats(),
        }

    return app


app = create_app()
