"""Prometheus metrics instrumentation for the broadcast pipeline.

Exposes metrics for monitoring translation latency, provider fallbacks and
listener load. Metrics are exposed via HTTP on port 8001 (configurable) when
METRICS_ENABLED is set.

Metrics exported:
- broadcast_translation_latency_seconds: Histogram of provider call time per backend
- broadcast_translation_fallbacks_total: Counter of calls that fell back to source text
- broadcast_translation_cache_lookups_total: Counter of cache hits/misses
- broadcast_messages_published_total: Counter of bus publishes by message kind
- broadcast_active_listeners: Gauge of currently connected stream listeners
- broadcast_background_task_failures_total: Counter of crashed detached tasks

Usage:
    from classcast.services.metrics import start_metrics_server, translation_fallbacks

    start_metrics_server(port=8001)
    translation_fallbacks.labels(backend='fast', reason='timeout').inc()
"""

from prometheus_client import Histogram, Counter, Gauge, start_http_server
import logging

logger = logging.getLogger(__name__)

translation_latency = Histogram(
    'broadcast_translation_latency_seconds',
    'Time spent in a translation provider call',
    labelnames=['backend', 'language']
)

translation_fallbacks = Counter(
    'broadcast_translation_fallbacks_total',
    'Translations that fell back to the source text',
    labelnames=['backend', 'reason']  # reason: error, timeout, disabled
)

cache_lookups = Counter(
    'broadcast_translation_cache_lookups_total',
    'Translation cache lookups',
    labelnames=['result']  # result: hit, miss
)

messages_published = Counter(
    'broadcast_messages_published_total',
    'Messages published on the event bus',
    labelnames=['kind']  # kind: interim, provisional, final
)

active_listeners_gauge = Gauge(
    'broadcast_active_listeners',
    'Number of currently connected stream listeners'
)

background_task_failures = Counter(
    'broadcast_background_task_failures_total',
    'Detached background tasks that ended with an exception',
    labelnames=['task']
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except Exception as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
