"""
Application-wide constants for the broadcast pipeline.

This file centralizes tuning values that rarely change between environments.

Note: Environment-dependent settings (DB, Redis, Google credentials) belong in settings.py.
"""

# ==============================================================================
# LANGUAGES
# ==============================================================================

# Language the teacher speaks (browser speech recognition runs in ko-KR)
SOURCE_LANGUAGE: str = "ko"

# Languages every utterance is translated into
TARGET_LANGUAGES: tuple[str, ...] = ("mn", "ru", "vi")

# Display names used when prompting the generative model
LANGUAGE_NAMES: dict[str, str] = {
    "ko": "Korean",
    "mn": "Mongolian",
    "ru": "Russian",
    "vi": "Vietnamese",
}

# Locale assumed by listeners that don't send one
DEFAULT_LISTENER_LOCALE: str = "ko"

# ==============================================================================
# SESSIONS
# ==============================================================================

# Prefix for generated session identifiers ("class-<ms>-<suffix>")
SESSION_ID_PREFIX: str = "class-"

# Maximum messages kept in a session's history (oldest evicted first)
SESSION_HISTORY_MAX_MESSAGES: int = 100

# Sessions with no activity for this long are ended by the sweeper (seconds)
SESSION_IDLE_TIMEOUT_SEC: float = 3 * 60 * 60

# How often the sweeper looks for idle sessions (seconds)
SESSION_SWEEP_INTERVAL_SEC: float = 300.0

# ==============================================================================
# TRANSLATION CACHE
# ==============================================================================

# Maximum entries in the quality translation cache
TRANSLATION_CACHE_MAX_SIZE: int = 500

# Entries expire this long after insertion (seconds)
TRANSLATION_CACHE_TTL_SEC: float = 30 * 60

# Cache key hash truncation length
CACHE_KEY_HASH_LENGTH: int = 16

# ==============================================================================
# PROVIDER TIMEOUTS
# ==============================================================================

# Fast (Cloud Translation) call timeout (seconds) - fallback to original if exceeded
FAST_TRANSLATE_TIMEOUT_SEC: float = 3.0

# Quality (Gemini) call timeout (seconds) - fallback to original if exceeded
QUALITY_TRANSLATE_TIMEOUT_SEC: float = 12.0

# Worker threads for blocking provider SDK calls
PROVIDER_EXECUTOR_WORKERS: int = 8

# ==============================================================================
# GEMINI (Vertex AI)
# ==============================================================================

GEMINI_MODEL_NAME: str = "gemini-2.5-flash"

GEMINI_TEMPERATURE: float = 0.2
GEMINI_MAX_OUTPUT_TOKENS: int = 1024
GEMINI_TOP_P: float = 0.9

# Reject model output longer than this multiple of the input (sanity check)
QUALITY_MAX_OUTPUT_RATIO: float = 6.0

# ==============================================================================
# STREAMING DELIVERY
# ==============================================================================

# Keep-alive comment interval on listener streams (seconds)
STREAM_HEARTBEAT_INTERVAL_SEC: float = 30.0

# Per-listener queue bound; a listener this far behind starts dropping messages
STREAM_LISTENER_QUEUE_SIZE: int = 256

# ==============================================================================
# CROSS-INSTANCE RELAY
# ==============================================================================

# Redis pub/sub channel pattern for relayed broadcast events
RELAY_CHANNEL_PREFIX: str = "channel:broadcast:"

# Pause before resubscribing after a relay listener error (seconds)
RELAY_RECONNECT_DELAY_SEC: float = 2.0

# ==============================================================================
# SHUTDOWN
# ==============================================================================

# How long shutdown waits for in-flight translations before cancelling (seconds)
GRACEFUL_SHUTDOWN_TIMEOUT_SEC: float = 5.0

# ==============================================================================
# METRICS & MONITORING
# ==============================================================================

# Prometheus metrics server port
METRICS_SERVER_PORT: int = 8001
