"""
System Constants and Enumerations

Constants and enumerations shared across the indexed cache: stage identifiers
for structured logging, reverse-index kinds, health states and the default
values the settings module falls back to.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages used as the ``stage`` field of every log entry.

    Format: {PREFIX}.{SEQUENCE}_{DESCRIPTIVE_NAME}

    Examples:
        logger.info("Cache hit", stage=Stage.CACHE_READ, cache_key=key)
    """

    # Cache entry lifecycle
    CACHE_INIT = "C.0_CACHE_INIT"
    CACHE_READ = "C.1_CACHE_READ"
    CACHE_WRITE = "C.2_CACHE_WRITE"
    CACHE_DELETE = "C.3_CACHE_DELETE"
    CACHE_SCAN = "C.4_CACHE_SCAN"
    READ_THROUGH = "C.5_READ_THROUGH"

    # Reverse indices and invalidation
    INDEX_ADD = "I.1_INDEX_ADD"
    INDEX_READ = "I.2_INDEX_READ"
    INDEX_SCRUB = "I.3_INDEX_SCRUB"
    INVALIDATE_TAGS = "I.4_INVALIDATE_TAGS"
    INVALIDATE_DEPENDENCIES = "I.5_INVALIDATE_DEPENDENCIES"
    CLEAR_NAMESPACE = "I.6_CLEAR_NAMESPACE"

    # Warming and refresh
    WARMING_REGISTRY = "W.0_WARMING_REGISTRY"
    WARMING_BATCH = "W.1_WARMING_BATCH"
    WARMING_TASK = "W.2_WARMING_TASK"
    REFRESH_BATCH = "W.3_REFRESH_BATCH"

    # Cross-cutting concerns
    METRICS = "M_METRICS_COLLECTION"
    MONITORING = "M_CACHE_MONITORING"
    REDIS = "R_REDIS"
    LOGGING = "L_LOGGING_OPERATIONS"


# ============================================================================
# Reverse Index Kinds
# ============================================================================


class IndexKind(str, Enum):
    """
    Kinds of reverse index kept in the backing store.

    The value is the default key prefix: a tag index for ``products`` lives at
    ``tag:products``, a dependency index for ``user:42`` at ``dep:user:42``.
    """

    TAG = "tag"
    DEPENDENCY = "dep"


# ============================================================================
# Health and Alerting
# ============================================================================


class HealthStatus(str, Enum):
    """Overall health of the cache subsystem."""

    HEALTHY = "healthy"
    WARNING = "warning"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class AlertLevel(str, Enum):
    """Severity of a cache monitoring alert."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AlertMetric(str, Enum):
    """Metric an alert was raised for (used for de-duplication)."""

    HIT_RATE = "hitRate"
    RESPONSE_TIME = "responseTime"
    MEMORY = "memory"


# ============================================================================
# Defaults
# ============================================================================

DEFAULT_CACHE_TTL = 3600  # 1 hour
METRICS_WINDOW_SIZE = 1000  # latency samples kept for the rolling average
SCAN_BATCH_SIZE = 500
CRITICAL_PRIORITY = 1
REFRESH_MAX_PRIORITY = 2

# Monitoring retention
HISTORY_RETENTION_HOURS = 24
ALERT_DEDUP_WINDOW_SECONDS = 300
TREND_WINDOW = 10
