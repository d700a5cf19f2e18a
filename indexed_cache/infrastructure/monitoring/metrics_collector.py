#!/usr/bin/env python3
"""
Cache Metrics Collector with Prometheus Integration

Two views of the same events:
- In-process counters plus a bounded window of read latencies, exposed as an
  immutable CacheMetrics snapshot (hit rate and average response time are
  derived from raw counters at snapshot time, never stored).
- Prometheus counters and a latency histogram for scraping.

Every concurrent cache read records into one collector, so counters and the
latency window are updated and read under a single lock.
"""

import threading
from collections import deque

from prometheus_client import Counter, Histogram
from pydantic import BaseModel, Field

from indexed_cache.core.config.constants import METRICS_WINDOW_SIZE, Stage
from indexed_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

CACHE_HITS = Counter(
    'indexed_cache_hits_total',
    'Total cache hits'
)

CACHE_MISSES = Counter(
    'indexed_cache_misses_total',
    'Total cache misses (including reads that failed open)'
)

CACHE_READ_DURATION = Histogram(
    'indexed_cache_read_duration_seconds',
    'Cache read latency in seconds',
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5)
)

CACHE_INVALIDATED_ENTRIES = Counter(
    'indexed_cache_invalidated_entries_total',
    'Cache entries removed by invalidation',
    ['reason']  # tag, dep, namespace
)

CACHE_WARMING_TASKS = Counter(
    'indexed_cache_warming_tasks_total',
    'Warming and refresh task outcomes',
    ['mode', 'outcome']  # mode: critical, all, refresh, adhoc
)


# ============================================================================
# Snapshot Model
# ============================================================================


class CacheMetrics(BaseModel):
    """Point-in-time copy of the cache counters."""

    hits: int = Field(default=0, description="Reads that found a value")
    misses: int = Field(default=0, description="Reads that found nothing or failed")
    total_operations: int = Field(default=0, description="hits + misses")
    hit_rate: float = Field(default=0.0, description="hits / total_operations * 100")
    average_response_time: float = Field(
        default=0.0, description="Mean latency (ms) over the rolling window"
    )

    model_config = {"frozen": True}


# ============================================================================
# Collector
# ============================================================================


class CacheMetricsCollector:
    """
    Thread-safe hit/miss counters and rolling latency window.

    Usage:
        collector = CacheMetricsCollector()
        collector.record(is_hit=True, duration_ms=1.7)
        metrics = collector.snapshot()
    """

    def __init__(self, window_size: int = METRICS_WINDOW_SIZE):
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._durations: deque[float] = deque(maxlen=window_size)

    @property
    def window_size(self) -> int:
        return self._durations.maxlen

    def record(self, is_hit: bool, duration_ms: float) -> None:
        """
        Record the outcome and latency of one cache read.

        Args:
            is_hit: Whether the read found a value
            duration_ms: Wall-clock duration of the read in milliseconds
        """
        with self._lock:
            if is_hit:
                self._hits += 1
            else:
                self._misses += 1
            self._durations.append(duration_ms)

        (CACHE_HITS if is_hit else CACHE_MISSES).inc()
        CACHE_READ_DURATION.observe(duration_ms / 1000)

    def snapshot(self) -> CacheMetrics:
        """
        Return an immutable, internally consistent copy of the counters.

        Returns:
            CacheMetrics with derived hit rate and average response time
        """
        with self._lock:
            hits = self._hits
            misses = self._misses
            window_total = sum(self._durations)
            window_count = len(self._durations)

        total = hits + misses
        return CacheMetrics(
            hits=hits,
            misses=misses,
            total_operations=total,
            hit_rate=(hits / total * 100) if total else 0.0,
            average_response_time=(window_total / window_count) if window_count else 0.0,
        )

    def reset(self) -> None:
        """Zero every counter and empty the latency window."""
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._durations.clear()

        logger.info("Cache metrics reset", stage=Stage.METRICS)

    @staticmethod
    def record_invalidated(reason: str, count: int) -> None:
        """Export the number of entries removed by one invalidation call."""
        if count > 0:
            CACHE_INVALIDATED_ENTRIES.labels(reason=reason).inc(count)

    @staticmethod
    def record_warming(mode: str, warmed: int, failed: int) -> None:
        """Export warming/refresh batch outcomes."""
        if warmed:
            CACHE_WARMING_TASKS.labels(mode=mode, outcome="warmed").inc(warmed)
        if failed:
            CACHE_WARMING_TASKS.labels(mode=mode, outcome="failed").inc(failed)
