"""
Cache metrics and monitoring.

- metrics_collector: hit/miss counters, latency window, Prometheus export
- cache_monitor: alerting, history and trends over a CacheManager
"""

from indexed_cache.infrastructure.monitoring.metrics_collector import (
    CacheMetrics,
    CacheMetricsCollector,
)

__all__ = ["CacheMetrics", "CacheMetricsCollector"]
