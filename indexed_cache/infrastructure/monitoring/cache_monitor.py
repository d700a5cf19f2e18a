#!/usr/bin/env python3
"""
Cache Performance Monitor

Periodic monitoring pass over the cache metrics, invoked by an external
trigger (e.g. once a minute):

- keeps 24 hours of metric snapshots in memory
- raises alerts for low hit rate, slow responses and Redis memory pressure,
  suppressing repeats of the same level and metric within 5 minutes
- derives trends (last 10 snapshots vs the 10 before) and recommendations
- builds the health report used by operators

Nothing here is persisted; history starts empty on every restart.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field

from indexed_cache.core.config.constants import (
    ALERT_DEDUP_WINDOW_SECONDS,
    HISTORY_RETENTION_HOURS,
    TREND_WINDOW,
    AlertLevel,
    AlertMetric,
    HealthStatus,
    Stage,
)
from indexed_cache.core.config.settings import Settings, get_settings
from indexed_cache.core.logging.logger import get_logger
from indexed_cache.infrastructure.cache.cache_manager import CacheManager
from indexed_cache.infrastructure.monitoring.metrics_collector import CacheMetrics

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheAlert(BaseModel):
    """A threshold breach observed during a monitoring pass."""

    level: AlertLevel
    message: str
    timestamp: datetime
    metric: AlertMetric | None = None
    value: float | None = None
    threshold: float | None = None

    model_config = {"frozen": True}


class MetricsSample(BaseModel):
    """Metrics snapshot taken at one monitoring pass."""

    timestamp: datetime
    metrics: CacheMetrics

    model_config = {"frozen": True}


class MemoryUsage(BaseModel):
    used_memory: int = 0
    max_memory: int = 0
    used_memory_percentage: float = Field(default=0.0, description="0 when maxmemory is unset")


def memory_usage(memory_info: dict[str, Any] | None) -> MemoryUsage:
    """Extract used/max memory from a parsed ``INFO memory`` section."""
    if not memory_info:
        return MemoryUsage()
    used = int(memory_info.get("used_memory", 0) or 0)
    maximum = int(memory_info.get("maxmemory", 0) or 0)
    return MemoryUsage(
        used_memory=used,
        max_memory=maximum,
        used_memory_percentage=(used / maximum * 100) if maximum > 0 else 0.0,
    )


def average_metrics(samples: list[MetricsSample]) -> dict[str, float]:
    """Field-wise mean of a run of samples (all zeros for an empty run)."""
    fields = ("hits", "misses", "hit_rate", "total_operations", "average_response_time")
    if not samples:
        return {name: 0.0 for name in fields}
    return {
        name: sum(getattr(s.metrics, name) for s in samples) / len(samples)
        for name in fields
    }


class CacheMonitor:
    """
    Tracks cache health over time and raises alerts.

    Args:
        cache: Cache manager to observe
        settings: Settings providing alert thresholds
        clock: Returns the current UTC time (injectable for tests)

    Usage:
        monitor = CacheMonitor(cache)
        await monitor.monitor()          # from the periodic trigger
        report = await monitor.generate_report()
    """

    def __init__(
        self,
        cache: CacheManager,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._cache = cache
        self._thresholds = (settings or get_settings()).monitoring
        self._clock = clock
        self._alerts: list[CacheAlert] = []
        self._history: list[MetricsSample] = []

    # -------------------------------------------------------------------------
    # Periodic pass
    # -------------------------------------------------------------------------

    async def monitor(self) -> list[CacheAlert]:
        """
        Record a metrics sample and check every threshold.

        Returns:
            Alerts newly raised by this pass
        """
        now = self._clock()
        metrics = self._cache.get_metrics()
        cache_info = await self._cache.get_cache_info()

        self._history.append(MetricsSample(timestamp=now, metrics=metrics))
        cutoff = now - timedelta(hours=HISTORY_RETENTION_HOURS)
        self._history = [s for s in self._history if s.timestamp > cutoff]

        raised = self._check_alerts(metrics, cache_info, now)

        logger.debug(
            "Cache monitoring pass",
            stage=Stage.MONITORING,
            hit_rate=round(metrics.hit_rate, 2),
            average_response_time=round(metrics.average_response_time, 2),
            new_alerts=len(raised),
        )
        return raised

    def _check_alerts(
        self, metrics: CacheMetrics, cache_info: dict[str, Any] | None, now: datetime
    ) -> list[CacheAlert]:
        t = self._thresholds
        candidates: list[CacheAlert] = []

        if metrics.total_operations > 0:
            if metrics.hit_rate < t.MONITOR_HIT_RATE_ERROR:
                candidates.append(CacheAlert(
                    level=AlertLevel.ERROR,
                    message=f"Cache hit rate critically low: {metrics.hit_rate:.2f}%",
                    timestamp=now, metric=AlertMetric.HIT_RATE,
                    value=metrics.hit_rate, threshold=t.MONITOR_HIT_RATE_ERROR,
                ))
            elif metrics.hit_rate < t.MONITOR_HIT_RATE_WARNING:
                candidates.append(CacheAlert(
                    level=AlertLevel.WARNING,
                    message=f"Cache hit rate below optimal: {metrics.hit_rate:.2f}%",
                    timestamp=now, metric=AlertMetric.HIT_RATE,
                    value=metrics.hit_rate, threshold=t.MONITOR_HIT_RATE_WARNING,
                ))

        avg = metrics.average_response_time
        if avg > t.MONITOR_RESPONSE_TIME_ERROR:
            candidates.append(CacheAlert(
                level=AlertLevel.ERROR,
                message=f"Cache response time critically high: {avg:.2f}ms",
                timestamp=now, metric=AlertMetric.RESPONSE_TIME,
                value=avg, threshold=t.MONITOR_RESPONSE_TIME_ERROR,
            ))
        elif avg > t.MONITOR_RESPONSE_TIME_WARNING:
            candidates.append(CacheAlert(
                level=AlertLevel.WARNING,
                message=f"Cache response time elevated: {avg:.2f}ms",
                timestamp=now, metric=AlertMetric.RESPONSE_TIME,
                value=avg, threshold=t.MONITOR_RESPONSE_TIME_WARNING,
            ))

        if cache_info and cache_info.get("memory"):
            pct = memory_usage(cache_info["memory"]).used_memory_percentage
            if pct > t.MONITOR_MEMORY_ERROR:
                candidates.append(CacheAlert(
                    level=AlertLevel.ERROR,
                    message=f"Redis memory usage critically high: {pct:.2f}%",
                    timestamp=now, metric=AlertMetric.MEMORY,
                    value=pct, threshold=t.MONITOR_MEMORY_ERROR,
                ))
            elif pct > t.MONITOR_MEMORY_WARNING:
                candidates.append(CacheAlert(
                    level=AlertLevel.WARNING,
                    message=f"Redis memory usage high: {pct:.2f}%",
                    timestamp=now, metric=AlertMetric.MEMORY,
                    value=pct, threshold=t.MONITOR_MEMORY_WARNING,
                ))

        return [alert for alert in candidates if self._add_alert(alert)]

    def _add_alert(self, alert: CacheAlert) -> bool:
        window_start = alert.timestamp - timedelta(seconds=ALERT_DEDUP_WINDOW_SECONDS)
        duplicate = any(
            existing.level == alert.level
            and existing.metric == alert.metric
            and existing.timestamp > window_start
            for existing in self._alerts
        )
        if duplicate:
            return False

        self._alerts.append(alert)
        logger.warning(
            "Cache alert",
            stage=Stage.MONITORING,
            level_name=alert.level.value,
            metric=alert.metric.value if alert.metric else None,
            message=alert.message,
        )
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def recent_alerts(self, hours: float = HISTORY_RETENTION_HOURS) -> list[CacheAlert]:
        """Alerts raised within the last ``hours``."""
        cutoff = self._clock() - timedelta(hours=hours)
        return [a for a in self._alerts if a.timestamp > cutoff]

    def historical_metrics(self, hours: float = HISTORY_RETENTION_HOURS) -> list[MetricsSample]:
        """Metric samples recorded within the last ``hours``."""
        cutoff = self._clock() - timedelta(hours=hours)
        return [s for s in self._history if s.timestamp > cutoff]

    def performance_trends(self) -> dict[str, float]:
        """
        Change between the last 10 samples and the 10 before them.

        Returns:
            hit_rate_trend, response_time_trend and operations_trend (all 0
            with fewer than two samples)
        """
        if len(self._history) < 2:
            return {"hit_rate_trend": 0.0, "response_time_trend": 0.0, "operations_trend": 0.0}

        recent = average_metrics(self._history[-TREND_WINDOW:])
        older = average_metrics(self._history[-2 * TREND_WINDOW:-TREND_WINDOW])
        return {
            "hit_rate_trend": recent["hit_rate"] - older["hit_rate"],
            "response_time_trend": recent["average_response_time"] - older["average_response_time"],
            "operations_trend": recent["total_operations"] - older["total_operations"],
        }

    def recommendations(
        self, metrics: CacheMetrics, cache_info: dict[str, Any] | None = None
    ) -> list[str]:
        """Tuning suggestions for the current metrics and store state."""
        advice: list[str] = []

        if metrics.hit_rate < self._thresholds.MONITOR_HIT_RATE_WARNING and metrics.total_operations > 100:
            advice += [
                "Consider increasing cache TTL for frequently accessed data",
                "Review cache warming strategies for critical data",
                "Analyze cache miss patterns to identify optimization opportunities",
            ]

        if metrics.average_response_time > 50:
            advice += [
                "Consider optimizing Redis configuration for better performance",
                "Review network latency between application and Redis server",
                "Consider using Redis clustering for better performance",
            ]

        if cache_info and cache_info.get("memory"):
            if memory_usage(cache_info["memory"]).used_memory_percentage > self._thresholds.MONITOR_MEMORY_WARNING:
                advice += [
                    "Consider increasing Redis memory allocation",
                    "Review cache expiration policies to free up memory",
                    "Implement cache eviction strategies for less critical data",
                ]

        if metrics.total_operations > 10000:
            advice += [
                "Monitor cache key distribution to avoid hotspots",
                "Consider implementing cache compression for large values",
            ]

        return advice

    async def generate_report(self) -> dict[str, Any]:
        """Metrics, store info, alerts and recommendations in one document."""
        metrics = self._cache.get_metrics()
        cache_info = await self._cache.get_cache_info()
        return {
            "timestamp": self._clock().isoformat(),
            "metrics": metrics.model_dump(),
            "redis_info": cache_info,
            "alerts": [a.model_dump(mode="json") for a in self._alerts],
            "recommendations": self.recommendations(metrics, cache_info),
        }

    async def health_report(self) -> dict[str, Any]:
        """
        Operator-facing health summary.

        Status is ``warning`` when the hit rate is below 50% over more than
        100 operations, the average response exceeds the warning threshold,
        or the hit rate trend has dropped by more than 10 points; ``degraded``
        when the backing store cannot be queried.
        """
        metrics = self._cache.get_metrics()
        cache_info = await self._cache.get_cache_info()
        trends = self.performance_trends()

        issues: list[str] = []
        status = HealthStatus.HEALTHY

        if metrics.hit_rate < self._thresholds.MONITOR_HIT_RATE_ERROR and metrics.total_operations > 100:
            issues.append("Low cache hit rate")
        if metrics.average_response_time > self._thresholds.MONITOR_RESPONSE_TIME_WARNING:
            issues.append("High cache response time")
        if trends["hit_rate_trend"] < -10:
            issues.append("Declining hit rate trend")
        if issues:
            status = HealthStatus.WARNING

        if cache_info is None:
            issues.append("Backing store unavailable")
            status = HealthStatus.DEGRADED

        return {
            "status": status.value,
            "issues": issues,
            "metrics": metrics.model_dump(),
            "trends": trends,
        }

    def clear_old_alerts(self) -> int:
        """
        Drop alerts older than the retention window.

        Returns:
            Number of alerts removed
        """
        cutoff = self._clock() - timedelta(hours=HISTORY_RETENTION_HOURS)
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.timestamp > cutoff]

        removed = before - len(self._alerts)
        if removed:
            logger.info("Cleared old cache alerts", stage=Stage.MONITORING, removed=removed)
        return removed
