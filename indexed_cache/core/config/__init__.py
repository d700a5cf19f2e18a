"""Configuration: settings singleton and shared constants."""

from indexed_cache.core.config.constants import (
    AlertLevel,
    AlertMetric,
    HealthStatus,
    IndexKind,
    Stage,
)
from indexed_cache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    "AlertLevel",
    "AlertMetric",
    "HealthStatus",
    "IndexKind",
    "Settings",
    "Stage",
    "get_settings",
    "reload_settings",
]
