#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

Type-safe, environment-based configuration for the indexed cache. Every
tunable (backing store location, default TTL, warming, alert
thresholds, logging) is declared here once and read through
``get_settings()``.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexed_cache.core.config.constants import (
    DEFAULT_CACHE_TTL,
    METRICS_WINDOW_SIZE,
    REFRESH_MAX_PRIORITY,
    SCAN_BATCH_SIZE,
)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class RedisSettings(BaseSettings):
    """
    Backing store (Redis) connection configuration.

    Reconnection uses a linear back-off: attempt N waits
    ``min(N * REDIS_RECONNECT_STEP_MS, REDIS_RECONNECT_MAX_MS)`` milliseconds.
    """

    REDIS_URL: str | None = Field(default=None, description="Redis URL (overrides host/port/db)")
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")

    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    REDIS_CONNECT_MAX_ATTEMPTS: int = Field(default=5, description="Connection attempts before giving up")
    REDIS_RECONNECT_STEP_MS: int = Field(default=50, description="Back-off increment per attempt (ms)")
    REDIS_RECONNECT_MAX_MS: int = Field(default=500, description="Back-off ceiling (ms)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Cache behaviour configuration.

    CACHE_DEFAULT_TTL applies when a write supplies no TTL at all; an explicit
    TTL of 0 always means "no expiry".
    """

    ENABLE_CACHING: bool = Field(default=True, description="Master switch for the cache")
    CACHE_DEFAULT_TTL: int = Field(default=DEFAULT_CACHE_TTL, description="Default entry TTL (seconds)")
    CACHE_METRICS_WINDOW: int = Field(default=METRICS_WINDOW_SIZE, description="Latency samples kept")
    CACHE_SCAN_COUNT: int = Field(default=SCAN_BATCH_SIZE, description="SCAN page size hint")
    CACHE_TAG_PREFIX: str = Field(default="tag", description="Key prefix for tag indices")
    CACHE_DEPENDENCY_PREFIX: str = Field(default="dep", description="Key prefix for dependency indices")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class WarmingSettings(BaseSettings):
    """
    Warming scheduler and background refresher configuration.

    The core never schedules itself; the host decides when passes run.
    """

    WARMING_ON_STARTUP: bool = Field(default=True, description="Warm critical tasks during start()")
    WARMING_REFRESH_MAX_PRIORITY: int = Field(
        default=REFRESH_MAX_PRIORITY, description="Highest priority number the refresher covers"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class MonitoringSettings(BaseSettings):
    """
    Cache monitoring alert thresholds.

    Hit rate thresholds are lower bounds, response time and memory thresholds
    are upper bounds.
    """

    MONITOR_HIT_RATE_WARNING: float = Field(default=70.0, description="Hit rate warning (%)")
    MONITOR_HIT_RATE_ERROR: float = Field(default=50.0, description="Hit rate error (%)")
    MONITOR_RESPONSE_TIME_WARNING: float = Field(default=100.0, description="Avg response warning (ms)")
    MONITOR_RESPONSE_TIME_ERROR: float = Field(default=500.0, description="Avg response error (ms)")
    MONITOR_MEMORY_WARNING: float = Field(default=80.0, description="Redis memory warning (%)")
    MONITOR_MEMORY_ERROR: float = Field(default=95.0, description="Redis memory error (%)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """Logging configuration for structured logging."""

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Indexed Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from indexed_cache.core.config.settings import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_DEFAULT_TTL
        host = settings.redis.REDIS_HOST
    """

    # Redis settings
    REDIS_URL: str | None = Field(default=None, description="Redis URL (overrides host/port/db)")
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")
    REDIS_CONNECT_MAX_ATTEMPTS: int = Field(default=5, description="Connection attempts before giving up")
    REDIS_RECONNECT_STEP_MS: int = Field(default=50, description="Back-off increment per attempt (ms)")
    REDIS_RECONNECT_MAX_MS: int = Field(default=500, description="Back-off ceiling (ms)")

    # Cache settings
    ENABLE_CACHING: bool = Field(default=True, description="Master switch for the cache")
    CACHE_DEFAULT_TTL: int = Field(default=DEFAULT_CACHE_TTL, description="Default entry TTL (seconds)")
    CACHE_METRICS_WINDOW: int = Field(default=METRICS_WINDOW_SIZE, description="Latency samples kept")
    CACHE_SCAN_COUNT: int = Field(default=SCAN_BATCH_SIZE, description="SCAN page size hint")
    CACHE_TAG_PREFIX: str = Field(default="tag", description="Key prefix for tag indices")
    CACHE_DEPENDENCY_PREFIX: str = Field(default="dep", description="Key prefix for dependency indices")

    # Warming settings
    WARMING_ON_STARTUP: bool = Field(default=True, description="Warm critical tasks during start()")
    WARMING_REFRESH_MAX_PRIORITY: int = Field(
        default=REFRESH_MAX_PRIORITY, description="Highest priority number the refresher covers"
    )

    # Monitoring settings
    MONITOR_HIT_RATE_WARNING: float = Field(default=70.0, description="Hit rate warning (%)")
    MONITOR_HIT_RATE_ERROR: float = Field(default=50.0, description="Hit rate error (%)")
    MONITOR_RESPONSE_TIME_WARNING: float = Field(default=100.0, description="Avg response warning (ms)")
    MONITOR_RESPONSE_TIME_ERROR: float = Field(default=500.0, description="Avg response error (ms)")
    MONITOR_MEMORY_WARNING: float = Field(default=80.0, description="Redis memory warning (%)")
    MONITOR_MEMORY_ERROR: float = Field(default=95.0, description="Redis memory error (%)")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Indexed Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}")
        return v.upper()

    # Nested configuration views
    @property
    def redis(self) -> "RedisSettings":
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
            REDIS_CONNECT_MAX_ATTEMPTS=self.REDIS_CONNECT_MAX_ATTEMPTS,
            REDIS_RECONNECT_STEP_MS=self.REDIS_RECONNECT_STEP_MS,
            REDIS_RECONNECT_MAX_MS=self.REDIS_RECONNECT_MAX_MS,
        )

    @property
    def cache(self) -> "CacheSettings":
        """Get cache settings."""
        return CacheSettings(
            ENABLE_CACHING=self.ENABLE_CACHING,
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
            CACHE_METRICS_WINDOW=self.CACHE_METRICS_WINDOW,
            CACHE_SCAN_COUNT=self.CACHE_SCAN_COUNT,
            CACHE_TAG_PREFIX=self.CACHE_TAG_PREFIX,
            CACHE_DEPENDENCY_PREFIX=self.CACHE_DEPENDENCY_PREFIX,
        )

    @property
    def warming(self) -> "WarmingSettings":
        """Get warming settings."""
        return WarmingSettings(
            WARMING_ON_STARTUP=self.WARMING_ON_STARTUP,
            WARMING_REFRESH_MAX_PRIORITY=self.WARMING_REFRESH_MAX_PRIORITY,
        )

    @property
    def monitoring(self) -> "MonitoringSettings":
        """Get monitoring settings."""
        return MonitoringSettings(
            MONITOR_HIT_RATE_WARNING=self.MONITOR_HIT_RATE_WARNING,
            MONITOR_HIT_RATE_ERROR=self.MONITOR_HIT_RATE_ERROR,
            MONITOR_RESPONSE_TIME_WARNING=self.MONITOR_RESPONSE_TIME_WARNING,
            MONITOR_RESPONSE_TIME_ERROR=self.MONITOR_RESPONSE_TIME_ERROR,
            MONITOR_MEMORY_WARNING=self.MONITOR_MEMORY_WARNING,
            MONITOR_MEMORY_ERROR=self.MONITOR_MEMORY_ERROR,
        )

    @property
    def logging(self) -> "LoggingSettings":
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> "ApplicationSettings":
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
