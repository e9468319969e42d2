#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

Type-safe, environment-based configuration for the Redis cache layer.
All configuration is centralized here so the store adapter, the reconnect
policy and the cache modes read the same values.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """
    Redis connection configuration.

    STAGE-0.1: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ReconnectSettings(BaseSettings):
    """
    Reconnect policy thresholds.

    STAGE-R: Connection resilience configuration

    Delay grows linearly (attempt * step) and is capped; the policy gives up
    once either the attempt budget or the elapsed-time budget is spent.
    """

    REDIS_RETRY_MAX_ATTEMPTS: int = Field(default=6, ge=0, description="Attempts before giving up")
    REDIS_RETRY_MAX_TIME_MS: int = Field(default=60_000, ge=0, description="Total retry time budget")
    REDIS_RETRY_STEP_MS: int = Field(default=100, ge=0, description="Delay added per attempt")
    REDIS_RETRY_MAX_DELAY_MS: int = Field(default=3_000, ge=0, description="Upper bound on one delay")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Cache key and TTL configuration.

    STAGE-2: Cache configuration
    """

    CACHE_KEY_NAMESPACE: str = Field(
        default="ServiceCache", description="Prefix for memoized method keys"
    )
    CACHE_DEFAULT_TTL: int | None = Field(
        default=None, gt=0, description="TTL applied when a write gives none (None = no expiry)"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from rediscache.core.config.settings import get_settings

        settings = get_settings()
        redis_host = settings.redis.REDIS_HOST
        max_attempts = settings.reconnect.REDIS_RETRY_MAX_ATTEMPTS
    """

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Reconnect policy settings
    REDIS_RETRY_MAX_ATTEMPTS: int = Field(default=6, ge=0, description="Attempts before giving up")
    REDIS_RETRY_MAX_TIME_MS: int = Field(default=60_000, ge=0, description="Total retry time budget")
    REDIS_RETRY_STEP_MS: int = Field(default=100, ge=0, description="Delay added per attempt")
    REDIS_RETRY_MAX_DELAY_MS: int = Field(default=3_000, ge=0, description="Upper bound on one delay")

    # Cache settings
    CACHE_KEY_NAMESPACE: str = Field(
        default="ServiceCache", description="Prefix for memoized method keys"
    )
    CACHE_DEFAULT_TTL: int | None = Field(
        default=None, gt=0, description="TTL applied when a write gives none (None = no expiry)"
    )

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration objects
    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
        )

    @property
    def reconnect(self) -> ReconnectSettings:
        """Get reconnect policy settings."""
        return ReconnectSettings(
            REDIS_RETRY_MAX_ATTEMPTS=self.REDIS_RETRY_MAX_ATTEMPTS,
            REDIS_RETRY_MAX_TIME_MS=self.REDIS_RETRY_MAX_TIME_MS,
            REDIS_RETRY_STEP_MS=self.REDIS_RETRY_STEP_MS,
            REDIS_RETRY_MAX_DELAY_MS=self.REDIS_RETRY_MAX_DELAY_MS,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_KEY_NAMESPACE=self.CACHE_KEY_NAMESPACE,
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

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
