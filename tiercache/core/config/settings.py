#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

Type-safe, environment-based configuration for the cache service. All
configuration is loaded here so the cache layers never read os.environ
themselves.

Values come from the environment or a .env file and are validated on load.
Tests pass keyword overrides: Settings(REDIS_HOST=None)
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tiercache.core.config.constants import (
    CACHE_DEFAULT_TTL,
    CACHE_SWEEP_INTERVAL,
    CACHE_SWEEP_MAX_AGE,
    REDIS_COMMAND_TIMEOUT,
    REDIS_CONNECT_TIMEOUT,
    REDIS_DEFAULT_DATABASE,
    REDIS_DEFAULT_PORT,
    REDIS_DEFAULT_USERNAME,
    UPSTREAM_FETCH_TIMEOUT,
)


class RedisSettings(BaseSettings):
    """
    Redis connection configuration.

    STAGE-0.1: Remote tier configuration

    REDIS_URL is used verbatim when present and wins over the host fields.
    With neither REDIS_URL nor REDIS_HOST the cache runs Local-only and never
    opens a socket.
    """

    REDIS_URL: str | None = Field(default=None, description="Full connection string (redis:// or rediss://)")
    REDIS_HOST: str | None = Field(default=None, description="Redis server host")
    REDIS_PORT: int = Field(default=REDIS_DEFAULT_PORT, description="Redis server port")
    REDIS_USERNAME: str = Field(default=REDIS_DEFAULT_USERNAME, description="Redis ACL username")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_DATABASE: int = Field(default=REDIS_DEFAULT_DATABASE, description="Redis database index")
    REDIS_TLS: bool = Field(default=False, description="Use TLS in host mode")

    REDIS_CONNECT_TIMEOUT: float = Field(default=REDIS_CONNECT_TIMEOUT, description="Connect timeout in seconds")
    REDIS_COMMAND_TIMEOUT: float = Field(default=REDIS_COMMAND_TIMEOUT, description="Per-command timeout in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")

    @property
    def is_configured(self) -> bool:
        """True when either a URL or a host is present."""
        return bool(self.REDIS_URL or self.REDIS_HOST)


class CacheSettings(BaseSettings):
    """
    Cache TTL and sweeper configuration.

    STAGE-0.2: Cache configuration
    """

    CACHE_DEFAULT_TTL: float = Field(default=CACHE_DEFAULT_TTL, description="Default entry TTL (5 minutes)")
    CACHE_SWEEP_INTERVAL: float = Field(default=CACHE_SWEEP_INTERVAL, description="Seconds between local sweeps")
    CACHE_SWEEP_MAX_AGE: float = Field(default=CACHE_SWEEP_MAX_AGE, description="Local entries older than this are evicted")
    CACHE_SWEEPER_ENABLED: bool = Field(default=True, description="Run the background sweeper")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class UpstreamSettings(BaseSettings):
    """Upstream fetch configuration."""

    UPSTREAM_FETCH_TIMEOUT: float = Field(default=UPSTREAM_FETCH_TIMEOUT, description="Upstream call timeout in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="tiercache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all routes")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True, extra="ignore")


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        settings = get_settings()
        settings.redis.REDIS_HOST
        settings.cache.CACHE_SWEEP_INTERVAL
    """

    # Redis settings
    REDIS_URL: str | None = Field(default=None, description="Full connection string (redis:// or rediss://)")
    REDIS_HOST: str | None = Field(default=None, description="Redis server host")
    REDIS_PORT: int = Field(default=REDIS_DEFAULT_PORT, description="Redis server port")
    REDIS_USERNAME: str = Field(default=REDIS_DEFAULT_USERNAME, description="Redis ACL username")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_DATABASE: int = Field(default=REDIS_DEFAULT_DATABASE, description="Redis database index")
    REDIS_TLS: bool = Field(default=False, description="Use TLS in host mode")
    REDIS_CONNECT_TIMEOUT: float = Field(default=REDIS_CONNECT_TIMEOUT, description="Connect timeout in seconds")
    REDIS_COMMAND_TIMEOUT: float = Field(default=REDIS_COMMAND_TIMEOUT, description="Per-command timeout in seconds")

    # Cache settings
    CACHE_DEFAULT_TTL: float = Field(default=CACHE_DEFAULT_TTL, description="Default entry TTL (5 minutes)")
    CACHE_SWEEP_INTERVAL: float = Field(default=CACHE_SWEEP_INTERVAL, description="Seconds between local sweeps")
    CACHE_SWEEP_MAX_AGE: float = Field(default=CACHE_SWEEP_MAX_AGE, description="Local entries older than this are evicted")
    CACHE_SWEEPER_ENABLED: bool = Field(default=True, description="Run the background sweeper")

    # Upstream settings
    UPSTREAM_FETCH_TIMEOUT: float = Field(default=UPSTREAM_FETCH_TIMEOUT, description="Upstream call timeout in seconds")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="tiercache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all routes")

    @field_validator("REDIS_URL", "REDIS_HOST", "REDIS_PASSWORD", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        """Treat REDIS_HOST= (empty) the same as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("REDIS_PORT")
    @classmethod
    def validate_port(cls, v):
        """Validate port range."""
        if not 0 < v < 65536:
            raise ValueError("REDIS_PORT must be between 1 and 65535")
        return v

    @field_validator("REDIS_DATABASE")
    @classmethod
    def validate_database(cls, v):
        """Validate database index."""
        if v < 0:
            raise ValueError("REDIS_DATABASE must be >= 0")
        return v

    @field_validator(
        "REDIS_CONNECT_TIMEOUT",
        "REDIS_COMMAND_TIMEOUT",
        "CACHE_SWEEP_INTERVAL",
        "CACHE_SWEEP_MAX_AGE",
        "UPSTREAM_FETCH_TIMEOUT",
    )
    @classmethod
    def validate_positive(cls, v, info):
        """Timeouts and intervals must be positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration views
    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_USERNAME=self.REDIS_USERNAME,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_DATABASE=self.REDIS_DATABASE,
            REDIS_TLS=self.REDIS_TLS,
            REDIS_CONNECT_TIMEOUT=self.REDIS_CONNECT_TIMEOUT,
            REDIS_COMMAND_TIMEOUT=self.REDIS_COMMAND_TIMEOUT,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
            CACHE_SWEEP_INTERVAL=self.CACHE_SWEEP_INTERVAL,
            CACHE_SWEEP_MAX_AGE=self.CACHE_SWEEP_MAX_AGE,
            CACHE_SWEEPER_ENABLED=self.CACHE_SWEEPER_ENABLED,
        )

    @property
    def upstream(self) -> UpstreamSettings:
        """Get upstream fetch settings."""
        return UpstreamSettings(UPSTREAM_FETCH_TIMEOUT=self.UPSTREAM_FETCH_TIMEOUT)

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_BASE_PATH=self.API_BASE_PATH,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (lazy)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

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
    Reload settings from the environment (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
