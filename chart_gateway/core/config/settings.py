#!/usr/bin/env python3
"""
Gateway Configuration (pydantic-settings)

One flat ``Settings`` class reads the environment and ``.env``; grouped
read-only views (``settings.app``, ``settings.chart_service``,
``settings.streaming``, ``settings.lifecycle``, ``settings.logging``) keep
call sites short.

Architectural Decision: validate everything at startup
- A bad LOG_LEVEL or heartbeat interval stops the process before it binds
- ``CHART_IMG_API_KEY`` falls back to ``API_KEY`` for older deployments
- Tests build ``Settings(_env_file=None, ...)`` directly instead of patching

Author: System Architect
Date: 2025-12-05
"""

from typing import Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chart_gateway.core.exceptions.base import ConfigurationError

_VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ChartServiceSettings(BaseSettings):
    """
    Chart-IMG upstream configuration.

    STAGE-0.1: Render provider configuration

    The API key may be supplied as CHART_IMG_API_KEY or the generic API_KEY.
    Without a key the gateway still starts, but renders fail and health
    reports the upstream as unconfigured.
    """

    CHART_IMG_API_KEY: str | None = Field(default=None, description="Chart-IMG API key")
    CHART_IMG_BASE_URL: str = Field(default="https://api.chart-img.com", description="Chart-IMG base URL")
    CHART_IMG_TIMEOUT: float = Field(default=30.0, description="Upstream request timeout in seconds")
    CHART_IMG_MAX_RETRIES: int = Field(default=3, description="Attempts for transient transport errors")
    CHART_PROVIDER: Literal["chart-img", "fake"] = Field(
        default="chart-img",
        description="Render provider backing the gateway"
    )
    FAKE_RENDER_LATENCY: float = Field(default=0.05, description="Simulated latency of the fake provider")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class StreamingSettings(BaseSettings):
    """
    SSE session configuration.

    STAGE-S: Session heartbeat and buffering
    """

    SSE_HEARTBEAT_INTERVAL: float = Field(default=30.0, description="Seconds between heartbeat comments")
    SSE_SESSION_BUFFER_SIZE: int = Field(default=1000, description="Queued frames per session before it is dropped")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LifecycleSettings(BaseSettings):
    """
    Chart request lifecycle configuration.

    STAGE-2: Ledger retention and render watchdog
    """

    RENDER_TIMEOUT_SECONDS: float | None = Field(
        default=None,
        description="Force-fail renders that have not settled after this many seconds"
    )
    LEDGER_MAX_ENTRIES: int | None = Field(
        default=None,
        description="Prune oldest chart requests beyond this count (unbounded when unset)"
    )
    RECENT_REQUESTS_DEFAULT_LIMIT: int = Field(default=10, description="Default page size for recent requests")
    RECENT_REQUESTS_MAX_LIMIT: int = Field(default=50, description="Upper bound for recent requests")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        if v.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {_VALID_LOG_LEVELS}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Chart MCP Gateway", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    # API settings
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3001, description="API port")

    # CORS settings
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from chart_gateway.core.config.settings import get_settings

        settings = get_settings()
        api_key = settings.chart_service.CHART_IMG_API_KEY
        heartbeat = settings.streaming.SSE_HEARTBEAT_INTERVAL
    """

    # Chart service settings
    CHART_IMG_API_KEY: str | None = Field(default=None, description="Chart-IMG API key")
    API_KEY: str | None = Field(default=None, description="Chart-IMG API key (alternative)")
    CHART_IMG_BASE_URL: str = Field(default="https://api.chart-img.com", description="Chart-IMG base URL")
    CHART_IMG_TIMEOUT: float = Field(default=30.0, description="Upstream request timeout in seconds")
    CHART_IMG_MAX_RETRIES: int = Field(default=3, description="Attempts for transient transport errors")
    CHART_PROVIDER: Literal["chart-img", "fake"] = Field(
        default="chart-img",
        description="Render provider backing the gateway"
    )
    FAKE_RENDER_LATENCY: float = Field(default=0.05, description="Simulated latency of the fake provider")

    # Streaming settings
    SSE_HEARTBEAT_INTERVAL: float = Field(default=30.0, description="Seconds between heartbeat comments")
    SSE_SESSION_BUFFER_SIZE: int = Field(default=1000, description="Queued frames per session before it is dropped")

    # Lifecycle settings
    RENDER_TIMEOUT_SECONDS: float | None = Field(default=None, description="Render watchdog (seconds)")
    LEDGER_MAX_ENTRIES: int | None = Field(default=None, description="Ledger retention cap")
    RECENT_REQUESTS_DEFAULT_LIMIT: int = Field(default=10, description="Default page size for recent requests")
    RECENT_REQUESTS_MAX_LIMIT: int = Field(default=50, description="Upper bound for recent requests")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Chart MCP Gateway", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3001, description="API port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @model_validator(mode="after")
    def merge_api_keys(self):
        """Fall back to the generic API_KEY when CHART_IMG_API_KEY is unset."""
        if not self.CHART_IMG_API_KEY and self.API_KEY:
            self.CHART_IMG_API_KEY = self.API_KEY
        return self

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        if v.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {_VALID_LOG_LEVELS}")
        return v.upper()

    @field_validator("SSE_HEARTBEAT_INTERVAL", "SSE_SESSION_BUFFER_SIZE")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @property
    def chart_service(self) -> 'ChartServiceSettings':
        """Get chart service settings."""
        return ChartServiceSettings(
            CHART_IMG_API_KEY=self.CHART_IMG_API_KEY,
            CHART_IMG_BASE_URL=self.CHART_IMG_BASE_URL,
            CHART_IMG_TIMEOUT=self.CHART_IMG_TIMEOUT,
            CHART_IMG_MAX_RETRIES=self.CHART_IMG_MAX_RETRIES,
            CHART_PROVIDER=self.CHART_PROVIDER,
            FAKE_RENDER_LATENCY=self.FAKE_RENDER_LATENCY
        )

    @property
    def streaming(self) -> 'StreamingSettings':
        """Get SSE session settings."""
        return StreamingSettings(
            SSE_HEARTBEAT_INTERVAL=self.SSE_HEARTBEAT_INTERVAL,
            SSE_SESSION_BUFFER_SIZE=self.SSE_SESSION_BUFFER_SIZE
        )

    @property
    def lifecycle(self) -> 'LifecycleSettings':
        """Get lifecycle settings."""
        return LifecycleSettings(
            RENDER_TIMEOUT_SECONDS=self.RENDER_TIMEOUT_SECONDS,
            LEDGER_MAX_ENTRIES=self.LEDGER_MAX_ENTRIES,
            RECENT_REQUESTS_DEFAULT_LIMIT=self.RECENT_REQUESTS_DEFAULT_LIMIT,
            RECENT_REQUESTS_MAX_LIMIT=self.RECENT_REQUESTS_MAX_LIMIT
        )

    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT
        )

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            DEBUG=self.DEBUG,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            CORS_ORIGINS=self.CORS_ORIGINS
        )

    @property
    def upstream_configured(self) -> bool:
        """True when renders can reach a real or fake backend."""
        return self.CHART_PROVIDER == "fake" or bool(self.CHART_IMG_API_KEY)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def _load() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ConfigurationError(
            "Invalid configuration", details={"fields": fields}
        ).with_suggestion("Check the environment variables and .env file") from e


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance

    Raises:
        ConfigurationError: an environment value failed validation
    """
    global _settings

    if _settings is None:
        _settings = _load()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = _load()
    return _settings
