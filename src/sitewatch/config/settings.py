"""Pydantic settings models for configuration management."""

from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..notification.ntfy import DEFAULT_NOTIFY_TIMEOUT, DEFAULT_NTFY_SERVER
from ..scraper.fetcher import (
    DEFAULT_ACCEPT,
    DEFAULT_ACCEPT_LANGUAGE,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
)
from ..scraper.hashing import DEFAULT_HASH_TYPE, SUPPORTED_HASH_TYPES
from ..storage.state import DEFAULT_STATE_PATH
from .types import ConfigError, ConfigValidationError


class FetchSettings(BaseModel):
    """HTTP fetch configuration."""

    user_agent: str = DEFAULT_USER_AGENT
    accept: str = DEFAULT_ACCEPT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE


class NotificationSettings(BaseModel):
    """ntfy configuration."""

    server: str = DEFAULT_NTFY_SERVER
    timeout_seconds: float = DEFAULT_NOTIFY_TIMEOUT

    @field_validator("server")
    @classmethod
    def validate_server(cls, v):
        if not v:
            raise ValueError("Notification server cannot be empty")
        return v.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v


class StateSettings(BaseModel):
    """State file configuration."""

    path: str = str(DEFAULT_STATE_PATH)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v):
        if not v:
            raise ValueError("State path cannot be empty")
        return v


class NormalizerSettings(BaseModel):
    """Normalization and fingerprint configuration."""

    hash_type: str = DEFAULT_HASH_TYPE
    rules_file: Optional[str] = None

    @field_validator("hash_type")
    @classmethod
    def validate_hash_type(cls, v):
        if v.lower() not in SUPPORTED_HASH_TYPES:
            raise ValueError(f"Hash type must be one of: {list(SUPPORTED_HASH_TYPES)}")
        return v.lower()


class AppSettings(BaseSettings):
    """Main application settings."""

    # Target and destination, read from MONITOR_URL / NTFY_TOPIC
    monitor_url: Optional[str] = None
    ntfy_topic: Optional[str] = None
    fetch_timeout_ms: int = DEFAULT_TIMEOUT_MS

    log_level: str = "WARNING"
    json_logs: bool = False

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    state: StateSettings = Field(default_factory=StateSettings)
    normalizer: NormalizerSettings = Field(default_factory=NormalizerSettings)

    class Config:
        env_file = ".env"
        env_nested_delimiter = "__"
        case_sensitive = False
        extra = "ignore"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("fetch_timeout_ms")
    @classmethod
    def validate_fetch_timeout(cls, v):
        if v <= 0:
            raise ValueError("Fetch timeout must be positive")
        return v


@lru_cache
def get_settings() -> AppSettings:
    """Get the application settings instance."""
    try:
        return AppSettings()
    except Exception as e:
        raise ConfigError(f"Failed to load settings: {str(e)}") from e


def reload_settings() -> AppSettings:
    """Force reload of settings (useful for testing)."""
    get_settings.cache_clear()
    return get_settings()


def validate_target_url(url: str) -> str:
    """Check that ``url`` is an absolute http(s) URL."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ConfigValidationError(
            f'Invalid URL "{url}": URL must use HTTP or HTTPS protocol'
        )
    if not parsed.netloc:
        raise ConfigValidationError(f'Invalid URL "{url}": missing host')
    return url
