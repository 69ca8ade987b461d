"""Configuration management for sitewatch."""

from .loader import ConfigLoader
from .settings import (
    AppSettings,
    FetchSettings,
    NormalizerSettings,
    NotificationSettings,
    StateSettings,
    get_settings,
    reload_settings,
    validate_target_url,
)
from .types import ConfigError, ConfigLoadError, ConfigValidationError, NoiseRuleConfig

__all__ = [
    "AppSettings",
    "FetchSettings",
    "NotificationSettings",
    "StateSettings",
    "NormalizerSettings",
    "get_settings",
    "reload_settings",
    "validate_target_url",
    "ConfigLoader",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "NoiseRuleConfig",
]
