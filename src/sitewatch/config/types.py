"""Type definitions for configuration system."""

from dataclasses import dataclass, field

from ..scraper.normalizer import NoiseRule


class ConfigError(Exception):
    """Base exception for configuration-related errors."""

    pass


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    pass


class ConfigLoadError(ConfigError):
    """Exception raised when configuration loading fails."""

    pass


@dataclass
class NoiseRuleConfig:
    """Custom noise rules and disabled built-in rules read from a rules file."""

    rules: list[NoiseRule] = field(default_factory=list)
    disabled: list[str] = field(default_factory=list)
