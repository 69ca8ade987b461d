"""Loading of custom noise rules from YAML."""

import re
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..scraper.normalizer import HtmlNormalizer, NoiseRule, build_rule_chain
from ..scraper.types import NoiseCategory
from ..utils.logging import get_structured_logger
from .types import ConfigLoadError, NoiseRuleConfig

logger = get_structured_logger(__name__)

RULE_KEYS = {
    "name",
    "category",
    "pattern",
    "replacement",
    "ignore_case",
    "protect_attributes",
}


class ConfigLoader:
    """Reads the noise-rule file.

    Expected layout::

        disable: [epoch-timestamps]
        rules:
          - name: emotion-classes
            category: dynamic_ids
            pattern: '\\bcss-[a-z0-9]{6,}\\b'
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file or "noise-rules.yaml")

    def load_yaml_config(self) -> dict[str, Any]:
        """Load the raw YAML mapping, or {} if the file does not exist."""
        if not self.config_file.exists():
            logger.warning(
                "Rules file not found, using built-in rules",
                path=str(self.config_file),
            )
            return {}

        try:
            with open(self.config_file, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Failed to parse YAML config: {str(e)}") from e
        except OSError as e:
            raise ConfigLoadError(f"Failed to load config file: {str(e)}") from e

        if not isinstance(config, dict):
            raise ConfigLoadError(f"{self.config_file} must contain a mapping")

        logger.info("Loaded rules file", path=str(self.config_file))
        return config

    def get_noise_rules(self) -> NoiseRuleConfig:
        """Parse custom rules and the list of disabled built-in rules."""
        config = self.load_yaml_config()

        disabled = config.get("disable", []) or []
        if not isinstance(disabled, list) or not all(
            isinstance(name, str) for name in disabled
        ):
            raise ConfigLoadError("'disable' must be a list of rule names")

        rules_data = config.get("rules", []) or []
        if not isinstance(rules_data, list):
            raise ConfigLoadError("'rules' must be a list")

        rules = [self._parse_rule(rule_data) for rule_data in rules_data]
        rule_config = NoiseRuleConfig(rules=rules, disabled=list(disabled))

        # Surface unknown names and misplaced rules now rather than mid-run
        try:
            build_rule_chain(rule_config.rules, rule_config.disabled)
        except ValueError as e:
            raise ConfigLoadError(str(e)) from e

        return rule_config

    def build_normalizer(self) -> HtmlNormalizer:
        """Create a normalizer with the file's rules applied."""
        rule_config = self.get_noise_rules()
        return HtmlNormalizer(
            extra_rules=rule_config.rules, disabled_rules=rule_config.disabled
        )

    def _parse_rule(self, data: Any) -> NoiseRule:
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Rule entries must be mappings, got: {data!r}")

        unknown = set(data) - RULE_KEYS
        if unknown:
            raise ConfigLoadError(f"Unknown rule keys: {', '.join(sorted(unknown))}")

        for key in ("name", "category", "pattern"):
            if not data.get(key):
                raise ConfigLoadError(f"Rule is missing '{key}': {data!r}")

        try:
            category = NoiseCategory(str(data["category"]).lower())
        except ValueError as e:
            valid = [c.value for c in NoiseCategory]
            raise ConfigLoadError(
                f"Rule '{data['name']}' has unknown category "
                f"'{data['category']}', expected one of {valid}"
            ) from e

        try:
            return NoiseRule(
                name=str(data["name"]),
                category=category,
                pattern=str(data["pattern"]),
                replacement=str(data.get("replacement", "")),
                ignore_case=bool(data.get("ignore_case", True)),
                protect_attributes=bool(data.get("protect_attributes", False)),
            )
        except re.error as e:
            raise ConfigLoadError(
                f"Rule '{data['name']}' has an invalid pattern: {str(e)}"
            ) from e
