"""HTML noise removal ahead of fingerprinting.

The normalizer is an ordered chain of independent regex rewrite rules. Rules
run grouped by ``NoiseCategory`` (scripts, styles, comments, dynamic ids,
tracking, temporal, whitespace) and the order is part of the contract: script
and style blocks go before anything that looks at tags, and whitespace is
collapsed only after every other rule has run.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Optional, Union

from ..utils.logging import get_structured_logger
from .types import NoiseCategory

logger = get_structured_logger(__name__)

# Attribute values that carry semantic content and must never be rewritten
# by rules that opt into protection.
PROTECTED_ATTRIBUTE_PATTERN = re.compile(
    r"""\b(?:href|src|srcset|action|alt|poster)\s*=\s*(?:"[^"]*"|'[^']*')""",
    re.IGNORECASE,
)

_ATTR_VALUE = r"""(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+)"""

# Generated hex suffix at the end of one token of an id reference list
_ID_SUFFIX = re.compile(
    r"""[-_](?=[0-9a-f]*\d)[0-9a-f]{8,}(?=[\s"']|\Z)""", re.IGNORECASE
)


def _strip_id_suffixes(match: re.Match) -> str:
    return match.group(1) + _ID_SUFFIX.sub("", match.group(2))


@dataclass
class NoiseRule:
    """A single pattern -> replacement rewrite."""

    name: str
    category: NoiseCategory
    pattern: str
    replacement: Union[str, Callable[[re.Match], str]] = ""
    ignore_case: bool = True
    protect_attributes: bool = False
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.category = NoiseCategory(self.category)
        flags = re.IGNORECASE if self.ignore_case else 0
        self.regex = re.compile(self.pattern, flags)

    def apply(self, text: str) -> str:
        """Apply the rule, skipping protected attribute values if requested."""
        if not self.protect_attributes:
            return self.regex.sub(self.replacement, text)

        parts = []
        last = 0
        for match in PROTECTED_ATTRIBUTE_PATTERN.finditer(text):
            parts.append(self.regex.sub(self.replacement, text[last : match.start()]))
            parts.append(match.group(0))
            last = match.end()
        parts.append(self.regex.sub(self.replacement, text[last:]))
        return "".join(parts)


DEFAULT_NOISE_RULES: tuple[NoiseRule, ...] = (
    # Scripts
    NoiseRule(
        "script-blocks",
        NoiseCategory.SCRIPTS,
        r"<script\b[^>]*>[\s\S]*?</script\s*>",
    ),
    NoiseRule(
        "noscript-blocks",
        NoiseCategory.SCRIPTS,
        r"<noscript\b[^>]*>[\s\S]*?</noscript\s*>",
    ),
    # Styles
    NoiseRule(
        "style-blocks",
        NoiseCategory.STYLES,
        r"<style\b[^>]*>[\s\S]*?</style\s*>",
    ),
    NoiseRule(
        "stylesheet-links",
        NoiseCategory.STYLES,
        r"""<link\b[^>]*\brel\s*=\s*["']?[^"'>]*\bstylesheet\b[^>]*>""",
    ),
    # Comments
    NoiseRule(
        "html-comments",
        NoiseCategory.COMMENTS,
        r"<!--[\s\S]*?-->",
    ),
    # Framework generated identifiers
    NoiseRule(
        "vue-scoped-ids",
        NoiseCategory.DYNAMIC_IDS,
        r"""(?<!\s)\s*\bdata-v-[0-9a-f]{6,}\b(?:=(?:""|''))?""",
        protect_attributes=True,
    ),
    NoiseRule(
        "angular-scoped-attributes",
        NoiseCategory.DYNAMIC_IDS,
        r"""(?<!\s)\s*\b_ng(?:content|host)-[\w-]+(?:=(?:""|''))?""",
    ),
    NoiseRule(
        "hash-suffixed-ids",
        NoiseCategory.DYNAMIC_IDS,
        r"""(\b(?:id|for|aria-labelledby|aria-describedby|aria-controls|aria-owns)"""
        r"""\s*=\s*)(""" + _ATTR_VALUE + ")",
        replacement=_strip_id_suffixes,
    ),
    NoiseRule(
        "angular-instance-ids",
        NoiseCategory.DYNAMIC_IDS,
        r"\bng-[a-z]+(?:-[a-z]+)*-\d+\b",
        protect_attributes=True,
    ),
    NoiseRule(
        "ember-instance-ids",
        NoiseCategory.DYNAMIC_IDS,
        r"\bember\d+\b",
        protect_attributes=True,
    ),
    NoiseRule(
        "react-use-ids",
        NoiseCategory.DYNAMIC_IDS,
        r"""(?<=["'])(?::|«)r[0-9a-z]+(?::|»)(?=["'])""",
        protect_attributes=True,
    ),
    # Anti-forgery tokens and tracking instrumentation
    NoiseRule(
        "csrf-meta-tags",
        NoiseCategory.TRACKING,
        r"""<meta\b[^>]*\b(?:name|property)\s*=\s*["']?(?:csrf[-_]?token|csrf[-_]?param"""
        r"""|_csrf|xsrf[-_]?token|authenticity[-_]token|request[-_]?verification[-_]?token)"""
        r"""["']?[^>]*>""",
    ),
    NoiseRule(
        "token-form-fields",
        NoiseCategory.TRACKING,
        r"""<input\b[^>]*\bname\s*=\s*["']?[\w.\-\[\]]*"""
        r"""(?:token|csrf|xsrf|nonce|viewstate|eventvalidation|requestverification)"""
        r"""[\w.\-\[\]]*["']?[^>]*>""",
    ),
    NoiseRule(
        "nonce-attributes",
        NoiseCategory.TRACKING,
        r"(?<!\s)\s+nonce\s*=\s*" + _ATTR_VALUE,
    ),
    NoiseRule(
        "tracking-attributes",
        NoiseCategory.TRACKING,
        r"(?<!\s)\s+data-"
        r"(?:analytics|tracking|track|gtm|ga4?|beacon|impression|event)"
        r"(?:-[\w-]+)?(?:\s*=\s*" + _ATTR_VALUE + r")?(?=[\s/>])",
    ),
    # Timestamps
    NoiseRule(
        "iso-8601-timestamps",
        NoiseCategory.TEMPORAL,
        r"\b\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2}(?:[.,]\d+)?)?"
        r"(?:Z|[+-]\d{2}:?\d{2})?)?",
        protect_attributes=True,
    ),
    NoiseRule(
        "slash-dates",
        NoiseCategory.TEMPORAL,
        r"\b(?:\d{1,2}/\d{1,2}/(?:\d{4}|\d{2})|\d{4}/\d{1,2}/\d{1,2})\b",
        protect_attributes=True,
    ),
    NoiseRule(
        "clock-times",
        NoiseCategory.TEMPORAL,
        r"\b\d{1,2}:\d{2}(?::\d{2})?\s*[ap]\.?m\b\.?",
        protect_attributes=True,
    ),
    NoiseRule(
        "epoch-timestamps",
        NoiseCategory.TEMPORAL,
        r"(?<![\w.,:/-])1\d{9}(?:\d{3})?(?![\w.,:/-])",
        protect_attributes=True,
    ),
    NoiseRule(
        "relative-times",
        NoiseCategory.TEMPORAL,
        r"\b(?:\d+|an?|one)\s+(?:seconds?|secs?|minutes?|mins?|hours?|hrs?"
        r"|days?|weeks?|months?|years?)\s+ago\b",
        protect_attributes=True,
    ),
    # Whitespace, always last
    NoiseRule(
        "inter-tag-whitespace",
        NoiseCategory.WHITESPACE,
        r">\s+<",
        replacement="><",
    ),
    NoiseRule(
        "collapse-whitespace",
        NoiseCategory.WHITESPACE,
        r"\s+",
        replacement=" ",
    ),
    NoiseRule(
        "trim",
        NoiseCategory.WHITESPACE,
        r"\A\s+|(?<!\s)\s+\Z",
    ),
)


def build_rule_chain(
    extra_rules: Optional[Iterable[NoiseRule]] = None,
    disabled_rules: Optional[Iterable[str]] = None,
    base_rules: Iterable[NoiseRule] = DEFAULT_NOISE_RULES,
) -> list[NoiseRule]:
    """Merge built-in and custom rules into one ordered chain.

    Custom rules run after the built-in rules of their category. Whitespace
    rules can neither be disabled nor extended, so collapsing always happens
    last and on the fully stripped document.
    """
    base = list(base_rules)
    extras = list(extra_rules or [])
    disabled = set(disabled_rules or [])

    known = {rule.name for rule in base} | {rule.name for rule in extras}
    unknown = disabled - known
    if unknown:
        raise ValueError(f"Unknown noise rules: {', '.join(sorted(unknown))}")

    for rule in base:
        if rule.category is NoiseCategory.WHITESPACE and rule.name in disabled:
            raise ValueError(f"Whitespace rule '{rule.name}' cannot be disabled")

    for rule in extras:
        if rule.category is NoiseCategory.WHITESPACE:
            raise ValueError(
                f"Custom rule '{rule.name}' cannot be added to the whitespace stage"
            )

    chain = [rule for rule in base + extras if rule.name not in disabled]
    # sorted() is stable, so declaration order is kept inside each category
    return sorted(chain, key=lambda rule: rule.category.position)


class HtmlNormalizer:
    """Strips non-semantic noise from raw HTML."""

    def __init__(
        self,
        extra_rules: Optional[Iterable[NoiseRule]] = None,
        disabled_rules: Optional[Iterable[str]] = None,
    ):
        self.rules = build_rule_chain(extra_rules, disabled_rules)

    def normalize(self, html: Optional[str]) -> str:
        """Return the canonical text for ``html``. Never raises."""
        if not html:
            return ""

        text = html
        for rule in self.rules:
            text = rule.apply(text)

        logger.debug(
            "Normalized document",
            original_length=len(html),
            normalized_length=len(text),
            rule_count=len(self.rules),
        )
        return text

    def rule_names(self) -> list[str]:
        return [rule.name for rule in self.rules]


_default_normalizer: Optional[HtmlNormalizer] = None


def get_default_normalizer() -> HtmlNormalizer:
    """Get or create the normalizer with the built-in rule set."""
    global _default_normalizer

    if _default_normalizer is None:
        _default_normalizer = HtmlNormalizer()

    return _default_normalizer


def normalize_html(html: Optional[str]) -> str:
    """Normalize ``html`` with the built-in rule set."""
    return get_default_normalizer().normalize(html)
