"""Page fetching, normalization and change detection for sitewatch.

This module provides:
- HTTP fetching with a bounded timeout
- Ordered noise-removal rules that turn raw HTML into canonical text
- Content fingerprinting and first-run / changed / unchanged detection
"""

from .fetcher import PageFetcher
from .hashing import (
    ChangeDetector,
    ContentHasher,
    compute_fingerprint,
    detect_change,
)
from .normalizer import (
    DEFAULT_NOISE_RULES,
    HtmlNormalizer,
    NoiseRule,
    build_rule_chain,
    normalize_html,
)
from .types import ChangeOutcome, FetchError, NoiseCategory, ScrapingError

__all__ = [
    # Types
    "ScrapingError",
    "FetchError",
    "NoiseCategory",
    "ChangeOutcome",
    # Fetching
    "PageFetcher",
    # Normalization
    "NoiseRule",
    "DEFAULT_NOISE_RULES",
    "HtmlNormalizer",
    "build_rule_chain",
    "normalize_html",
    # Change detection
    "ContentHasher",
    "ChangeDetector",
    "compute_fingerprint",
    "detect_change",
]
