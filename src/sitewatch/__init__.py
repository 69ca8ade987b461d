"""sitewatch - detect meaningful changes to a web page and send a notification."""

__version__ = "0.1.0"

from .config import get_settings
from .main import main_cli
from .monitor import MonitorOrchestrator, run_once
from .scraper import ChangeOutcome, compute_fingerprint, detect_change, normalize_html

main = main_cli

__all__ = [
    "main_cli",
    "main",
    "get_settings",
    "run_once",
    "MonitorOrchestrator",
    "ChangeOutcome",
    "normalize_html",
    "compute_fingerprint",
    "detect_change",
    "__version__",
]
