"""Check orchestration for sitewatch."""

from .interfaces import Fetcher, Notifier, StateRepository
from .orchestrator import MonitorOrchestrator, create_orchestrator, run_once

__all__ = [
    "Fetcher",
    "Notifier",
    "StateRepository",
    "MonitorOrchestrator",
    "create_orchestrator",
    "run_once",
]
