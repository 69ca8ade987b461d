"""Single check run: fetch, normalize, fingerprint, compare, notify, persist."""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ..config import AppSettings, ConfigLoader, get_settings
from ..notification.ntfy import NtfyNotifier
from ..scraper.fetcher import PageFetcher
from ..scraper.hashing import ChangeDetector, ContentHasher
from ..scraper.normalizer import HtmlNormalizer
from ..scraper.types import ChangeOutcome
from ..storage.state import StateStore
from ..storage.types import CheckState
from ..utils.logging import LoggingContextManager, get_structured_logger
from .interfaces import Fetcher, Notifier, StateRepository

logger = get_structured_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MonitorOrchestrator:
    """Runs one check against a target and updates its baseline.

    The orchestrator owns the CheckState record. The change detector only
    ever sees the stored fingerprint.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        state_store: StateRepository,
        notifier: Notifier,
        normalizer: Optional[HtmlNormalizer] = None,
        hasher: Optional[ContentHasher] = None,
        detector: Optional[ChangeDetector] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.fetcher = fetcher
        self.state_store = state_store
        self.notifier = notifier
        self.normalizer = normalizer or HtmlNormalizer()
        self.hasher = hasher or ContentHasher()
        self.detector = detector or ChangeDetector()
        self.clock = clock

    async def run_once(
        self,
        target_url: str,
        notify_topic: str,
        fetch_timeout_ms: Optional[int] = None,
    ) -> ChangeOutcome:
        """Check ``target_url`` once.

        FetchError and NotifyError propagate and leave the stored state
        untouched. The state is saved after every successful run, including
        the first one and runs where nothing changed.
        """
        with LoggingContextManager(target_url=target_url):
            logger.info("Starting check", timeout_ms=fetch_timeout_ms)

            html = await self.fetcher.fetch(target_url, fetch_timeout_ms)
            canonical = self.normalizer.normalize(html)
            current = self.hasher.fingerprint(canonical)

            previous_state = self.state_store.load()
            previous = previous_state.fingerprint if previous_state else None

            outcome = self.detector.detect(current, previous)

            if outcome.changed:
                logger.info(
                    "Change detected",
                    previous=previous,
                    current=current,
                    topic=notify_topic,
                )
                await self.notifier.notify(notify_topic, target_url)

            self.state_store.save(
                CheckState(
                    fingerprint=current,
                    last_checked_at=self.clock(),
                    url=target_url,
                )
            )

            logger.info(
                "Check complete",
                is_first_run=outcome.is_first_run,
                changed=outcome.changed,
                fingerprint=current,
            )
            return outcome


def create_orchestrator(
    settings: Optional[AppSettings] = None,
    state_store: Optional[StateRepository] = None,
    state_path: Optional[Union[str, Path]] = None,
) -> MonitorOrchestrator:
    """Build an orchestrator wired to the real collaborators."""
    settings = settings or get_settings()

    if settings.normalizer.rules_file:
        normalizer = ConfigLoader(settings.normalizer.rules_file).build_normalizer()
    else:
        normalizer = HtmlNormalizer()

    return MonitorOrchestrator(
        fetcher=PageFetcher(
            user_agent=settings.fetch.user_agent,
            accept=settings.fetch.accept,
            accept_language=settings.fetch.accept_language,
            default_timeout_ms=settings.fetch_timeout_ms,
        ),
        state_store=state_store or StateStore(state_path or settings.state.path),
        notifier=NtfyNotifier(
            server=settings.notification.server,
            timeout=settings.notification.timeout_seconds,
        ),
        normalizer=normalizer,
        hasher=ContentHasher(settings.normalizer.hash_type),
    )


async def run_once(
    target_url: str,
    notify_topic: str,
    fetch_timeout_ms: Optional[int] = None,
    *,
    settings: Optional[AppSettings] = None,
    state_store: Optional[StateRepository] = None,
) -> ChangeOutcome:
    """Run a single check with collaborators built from settings."""
    orchestrator = create_orchestrator(settings=settings, state_store=state_store)
    return await orchestrator.run_once(target_url, notify_topic, fetch_timeout_ms)
