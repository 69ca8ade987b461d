"""Test configuration and fixtures for the sitewatch test suite."""

from collections.abc import Callable
from typing import Optional

import httpx
import pytest
import structlog

from sitewatch.config import get_settings
from sitewatch.notification import NtfyNotifier
from sitewatch.scraper import PageFetcher
from sitewatch.storage import StateStore

ENV_VARS = (
    "MONITOR_URL",
    "NTFY_TOPIC",
    "FETCH_TIMEOUT_MS",
    "LOG_LEVEL",
    "JSON_LOGS",
    "STATE__PATH",
    "NORMALIZER__HASH_TYPE",
    "NORMALIZER__RULES_FILE",
    "NOTIFICATION__SERVER",
)

NTFY_SERVER = "https://ntfy.test"

BASE_PAGE = """
<html>
  <head>
    <title>Example</title>
    <link rel="stylesheet" href="/static/site.css?v=1705329000">
    <script>window.__BUILD__ = "a1b2c3";</script>
  </head>
  <body>
    <article>
      <h1>Title</h1>
      <p>Paragraph content.</p>
    </article>
    <footer>Rendered at 2024-01-15T14:30:00Z</footer>
  </body>
</html>
"""


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run every test without inherited settings or logging configuration."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the settings under test
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def state_path(tmp_path):
    """Path of an isolated state file."""
    return tmp_path / "data" / "state.json"


@pytest.fixture
def state_store(state_path):
    """State store backed by a temporary file."""
    return StateStore(state_path)


class FakeSite:
    """Programmable stand-in for the monitored site and the ntfy server."""

    def __init__(self, html: str = BASE_PAGE):
        self.html = html
        self.status_code = 200
        self.ntfy_status_code = 200
        self.page_requests: list[httpx.Request] = []
        self.notifications: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == httpx.URL(NTFY_SERVER).host:
            self.notifications.append(request)
            return httpx.Response(self.ntfy_status_code, text="ok")

        self.page_requests.append(request)
        return httpx.Response(self.status_code, text=self.html)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_site():
    """A fake site serving BASE_PAGE."""
    return FakeSite()


@pytest.fixture
def make_fetcher() -> Callable[..., PageFetcher]:
    """Factory for fetchers bound to a mock transport."""

    def factory(transport: httpx.AsyncBaseTransport, timeout_ms: Optional[int] = None):
        return PageFetcher(transport=transport, default_timeout_ms=timeout_ms or 5000)

    return factory


@pytest.fixture
def make_notifier() -> Callable[..., NtfyNotifier]:
    """Factory for notifiers bound to a mock transport."""

    def factory(transport: httpx.AsyncBaseTransport):
        return NtfyNotifier(server=NTFY_SERVER, timeout=5, transport=transport)

    return factory


@pytest.fixture
def base_page():
    """Page markup with scripts, a stylesheet link and a render timestamp."""
    return BASE_PAGE
