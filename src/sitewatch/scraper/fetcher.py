"""HTTP page fetching."""

from typing import Optional

import httpx

from ..utils.async_utils import run_with_timeout
from ..utils.logging import get_structured_logger
from ..utils.types import AsyncTimeoutError
from .types import FetchError

logger = get_structured_logger(__name__)

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_USER_AGENT = "SiteWatch/1.0 (+https://github.com/sitewatch/sitewatch)"
DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.5"


class PageFetcher:
    """Fetches a single page over HTTP(S).

    Redirects are followed. The whole request, including reading the body, is
    bounded by ``timeout_ms``; there are no retries.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        accept: str = DEFAULT_ACCEPT,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.headers = {
            "User-Agent": user_agent,
            "Accept": accept,
            "Accept-Language": accept_language,
            "Cache-Control": "no-cache",
        }
        self.default_timeout_ms = default_timeout_ms
        self.transport = transport

    async def fetch(self, url: str, timeout_ms: Optional[int] = None) -> str:
        """Return the body of ``url`` as text.

        Raises FetchError on a non-2xx status, on timeout and on transport
        errors.
        """
        timeout_ms = timeout_ms or self.default_timeout_ms
        timeout_seconds = timeout_ms / 1000

        logger.debug("Fetching page", url=url, timeout_ms=timeout_ms)

        try:
            response = await run_with_timeout(
                self._get(url, timeout_seconds),
                timeout_seconds,
                timeout_message=f"Request timeout after {timeout_ms}ms",
            )
        except (AsyncTimeoutError, httpx.TimeoutException) as e:
            raise FetchError(f"Request timeout after {timeout_ms}ms", url=url) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Transport error: {str(e) or type(e).__name__}", url=url) from e

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason_phrase}", url=url
            )

        logger.info(
            "Fetched page",
            url=url,
            status_code=response.status_code,
            content_length=len(response.text),
        )
        return response.text

    async def _get(self, url: str, timeout_seconds: float) -> httpx.Response:
        async with httpx.AsyncClient(
            headers=self.headers,
            timeout=timeout_seconds,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            return await client.get(url)
