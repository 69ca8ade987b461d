"""Push notifications through an ntfy server."""

from typing import Optional

import httpx

from ..utils.logging import get_structured_logger
from .types import NotifyError, NtfyMessage

logger = get_structured_logger(__name__)

DEFAULT_NTFY_SERVER = "https://ntfy.sh"
DEFAULT_NOTIFY_TIMEOUT = 10.0


def change_message(url: str) -> NtfyMessage:
    """Message sent when the monitored page changed."""
    return NtfyMessage(
        title="Website Changed!",
        body="The monitored page has been updated. Tap to view or use the button below.",
        priority="high",
        tags=["rotating_light", "bell"],
        click=url,
        actions=f"view, Open Website, {url}",
    )


def setup_check_message() -> NtfyMessage:
    """Message used to verify the notification setup."""
    return NtfyMessage(
        title="Test Notification",
        body="Your website monitor is configured correctly!",
        priority="default",
        tags=["white_check_mark"],
    )


class NtfyNotifier:
    """Publishes messages to ``<server>/<topic>``. One attempt, no retries."""

    def __init__(
        self,
        server: str = DEFAULT_NTFY_SERVER,
        timeout: float = DEFAULT_NOTIFY_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.server = server.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def topic_url(self, topic: str) -> str:
        return f"{self.server}/{topic}"

    async def notify(self, topic: str, url: str) -> None:
        """Announce that ``url`` changed."""
        await self.publish(topic, change_message(url))
        logger.info("Change notification sent", topic=topic, url=url)

    async def send_test_notification(self, topic: str) -> None:
        """Send a test message to ``topic``."""
        await self.publish(topic, setup_check_message())
        logger.info("Test notification sent", topic=topic)

    async def publish(self, topic: str, message: NtfyMessage) -> None:
        """POST ``message`` to the topic, raising NotifyError on failure."""
        if not topic:
            raise NotifyError("Notification topic is empty")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    self.topic_url(topic),
                    headers=message.headers(),
                    content=message.body.encode("utf-8"),
                )
        except httpx.HTTPError as e:
            raise NotifyError(
                f"Notification failed: {str(e) or type(e).__name__}"
            ) from e

        if not response.is_success:
            raise NotifyError(
                f"Notification failed: HTTP {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
