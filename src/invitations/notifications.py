import asyncio
import logging
from typing import Any, Protocol

import httpx

from src.config.settings import settings

logger = logging.getLogger(__name__)


class NotificationPublisher(Protocol):
    """Fire-and-forget push of domain events to an outside listener."""

    def notify(self, event_type: str, payload: dict[str, Any]) -> None: ...


class NotificationConfig(Protocol):
    notification_webhook_url: str
    notification_timeout_seconds: float


class LoggingNotificationPublisher:
    """Default publisher: records the event in the log only."""

    def notify(self, event_type: str, payload: dict[str, Any]) -> None:
        logger.info(f"Notification {event_type} for {payload.get('invitation', {}).get('code', '-')}")


class HttpNotificationPublisher:
    """Posts events as JSON to a webhook without making the caller wait.

    Every delivery runs on its own background task; failures are logged and
    dropped.
    """

    def __init__(
        self,
        http_client_class: type[httpx.AsyncClient] = httpx.AsyncClient,
        config: NotificationConfig = settings,
    ):
        self._http_client_class = http_client_class
        self._config = config
        self._tasks: set[asyncio.Task] = set()

    def notify(self, event_type: str, payload: dict[str, Any]) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self._deliver(event_type, payload))
        except RuntimeError:
            logger.warning(f"No running event loop, dropping notification {event_type}")
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, event_type: str, payload: dict[str, Any]) -> None:
        try:
            async with self._http_client_class(
                timeout=self._config.notification_timeout_seconds
            ) as client:
                response = await client.post(
                    self._config.notification_webhook_url,
                    json={"event": event_type, "data": payload},
                )
                response.raise_for_status()
        except Exception as e:
            logger.error(f"Failed to deliver notification {event_type}: {e}")

    async def drain(self) -> None:
        """Wait for in-flight deliveries."""
        if self._tasks:
            await asyncio.gather(*self._tasks)


def get_notification_publisher() -> NotificationPublisher:
    """Factory for the configured publisher. Override in tests."""
    if settings.notification_webhook_url:
        return HttpNotificationPublisher(http_client_class=httpx.AsyncClient, config=settings)
    return LoggingNotificationPublisher()
