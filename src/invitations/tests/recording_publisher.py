from typing import Any

from src.invitations.notifications import LoggingNotificationPublisher


class RecordingNotificationPublisher(LoggingNotificationPublisher):
    """Logs like the default publisher and keeps every event for assertions."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []

    def notify(self, event_type: str, payload: dict[str, Any]) -> None:
        self.published.append((event_type, payload))
        super().notify(event_type, payload)
