"""
Domain events for the wedding RSVP system.

Use cases build these after a successful write and hand their payload to a
``NotificationPublisher``.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class DomainEvent:
    """Base domain event."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC), kw_only=True)
    event_type: str = field(default="", kw_only=True)

    def payload(self) -> dict[str, Any]:
        return {"type": self.event_type, "timestamp": self.timestamp.isoformat()}


@dataclass
class ConfirmationReceivedEvent(DomainEvent):
    """Event fired when a guest submits an RSVP."""

    invitation: dict[str, Any]
    confirmation: dict[str, Any]

    def __post_init__(self):
        self.event_type = "new_confirmation"

    def payload(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "invitation": self.invitation,
            "confirmation": self.confirmation,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ConfirmationCancelledEvent(DomainEvent):
    """Event fired when an RSVP is withdrawn."""

    code: str
    reason: str = ""

    def __post_init__(self):
        self.event_type = "confirmation_cancelled"

    def payload(self) -> dict[str, Any]:
        return {**super().payload(), "code": self.code, "reason": self.reason}
