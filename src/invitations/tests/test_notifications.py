"""Tests for notification publishers, mocking the HTTP client."""

import logging

import httpx

from src.events import ConfirmationReceivedEvent
from src.invitations.notifications import (
    HttpNotificationPublisher,
    LoggingNotificationPublisher,
)

WEBHOOK_URL = "https://hooks.example.com/rsvp"


class MockResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {self.status_code}",
                request=httpx.Request("POST", WEBHOOK_URL),
                response=httpx.Response(self.status_code),
            )


class MockHttpClient:
    """Replaces httpx.AsyncClient as the http_client_class."""

    def __init__(self, response: MockResponse | None = None, error: Exception | None = None):
        self.post_calls: list[dict] = []
        self.client_kwargs: dict = {}
        self._response = response or MockResponse()
        self._error = error

    async def post(self, url: str, **kwargs) -> MockResponse:
        self.post_calls.append({"url": url, **kwargs})
        if self._error:
            raise self._error
        return self._response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass

    def __call__(self, **kwargs):
        self.client_kwargs = kwargs
        return self


class MockConfig:
    notification_webhook_url = WEBHOOK_URL
    notification_timeout_seconds = 2.5


def confirmation_event() -> ConfirmationReceivedEvent:
    return ConfirmationReceivedEvent(
        invitation={"code": "abc12345", "status": "confirmed"},
        confirmation={"code": "abc12345", "will_attend": True},
    )


def test_confirmation_event_payload_shape():
    """Test the payload of a confirmation event."""
    payload = confirmation_event().payload()

    assert payload["type"] == "new_confirmation"
    assert payload["invitation"]["code"] == "abc12345"
    assert payload["confirmation"]["will_attend"] is True
    assert "timestamp" in payload


def test_logging_publisher_only_logs_events(caplog):
    """Test that the default publisher logs each event without keeping it."""
    caplog.set_level(logging.INFO, logger="src.invitations.notifications")
    publisher = LoggingNotificationPublisher()
    event = confirmation_event()

    publisher.notify(event.event_type, event.payload())

    assert "Notification new_confirmation for abc12345" in caplog.text
    assert not hasattr(publisher, "published")


async def test_http_publisher_posts_event_in_background():
    """Test that the HTTP publisher posts the event on a background task."""
    client = MockHttpClient()
    publisher = HttpNotificationPublisher(http_client_class=client, config=MockConfig())
    event = confirmation_event()

    publisher.notify(event.event_type, event.payload())
    await publisher.drain()

    assert client.client_kwargs == {"timeout": 2.5}
    call = client.post_calls[0]
    assert call["url"] == WEBHOOK_URL
    assert call["json"]["event"] == "new_confirmation"
    assert call["json"]["data"]["invitation"]["code"] == "abc12345"


async def test_http_publisher_swallows_delivery_errors(caplog):
    """Test that delivery errors are logged and dropped."""
    client = MockHttpClient(error=httpx.ConnectError("unreachable"))
    publisher = HttpNotificationPublisher(http_client_class=client, config=MockConfig())

    publisher.notify("new_confirmation", confirmation_event().payload())
    await publisher.drain()

    assert "Failed to deliver notification" in caplog.text


async def test_http_publisher_logs_error_status(caplog):
    """Test that an error status from the webhook is logged."""
    client = MockHttpClient(response=MockResponse(status_code=500))
    publisher = HttpNotificationPublisher(http_client_class=client, config=MockConfig())

    publisher.notify("new_confirmation", confirmation_event().payload())
    await publisher.drain()

    assert len(client.post_calls) == 1
    assert "HTTP 500" in caplog.text


def test_http_publisher_without_event_loop_drops_event(caplog):
    """Test notifying with no running event loop."""
    client = MockHttpClient()
    publisher = HttpNotificationPublisher(http_client_class=client, config=MockConfig())

    publisher.notify("new_confirmation", {})

    assert client.post_calls == []
    assert "dropping notification" in caplog.text
