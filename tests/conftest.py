"""Shared fixtures for relay tests."""

import json

import pytest
import structlog

from slack_relay.config import RelayConfig
from slack_relay.relay.publisher import PublishResult
from slack_relay.relay.routes import EventRoute, RouteTable


class RecordingPublisher:
    """Publisher that records calls instead of talking to Redis."""

    def __init__(self, *, ok: bool = True, healthy: bool = True) -> None:
        self.calls: list[tuple[str, bytes]] = []
        self.ok = ok
        self.healthy = healthy
        self.closed = False

    async def publish(self, topic: str, payload: bytes) -> PublishResult:
        self.calls.append((topic, payload))
        if self.ok:
            return PublishResult(topic=topic, ok=True, receivers=1)
        return PublishResult(topic=topic, ok=False, error="Connection refused")

    async def ping(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog configuration made by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def route_table():
    """Route table with a plain route and a route declaring a reply."""
    return RouteTable.from_routes([
        EventRoute(event_type="message", topic="test-channel"),
        EventRoute(
            event_type="view_submission",
            topic="views",
            reply={"response_action": "clear"},
        ),
    ])


@pytest.fixture
def relay_config(route_table):
    """Relay configuration with verification disabled."""
    return RelayConfig(route_table=route_table)


@pytest.fixture
def publisher():
    """Recording publisher."""
    return RecordingPublisher()


@pytest.fixture
def failing_publisher():
    """Publisher whose every publish fails."""
    return RecordingPublisher(ok=False)


@pytest.fixture
def unhealthy_publisher():
    """Publisher that does not answer pings."""
    return RecordingPublisher(healthy=False)


@pytest.fixture
def message_body():
    """Raw body of an event_callback carrying a message event."""
    return json.dumps({
        "type": "event_callback",
        "event": {"type": "message", "text": "Hello world"},
    }).encode()


@pytest.fixture
def make_publisher():
    """Factory for recording publishers."""
    return RecordingPublisher
