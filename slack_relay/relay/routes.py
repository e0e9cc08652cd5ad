"""Static event routing.

Maps Slack event types to Redis channels and optional canned replies.
The table is loaded once from a JSON file at startup, for example::

    [
        {"slack-event-type": "message", "channel": "slack-messages"},
        {"slack-event-type": "view_submission", "channel": "slack-views",
         "reply": {"response_action": "clear"}}
    ]
"""

import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from slack_relay.relay.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class EventRoute(BaseModel):
    """One routing rule from the configuration file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_type: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("slack-event-type", "event_type"),
        serialization_alias="slack-event-type",
        description="Slack event type, matched exactly and case-sensitively",
    )
    topic: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("channel", "topic"),
        serialization_alias="channel",
        description="Redis channel the raw request body is published to",
    )
    reply: dict[str, Any] | None = Field(
        default=None,
        description="JSON body returned verbatim for matching events",
    )


class RouteTable:
    """Immutable lookup from event type to route.

    Example:
        table = RouteTable.from_routes([EventRoute(event_type="message", topic="msgs")])
        table.topic_for("message")  # "msgs"
        table.reply_for("message")  # None
    """

    def __init__(self, routes: dict[str, EventRoute] | None = None) -> None:
        self._routes: dict[str, EventRoute] = dict(routes or {})
        self._topics = {name: route.topic for name, route in self._routes.items()}
        self._replies = {
            name: route.reply for name, route in self._routes.items() if route.reply is not None
        }

    @classmethod
    def from_routes(cls, routes: Iterable[EventRoute]) -> "RouteTable":
        """Build a table, rejecting duplicate event types.

        Args:
            routes: Routes in configuration order.

        Returns:
            The route table.

        Raises:
            ConfigurationError: If an event type appears twice.
        """
        table: dict[str, EventRoute] = {}
        for route in routes:
            if route.event_type in table:
                raise ConfigurationError(
                    f"Duplicate route for event type '{route.event_type}'",
                    details={"event_type": route.event_type},
                )
            table[route.event_type] = route
        return cls(table)

    def get(self, event_type: str) -> EventRoute | None:
        """Get the route for an event type, if configured."""
        return self._routes.get(event_type)

    def topic_for(self, event_type: str) -> str | None:
        """Get the destination topic for an event type."""
        return self._topics.get(event_type)

    def reply_for(self, event_type: str) -> dict[str, Any] | None:
        """Get the declared reply for an event type."""
        return self._replies.get(event_type)

    @property
    def event_types(self) -> list[str]:
        """Configured event types in configuration order."""
        return list(self._routes)

    def __contains__(self, event_type: object) -> bool:
        return event_type in self._routes

    def __iter__(self) -> Iterator[EventRoute]:
        return iter(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)


def parse_routes(document: Any, *, source: str | None = None) -> RouteTable:
    """Validate a decoded configuration document.

    Args:
        document: Decoded JSON, expected to be a list of route objects.
        source: Where the document came from, for error messages.

    Returns:
        The route table.

    Raises:
        ConfigurationError: If the document is not a list of valid routes.
    """
    if not isinstance(document, list):
        raise ConfigurationError(
            "Route configuration must be a JSON array of routes",
            path=source,
        )

    routes = []
    for index, entry in enumerate(document):
        try:
            routes.append(EventRoute.model_validate(entry))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid route at index {index}: {e.errors()[0]['msg']}",
                path=source,
                details={"index": index},
            ) from e

    return RouteTable.from_routes(routes)


def _reject_non_finite(constant: str) -> Any:
    raise ValueError(f"non-finite number {constant} is not allowed")


def load_route_table(path: str | Path) -> RouteTable:
    """Load the route table from a JSON file.

    Args:
        path: Path to the configuration file.

    Returns:
        The route table.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read route configuration: {e.strerror or e}",
            path=str(path),
        ) from e

    try:
        document = json.loads(raw, parse_constant=_reject_non_finite)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Route configuration is not valid JSON: {e.msg} (line {e.lineno})",
            path=str(path),
        ) from e
    except ValueError as e:
        raise ConfigurationError(
            f"Route configuration is not valid JSON: {e}",
            path=str(path),
        ) from e

    table = parse_routes(document, source=str(path))
    logger.info("route_table_loaded", path=str(path), routes=len(table))
    return table
