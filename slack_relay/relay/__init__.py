"""Slack event verification and routing.

This module provides:
- verify_slack_signature: HMAC-SHA256 request authentication
- decode_envelope / classify: payload shape detection
- RouteTable / load_route_table: event type to channel mapping
- EventRelay: the request pipeline (in slack_relay.relay.handler)
- RedisPublisher: best-effort publishing (in slack_relay.relay.publisher)
"""

from slack_relay.relay.errors import ConfigurationError, PublishError, RelayError
from slack_relay.relay.events import (
    EventCallback,
    GenericEnvelope,
    UnknownEnvelope,
    UrlVerification,
    classify,
    decode_envelope,
)
from slack_relay.relay.routes import EventRoute, RouteTable, load_route_table
from slack_relay.relay.security import compute_signature, verify_slack_signature

__all__ = [
    # Errors
    "ConfigurationError",
    "PublishError",
    "RelayError",
    # Envelopes
    "EventCallback",
    "GenericEnvelope",
    "UnknownEnvelope",
    "UrlVerification",
    "classify",
    "decode_envelope",
    # Routing
    "EventRoute",
    "RouteTable",
    "load_route_table",
    # Security
    "compute_signature",
    "verify_slack_signature",
]
