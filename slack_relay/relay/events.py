"""Slack payload envelopes.

Slack delivers three kinds of bodies to the same endpoint:

- ``url_verification``: the one-time handshake, answered by echoing ``challenge``
- ``event_callback``: an Events API delivery; the routing key is ``event.type``
- anything else (interactivity, slash commands, ...): the routing key is ``type``

``decode_envelope`` turns a parsed body into exactly one of the envelope
classes below so the handler never inspects raw keys itself.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

URL_VERIFICATION = "url_verification"
EVENT_CALLBACK = "event_callback"

FORM_PAYLOAD_FIELD = "payload"


@dataclass(frozen=True)
class UrlVerification:
    """Handshake request; ``challenge`` is None when absent or not a string."""

    challenge: str | None


@dataclass(frozen=True)
class EventCallback:
    """Events API delivery carrying one nested event."""

    event_type: str


@dataclass(frozen=True)
class GenericEnvelope:
    """Any other payload whose top-level ``type`` names the event."""

    event_type: str


@dataclass(frozen=True)
class UnknownEnvelope:
    """Payload without a usable event type."""

    event_type: str = ""


Envelope = UrlVerification | EventCallback | GenericEnvelope | UnknownEnvelope


def decode_envelope(payload: Any) -> Envelope:
    """Classify a decoded JSON body.

    Args:
        payload: Result of ``json.loads`` on the request payload.

    Returns:
        The matching envelope. Bodies that are not objects, or whose
        event type is missing or not a non-empty string, are
        ``UnknownEnvelope``.
    """
    if not isinstance(payload, dict):
        return UnknownEnvelope()

    kind = payload.get("type")

    if kind == URL_VERIFICATION:
        challenge = payload.get("challenge")
        return UrlVerification(challenge if isinstance(challenge, str) else None)

    if kind == EVENT_CALLBACK:
        event = payload.get("event")
        event_type = event.get("type") if isinstance(event, dict) else None
        if isinstance(event_type, str) and event_type:
            return EventCallback(event_type)
        return UnknownEnvelope()

    if isinstance(kind, str) and kind:
        return GenericEnvelope(kind)

    return UnknownEnvelope()


def classify(payload: Any) -> tuple[str, bool]:
    """Get the routing key of a payload.

    Args:
        payload: Decoded JSON body.

    Returns:
        Tuple of (event_type, is_handshake). ``event_type`` is empty for
        handshakes and for payloads of unknown type.
    """
    envelope = decode_envelope(payload)
    if isinstance(envelope, UrlVerification):
        return "", True
    return envelope.event_type, False


def extract_form_payload(body: bytes) -> str | None:
    """Get the JSON payload from an URL-encoded form body.

    Args:
        body: Raw ``application/x-www-form-urlencoded`` body.

    Returns:
        The first ``payload`` field value, or None if missing or empty.
    """
    fields = parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True)
    values = fields.get(FORM_PAYLOAD_FIELD)
    if not values or not values[0]:
        return None
    return values[0]


def is_form_encoded(content_type: str | None) -> bool:
    """Check whether a Content-Type header denotes an URL-encoded form."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/x-www-form-urlencoded"
