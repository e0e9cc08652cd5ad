"""Slack event handling pipeline.

Every request runs through the same sequence: read body, extract the form
payload if needed, verify the signature over the raw body, decode JSON,
answer handshakes, resolve the routing key, look up the route, publish,
and acknowledge. Any reject ends the sequence with a plain-text error;
everything after a successful decode answers 200 so Slack never sees an
acknowledgement failure for events the operator chose not to handle.
"""

import json
from enum import Enum
from typing import Any

import structlog
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.requests import ClientDisconnect

from slack_relay.config import RelayConfig
from slack_relay.relay.events import (
    UnknownEnvelope,
    UrlVerification,
    decode_envelope,
    extract_form_payload,
    is_form_encoded,
)
from slack_relay.relay.publisher import Publisher, PublishResult
from slack_relay.relay.security import (
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    verify_slack_signature,
)

logger = structlog.get_logger(__name__)

# Acknowledgement bodies
EVENT_RECEIVED = "Event received"
EVENT_TYPE_UNKNOWN = "Event received but type unknown"
EVENT_NOT_CONFIGURED = "Event received but event type not configured"

# Reject bodies
BODY_READ_ERROR = "Error reading request body"
MISSING_PAYLOAD = "Missing payload parameter"
INVALID_SIGNATURE = "Invalid signature"
JSON_PARSE_ERROR = "Error parsing JSON"
INVALID_CHALLENGE = "Invalid challenge"


class RelayOutcome(str, Enum):
    """How a successfully authenticated request was answered."""

    HANDSHAKE = "handshake"
    TYPE_UNKNOWN = "type_unknown"
    NOT_CONFIGURED = "not_configured"
    RELAYED = "relayed"
    REPLIED = "replied"


class EventRelay:
    """Authenticates Slack requests and relays them to the message bus.

    Holds only read-only configuration plus the publisher, so a single
    instance serves all concurrent requests.

    Example:
        relay = EventRelay(RelayConfig(route_table=table, signing_secret=b"..."), publisher)
        app.add_api_route("/slack", relay.handle, methods=["POST"])
    """

    def __init__(
        self,
        config: RelayConfig,
        publisher: Publisher | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            config: Routing, secret and verbosity settings.
            publisher: Message bus publisher; None disables publishing.
        """
        self.config = config
        self.publisher = publisher
        self._logger = logger.bind(component="event_relay")

    async def handle(self, request: Request) -> Response:
        """Handle one Slack request.

        Args:
            request: Incoming HTTP request.

        Returns:
            The HTTP response.

        Raises:
            HTTPException: For malformed or unauthenticated requests.
        """
        try:
            body = await request.body()
        except ClientDisconnect as e:
            self._logger.info("request_body_unreadable", error=str(e))
            raise HTTPException(status_code=400, detail=BODY_READ_ERROR) from e

        payload_text = self._payload_text(body, request.headers.get("content-type"))

        if not verify_slack_signature(
            body,
            request.headers.get(TIMESTAMP_HEADER, ""),
            request.headers.get(SIGNATURE_HEADER, ""),
            self.config.signing_secret,
        ):
            self._logger.warning(
                "invalid_slack_signature",
                timestamp=request.headers.get(TIMESTAMP_HEADER),
            )
            raise HTTPException(status_code=401, detail=INVALID_SIGNATURE)

        try:
            payload = json.loads(payload_text)
        except (ValueError, RecursionError) as e:
            self._logger.info("invalid_json_payload", error=str(e))
            raise HTTPException(status_code=400, detail=JSON_PARSE_ERROR) from e

        # null decodes to an empty event; any other non-object is malformed
        if payload is not None and not isinstance(payload, dict):
            self._logger.info("invalid_json_payload", error="not a JSON object")
            raise HTTPException(status_code=400, detail=JSON_PARSE_ERROR)

        response, outcome = await self.dispatch(payload, body)
        self._logger.debug("slack_request_handled", outcome=outcome.value)
        return response

    async def dispatch(
        self,
        payload: Any,
        body: bytes,
    ) -> tuple[Response, RelayOutcome]:
        """Route an authenticated, decoded payload.

        Args:
            payload: Decoded JSON payload.
            body: Raw request body, published unchanged.

        Returns:
            Tuple of (response, outcome).

        Raises:
            HTTPException: If a handshake carries no string challenge.
        """
        envelope = decode_envelope(payload)

        if isinstance(envelope, UrlVerification):
            if envelope.challenge is None:
                self._logger.info("invalid_url_verification_challenge")
                raise HTTPException(status_code=400, detail=INVALID_CHALLENGE)
            self._logger.info("url_verification_answered")
            return JSONResponse({"challenge": envelope.challenge}), RelayOutcome.HANDSHAKE

        if isinstance(envelope, UnknownEnvelope):
            self._logger.warning("slack_event_type_unknown")
            return PlainTextResponse(EVENT_TYPE_UNKNOWN), RelayOutcome.TYPE_UNKNOWN

        event_type = envelope.event_type
        self._logger.info("slack_event_received", event_type=event_type)

        route = self.config.route_table.get(event_type)
        if route is None:
            self._logger.info("slack_event_not_configured", event_type=event_type)
            return PlainTextResponse(EVENT_NOT_CONFIGURED), RelayOutcome.NOT_CONFIGURED

        if self.config.debug_payloads:
            self._logger.debug(
                "slack_event_payload",
                event_type=event_type,
                payload=json.dumps(payload, indent=2, ensure_ascii=False),
            )

        if self.publisher is not None:
            result = await self.publisher.publish(route.topic, body)
            self._log_publish(result)

        if route.reply is not None:
            return JSONResponse(route.reply), RelayOutcome.REPLIED
        return PlainTextResponse(EVENT_RECEIVED), RelayOutcome.RELAYED

    def _payload_text(self, body: bytes, content_type: str | None) -> bytes | str:
        """Get the JSON text of a request.

        Raises:
            HTTPException: If a form body lacks the payload field.
        """
        if not is_form_encoded(content_type):
            return body

        payload = extract_form_payload(body)
        if payload is None:
            self._logger.info("form_payload_missing")
            raise HTTPException(status_code=400, detail=MISSING_PAYLOAD)
        return payload

    def _log_publish(self, result: PublishResult) -> None:
        if result.ok:
            self._logger.info(
                "redis_event_published",
                channel=result.topic,
                receivers=result.receivers,
            )
        else:
            self._logger.error(
                "redis_publish_failed",
                channel=result.topic,
                error=result.error,
            )
