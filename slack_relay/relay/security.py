"""Slack request signature verification.

Slack signs every request with HMAC-SHA256 over ``v0:<timestamp>:<body>``
using the app's signing secret and sends the result as ``v0=<hex>``
alongside the timestamp it signed.
"""

import hashlib
import hmac
import re
import time

# Slack header names
TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_HEADER = "X-Slack-Signature"

SIGNATURE_VERSION = "v0"
SIGNATURE_PREFIX = f"{SIGNATURE_VERSION}="

# Replay window (5 minutes, both directions)
SIGNATURE_VALIDITY_SECONDS = 300

_TIMESTAMP_RE = re.compile(r"[+-]?[0-9]+")


def compute_signature(body: bytes, timestamp: str, secret: bytes) -> str:
    """Compute the Slack signature header value for a request body.

    Args:
        body: Raw request body exactly as sent.
        timestamp: Timestamp header value exactly as sent.
        secret: Signing secret.

    Returns:
        Signature in ``v0=<hex>`` form.
    """
    base = b":".join([SIGNATURE_VERSION.encode(), timestamp.encode("utf-8"), body])
    digest = hmac.new(secret, base, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_slack_signature(
    body: bytes,
    timestamp: str,
    signature: str,
    secret: bytes,
    *,
    now: float | None = None,
    max_age_seconds: int = SIGNATURE_VALIDITY_SECONDS,
) -> bool:
    """Verify a Slack request signature.

    An empty secret disables verification and every request passes.
    Otherwise the timestamp must be an integer within ``max_age_seconds``
    of ``now`` (past or future) and the signature must match, compared in
    constant time.

    Args:
        body: Raw request body as received, before any form decoding.
        timestamp: ``X-Slack-Request-Timestamp`` header value.
        signature: ``X-Slack-Signature`` header value.
        secret: Signing secret.
        now: Current Unix time (defaults to ``time.time()``).
        max_age_seconds: Replay window in seconds.

    Returns:
        True if the request is authentic and fresh.
    """
    if not secret:
        return True

    if not timestamp or not signature:
        return False

    if not _TIMESTAMP_RE.fullmatch(timestamp):
        return False
    request_time = int(timestamp)

    current_time = int(time.time() if now is None else now)
    if abs(current_time - request_time) > max_age_seconds:
        return False

    if not signature.startswith(SIGNATURE_PREFIX):
        return False

    expected = compute_signature(body, timestamp, secret)
    return hmac.compare_digest(
        signature[len(SIGNATURE_PREFIX):].encode("utf-8"),
        expected[len(SIGNATURE_PREFIX):].encode("utf-8"),
    )


def create_signature_headers(
    body: bytes,
    secret: bytes,
    *,
    timestamp: int | None = None,
) -> dict[str, str]:
    """Create Slack signature headers for a body.

    Args:
        body: Request body to sign.
        secret: Signing secret.
        timestamp: Unix timestamp (defaults to now).

    Returns:
        Dictionary of headers to include in the request.
    """
    if timestamp is None:
        timestamp = int(time.time())

    ts = str(timestamp)
    return {
        TIMESTAMP_HEADER: ts,
        SIGNATURE_HEADER: compute_signature(body, ts, secret),
    }
