"""Slack event relay.

Receives signed Slack event deliveries over HTTP and republishes them to
Redis pub/sub channels chosen by event type.
"""

__version__ = "1.0.0"
