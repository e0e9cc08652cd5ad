"""Logging configuration for the relay."""

from slack_relay.observability.logs import LOG_LEVELS, configure_logging, parse_log_level

__all__ = [
    "LOG_LEVELS",
    "configure_logging",
    "parse_log_level",
]
