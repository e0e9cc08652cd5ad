"""Application configuration settings.

This module provides centralized configuration management using environment
variables with sensible defaults, plus the immutable per-handler
``RelayConfig`` built from them once at startup.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from slack_relay.observability.logs import parse_log_level
from slack_relay.relay.routes import RouteTable, load_route_table

logger = structlog.get_logger(__name__)

DEFAULT_PUBLISH_TIMEOUT = 5.0


def _get_bool_env(name: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable.

    Args:
        name: Environment variable name.
        default: Default value if not set.

    Returns:
        Boolean value from environment.
    """
    value = os.getenv(name, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name, "").strip().lstrip(":")
    try:
        return int(value) if value else default
    except ValueError:
        logger.warning("invalid_integer_env", name=name, value=value, default=default)
        return default


def _get_float_env(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    try:
        return float(value) if value else default
    except ValueError:
        logger.warning("invalid_float_env", name=name, value=value, default=default)
        return default


@dataclass
class Settings:
    """Process settings loaded from environment variables.

    Attributes:
        LOG_LEVEL: Logging level name (DEBUG, INFO, WARN, ERROR).
        LOG_JSON: Render logs as JSON lines.
        CONFIG_FILE: Path to the JSON route configuration.
        SECRET_FILE: Path to the file holding the Slack signing secret.
        SLACK_SIGNING_SECRET: Signing secret; overrides SECRET_FILE when set.
        REDIS_ENABLED: Connect to Redis for publishing.
        REDIS_HOST: Redis host.
        REDIS_PORT: Redis port.
        REDIS_PASSWORD: Optional Redis password.
        PUBLISH_TIMEOUT: Seconds before a publish attempt is abandoned.
        HOST: Interface to bind.
        PORT: Port to listen on.
        EVENT_PATH: Path of the Slack event endpoint.
    """

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Routing and verification
    CONFIG_FILE: str = "config.json"
    SECRET_FILE: str = ".secret"
    SLACK_SIGNING_SECRET: str | None = None

    # Message bus
    REDIS_ENABLED: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str | None = None
    PUBLISH_TIMEOUT: float = DEFAULT_PUBLISH_TIMEOUT

    # HTTP listener
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    EVENT_PATH: str = "/slack"

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables.

        Returns:
            Settings instance populated from environment.
        """
        return cls(
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO") or "INFO",
            LOG_JSON=_get_bool_env("LOG_JSON", default=False),
            CONFIG_FILE=os.getenv("CONFIG_FILE") or "config.json",
            SECRET_FILE=os.getenv("SECRET_FILE") or ".secret",
            SLACK_SIGNING_SECRET=os.getenv("SLACK_SIGNING_SECRET") or None,
            REDIS_ENABLED=_get_bool_env("REDIS_ENABLED", default=True),
            REDIS_HOST=os.getenv("REDIS_HOST") or "localhost",
            REDIS_PORT=_get_int_env("REDIS_PORT", 6379),
            REDIS_PASSWORD=os.getenv("REDIS_PASSWORD") or None,
            PUBLISH_TIMEOUT=_get_float_env("PUBLISH_TIMEOUT", DEFAULT_PUBLISH_TIMEOUT),
            HOST=os.getenv("HOST") or "0.0.0.0",
            PORT=_get_int_env("PORT", 8080),
            EVENT_PATH=os.getenv("EVENT_PATH") or "/slack",
        )

    @property
    def log_level(self) -> int:
        """Numeric logging level for LOG_LEVEL."""
        return parse_log_level(self.LOG_LEVEL)

    @property
    def redis_address(self) -> str:
        """host:port of the Redis server."""
        return f"{self.REDIS_HOST}:{self.REDIS_PORT}"


@dataclass(frozen=True)
class RelayConfig:
    """Read-only configuration shared by every request handler.

    Built once before serving begins and never mutated afterwards.

    Attributes:
        route_table: Event type to topic/reply mapping.
        signing_secret: Slack signing secret; empty disables verification.
        log_level: Effective logging level of the process.
    """

    route_table: RouteTable = field(default_factory=RouteTable)
    signing_secret: bytes = b""
    log_level: int = logging.INFO

    @property
    def verification_enabled(self) -> bool:
        """Whether inbound requests must carry a valid signature."""
        return bool(self.signing_secret)

    @property
    def debug_payloads(self) -> bool:
        """Whether full payloads may be written to the debug log."""
        return self.log_level <= logging.DEBUG


def load_signing_secret(settings: Settings) -> bytes:
    """Read the Slack signing secret.

    ``SLACK_SIGNING_SECRET`` wins over ``SECRET_FILE``. A missing or
    unreadable file yields an empty secret, which disables verification.

    Args:
        settings: Process settings.

    Returns:
        The secret bytes, whitespace-trimmed, or ``b""``.
    """
    if settings.SLACK_SIGNING_SECRET:
        return settings.SLACK_SIGNING_SECRET.strip().encode("utf-8")

    try:
        data = Path(settings.SECRET_FILE).read_text(encoding="utf-8")
    except OSError:
        return b""
    return data.strip().encode("utf-8")


def build_relay_config(settings: Settings) -> RelayConfig:
    """Assemble the relay configuration from settings.

    Loads the route table and the signing secret. A missing secret only
    degrades the relay and is logged as a warning.

    Args:
        settings: Process settings.

    Returns:
        The relay configuration.

    Raises:
        ConfigurationError: If the route configuration cannot be loaded.
    """
    route_table = load_route_table(settings.CONFIG_FILE)

    secret = load_signing_secret(settings)
    if secret:
        logger.info("signing_secret_loaded", verification_enabled=True)
    else:
        logger.warning(
            "signing_secret_missing",
            secret_file=settings.SECRET_FILE,
            message="Slack signature verification will be skipped.",
        )

    return RelayConfig(
        route_table=route_table,
        signing_secret=secret,
        log_level=settings.log_level,
    )
