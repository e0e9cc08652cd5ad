"""Health check endpoints for monitoring and orchestration.

This module provides:
- /health (liveness): Basic check that the service is running
- /health/ready (readiness): Check of the message bus connection

Running without Redis is a supported degraded mode, so a missing
publisher reports ``degraded`` rather than ``not_ready``.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from slack_relay.relay.handler import EventRelay

logger = structlog.get_logger(__name__)


class HealthStatus(Enum):
    """Health status values."""

    OK = "ok"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ServiceStatus(Enum):
    """Overall service status."""

    READY = "ready"
    DEGRADED = "degraded"
    NOT_READY = "not_ready"


@dataclass
class ComponentCheck:
    """Result of a component health check.

    Attributes:
        name: Component name.
        status: Health status.
        latency_ms: Check latency in milliseconds.
        error: Error message if unhealthy.
        details: Additional details.
    """

    name: str
    status: HealthStatus
    latency_ms: float
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.error:
            result["error"] = self.error
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class HealthCheckResult:
    """Overall health check result."""

    status: ServiceStatus
    checks: dict[str, dict[str, Any]]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    version: str = "1.0.0"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "checks": self.checks,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
        }


class PublisherHealthChecker:
    """Health checker for the relay's message bus publisher."""

    name = "redis"

    def __init__(self, relay: EventRelay, timeout: float = 1.0) -> None:
        """Initialize the checker.

        Args:
            relay: Relay whose publisher is checked.
            timeout: Check timeout in seconds.
        """
        self.relay = relay
        self.timeout = timeout

    async def check(self) -> ComponentCheck:
        """Ping the publisher.

        Returns:
            ComponentCheck result.
        """
        publisher = self.relay.publisher
        if publisher is None:
            return ComponentCheck(
                name=self.name,
                status=HealthStatus.DEGRADED,
                latency_ms=0,
                error="Publishing disabled",
            )

        start = time.monotonic()
        try:
            ok = await asyncio.wait_for(publisher.ping(), timeout=self.timeout)
        except TimeoutError:
            ok = False
        latency_ms = (time.monotonic() - start) * 1000

        if ok:
            return ComponentCheck(name=self.name, status=HealthStatus.OK, latency_ms=latency_ms)
        return ComponentCheck(
            name=self.name,
            status=HealthStatus.UNHEALTHY,
            latency_ms=latency_ms,
            error="Ping failed",
        )


class HealthService:
    """Service for running health checks."""

    def __init__(self, relay: EventRelay, version: str = "1.0.0") -> None:
        self.version = version
        self._checker = PublisherHealthChecker(relay)

    async def liveness(self) -> dict[str, Any]:
        """Basic liveness check.

        Returns:
            Simple status response.
        """
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
        }

    async def readiness(self) -> HealthCheckResult:
        """Readiness check of the publisher.

        Returns:
            Health check result.
        """
        check = await self._checker.check()

        if check.status == HealthStatus.UNHEALTHY:
            status = ServiceStatus.NOT_READY
        elif check.status == HealthStatus.DEGRADED:
            status = ServiceStatus.DEGRADED
        else:
            status = ServiceStatus.READY

        logger.debug("health_check_completed", status=status.value)

        return HealthCheckResult(
            status=status,
            checks={check.name: check.to_dict()},
            version=self.version,
        )
