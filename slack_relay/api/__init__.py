"""HTTP surface of the relay."""

from slack_relay.api.app import app_factory, create_app
from slack_relay.api.health import HealthService, HealthStatus, ServiceStatus

__all__ = [
    "HealthService",
    "HealthStatus",
    "ServiceStatus",
    "app_factory",
    "create_app",
]
