"""FastAPI application for the Slack event relay.

This module provides:
- The single Slack event endpoint (POST only)
- Health check endpoints
- Plain-text error rendering
- Redis connection lifecycle
"""

from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from slack_relay.api.health import HealthService, ServiceStatus
from slack_relay.config import RelayConfig, Settings, build_relay_config
from slack_relay.relay.handler import EventRelay
from slack_relay.relay.publisher import Publisher, connect_publisher

logger = structlog.get_logger(__name__)

DEFAULT_EVENT_PATH = "/slack"


def create_app(
    config: RelayConfig,
    publisher: Publisher | None = None,
    *,
    settings: Settings | None = None,
    title: str = "Slack Event Relay",
    version: str = "1.0.0",
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Read-only relay configuration.
        publisher: Publisher to use. When omitted and ``settings`` is given,
            a Redis publisher is connected at startup.
        settings: Process settings, used for the Redis connection and the
            event path.
        title: API title.
        version: API version.

    Returns:
        Configured FastAPI application.
    """
    relay = EventRelay(config, publisher)
    health_service = HealthService(relay, version=version)
    event_path = settings.EVENT_PATH if settings else DEFAULT_EVENT_PATH

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ARG001
        """Connect the publisher for the lifetime of the server."""
        owned: Publisher | None = None
        if relay.publisher is None and settings is not None:
            owned = await connect_publisher(settings)
            relay.publisher = owned

        logger.info(
            "relay_starting",
            path=event_path,
            routes=len(config.route_table),
            verification_enabled=config.verification_enabled,
            publishing_enabled=relay.publisher is not None,
        )

        yield

        logger.info("relay_shutting_down")
        if owned is not None:
            await owned.close()
            relay.publisher = None

    app = FastAPI(
        title=title,
        version=version,
        description="Verifies signed Slack event deliveries and republishes them to Redis channels.",
        lifespan=lifespan,
    )
    app.state.relay = relay
    app.state.health_service = health_service

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException  # noqa: ARG001
    ) -> PlainTextResponse:
        return PlainTextResponse(
            str(exc.detail),
            status_code=exc.status_code,
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception  # noqa: ARG001
    ) -> PlainTextResponse:
        logger.error("unhandled_exception", error=str(exc), exc_info=True)
        return PlainTextResponse("Internal server error", status_code=500)

    app.add_api_route(
        event_path,
        relay.handle,
        methods=["POST"],
        tags=["Slack"],
        summary="Receive a Slack event",
    )

    register_health_routes(app, health_service)

    return app


def register_health_routes(app: FastAPI, health_service: HealthService) -> None:
    """Register health endpoints on the application.

    Args:
        app: FastAPI application.
        health_service: Service answering the checks.
    """

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, Any]:
        """Basic liveness check."""
        return await health_service.liveness()

    @app.get("/health/ready", tags=["Health"])
    async def readiness() -> JSONResponse:
        """Readiness check including the Redis connection."""
        result = await health_service.readiness()
        status_code = 200 if result.status != ServiceStatus.NOT_READY else 503
        return JSONResponse(content=result.to_dict(), status_code=status_code)


def app_factory() -> FastAPI:
    """Build the application from environment variables.

    Used by ``uvicorn --factory slack_relay.api.app:app_factory``.

    Raises:
        ConfigurationError: If the route configuration cannot be loaded.
    """
    settings = Settings.from_env()
    return create_app(build_relay_config(settings), settings=settings)
