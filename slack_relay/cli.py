"""Command-line interface for the Slack event relay.

This module provides CLI commands for running the relay, validating the
route configuration, and signing test payloads.
"""

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path

import structlog
import uvicorn

from slack_relay.api.app import create_app
from slack_relay.config import Settings, build_relay_config
from slack_relay.observability import configure_logging
from slack_relay.relay.errors import ConfigurationError
from slack_relay.relay.routes import load_route_table
from slack_relay.relay.security import create_signature_headers

logger = structlog.get_logger(__name__)


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Apply command-line overrides to environment settings.

    Args:
        args: Parsed arguments.

    Returns:
        Settings with overrides applied.
    """
    settings = Settings.from_env()
    overrides = {
        "CONFIG_FILE": getattr(args, "config", None),
        "LOG_LEVEL": getattr(args, "log_level", None),
        "HOST": getattr(args, "host", None),
        "PORT": getattr(args, "port", None),
    }
    return replace(settings, **{k: v for k, v in overrides.items() if v is not None})


def serve_command(args: argparse.Namespace) -> int:
    """Run the relay until interrupted.

    Args:
        args: Parsed arguments.

    Returns:
        Exit code.
    """
    settings = settings_from_args(args)
    configure_logging(settings.log_level, json=settings.LOG_JSON)
    logger.info("log_level_set", level=settings.LOG_LEVEL.upper())

    try:
        config = build_relay_config(settings)
    except ConfigurationError as e:
        logger.error("configuration_load_failed", **e.to_dict())
        print(
            f"Error loading configuration file '{settings.CONFIG_FILE}': {e.message}\n"
            "Please create a configuration file with event-to-channel mappings",
            file=sys.stderr,
        )
        return 1

    app = create_app(config, settings=settings)

    logger.info("server_starting", host=settings.HOST, port=settings.PORT, path=settings.EVENT_PATH)
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=logging.getLevelName(settings.log_level).lower(),
        access_log=False,
    )
    return 0


def check_config_command(args: argparse.Namespace) -> int:
    """Validate the route configuration and print it.

    Args:
        args: Parsed arguments.

    Returns:
        Exit code.
    """
    settings = settings_from_args(args)
    try:
        table = load_route_table(settings.CONFIG_FILE)
    except ConfigurationError as e:
        print(f"Invalid configuration '{settings.CONFIG_FILE}': {e.message}", file=sys.stderr)
        return 1

    print(f"{settings.CONFIG_FILE}: {len(table)} route(s)")
    for route in table:
        reply = " (reply)" if route.reply is not None else ""
        print(f"  {route.event_type} -> {route.topic}{reply}")
    return 0


def sign_command(args: argparse.Namespace) -> int:
    """Print Slack signature headers for a request body.

    Args:
        args: Parsed arguments.

    Returns:
        Exit code.
    """
    try:
        body = Path(args.body_file).read_bytes()
    except OSError as e:
        print(f"Cannot read {args.body_file}: {e.strerror or e}", file=sys.stderr)
        return 1

    timestamp = args.timestamp if args.timestamp is not None else int(time.time())
    headers = create_signature_headers(body, args.secret.encode("utf-8"), timestamp=timestamp)
    for name, value in headers.items():
        print(f"{name}: {value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="slack-relay",
        description="Slack event to Redis pub/sub relay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the relay server")
    serve_parser.add_argument(
        "--config",
        help="Path to the route configuration JSON (default: $CONFIG_FILE or config.json)",
    )
    serve_parser.add_argument(
        "--host",
        help="Interface to bind (default: $HOST or 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (default: $PORT or 8080)",
    )
    serve_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        type=str.upper,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )

    # Check-config command
    check_parser = subparsers.add_parser("check-config", help="Validate the route configuration")
    check_parser.add_argument(
        "--config",
        help="Path to the route configuration JSON (default: $CONFIG_FILE or config.json)",
    )

    # Sign command
    sign_parser = subparsers.add_parser("sign", help="Print Slack signature headers for a body")
    sign_parser.add_argument(
        "body_file",
        help="File containing the exact request body",
    )
    sign_parser.add_argument(
        "--secret",
        required=True,
        help="Slack signing secret",
    )
    sign_parser.add_argument(
        "--timestamp",
        type=int,
        help="Unix timestamp to sign (default: now)",
    )

    args = parser.parse_args(argv)

    if args.command is None or args.command == "serve":
        return serve_command(args)
    elif args.command == "check-config":
        return check_config_command(args)
    elif args.command == "sign":
        return sign_command(args)

    return 1


if __name__ == "__main__":
    sys.exit(main())
