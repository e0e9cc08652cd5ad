"""Structured logging setup.

All modules log through ``structlog.get_logger(__name__)``; this module
only decides the level filter and the renderer once at startup.
"""

import logging

import structlog

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def parse_log_level(level: str | None) -> int:
    """Map a level name to a logging level, defaulting to INFO.

    Args:
        level: Level name (case-insensitive). ``WARN`` and ``WARNING``
            are both accepted.

    Returns:
        Numeric logging level.
    """
    if not level:
        return logging.INFO
    return LOG_LEVELS.get(level.strip().upper(), logging.INFO)


def configure_logging(level: int | str = logging.INFO, *, json: bool = False) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level to emit, as a number or a level name.
        json: Render JSON lines instead of console key=value output.
    """
    if isinstance(level, str):
        level = parse_log_level(level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
