"""Structured logging configuration for ETL runs."""

import logging

import structlog


def configure_logging(level: str = "info", json: bool = False) -> None:
    """Configure structlog once per process.

    Args:
        level: Minimum level name (debug, info, warning, error).
        json: Render JSON lines instead of key=value console output.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
