"""Structured logging configuration.

Every diagnostic the tool emits (startup banner, page progress, "milestone
not found", transport failures) goes through structlog. Locally the output
is pretty-printed for a maintainer watching the terminal; in CI, where
ENVIRONMENT=production is typically set, each event is a single JSON line
that log collectors can parse:
  {"event": "notes_written", "path": "notes.md", "entries": 12}

Usage:
    from gh_release_notes.logging_config import setup_logging, get_logger

    setup_logging(environment="production")
    logger = get_logger(__name__)
    logger.info("collection_started", owner="myorg", repo="api")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def setup_logging(
    environment: str | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structured logging for the tool.

    In development: Pretty-printed, colorized output for readability.
    In production: JSON output, one event per line.

    Args:
        environment: "development" or "production". Reads from
                     ENVIRONMENT env var if not provided.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Reads from LOG_LEVEL env var if not provided.

    Raises:
        ValueError: If log_level is not a known logging level name.
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level_name = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if env == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    # Diagnostics go to stderr so stdout stays clean for piping.
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # httpx logs each request through the standard library.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        A structlog bound logger
    """
    return structlog.get_logger(name)
