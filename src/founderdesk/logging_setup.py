"""structlog configuration for founderdesk."""

from __future__ import annotations

import logging

import structlog

from founderdesk.settings import Settings


def configure_logging(config: Settings) -> None:
    """Configure structlog once, early, from settings.

    ``log_format`` selects the renderer: ``json`` for machine-readable lines,
    anything else for the coloured console renderer.
    """
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer: structlog.typing.Processor
    if config.log_format.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
