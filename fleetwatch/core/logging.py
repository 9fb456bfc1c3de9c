"""Structured logging for fleetwatch.

Everything goes through the stdlib root logger so that third-party output
(aiohttp) shares the structlog renderer. Decision records are emitted on the
``decision_log`` logger and can be routed separately by logger name.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from fleetwatch.core.config import get_settings

# aiohttp reports every webhook round-trip below WARNING.
_QUIET_LOGGERS = ("aiohttp.client", "aiohttp.internal")

_RENDERERS = ("json", "console")


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    if fmt == "console":
        return structlog.dev.ConsoleRenderer()
    raise ValueError(f"unknown log format {fmt!r}, expected one of {', '.join(_RENDERERS)}")


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging through one handler.

    Args:
        level: Level name override (e.g. "DEBUG"). Uses settings if None.
        fmt: "json" or "console". Uses settings if None.
        stream: Destination, stderr by default.

    Raises:
        ValueError: If *fmt* names an unknown renderer.
    """
    settings = get_settings()
    log_level = logging.getLevelName((level or settings.logging.level).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    renderer = _renderer(fmt or settings.logging.format)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
