"""Process-wide output for request log lines.

The library only ever logs through ``structlog.get_logger``; applications that
want the Started/Completed lines on stdout call ``configure_logging`` once at
startup (or ``configure_from_settings`` to read ``LOG_LEVEL``/``LOG_JSON``).
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from logrequest.config import get_settings


_CONFIGURED = False


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level}")
    return resolved


def _shared_processors() -> list[Any]:
    # Applied to structlog events and to records from plain stdlib loggers alike.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _renderer(json_output: bool) -> Any:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(level: int | str = logging.INFO, json_output: bool = False, force: bool = False) -> None:
    """Route request log lines to stdout, as JSON objects or console text.

    Only the first call takes effect; pass ``force=True`` to swap the level or
    renderer later on. An unknown level name raises ``ValueError`` before
    anything is changed.
    """

    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    root_level = _resolve_level(level)
    processors = _shared_processors()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(json_output),
            foreign_pre_chain=processors,
        )
    )

    root = logging.getLogger()
    root.handlers = [stdout]
    root.setLevel(root_level)

    _CONFIGURED = True


def configure_from_settings() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json)
