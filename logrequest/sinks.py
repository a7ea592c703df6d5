from __future__ import annotations

import logging
from collections.abc import Callable

import structlog

from logrequest.observer import OutcomeFields


def logger_sink(logger: logging.Logger, level: int = logging.INFO) -> Callable[[str], None]:
    """Sink writing each line as one stdlib log record."""

    def sink(line: str) -> None:
        logger.log(level, "%s", line)

    return sink


def structlog_sink(name: str = "logrequest") -> Callable[[str], None]:
    def sink(line: str) -> None:
        structlog.get_logger(name).info(line)

    return sink


def structlog_fields_callback(name: str = "logrequest") -> Callable[[OutcomeFields], None]:
    """Outcome callback emitting one structured ``http_request`` event per request."""

    def callback(outcome: OutcomeFields) -> None:
        structlog.get_logger(name).info(
            "http_request",
            method=outcome.method,
            url=outcome.url,
            status_code=outcome.status_code,
        )

    return callback


class ListSink:
    """Collects lines in memory, mostly for tests and debugging."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)

    def text(self) -> str:
        return "".join(f"{line}\n" for line in self.lines)

    def clear(self) -> None:
        self.lines.clear()
