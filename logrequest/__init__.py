"""Request logging for WSGI and ASGI servers.

Each request is timed and reported as a ``Started`` and a ``Completed`` line
(or a structured outcome) without changing what the client receives.
"""

from logrequest.asgi import ASGILogRequestMiddleware
from logrequest.config import ObserverConfig, Settings, get_settings
from logrequest.formatting import format_duration
from logrequest.logging_setup import configure_logging
from logrequest.observer import (
    Observation,
    OutcomeFields,
    OutcomeStrings,
    RequestObserver,
    RequestTiming,
    RequestView,
)
from logrequest.recorder import ResponseRecorder
from logrequest.responder import Responder, StatusCapture, StatusRecorder
from logrequest.sinks import ListSink, logger_sink, structlog_fields_callback, structlog_sink
from logrequest.wsgi import LogRequestMiddleware, WSGIResponder, wsgi_handler

__all__ = [
    "ASGILogRequestMiddleware",
    "ListSink",
    "LogRequestMiddleware",
    "Observation",
    "ObserverConfig",
    "OutcomeFields",
    "OutcomeStrings",
    "RequestObserver",
    "RequestTiming",
    "RequestView",
    "Responder",
    "ResponseRecorder",
    "Settings",
    "StatusCapture",
    "StatusRecorder",
    "WSGIResponder",
    "configure_logging",
    "format_duration",
    "get_settings",
    "logger_sink",
    "structlog_fields_callback",
    "structlog_sink",
    "wsgi_handler",
]
