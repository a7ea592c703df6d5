"""WSGI adapter.

The wrapped application runs synchronously inside the observer: its body is
pushed through the server's ``write`` callable as it is produced, and the
middleware returns an empty iterable.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from http import HTTPStatus
from typing import Any

import structlog
from starlette.datastructures import MutableHeaders

from logrequest.config import ObserverConfig, get_settings
from logrequest.observer import Handler, OutcomeFields, RequestObserver, RequestView, Sink
from logrequest.responder import Responder
from logrequest.sinks import structlog_sink


logger = structlog.get_logger("logrequest.wsgi")

StartResponse = Callable[..., Callable[[bytes], Any]]
WSGIApp = Callable[[dict[str, Any], StartResponse], Iterable[bytes]]


def _status_line(status_code: int) -> str:
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        phrase = "Unknown"
    return f"{status_code} {phrase}"


class WSGIResponder:
    """Responder over a WSGI ``start_response`` callable."""

    def __init__(self, start_response: StartResponse) -> None:
        self._start_response = start_response
        self._write: Callable[[bytes], Any] | None = None
        self._verbatim: tuple[str, list[tuple[str, str]]] | None = None
        self.headers = MutableHeaders()
        self.status_code = 0

    @property
    def started(self) -> bool:
        return self._write is not None

    def use_status_line(self, status: str, headers: list[tuple[str, str]]) -> None:
        """Send ``status`` and ``headers`` as given on the next ``write_header``."""
        self._verbatim = (status, list(headers))

    def write_header(self, status_code: int) -> None:
        if self._write is not None:
            logger.warning("superfluous_write_header", status_code=status_code, sent_status_code=self.status_code)
            return

        status, headers = _status_line(status_code), []
        if self._verbatim is not None:
            status, headers = self._verbatim
            self._verbatim = None

        self.status_code = status_code
        self._write = self._start_response(status, headers + list(self.headers.items()))

    def write(self, data: bytes) -> int:
        if self._write is None:
            self.write_header(200)
        self._write(data)
        return len(data)

    def finish(self) -> None:
        if self._write is None:
            self.write_header(200)


class _WSGICall:
    """One call of a WSGI app, replayed onto a Responder.

    Status and headers from ``start_response`` are held until the first
    non-empty body chunk so a later ``exc_info`` call can still replace them.
    """

    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.pending: tuple[str, list[tuple[str, str]]] | None = None
        self.headers_sent = False

    def start_response(self, status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Callable[[bytes], None]:
        if exc_info is not None:
            try:
                if self.headers_sent:
                    raise exc_info[1].with_traceback(exc_info[2])
            finally:
                exc_info = None
        elif self.pending is not None or self.headers_sent:
            raise RuntimeError("start_response called twice without exc_info")

        self.pending = (status, list(headers))
        return self.write

    def flush_headers(self) -> None:
        if self.pending is None:
            return

        status, headers = self.pending
        self.pending = None

        # The app's own status line and header tuples reach the server untouched.
        use_status_line = getattr(self.responder, "use_status_line", None)
        if use_status_line is not None:
            use_status_line(status, headers)
        else:
            for name, value in headers:
                self.responder.headers.append(name, value)
        self.responder.write_header(int(status.split(" ", 1)[0]))
        self.headers_sent = True

    def write(self, data: bytes) -> None:
        self.flush_headers()
        self.responder.write(data)


def wsgi_handler(app: WSGIApp) -> Handler:
    """Adapt a WSGI application into a ``(responder, request)`` handler."""

    def handler(responder: Responder, request: RequestView) -> None:
        call = _WSGICall(responder)
        result = app(request.native, call.start_response)
        try:
            for chunk in result:
                if chunk:
                    call.write(chunk)
            call.flush_headers()
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

    return handler


class LogRequestMiddleware:
    """WSGI middleware logging a Started and a Completed line per request."""

    def __init__(
        self,
        app: WSGIApp,
        *,
        sink: Sink | None = None,
        config: ObserverConfig | None = None,
        on_outcome: Callable[[OutcomeFields], Any] | None = None,
    ) -> None:
        self.app = app
        self.handler = wsgi_handler(app)
        self.sink = sink or structlog_sink()
        self.config = config or get_settings().observer_config()
        self.on_outcome = on_outcome

    def __call__(self, environ: dict[str, Any], start_response: StartResponse) -> list[bytes]:
        responder = WSGIResponder(start_response)
        observer = RequestObserver(responder, RequestView.from_environ(environ), self.handler, self.config)
        observer.run_and_report(self.sink)
        responder.finish()

        if self.on_outcome is not None:
            self.on_outcome(observer.render_fields())
        return []
