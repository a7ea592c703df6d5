from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from time import perf_counter_ns
from typing import Any
from urllib.parse import quote

from logrequest.config import ObserverConfig
from logrequest.formatting import blank_lines, render_completed, render_started
from logrequest.responder import Responder, StatusRecorder


Handler = Callable[[Responder, "RequestView"], Any]
Sink = Callable[[str], Any]

# Path characters left unescaped (RFC 3986 pchar).
PATH_SAFE = "/:@!$&'()*+,;="


def _join_host(host: str | None, port: Any) -> str:
    if not host:
        return ""
    if port in (None, ""):
        return host
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"{host}:{port}"


@dataclass(frozen=True)
class RequestView:
    method: str
    request_uri: str
    remote_addr: str = ""
    proto: str = "HTTP/1.1"
    # Server-native request (WSGI environ, ASGI scope) handed through to handlers.
    native: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any]) -> RequestView:
        uri = environ.get("REQUEST_URI") or environ.get("RAW_URI")
        if not uri:
            path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
            uri = quote(path.encode("latin-1"), safe=PATH_SAFE) or "/"
            query = environ.get("QUERY_STRING")
            if query:
                uri = f"{uri}?{query}"

        return cls(
            method=environ.get("REQUEST_METHOD", "GET"),
            request_uri=uri,
            remote_addr=_join_host(environ.get("REMOTE_ADDR"), environ.get("REMOTE_PORT")),
            proto=environ.get("SERVER_PROTOCOL", "HTTP/1.1"),
            native=environ,
        )

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any]) -> RequestView:
        raw_path = scope.get("raw_path")
        if raw_path:
            uri = raw_path.decode("latin-1")
        else:
            uri = quote(scope.get("root_path", "") + scope.get("path", ""), safe=PATH_SAFE) or "/"

        query = scope.get("query_string", b"")
        if query:
            uri = f"{uri}?{query.decode('latin-1')}"

        client = scope.get("client") or (None, None)
        return cls(
            method=scope.get("method", "GET"),
            request_uri=uri,
            remote_addr=_join_host(client[0], client[1]),
            proto=f"HTTP/{scope.get('http_version', '1.1')}",
            native=scope,
        )


@dataclass(frozen=True)
class Observation:
    request: RequestView
    status_code: int
    duration_ns: int
    started_at: datetime


@dataclass(frozen=True)
class RequestTiming:
    """Start of one observed request; ``finish`` turns it into an Observation."""

    request: RequestView
    started_at: datetime
    start_ns: int

    @classmethod
    def begin(cls, request: RequestView) -> RequestTiming:
        return cls(request=request, started_at=datetime.now(), start_ns=perf_counter_ns())

    def finish(self, status_code: int) -> Observation:
        return Observation(
            request=self.request,
            status_code=status_code,
            duration_ns=perf_counter_ns() - self.start_ns,
            started_at=self.started_at,
        )


@dataclass(frozen=True)
class OutcomeStrings:
    started: str
    completed: str

    def as_dict(self) -> dict[str, str]:
        return {"started": self.started, "completed": self.completed}


@dataclass(frozen=True)
class OutcomeFields:
    method: str
    url: str
    status_code: int

    def as_dict(self) -> dict[str, Any]:
        return {"method": self.method, "url": self.url, "statusCode": self.status_code}


def started_line(request: RequestView, started_at: datetime, config: ObserverConfig) -> str:
    return render_started(
        request.method,
        request.request_uri,
        request.remote_addr,
        request.proto,
        started_at,
        config,
    )


def to_strings(observation: Observation, config: ObserverConfig) -> OutcomeStrings:
    return OutcomeStrings(
        started=started_line(observation.request, observation.started_at, config),
        completed=render_completed(observation.status_code, observation.duration_ns, config),
    )


def to_fields(observation: Observation) -> OutcomeFields:
    return OutcomeFields(
        method=observation.request.method,
        url=observation.request.request_uri,
        status_code=observation.status_code,
    )


def report_tail(observation: Observation, config: ObserverConfig) -> list[str]:
    """Lines written once the handler has returned."""
    return [
        render_completed(observation.status_code, observation.duration_ns, config),
        *blank_lines(config),
    ]


class RequestObserver:
    """Times one handler invocation and reports its outcome.

    The handler runs at most once per observer; every renderer works from the
    same cached Observation.
    """

    def __init__(
        self,
        writer: Responder,
        request: RequestView,
        handler: Handler,
        config: ObserverConfig | None = None,
    ) -> None:
        self.writer = writer
        self.request = request
        self.handler = handler
        self.config = config or ObserverConfig()
        self._observation: Observation | None = None

    def observe(self, on_start: Callable[[datetime], Any] | None = None) -> Observation:
        if self._observation is not None:
            return self._observation

        timing = RequestTiming.begin(self.request)
        if on_start is not None:
            on_start(timing.started_at)

        recorder = StatusRecorder(self.writer)
        self.handler(recorder, self.request)

        self._observation = timing.finish(recorder.status_code)
        return self._observation

    def run_and_report(self, sink: Sink) -> None:
        if self._observation is None:
            observation = self.observe(
                on_start=lambda started_at: sink(started_line(self.request, started_at, self.config))
            )
        else:
            observation = self._observation
            sink(started_line(self.request, observation.started_at, self.config))

        for line in report_tail(observation, self.config):
            sink(line)

    def render_strings(self) -> OutcomeStrings:
        return to_strings(self.observe(), self.config)

    def render_fields(self) -> OutcomeFields:
        return to_fields(self.observe())
