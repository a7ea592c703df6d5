from __future__ import annotations

from typing import Any, Callable

from logrequest.config import ObserverConfig, get_settings
from logrequest.observer import OutcomeFields, RequestTiming, RequestView, Sink, report_tail, started_line, to_fields
from logrequest.responder import StatusCapture
from logrequest.sinks import structlog_sink


class ASGILogRequestMiddleware:
    """Logs a Started and a Completed line for every HTTP request."""

    def __init__(
        self,
        app: Callable[..., Any],
        *,
        sink: Sink | None = None,
        config: ObserverConfig | None = None,
        on_outcome: Callable[[OutcomeFields], Any] | None = None,
    ) -> None:
        self.app = app
        self.sink = sink or structlog_sink()
        self.config = config or get_settings().observer_config()
        self.on_outcome = on_outcome

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        timing = RequestTiming.begin(RequestView.from_scope(scope))
        self.sink(started_line(timing.request, timing.started_at, self.config))

        capture = StatusCapture()

        async def send_wrapper(message: dict[str, Any]) -> None:
            message_type = message.get("type")
            if message_type == "http.response.start":
                capture.record_header(int(message["status"]))
            elif message_type == "http.response.body":
                capture.record_body()

            await send(message)

        # A failing app propagates before the Completed line is written.
        await self.app(scope, receive, send_wrapper)

        observation = timing.finish(capture.status_code)
        for line in report_tail(observation, self.config):
            self.sink(line)

        if self.on_outcome is not None:
            self.on_outcome(to_fields(observation))
