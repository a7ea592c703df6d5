from __future__ import annotations

from typing import Any, Protocol


class Responder(Protocol):
    """What a handler writes an HTTP response to."""

    headers: Any

    def write_header(self, status_code: int) -> None: ...

    def write(self, data: bytes) -> int: ...


class StatusCapture:
    """Status code of one response as a client would see it.

    An explicit header write always records its code. A body write records the
    implicit 200 only while nothing has been recorded yet.
    """

    __slots__ = ("status_code",)

    def __init__(self) -> None:
        self.status_code = 0

    def record_header(self, status_code: int) -> None:
        self.status_code = status_code

    def record_body(self) -> None:
        if self.status_code == 0:
            self.status_code = 200


class StatusRecorder:
    """Pass-through Responder that remembers the status code it forwarded."""

    def __init__(self, responder: Responder) -> None:
        self._responder = responder
        self._capture = StatusCapture()

    @property
    def status_code(self) -> int:
        return self._capture.status_code

    @property
    def headers(self) -> Any:
        return self._responder.headers

    def write_header(self, status_code: int) -> None:
        self._capture.record_header(status_code)
        self._responder.write_header(status_code)

    def write(self, data: bytes) -> int:
        self._capture.record_body()
        return self._responder.write(data)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined above (flush, finish, ...).
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._responder, name)
