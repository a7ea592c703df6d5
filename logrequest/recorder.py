from __future__ import annotations

from starlette.datastructures import MutableHeaders


class ResponseRecorder:
    """In-memory Responder that keeps everything written to it.

    Follows the usual server rules: only the first ``write_header`` counts and
    a body write without one implies 200.
    """

    def __init__(self) -> None:
        self.headers = MutableHeaders()
        self.status_code = 200
        self.body = bytearray()
        self.sent_headers: MutableHeaders | None = None
        self.wrote_header = False

    def write_header(self, status_code: int) -> None:
        if self.wrote_header:
            return
        self.status_code = status_code
        self.sent_headers = MutableHeaders(raw=list(self.headers.raw))
        self.wrote_header = True

    def write(self, data: bytes) -> int:
        if not self.wrote_header:
            self.write_header(200)
        self.body.extend(data)
        return len(data)
