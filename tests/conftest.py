from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from httpx import ASGITransport, AsyncClient

from logrequest.asgi import ASGILogRequestMiddleware
from logrequest.config import ObserverConfig, get_settings
from logrequest.recorder import ResponseRecorder
from logrequest.sinks import ListSink


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("LOG_LEVEL", "LOG_JSON", "LOGREQUEST_TIMESTAMP", "LOGREQUEST_HIDE_DURATION", "LOGREQUEST_NEW_LINES"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def recorder() -> ResponseRecorder:
    return ResponseRecorder()


def build_app() -> FastAPI:
    app = FastAPI()

    @app.get("/foo")
    async def foo() -> dict[str, bool]:
        return {"ok": True}

    @app.post("/bar/create")
    async def create() -> None:
        raise HTTPException(status_code=401, detail="not allowed")

    @app.get("/teapot", response_class=PlainTextResponse)
    async def teapot() -> PlainTextResponse:
        return PlainTextResponse("short and stout", status_code=418, headers={"X-Kind": "teapot"})

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("boom")

    return app


@pytest.fixture
def outcomes() -> list:
    return []


@pytest.fixture
async def api_client(sink: ListSink, outcomes: list) -> AsyncIterator[AsyncClient]:
    app = ASGILogRequestMiddleware(build_app(), sink=sink, config=ObserverConfig(), on_outcome=outcomes.append)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
