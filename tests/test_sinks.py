import json
import logging
from collections.abc import Iterator

import pytest
import structlog
from structlog.testing import capture_logs

import logrequest.logging_setup as logging_setup
from logrequest.config import ObserverConfig
from logrequest.observer import OutcomeFields, RequestObserver, RequestView
from logrequest.recorder import ResponseRecorder
from logrequest.sinks import ListSink, logger_sink, structlog_fields_callback, structlog_sink


@pytest.fixture
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level

    yield

    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    logging_setup._CONFIGURED = False


def test_list_sink_collects_lines() -> None:
    sink = ListSink()
    sink("one")
    sink("")

    assert sink.lines == ["one", ""]
    assert sink.text() == "one\n\n"

    sink.clear()
    assert sink.lines == []


def test_logger_sink_writes_one_record_per_line(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.logrequest")
    caplog.set_level(logging.INFO, logger="tests.logrequest")

    observer = RequestObserver(
        ResponseRecorder(),
        RequestView(method="GET", request_uri="/foo"),
        lambda w, r: w.write_header(200),
        ObserverConfig(trailing_blank_lines=1),
    )
    observer.run_and_report(logger_sink(logger))

    assert len(caplog.records) == 3
    assert caplog.messages[0] == 'Started GET "/foo"  HTTP/1.1'
    assert caplog.messages[1].startswith("Completed 200 in ")
    assert caplog.messages[2] == ""


def test_structlog_sink_emits_line_as_event() -> None:
    with capture_logs() as logs:
        structlog_sink()("Completed 200 in 1ms")

    assert logs == [{"event": "Completed 200 in 1ms", "log_level": "info"}]


def test_structlog_fields_callback() -> None:
    with capture_logs() as logs:
        structlog_fields_callback()(OutcomeFields(method="POST", url="/bar/create", status_code=401))

    assert logs == [
        {
            "event": "http_request",
            "log_level": "info",
            "method": "POST",
            "url": "/bar/create",
            "status_code": 401,
        }
    ]


def test_configure_logging_renders_json(restore_logging: None, capsys: pytest.CaptureFixture[str]) -> None:
    logging_setup.configure_logging(level="info", json_output=True, force=True)

    structlog_sink("access")('Started GET "/foo"  HTTP/1.1')

    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["event"] == 'Started GET "/foo"  HTTP/1.1'
    assert payload["logger"] == "access"
    assert payload["level"] == "info"
    assert "timestamp" in payload


def test_configure_logging_is_idempotent(restore_logging: None) -> None:
    logging_setup.configure_logging(force=True)
    handler = logging.getLogger().handlers[0]

    logging_setup.configure_logging(json_output=True)

    assert logging.getLogger().handlers == [handler]


def test_configure_logging_rejects_unknown_level(restore_logging: None) -> None:
    with pytest.raises(ValueError):
        logging_setup.configure_logging(level="chatty", force=True)


def test_configure_from_settings(restore_logging: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")

    logging_setup.configure_from_settings()

    assert logging.getLogger().level == logging.WARNING
    assert logging_setup._CONFIGURED is True


def test_configure_logging_console_output(restore_logging: None, capsys: pytest.CaptureFixture[str]) -> None:
    logging_setup.configure_logging(level=logging.DEBUG, force=True)

    structlog_sink("access")("Completed 204 in 3ms")

    out = capsys.readouterr().out
    assert "Completed 204 in 3ms" in out
    assert "{" not in out
    assert logging.getLogger().level == logging.DEBUG
