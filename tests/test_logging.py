from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from qrweave.logging import AUDIT, JsonFormatter, audit, get_logger, setup_logging, trace


@pytest.fixture(autouse=True)
def _reset_root_logger():
    yield
    root = logging.getLogger("qrweave")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


def test_get_logger_is_namespaced() -> None:
    assert get_logger("export").name == "qrweave.export"


def test_audit_records_event_and_context(caplog) -> None:
    log = get_logger("test")
    with caplog.at_level(AUDIT, logger="qrweave"):
        audit("scene.rendered", logger=log, dots=12)
    record = caplog.records[-1]
    assert record.levelname == "AUDIT"
    assert record.event == "scene.rendered"
    assert record.ctx == {"dots": 12}


def test_json_file_output(tmp_path: Path) -> None:
    log_file = tmp_path / "qrweave.jsonl"
    setup_logging(level="INFO", log_file=str(log_file))
    audit("export.vector", logger=get_logger("test"), chars=42)
    for handler in logging.getLogger("qrweave").handlers:
        handler.flush()
    entry = json.loads(log_file.read_text().splitlines()[-1])
    assert entry["event"] == "export.vector"
    assert entry["level"] == "AUDIT"
    assert entry["ctx"] == {"chars": 42}


def test_trace_logs_exit_and_errors(caplog) -> None:
    @trace(logger_name="test")
    def ok(x):
        return [x, x]

    @trace(logger_name="test")
    def boom():
        raise ValueError("nope")

    with caplog.at_level(logging.DEBUG, logger="qrweave"):
        assert ok(1) == [1, 1]
        with pytest.raises(ValueError):
            boom()

    events = [getattr(r, "event", None) for r in caplog.records]
    assert "ok.enter" in events
    assert "ok.done" in events
    assert "boom.error" in events
    done = next(r for r in caplog.records if getattr(r, "event", None) == "ok.done")
    assert done.ctx == {"result": "list[2]"}
    assert done.duration_ms >= 0


def test_json_formatter_plain_message() -> None:
    record = logging.LogRecord("qrweave.x", logging.WARNING, "", 0, "hello %s", ("world",), None)
    entry = json.loads(JsonFormatter().format(record))
    assert entry["msg"] == "hello world"
    assert entry["level"] == "WARNING"
