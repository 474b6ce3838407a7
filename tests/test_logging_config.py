"""Tests for the logging setup."""

import json
import logging

import pytest

from logging_config import (HumanFormatter, JSONFormatter, RequestContextFilter,
                            setup_logging)


def _record(**extra):
    record = logging.LogRecord("portal.tabs", logging.INFO, __file__, 10,
                               "Tab %s", ("campaign",), None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_json_formatter_includes_extras():
    line = JSONFormatter().format(_record(tab="campaign", frame="tiktok", unrelated="x"))
    entry = json.loads(line)
    assert entry["msg"] == "Tab campaign"
    assert entry["logger"] == "portal.tabs"
    assert entry["tab"] == "campaign"
    assert entry["frame"] == "tiktok"
    assert "unrelated" not in entry


def test_human_formatter():
    line = HumanFormatter().format(_record())
    assert "[I] portal.tabs: Tab campaign" in line


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_rotating_file(tmp_path, restore_root):
    setup_logging(level="DEBUG", json_logs=True, log_dir=str(tmp_path))
    logging.getLogger("portal.test").info("hello", extra={"user": "DEMO"})
    for h in logging.getLogger().handlers:
        h.flush()
    lines = (tmp_path / "portal.log").read_text().splitlines()
    entries = [json.loads(l) for l in lines]
    assert any(e["msg"] == "hello" and e["user"] == "DEMO" for e in entries)
    assert logging.getLogger("werkzeug").level == logging.WARNING


def test_request_filter_stamps_session_user(app):
    from flask import session
    record = _record()
    with app.test_request_context("/api/tabs"):
        session["user"] = {"displayName": "DEMO"}
        assert RequestContextFilter().filter(record)
    assert record.user == "DEMO"
    assert "user=DEMO" in HumanFormatter().format(record)


def test_request_filter_outside_request():
    record = _record()
    assert RequestContextFilter().filter(record)
    assert not hasattr(record, "user")
