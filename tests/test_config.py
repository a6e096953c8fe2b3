from __future__ import annotations

import json
import logging
import sys

import pytest

from liftlog_engine.config import Config
from liftlog_engine.logging import JSONFormatter, TextFormatter, resolve_level, setup_logging


def test_config_from_env_requires_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError, match="DATABASE_URL must be set"):
        Config.from_env()


def test_config_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/liftlog")
    monkeypatch.delenv("LIFTLOG_LOG_FORMAT", raising=False)
    monkeypatch.delenv("LIFTLOG_LOG_LEVEL", raising=False)
    monkeypatch.delenv("LIFTLOG_COLLECTIONS_TABLE", raising=False)

    cfg = Config.from_env()
    assert cfg.database_url == "postgresql://app@db/liftlog"
    assert cfg.log_format == "json"
    assert cfg.log_level == "INFO"
    assert cfg.collections_table == "collections"


def test_config_from_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/liftlog")
    monkeypatch.setenv("LIFTLOG_LOG_FORMAT", "text")
    monkeypatch.setenv("LIFTLOG_COLLECTIONS_TABLE", "liftlog_docs")

    cfg = Config.from_env()
    assert cfg.log_format == "text"
    assert cfg.collections_table == "liftlog_docs"


def _record(**extras) -> logging.LogRecord:
    record = logging.LogRecord("liftlog_engine.ledger", logging.INFO, __file__, 1, "saved %s", ("w1",), None)
    for key, value in extras.items():
        setattr(record, key, value)
    return record


def test_json_formatter_lifts_liftlog_context() -> None:
    entry = json.loads(JSONFormatter().format(_record(liftlog_workout_id="w1", unrelated="dropped")))
    assert entry["message"] == "saved w1"
    assert entry["level"] == "INFO"
    assert entry["context"] == {"workout_id": "w1"}
    assert "unrelated" not in entry


def test_json_formatter_without_context() -> None:
    entry = json.loads(JSONFormatter().format(_record()))
    assert "context" not in entry
    assert "error" not in entry


def test_json_formatter_includes_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    entry = json.loads(JSONFormatter().format(record))
    assert entry["error"] == "ValueError"
    assert "boom" in entry["traceback"]


def test_text_formatter_appends_context() -> None:
    line = TextFormatter().format(_record(liftlog_exercise_id=3, liftlog_collection="workouts"))
    assert line.endswith("saved w1 collection=workouts exercise_id=3")


def test_resolve_level() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.WARNING) == logging.WARNING
    assert resolve_level("nonsense") == logging.INFO


def test_setup_logging_replaces_handlers_and_quiets_psycopg() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("text", "DEBUG")
        setup_logging("json", "DEBUG")
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("psycopg").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
