"""Tests for configure_logging() and the JSON line formatter."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from quality_tracker.config import LoggingConfig
from quality_tracker.utils.logging import _JsonFormatter, configure_logging


@pytest.fixture(autouse=True)
def reset_root_logger():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def test_level_and_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "app.log"
    configure_logging(LoggingConfig(level="warning", log_file=str(log_file)))

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert any(isinstance(h, logging.FileHandler) for h in root.handlers)

    logging.getLogger("quality_tracker.test").warning("store unavailable")
    for h in root.handlers:
        h.flush()
    assert "store unavailable" in log_file.read_text(encoding="utf-8")


def test_no_file_handler_when_log_file_empty() -> None:
    configure_logging(LoggingConfig(log_file=""))
    assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


def test_json_formatter_carries_write_context() -> None:
    record = logging.LogRecord(
        "quality_tracker.views", logging.ERROR, __file__, 1, "write failed: %s", ("x",), None
    )
    record.operation = "upsert_planning"
    record.key = "UTI Geral-2024-1"
    record.unrelated = "dropped"
    payload = json.loads(_JsonFormatter().format(record))

    assert payload["level"] == "ERROR"
    assert payload["logger"] == "quality_tracker.views"
    assert payload["msg"] == "write failed: x"
    assert payload["operation"] == "upsert_planning"
    assert payload["key"] == "UTI Geral-2024-1"
    assert "unrelated" not in payload
