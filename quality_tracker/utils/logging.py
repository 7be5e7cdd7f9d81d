"""
Root logger setup for the CLI and the dashboard.

Library modules only call ``logging.getLogger(__name__)``. The entry points
call ``configure_logging(config.logging)`` once. Handlers go to stderr so
panels and reports printed on stdout stay clean, plus a log file when
``[logging] log_file`` is set.

With ``json_format = true`` each line is one JSON object. Background write
failures carry their ``operation`` and record ``key``::

    {"ts": "2024-03-01T09:00:00Z", "level": "ERROR",
     "logger": "quality_tracker.views.state", "msg": "...",
     "operation": "upsert_goal", "key": "UTI Geral-2024-queda_geral"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quality_tracker.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Context attached through ``extra=`` that the JSON lines carry over.
CONTEXT_FIELDS = ("operation", "key")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(TS_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                payload[field] = getattr(record, field)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Replace the root logger's handlers according to ``config``."""
    level = getattr(logging, config.level.upper(), logging.INFO)
    if config.json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=TS_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
