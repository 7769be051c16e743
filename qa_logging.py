"""JSON logging helpers shared by pytest hooks, fixtures and page objects.

The formatter preserves standard log fields and merges custom `extra` values so
page-object events (element checks, hidden regions, page loads) can be consumed
by CI/log aggregation tools next to the test lifecycle events.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_STANDARD_FIELDS = set(logging.makeLogRecord({}).__dict__.keys())


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    normalized = level.strip().upper()
    if normalized.isdigit():
        return int(normalized)
    resolved = logging.getLevelName(normalized)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(level: int | str | None = None) -> None:
    """Configure root logging for one-line JSON output.

    `level` accepts a level number or name (including TRACE); LOG_LEVEL is used
    when it is omitted.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(_resolve_level(level))


class JsonFormatter(logging.Formatter):
    """Serialize log records as compact JSON with support for `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_FIELDS and not key.startswith("_")
        }
        if extras:
            data.update(extras)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)
