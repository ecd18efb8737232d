"""Structured logging configuration (JSON or text format).

Gateway attempts, teardown steps and slot decisions are logged with ``extra``
fields so a JSON log reads as a timeline of one orchestration run.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from .config import LoggingConfig

TIMELINE_FIELDS = (
    "operation", "activity", "attempt", "resource_group", "resource",
    "resource_type", "slot", "version_id", "elapsed_seconds",
)

_SDK_LOGGERS = ("azure", "urllib3", "msal", "azure.identity", "azure.core")


class JSONFormatter(logging.Formatter):
    """Emits log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, getattr(record, key)) for key in TIMELINE_FIELDS if getattr(record, key, None) is not None
        )

        if record.exc_info and record.exc_info[1]:
            payload["error_type"] = type(record.exc_info[1]).__name__
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for interactive runs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(config: LoggingConfig, verbose: bool = False) -> logging.Handler:
    """Install a single stderr handler on the root logger and return it.

    ``verbose`` forces DEBUG regardless of the configured level.
    """
    root = logging.getLogger()
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.INFO)
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if config.format == "json" else TextFormatter())
    root.addHandler(handler)

    # SDK request logging drowns out the timeline
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
