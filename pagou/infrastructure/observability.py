"""Structured Logging — JSON formatter and opt-in setup for client logs.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Call-correlation fields (request_id, attempt, status_code, ...) nested under "call" when present
    - Credentials are never among the surfaced fields
    - setup_logging only touches the "pagou" logger, never the root logger

Design Decisions:
    - JSONFormatter on stdlib logging: zero extra dependencies
    - timestamp is record.created (time of the log call), not time of formatting
    - Opt-in via Settings.configure_logging; a library leaves handler setup to the application
"""

import json
import logging
from datetime import datetime, timezone

PACKAGE_LOGGER = "pagou"

CALL_FIELDS = (
    "request_id", "attempt", "method", "path", "status_code",
    "delay_ms", "elapsed_ms", "error_kind", "stop_reason", "page",
)


class JSONFormatter(logging.Formatter):
    """One JSON object per record; call-correlation extras nested under "call"."""

    def __init__(self, fields: tuple[str, ...] = CALL_FIELDS):
        super().__init__()
        self.fields = fields

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        call = {
            key: getattr(record, key) for key in self.fields
            if getattr(record, key, None) is not None
        }
        if call:
            entry["call"] = call
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Logger:
    """Attach one handler to the package logger. Idempotent."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_pagou_handler", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler._pagou_handler = True  # type: ignore[attr-defined]
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
