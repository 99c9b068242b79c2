"""Structured Logging — JSON formatter and setup for the user store.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Session fields (user_id, phase, event, operation, hook, error_code) surfaced when present
    - Enum-valued fields are logged by value
    - At most one userstore handler on the root logger, however often setup_logging runs

Design Decisions:
    - setup_logging called by open_user_store or by the embedding application
"""

import logging
import json
from datetime import datetime, timezone
from enum import Enum

HANDLER_NAME = "userstore"
EXTRA_FIELDS = ("user_id", "phase", "event", "operation", "hook", "error_code")


class JSONFormatter(logging.Formatter):
    """Format session logs as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if isinstance(val, Enum):
                val = val.value
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install (or replace) the userstore handler on the root logger."""
    for existing in list(logging.root.handlers):
        if existing.get_name() == HANDLER_NAME:
            logging.root.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
