"""
Structured Logging — Detector and API Events

Every tweetdetect logger lives under the "tweetdetect" namespace.
setup_logging() attaches one stdout handler to that namespace, emitting
either JSON lines (default) or plain text for local runs.

JSON entries carry the event time, level, logger and message, plus the
detection context passed via `extra` (confidence, reasons_count,
patterns_state, duration_ms, ...). Context keys outside EXTRA_FIELDS
are not emitted, so usernames and post text only appear where a caller
passes them deliberately.

Environment:
    TWEETDETECT_LOG_LEVEL   DEBUG / INFO / WARNING ... (default INFO)
    TWEETDETECT_LOG_FORMAT  json | text (default json)

Usage:
    from tweetdetect.logging import get_logger
    logger = get_logger("detector")
    logger.debug("Post analyzed", extra={"confidence": 0.72, "is_ai": True})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

NAMESPACE = "tweetdetect"

LOG_LEVEL = os.getenv("TWEETDETECT_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("TWEETDETECT_LOG_FORMAT", "json")

EXTRA_FIELDS = (
    # Analysis
    "confidence", "is_ai", "reasons_count", "username",
    # Pattern store
    "source", "patterns_state", "skipped_patterns", "error", "error_type",
    # HTTP
    "duration_ms", "status_code", "method", "path", "items",
)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the time the event was logged."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line format for local runs and the calibration CLI."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """
    Configure the tweetdetect namespace. Safe to call more than once.

    Args:
        level: Overrides TWEETDETECT_LOG_LEVEL.
        fmt: "json" or "text"; overrides TWEETDETECT_LOG_FORMAT.
    """
    logger = logging.getLogger(NAMESPACE)
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if (fmt or LOG_FORMAT) == "json" else TextFormatter())
    logger.addHandler(handler)

    # Remote pattern fetches log every request at INFO
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger, e.g. get_logger("detector") -> "tweetdetect.detector"."""
    return logging.getLogger(f"{NAMESPACE}.{name}")
