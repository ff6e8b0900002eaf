# ==============================================================================
# LOGGER - Friendly and JSON Logging Configuration
# ==============================================================================
# Configures the "minimal" logger tree used by the server and resources
# ==============================================================================

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

ROOT_LOGGER = "minimal"

FRIENDLY_FORMAT = "⇨ %(asctime)s (%(filename)s:%(lineno)d) %(levelname)s  %(message)s"
FRIENDLY_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "file": record.filename,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        # Structured fields attached through ``extra={"fields": {...}}``
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update(fields)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


def setup_logging(
    friendly: bool = True,
    level: str = "INFO",
    stream: Optional[object] = None,
) -> logging.Logger:
    """
    Setup and configure the package logger.

    Args:
        friendly: Readable lines when True, JSON records otherwise
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream (defaults to stdout)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    if friendly:
        formatter: logging.Formatter = logging.Formatter(
            FRIENDLY_FORMAT,
            datefmt=FRIENDLY_DATE_FORMAT,
        )
    else:
        formatter = JSONFormatter()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger by name."""
    return logging.getLogger(name)
