"""
Process logging for the repair client.

Every module logs through ``get_logger(__name__)``. Run and chunk events
go through ``log_event`` so they share one line format, and in JSON mode
carry their event type, scope and fields as separate keys.

Log output goes to stderr; stdout is reserved for the CLI's JSON report.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

_loggers_configured: bool = False

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with structured event fields lifted out."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, _DATE_FORMAT),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        event = getattr(record, "event", None)
        if event:
            data.update(event)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def configure_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    json_format: bool = False,
    force: bool = False,
) -> None:
    """Configure the root logger for the whole application.

    Args:
        level: Base logging level (e.g., logging.INFO, logging.WARNING).
        verbose: If True, sets level to DEBUG.
        json_format: If True, emits one JSON object per line.
        force: If True, replaces handlers already installed on the root logger.
    """
    global _loggers_configured

    if verbose:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=force)

    # Retry and pool chatter from the HTTP stack
    logging.getLogger("urllib3").setLevel(logging.ERROR)
    logging.getLogger("requests").setLevel(logging.WARNING)

    _loggers_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger, configuring defaults on first use."""
    if not _loggers_configured:
        configure_logging()

    return logging.getLogger(name)


def log_event(
    logger: logging.Logger,
    level: int,
    event_type: str,
    scope: str,
    message: str,
    **kwargs: Any,
) -> None:
    """Log a run or chunk event.

    Text output reads ``EVENT - scope: message [k=v ...]``.

    Args:
        logger: Logger instance to use.
        level: Logging level.
        event_type: One of the EventType constants.
        scope: What the event concerns (issue type, function name).
        message: Human-readable message.
        **kwargs: Additional fields, e.g. ``iteration=3``.
    """
    full_message = f"{event_type} - {scope}: {message}"
    if kwargs:
        fields = " ".join(f"{k}={v}" for k, v in kwargs.items())
        full_message = f"{full_message} [{fields}]"
    logger.log(
        level,
        full_message,
        extra={"event": {"event_type": event_type, "scope": scope, **kwargs}},
    )


class EventType:
    """Event types used with log_event."""

    # Repair run events
    REPAIR_START = "REPAIR_START"
    REPAIR_COMPLETE = "REPAIR_COMPLETE"
    REPAIR_CAPPED = "REPAIR_CAPPED"
    REPAIR_FAILED = "REPAIR_FAILED"

    # Chunk events
    CHUNK_COMPLETE = "CHUNK_COMPLETE"
    CHUNK_SKIPPED = "CHUNK_SKIPPED"
    CHUNK_FAILED = "CHUNK_FAILED"
    CHUNK_PROGRESS = "CHUNK_PROGRESS"

    # Backend events
    HEALTH_CHECK = "HEALTH_CHECK"
    CIRCUIT_BREAKER = "CIRCUIT_BREAKER"
