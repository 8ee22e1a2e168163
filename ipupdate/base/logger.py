"""
Structured logging for route53-ip-update.

Provides a pre-configured logger that emits JSON-structured log records
with update context (zone, hostname, change id, operation) for easy
filtering in log aggregation tools.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

_CONTEXT_KEYS = ("request_id", "zone_id", "hostname", "change_id", "operation")

_VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
}


class StructuredFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Attach any extras injected via IPUpdateLogger.log_operation
        for key in _CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry)


class IPUpdateLogger:
    """Convenience wrapper around :mod:`logging` for zone update operations."""

    def __init__(self, name: str = "ipupdate") -> None:
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)

    def log_operation(
        self,
        level: int,
        message: str,
        *,
        zone_id: str | None = None,
        hostname: str | None = None,
        change_id: str | None = None,
        operation: str | None = None,
        request_id: str | None = None,
        exc_info: bool = False,
    ) -> None:
        """Emit a structured log record with update context.

        Args:
            level: Logging level (e.g. logging.INFO).
            message: Human-readable message.
            zone_id: Hosted zone the record relates to.
            hostname: Managed hostname the record relates to.
            change_id: Provider change identifier.
            operation: Operation name (e.g. 'submit_change_batch').
            request_id: Optional correlation ID; auto-generated if omitted.
            exc_info: Whether to include exception info.
        """
        extra = {
            "zone_id": zone_id,
            "hostname": hostname,
            "change_id": change_id,
            "operation": operation,
            "request_id": request_id or uuid.uuid4().hex[:12],
        }
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.DEBUG, message, **kwargs)


def configure_logging(verbosity: int = 0) -> None:
    """Set the updater's log level from a ``-v`` count.

    0 is WARNING, 1 is INFO, 2 or more is DEBUG.
    """
    log.logger.setLevel(_VERBOSITY_LEVELS.get(verbosity, logging.DEBUG))


# Module-level singleton
log = IPUpdateLogger()
