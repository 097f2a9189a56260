"""Structured JSON logging for the offline sync engine.

Provides audit-friendly logging with contextual fields for queue mutations,
sync attempts and network transitions. Request payloads are never logged;
only url, method and a shortened fingerprint are.

Usage:
    from offline_sync.logging import setup_logging, get_logger

    setup_logging("INFO")
    log = get_logger("offline_sync.queue")
    log.info("request_queued", extra={"url": "/posts", "method": "POST"})
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

from offline_sync import __version__

# Fingerprints are base64 of the whole request; keep log lines short
FINGERPRINT_LOG_LENGTH = 16


class OfflineSyncJsonFormatter(JsonFormatter):
    """JSON formatter that adds engine context to all log records."""

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        """Add standard fields to every log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["version"] = __version__

        if "message" not in log_record and record.getMessage():
            log_record["message"] = record.getMessage()

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format time as ISO 8601."""
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return dt.isoformat()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5,
) -> None:
    """Configure root logger with JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for rotating file handler
        max_bytes: Max size per log file for rotation
        backup_count: Number of backup files to keep
    """
    formatter = OfflineSyncJsonFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get a named logger.

    Args:
        name: Logger name (e.g., 'offline_sync.queue', 'offline_sync.sync')

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def queue_logger() -> logging.Logger:
    """Get logger for queue mutations and persistence."""
    return get_logger("offline_sync.queue")


def sync_logger() -> logging.Logger:
    """Get logger for drain/replay events."""
    return get_logger("offline_sync.sync")


def network_logger() -> logging.Logger:
    """Get logger for connectivity events."""
    return get_logger("offline_sync.network")


def short_fingerprint(fingerprint: str) -> str:
    """Truncate a fingerprint for log output."""
    return fingerprint[:FINGERPRINT_LOG_LENGTH]


# --- Audit Event Functions ---


def log_request_queued(
    logger: logging.Logger,
    url: str,
    method: str,
    fingerprint: str,
    queue_size: int,
) -> None:
    """Log an accepted enqueue.

    Args:
        logger: Logger instance
        url: Target endpoint
        method: HTTP method
        fingerprint: Request fingerprint (truncated in output)
        queue_size: Queue length after the append
    """
    logger.info(
        "Request queued",
        extra={
            "event": "request_queued",
            "url": url,
            "method": method,
            "fingerprint": short_fingerprint(fingerprint),
            "queue_size": queue_size,
        },
    )


def log_duplicate_rejected(
    logger: logging.Logger,
    url: str,
    method: str,
    fingerprint: str,
) -> None:
    """Log an enqueue rejected as an offline duplicate."""
    logger.info(
        "Duplicate request ignored while offline",
        extra={
            "event": "duplicate_rejected",
            "url": url,
            "method": method,
            "fingerprint": short_fingerprint(fingerprint),
        },
    )


def log_sync_success(
    logger: logging.Logger,
    url: str,
    method: str,
    fingerprint: str,
    status_code: int | None,
) -> None:
    """Log a queued request delivered to the server."""
    logger.info(
        "Request synced",
        extra={
            "event": "sync_success",
            "url": url,
            "method": method,
            "fingerprint": short_fingerprint(fingerprint),
            "status_code": status_code,
        },
    )


def log_sync_failed(
    logger: logging.Logger,
    url: str,
    method: str,
    fingerprint: str,
    error: str,
    remaining: int,
) -> None:
    """Log a failed delivery that aborted the drain.

    Args:
        logger: Logger instance
        url: Target endpoint
        method: HTTP method
        fingerprint: Request fingerprint (truncated in output)
        error: Error message (sanitized - no payload data)
        remaining: Entries left in the queue
    """
    logger.warning(
        "Sync failed",
        extra={
            "event": "sync_failed",
            "url": url,
            "method": method,
            "fingerprint": short_fingerprint(fingerprint),
            "error": error,
            "remaining": remaining,
        },
    )


def log_state_change(
    logger: logging.Logger,
    old_state: str,
    new_state: str,
    trigger: str | None = None,
) -> None:
    """Log a state transition.

    Args:
        logger: Logger instance
        old_state: Previous state
        new_state: New state
        trigger: What triggered the change
    """
    extra = {
        "event": "state_change",
        "old_state": old_state,
        "new_state": new_state,
    }
    if trigger:
        extra["trigger"] = trigger
    logger.info("State changed", extra=extra)


def log_network_change(logger: logging.Logger, online: bool) -> None:
    """Log an online/offline transition."""
    logger.info(
        "Network: %s",
        "ONLINE" if online else "OFFLINE",
        extra={"event": "network_change", "online": online},
    )


def log_restore_failed(logger: logging.Logger, key: str, error: str) -> None:
    """Log persisted queue data that could not be restored."""
    logger.error(
        "Failed to restore queue",
        extra={"event": "restore_failed", "key": key, "error": error},
    )
