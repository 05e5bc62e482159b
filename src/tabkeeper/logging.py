"""Structured JSON logging for Tabkeeper.

Provides audit-friendly logging with contextual fields for freeze, warning
and close decisions and for failed host actions. Page URLs are never logged,
only tab ids and titles where the user would see them anyway.

Usage:
    from tabkeeper.logging import setup_logging, get_logger

    setup_logging("INFO")
    log = get_logger("tabkeeper.sweep")
    log.info("tab_frozen", extra={"tab_id": 12, "idle_seconds": 5.2})
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pythonjsonlogger import jsonlogger

from tabkeeper import __version__

# Optional instance identifier added to every record
_instance_id: str | None = None


class TabkeeperJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds service context to all log records."""

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
        log_record["service_version"] = __version__
        if _instance_id:
            log_record["instance_id"] = _instance_id

        if "message" not in log_record and record.getMessage():
            log_record["message"] = record.getMessage()

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format time as ISO 8601."""
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return dt.isoformat()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    instance_id: str | None = None,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5,
) -> None:
    """Configure root logger with JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for rotating file handler
        instance_id: Identifier for this service instance
        max_bytes: Max size per log file for rotation
        backup_count: Number of backup files to keep
    """
    global _instance_id
    if instance_id:
        _instance_id = instance_id

    formatter = TabkeeperJsonFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # JSON to stderr so stdout stays free for CLI output
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
        name: Logger name (e.g., 'tabkeeper.sweep', 'tabkeeper.host')

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def sweep_logger() -> logging.Logger:
    """Get logger for sweep decisions."""
    return get_logger("tabkeeper.sweep")


def host_logger() -> logging.Logger:
    """Get logger for host actions."""
    return get_logger("tabkeeper.host")


def config_logger() -> logging.Logger:
    """Get logger for configuration events."""
    return get_logger("tabkeeper.config")


# --- Audit Event Functions ---


def log_tab_frozen(
    logger: logging.Logger,
    tab_id: int,
    idle_seconds: float,
) -> None:
    """Log a tab discarded by the sweep.

    Args:
        logger: Logger instance
        tab_id: Host tab identifier
        idle_seconds: How long the tab had been idle when it was discarded
    """
    logger.info(
        "Tab frozen",
        extra={
            "event": "tab_frozen",
            "tab_id": tab_id,
            "idle_seconds": round(idle_seconds, 3),
        },
    )


def log_tab_closed(
    logger: logging.Logger,
    tab_id: int,
    frozen_seconds: float,
) -> None:
    """Log a frozen tab closed by the sweep."""
    logger.info(
        "Frozen tab closed",
        extra={
            "event": "tab_closed",
            "tab_id": tab_id,
            "frozen_seconds": round(frozen_seconds, 3),
        },
    )


def log_warning_issued(
    logger: logging.Logger,
    tab_id: int,
    shown_in_tab_id: int | None,
    seconds_left: float,
) -> None:
    """Log a closing-soon warning.

    Args:
        logger: Logger instance
        tab_id: Tab about to be closed
        shown_in_tab_id: Foreground tab hosting the overlay, None if skipped
        seconds_left: Seconds until the close threshold is reached
    """
    extra = {
        "event": "warning_issued",
        "tab_id": tab_id,
        "seconds_left": round(seconds_left, 3),
    }
    if shown_in_tab_id is not None:
        extra["shown_in_tab_id"] = shown_in_tab_id
    logger.info("Close warning issued", extra=extra)


def log_host_action_failed(
    logger: logging.Logger,
    action: str,
    tab_id: int,
    error: str,
) -> None:
    """Log a failed host action.

    Failures are never retried synchronously; the host's removal event or
    the next sweep reconciles the ledger.
    """
    logger.warning(
        "Host action failed",
        extra={
            "event": "host_action_failed",
            "action": action,
            "tab_id": tab_id,
            "error": error,
        },
    )


def log_state_change(
    logger: logging.Logger,
    old_state: str,
    new_state: str,
    trigger: str | None = None,
) -> None:
    """Log a scheduler state transition."""
    extra = {
        "event": "state_change",
        "old_state": old_state,
        "new_state": new_state,
    }
    if trigger:
        extra["trigger"] = trigger
    logger.info("State changed", extra=extra)


def log_config_change(
    logger: logging.Logger,
    key: str,
    old_value: str | None,
    new_value: str,
) -> None:
    """Log a configuration change.

    Args:
        logger: Logger instance
        key: Configuration key that changed
        old_value: Previous value (None if new key)
        new_value: New value
    """
    logger.info(
        "Configuration changed",
        extra={
            "event": "config_change",
            "key": key,
            "old_value": old_value,
            "new_value": new_value,
        },
    )
