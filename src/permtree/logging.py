"""Centralized logging utilities for permtree.

This module provides:
- Logging configuration from PermissionsConfig
- Safe preview utilities for permission snapshots
- Structured logging with group/database context
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import LogLevel, PermissionsConfig

# Record attributes set by logging itself; everything else is an extra.
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName", "group_id", "database_id",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a length-bounded, single-line preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    # Normalize whitespace
    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


class PermissionsFormatter(logging.Formatter):
    """Formatter that includes group/database context, as JSON or plain text."""

    def __init__(
        self,
        json_format: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        group_id = getattr(record, "group_id", None)
        database_id = getattr(record, "database_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if group_id is not None:
            log_data["group_id"] = group_id
        if database_id is not None:
            log_data["database_id"] = database_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_preview(value)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if group_id is not None:
            parts.append(f"group_id={group_id}")
        if database_id is not None:
            parts.append(f"database_id={database_id}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class PermissionsLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds group_id and database_id to log records.

    Usage:
        logger = get_permissions_logger(__name__, group_id=1)
        logger.info("Updated schemas", database_id=2)
    """

    def __init__(
        self,
        logger: logging.Logger,
        group_id: Any = None,
        database_id: Any = None,
    ):
        super().__init__(logger, {})
        self.group_id = group_id
        self.database_id = database_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        group_id = kwargs.pop("group_id", self.group_id)
        database_id = kwargs.pop("database_id", self.database_id)

        extra = dict(kwargs.get("extra") or {})
        if group_id is not None:
            extra["group_id"] = group_id
        if database_id is not None:
            extra["database_id"] = database_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[PermissionsConfig] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure root logging for an application embedding permtree.

    Args:
        config: PermissionsConfig instance (if None, loads from environment)
        json_format: Override for config.log_json
    """
    if config is None:
        from .config import load_config_from_env
        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)
    use_json = config.log_json if json_format is None else json_format

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(PermissionsFormatter(json_format=use_json))
    root_logger.addHandler(console_handler)

    logging.getLogger("permtree").setLevel(log_level)


def get_permissions_logger(
    name: str,
    group_id: Any = None,
    database_id: Any = None,
) -> PermissionsLoggerAdapter:
    """Get a logger adapter carrying group/database context.

    Example:
        logger = get_permissions_logger(__name__)
        logger.info("Revoked table access", group_id=3, database_id=1)
    """
    logger = logging.getLogger(name)
    return PermissionsLoggerAdapter(logger, group_id=group_id, database_id=database_id)


__all__ = [
    "safe_preview",
    "PermissionsFormatter",
    "PermissionsLoggerAdapter",
    "setup_logging",
    "get_permissions_logger",
]
