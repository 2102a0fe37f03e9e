"""Structured logging utilities.

This module provides JSON logging (via python-json-logger) for server and
batch runs, and a readable text format for local use. Both formats redact
values that look like credentials, which matters here because the docs API
identify key travels in query strings.

Example:
    >>> from tokdocs.shared.utils.logger import setup_logger
    >>>
    >>> logger = setup_logger("tokdocs.cli")
    >>> logger.info("Downloaded %d documents", 42)
"""

from datetime import datetime, timezone
import logging
import os
import re
from typing import Any, ClassVar

from pythonjsonlogger.json import JsonFormatter

# Keywords that indicate sensitive information
SENSITIVE_KEYWORDS: list[str] = [
    "password",
    "secret",
    "token",
    "apikey",
    "api_key",
    "identify_key",
    "authorization",
    "credential",
    "bearer",
]


def _compile_redaction_patterns() -> list[tuple[re.Pattern[str], str]]:
    """Build the regex/replacement pairs used by both formatters."""
    keywords_pattern = "|".join(SENSITIVE_KEYWORDS)
    return [
        (
            re.compile(rf"\b({keywords_pattern})(\s+is\s+)(\S+)", re.IGNORECASE),
            r"\1\2[REDACTED]",
        ),
        (
            re.compile(rf"\b({keywords_pattern})(\s*:\s+)(\S+)", re.IGNORECASE),
            r"\1\2[REDACTED]",
        ),
        (
            re.compile(rf"\b({keywords_pattern})(\s*=\s*)([^\s&]+)", re.IGNORECASE),
            r"\1\2[REDACTED]",
        ),
    ]


def redact(message: str) -> str:
    """Redact sensitive key/value pairs from a message string.

    Args:
        message: Raw log message

    Returns:
        Message with credential values replaced by ``[REDACTED]``
    """
    for pattern, replacement in StructuredFormatter._redaction_patterns:
        message = pattern.sub(replacement, message)
    return message


class StructuredFormatter(JsonFormatter):
    """JSON formatter producing one object per log record.

    Example output:
        {
            "timestamp": "2026-01-30T10:15:30.123456+00:00",
            "severity": "INFO",
            "message": "Extracted 312 metrics",
            "logger": "tokdocs.extraction.walker",
            "filename": "walker.py",
            "lineno": 88,
            "funcName": "extract_metrics",
            "document": "Metrics"
        }
    """

    _redaction_patterns: ClassVar[list[tuple[re.Pattern[str], str]]] = _compile_redaction_patterns()

    # Fields copied from ``extra={...}`` when present
    CONTEXT_FIELDS: ClassVar[list[str]] = [
        "document",
        "doc_id",
        "category",
        "file_path",
        "collection",
        "operation",
        "metrics_count",
        "rows_count",
        "files_processed",
        "chunks_created",
        "duration_ms",
        "error_type",
    ]

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Populate the JSON record with standard, source and context fields."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["severity"] = record.levelname
        log_record["logger"] = record.name

        if "message" in log_record:
            log_record["message"] = redact(str(log_record["message"]))

        log_record["filename"] = record.filename
        log_record["lineno"] = record.lineno
        log_record["funcName"] = record.funcName

        for field in self.CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = redact(value) if isinstance(value, str) else value

        # Remove None values to keep logs clean
        for key in [k for k, v in log_record.items() if v is None]:
            del log_record[key]


class SimpleFormatter(logging.Formatter):
    """Human-readable text formatter with sensitive data redaction."""

    def __init__(self, fmt: str | None = None, **kwargs: Any) -> None:
        """Initialize with default format if not provided."""
        if fmt is None:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        super().__init__(fmt, **kwargs)

    def format(self, record: logging.LogRecord) -> str:
        """Format the record with sensitive data redaction."""
        return redact(super().format(record))


def _json_output_requested() -> bool:
    return os.getenv("LOG_FORMAT", "").lower() == "json"


# Level chosen by set_log_level; takes precedence over LOG_LEVEL when set
_configured_level: int | None = None


def _level_from_name(name: str | None) -> int:
    level = logging.getLevelName(str(name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def set_log_level(level: int | str | None) -> int:
    """Apply a level to every ``tokdocs`` logger, existing and future.

    Unknown level names fall back to INFO.

    Returns:
        The numeric level applied
    """
    global _configured_level  # noqa: PLW0603
    _configured_level = level if isinstance(level, int) else _level_from_name(level)
    for name, existing in list(logging.root.manager.loggerDict.items()):
        if (name == "tokdocs" or name.startswith("tokdocs.")) and isinstance(existing, logging.Logger):
            if existing.handlers:
                existing.setLevel(_configured_level)
    return _configured_level


def setup_logger(
    name: str,
    level: int | None = None,
    json_output: bool | None = None,
) -> logging.Logger:
    """Create and configure a named logger.

    Args:
        name: Name of the logger (typically __name__)
        level: Logging level; defaults to the level given to set_log_level,
            then the ``LOG_LEVEL`` env var, then INFO
        json_output: Force JSON (True) or text (False). If None, JSON is used
            when ``LOG_FORMAT=json``.

    Returns:
        Configured logger instance
    """
    if level is None:
        level = _configured_level if _configured_level is not None else _level_from_name(os.getenv("LOG_LEVEL"))

    logger = logging.getLogger(name)
    if logger.handlers:
        # Already configured, just update level if different
        if logger.level != level:
            logger.setLevel(level)
        return logger

    if json_output is None:
        json_output = _json_output_requested()

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_output else SimpleFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def configure_root_logger(level: int = logging.INFO, json_output: bool | None = None) -> None:
    """Configure the root logger for the application.

    Call this once at process start (server entry points).

    Args:
        level: Root logging level
        json_output: Whether to use JSON output (auto-detects if None)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_output is None:
        json_output = _json_output_requested()

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_output else SimpleFormatter())
    root_logger.addHandler(handler)
