"""Structured logging configuration for planflow.

TAG: [CORE] [LOGGING]

This module provides the logging setup shared by the registries, the plan
validator and the plan executor:
- JSON structured logging for machine parsing
- Colored console output for development
- Optional rotating file handler (10MB max, 5 backups)
- Sensitive data filtering (API keys, tokens, secrets in worker configs)
- Per-plan structured context (plan_id, correlation_id) that stays correct
  when several plans run concurrently on one event loop
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, ClassVar

from planflow.core.config import settings

_log_context: ContextVar[dict[str, Any] | None] = ContextVar("planflow_log_context", default=None)


class SensitiveDataFilter(logging.Filter):
    """Filter to prevent sensitive data from appearing in logs.

    Worker LLM configs and tool handlers routinely carry provider keys;
    this filter redacts them before any handler writes the record.

    Examples:
        >>> logger = logging.getLogger("planflow")
        >>> logger.addFilter(SensitiveDataFilter())
        >>> logger.info("api_key=sk-123")
        # Logs: "api_key: [REDACTED]"
    """

    SENSITIVE_PATTERNS: ClassVar[list[str]] = [
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "authorization",
        "bearer",
        "credential",
    ]

    _REGEXES: ClassVar[list[tuple[str, re.Pattern[str]]]] = [
        (pattern, re.compile(rf"{pattern}[:=]\s*[\"']?[^\s\"',]+", re.IGNORECASE))
        for pattern in SENSITIVE_PATTERNS
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact sensitive data from the record; always lets it through."""
        record.msg = self._redact_sensitive_data(str(record.msg))

        if record.args:
            record.args = tuple(
                self._redact_sensitive_data(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True

    def _redact_sensitive_data(self, text: str) -> str:
        for pattern, regex in self._REGEXES:
            text = regex.sub(f"{pattern}: [REDACTED]", text)
        return text


class ContextFilter(logging.Filter):
    """Attach the active LogContext values to every record as ``record.context``.

    Context passed explicitly through ``extra={"context": {...}}`` wins over
    the ambient values on key collisions.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ambient = _log_context.get()
        if ambient:
            explicit = getattr(record, "context", None) or {}
            record.context = {**ambient, **explicit}
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Format:
        {
            "timestamp": "2025-01-12T10:30:45.123Z",
            "level": "INFO",
            "logger": "planflow.services.workflow.executor",
            "message": "Stage 'route' completed",
            "service": "planflow",
            "context": {"plan_id": "plan_1", "stage_id": "route"}
        }
    """

    def __init__(
        self,
        service_name: str = "planflow",
        service_version: str = "0.1.0",
    ) -> None:
        super().__init__()
        self.service_name = service_name
        self.service_version = service_version

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "version": self.service_version,
        }

        if getattr(record, "context", None):
            log_entry["context"] = record.context

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if record.levelno >= logging.ERROR:
            log_entry["source"] = {
                "function": record.funcName,
                "line": record.lineno,
                "file": record.pathname,
            }

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ColoredConsoleFormatter(logging.Formatter):
    """Colored console formatter for development environments."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[41m",  # Red background
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors and a trailing context dump."""
        log_color = self.COLORS.get(record.levelname, self.RESET)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{log_color}{record.levelname}{self.RESET}"

        context = getattr(record, "context", None)
        if context:
            colored.msg = f"{record.msg} | Context: {json.dumps(context, default=str)}"

        return super().format(colored)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    service_name: str | None = None,
    enable_json: bool | None = None,
    enable_console: bool = True,
) -> logging.Logger:
    """Configure the ``planflow`` logger hierarchy.

    Handlers are attached to the ``planflow`` package logger rather than the
    root logger so that embedding hosts keep control of their own logging.

    Args:
        log_level: Logging level name. Defaults to settings.LOG_LEVEL.
        log_file: Path to a rotating log file. Defaults to settings.LOG_FILE;
            no file handler is created when both are unset.
        service_name: Service name stamped on JSON records.
        enable_json: Use JSON for the file handler. Defaults to
            settings.LOG_JSON_FORMAT.
        enable_console: Attach a stdout handler.

    Returns:
        The configured ``planflow`` logger.

    Examples:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Runtime ready", extra={"context": {"workers": 4}})
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL
    if log_file is None:
        log_file = settings.LOG_FILE
    if service_name is None:
        service_name = settings.PROJECT_NAME
    if enable_json is None:
        enable_json = settings.LOG_JSON_FORMAT

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger("planflow")
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    filters: list[logging.Filter] = [ContextFilter()]
    if settings.LOG_SENSITIVE_FILTER:
        filters.append(SensitiveDataFilter())

    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=str(log_file_path),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        if enable_json:
            file_handler.setFormatter(
                JSONFormatter(service_name=service_name, service_version=settings.VERSION)
            )
        else:
            file_handler.setFormatter(
                logging.Formatter(settings.LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
        for log_filter in filters:
            file_handler.addFilter(log_filter)
        logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        if settings.DEBUG:
            console_handler.setFormatter(ColoredConsoleFormatter())
        else:
            console_handler.setFormatter(
                JSONFormatter(service_name=service_name, service_version=settings.VERSION)
            )
        for log_filter in filters:
            console_handler.addFilter(log_filter)
        logger.addHandler(console_handler)

    logger.debug(
        f"Logging initialized - Level: {log_level}, File: {log_file or '-'}",
        extra={"context": {"log_level": log_level, "log_file": log_file}},
    )

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Examples:
        >>> from planflow.core.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Registering worker")
    """
    return logging.getLogger(name)


class LogContext:
    """Scope structured context onto every record logged inside a block.

    Backed by a ContextVar, so each asyncio task (and therefore each plan
    run) sees only its own context. Nested contexts merge.

    Examples:
        >>> logger = get_logger(__name__)
        >>> with LogContext(plan_id="plan_1", correlation_id="req-9"):
        ...     logger.info("Executing plan")
    """

    def __init__(self, **context: Any) -> None:
        self.context = context
        self._token: Token[dict[str, Any] | None] | None = None

    def __enter__(self) -> LogContext:
        current = _log_context.get() or {}
        self._token = _log_context.set({**current, **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    @staticmethod
    def current() -> dict[str, Any]:
        """Return a copy of the active context."""
        return dict(_log_context.get() or {})


__all__ = [
    "ColoredConsoleFormatter",
    "ContextFilter",
    "JSONFormatter",
    "LogContext",
    "SensitiveDataFilter",
    "get_logger",
    "setup_logging",
]
