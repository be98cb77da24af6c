"""Structured logging for typederive.

Consistent, structured logging across the registry, composer and engine, with
human-readable and JSON output formats. Loggers live under the
``typederive.`` namespace.
"""

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LogFormat(Enum):
    """Log output format."""

    TEXT = "text"
    JSON = "json"


@dataclass(frozen=True)
class LogContext:
    """Context information for structured logging."""

    component: str = ""
    operation: str = ""
    declaration: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def with_extra(self, **kwargs: Any) -> "LogContext":
        """Create new context with additional fields."""
        return LogContext(
            component=self.component,
            operation=self.operation,
            declaration=self.declaration,
            extra={**self.extra, **kwargs},
        )


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        ctx = getattr(record, "context", None)
        if isinstance(ctx, LogContext):
            if ctx.component:
                log_data["component"] = ctx.component
            if ctx.operation:
                log_data["operation"] = ctx.operation
            if ctx.declaration:
                log_data["declaration"] = ctx.declaration
            log_data.update(ctx.extra)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with context."""

    def format(self, record: logging.LogRecord) -> str:
        prefix_parts = []

        ctx = getattr(record, "context", None)
        if isinstance(ctx, LogContext):
            if ctx.component:
                prefix_parts.append(f"[{ctx.component}]")
            if ctx.operation:
                prefix_parts.append(f"({ctx.operation})")
            if ctx.declaration:
                prefix_parts.append(f"<{ctx.declaration}>")

        prefix = " ".join(prefix_parts)
        if prefix:
            prefix = f"{prefix} "

        base = super().format(record)

        extra_str = ""
        if isinstance(ctx, LogContext) and ctx.extra:
            extra_str = " " + " ".join(f"{k}={v}" for k, v in ctx.extra.items())

        return f"{prefix}{base}{extra_str}"


def _make_handler(level: int, log_format: LogFormat) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if log_format == LogFormat.JSON:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter("%(asctime)s %(levelname)s %(message)s"))
    return handler


class DeriveLogger:
    """Structured logger for typederive components.

    Handlers are configured once on the ``typederive`` root logger by
    ``configure_logging``; component loggers only carry context.
    """

    def __init__(self, name: str, context: LogContext | None = None):
        self._logger = logging.getLogger(f"typederive.{name}")
        self._context = context or LogContext(component=name)

    @property
    def name(self) -> str:
        return self._logger.name

    def with_context(self, **kwargs: Any) -> "DeriveLogger":
        """Create a new logger with additional context fields."""
        return DeriveLogger._bound(self._logger, self._context.with_extra(**kwargs))

    def with_operation(self, operation: str) -> "DeriveLogger":
        """Create a new logger for a specific operation."""
        ctx = LogContext(
            component=self._context.component,
            operation=operation,
            declaration=self._context.declaration,
            extra=self._context.extra,
        )
        return DeriveLogger._bound(self._logger, ctx)

    def with_declaration(self, declaration: str) -> "DeriveLogger":
        """Create a new logger scoped to the declaration being derived."""
        ctx = LogContext(
            component=self._context.component,
            operation=self._context.operation,
            declaration=declaration,
            extra=self._context.extra,
        )
        return DeriveLogger._bound(self._logger, ctx)

    @staticmethod
    def _bound(logger: logging.Logger, context: LogContext) -> "DeriveLogger":
        new_logger = DeriveLogger.__new__(DeriveLogger)
        new_logger._logger = logger
        new_logger._context = context
        return new_logger

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, msg: str, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        context = self._context.with_extra(**kwargs) if kwargs else self._context
        self._logger.log(level, msg, extra={"context": context})

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, **kwargs)

    @contextmanager
    def timed(self, operation: str, **kwargs: Any) -> Iterator[dict[str, Any]]:
        """Context manager for timing operations.

        Yields:
            Dict where 'elapsed_ms' will be set after completion
        """
        start = time.perf_counter()
        result: dict[str, Any] = {}
        try:
            yield result
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            result["elapsed_ms"] = elapsed_ms
            self.info(
                f"{operation} completed",
                operation=operation,
                elapsed_ms=f"{elapsed_ms:.2f}",
                **kwargs,
            )


_loggers: dict[str, DeriveLogger] = {}


def get_logger(name: str) -> DeriveLogger:
    """Get or create a logger for a component."""
    if name not in _loggers:
        _loggers[name] = DeriveLogger(name)
    return _loggers[name]


def configure_logging(
    level: int | str = logging.WARNING,
    log_format: LogFormat = LogFormat.TEXT,
) -> None:
    """Configure the ``typederive`` root logger.

    Args:
        level: Logging level (number or name such as "DEBUG")
        log_format: Output format
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger("typederive")
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(_make_handler(level, log_format))
