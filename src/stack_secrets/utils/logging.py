"""Structured logging with machine-parseable output."""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Callable, MutableMapping
from datetime import UTC, datetime
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

# LogRecord attributes that ``extra`` must not overwrite
_RESERVED_RECORD_FIELDS = frozenset(
    (
        "name",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "msg",
        "args",
        "exc_info",
        "exc_text",
        "stack_info",
    )
)


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that renders every message as a JSON entry."""

    def __init__(self, logger: logging.Logger, extra: dict[str, Any] | None = None):
        super().__init__(logger, extra or {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Process log message to add structured context."""
        try:
            log_entry: dict[str, Any] = {
                "timestamp": datetime.now(UTC).isoformat(),
                "message": msg,
                "module": self.logger.name,
            }

            if self.extra:
                log_entry.update(self.extra)

            if "extra" in kwargs:
                log_entry.update(
                    {
                        k: v
                        for k, v in kwargs["extra"].items()
                        if k not in _RESERVED_RECORD_FIELDS
                    }
                )
                kwargs = {k: v for k, v in kwargs.items() if k != "extra"}

            return json.dumps(log_entry, default=str), kwargs
        except (TypeError, ValueError) as e:
            # Fallback to plain text if the entry cannot be serialized
            return f"Structured logging error: {e} - Original message: {msg}", kwargs

    def bind(self, **fields: Any) -> StructuredLogger:
        """Return a logger that adds ``fields`` to every entry."""
        return StructuredLogger(self.logger, {**self.extra, **fields})


class PerformanceLogger:
    """Context manager for logging how long a backend call took."""

    def __init__(
        self, operation: str, logger: StructuredLogger, threshold_ms: float = 200
    ):
        self.operation = operation
        self.logger = logger
        self.threshold_ms = threshold_ms
        self.start_time: float | None = None
        self.metadata: dict[str, Any] = {}

    def __enter__(self) -> PerformanceLogger:
        self.start_time = time.time()
        self.logger.debug(
            f"Starting {self.operation}",
            extra={
                "operation": self.operation,
                "status": "started",
            },
        )
        return self

    def add_metadata(self, **kwargs: Any) -> None:
        """Add metadata to be logged with performance metrics."""
        self.metadata.update(kwargs)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.start_time is None:
            duration_ms = 0.0
        else:
            duration_ms = (time.time() - self.start_time) * 1000

        extra_data = {
            "operation": self.operation,
            "duration_ms": round(duration_ms, 2),
            "status": "failed" if exc_type else "completed",
            **self.metadata,
        }

        if exc_type:
            extra_data["error"] = str(exc_val)
            extra_data["error_type"] = exc_type.__name__

        if duration_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation} took {duration_ms:.0f}ms (threshold: {self.threshold_ms}ms)",
                extra=extra_data,
            )
        else:
            self.logger.debug(
                f"Completed {self.operation} in {duration_ms:.0f}ms", extra=extra_data
            )


def timed_operation(threshold_ms: float = 200) -> Callable[[F], F]:
    """Decorator to log the duration of a call.

    Arguments are never logged; they may carry secret payloads.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = get_logger(func.__module__)
            operation = f"{func.__module__}.{func.__qualname__}"

            with PerformanceLogger(operation, logger, threshold_ms):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


class StructuredFormatter(logging.Formatter):
    """Pass JSON entries through, wrap everything else in one."""

    def format(self, record: logging.LogRecord) -> str:
        # Already formatted by StructuredLogger
        if isinstance(record.msg, str) and record.msg.startswith("{"):
            message = record.getMessage()
            if record.exc_info:
                entry = json.loads(message)
                entry["exception"] = self.formatException(record.exc_info)
                return json.dumps(entry, default=str)
            return message
        return json.dumps(
            {
                "timestamp": datetime.now(UTC).isoformat(),
                "level": record.levelname,
                "module": record.name,
                "message": record.getMessage(),
            }
        )


def setup_structured_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    include_stdout: bool = True,
) -> None:
    """Set up structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    root_logger.handlers.clear()

    formatter = StructuredFormatter()

    if include_stdout:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(formatter)
        root_logger.addHandler(stdout_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(logging.getLogger(name))
