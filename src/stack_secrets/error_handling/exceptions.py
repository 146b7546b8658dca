"""
Caller-facing error taxonomy

Every failure leaving a secret service is a ``SecretServiceError`` carrying a
stable ``ErrorCode``, the name of the operation that raised it and a
structured context describing the offending secret or version.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCode(Enum):
    """Error kinds exposed to callers."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"
    UNIMPLEMENTED = "unimplemented"


@dataclass
class ErrorContext:
    """Where an error was raised and what it was about."""

    operation: str
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "operation": self.operation,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }


class SecretServiceError(Exception):
    """Error raised by secret service operations."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.INTERNAL,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)

        self.message = message
        self.code = code
        self.context = context or ErrorContext(operation="unknown")
        self.cause = cause

        if cause:
            self.__cause__ = cause

    @property
    def operation(self) -> str:
        return self.context.operation

    def is_not_found(self) -> bool:
        """Check whether the failure was caused by a missing secret or version.

        The code of a read failure stays ``INTERNAL``; this lets callers who
        care tell absence apart from transport errors.
        """
        if self.code is ErrorCode.NOT_FOUND:
            return True

        # Deferred, the secrets package imports this module
        from ..secrets.exceptions import SecretNotFoundError

        cause: BaseException | None = self.cause
        while cause is not None:
            if isinstance(cause, SecretNotFoundError):
                return True
            cause = cause.__cause__
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "cause_type": type(self.cause).__name__ if self.cause else None,
        }

    def __str__(self) -> str:
        text = f"{self.context.operation} [{self.code.value}]: {self.message}"
        if self.cause:
            text = f"{text}: {self.cause}"
        return text


ErrorFactory = Callable[[ErrorCode, str, BaseException | None], SecretServiceError]


def errors_with_scope(
    operation: str, metadata: Mapping[str, Any] | None = None
) -> ErrorFactory:
    """Return a factory for errors raised inside ``operation``.

    Usage:
        new_err = errors_with_scope("SecretService.put", {"secret": secret})
        raise new_err(ErrorCode.INVALID_ARGUMENT, "invalid secret", cause)
    """
    scoped_metadata = dict(metadata or {})

    def new_error(
        code: ErrorCode, message: str, cause: BaseException | None = None
    ) -> SecretServiceError:
        error = SecretServiceError(
            message,
            code=code,
            context=ErrorContext(operation=operation, metadata=dict(scoped_metadata)),
            cause=cause,
        )

        log = logger.warning if code is ErrorCode.INVALID_ARGUMENT else logger.error
        log(str(error), extra={"error": error.to_dict()})
        return error

    return new_error
