"""
Error handling for secret services.

Provides the error codes callers see and the scoped error factory used to
wrap backend failures.
"""

from .exceptions import (
    ErrorCode,
    ErrorContext,
    ErrorFactory,
    SecretServiceError,
    errors_with_scope,
)

__all__ = [
    "ErrorCode",
    "ErrorContext",
    "ErrorFactory",
    "SecretServiceError",
    "errors_with_scope",
]
