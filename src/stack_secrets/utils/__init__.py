from .logging import (
    PerformanceLogger,
    StructuredFormatter,
    StructuredLogger,
    get_logger,
    setup_structured_logging,
    timed_operation,
)

__all__ = [
    # Logging
    "StructuredLogger",
    "StructuredFormatter",
    "PerformanceLogger",
    "get_logger",
    "setup_structured_logging",
    "timed_operation",
]
