"""stack-secrets - versioned secret storage scoped to deployment stacks."""

from .__version__ import __version__, __version_info__
from .error_handling import ErrorCode, SecretServiceError
from .secrets import (
    MemorySecretStore,
    ResolvingSecretService,
    Secret,
    SecretAccessResponse,
    SecretPutResponse,
    SecretService,
    SecretStore,
    SecretVersion,
    new_secret_service,
)

__all__ = [
    "__version__",
    "__version_info__",
    "ErrorCode",
    "SecretServiceError",
    "Secret",
    "SecretVersion",
    "SecretPutResponse",
    "SecretAccessResponse",
    "SecretService",
    "ResolvingSecretService",
    "SecretStore",
    "MemorySecretStore",
    "new_secret_service",
]
