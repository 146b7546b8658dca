"""Versioned secret storage.

Provides a provider-agnostic secret service with a Google Cloud Secret Manager
backing store.
"""

from .exceptions import (
    ContainerExistsError,
    ContainerNotFoundError,
    InvalidSecretError,
    SecretConfigError,
    SecretError,
    SecretNotFoundError,
    SecretProviderError,
    VersionNotFoundError,
)
from .gcp import GCPSecretStore, new_secret_service
from .models import Secret, SecretAccessResponse, SecretPutResponse, SecretVersion
from .resolver import ResolutionCache, ResourceResolver
from .service import ResolvingSecretService, SecretService
from .store import MemorySecretStore, SecretStore

__all__ = [
    "Secret",
    "SecretVersion",
    "SecretPutResponse",
    "SecretAccessResponse",
    "SecretService",
    "ResolvingSecretService",
    "ResourceResolver",
    "ResolutionCache",
    "SecretStore",
    "MemorySecretStore",
    "GCPSecretStore",
    "new_secret_service",
    "SecretError",
    "SecretConfigError",
    "SecretProviderError",
    "SecretNotFoundError",
    "ContainerNotFoundError",
    "ContainerExistsError",
    "VersionNotFoundError",
    "InvalidSecretError",
]
