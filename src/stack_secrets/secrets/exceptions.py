"""Exceptions raised by secret stores and the resource resolver."""


class SecretError(Exception):
    """Base exception for all secret-related errors."""


class SecretConfigError(SecretError):
    """Raised when secret configuration or credentials are invalid."""


class InvalidSecretError(SecretError, ValueError):
    """Raised when a secret or version reference is malformed."""


class SecretProviderError(SecretError):
    """Raised when a secret provider operation fails."""


class SecretNotFoundError(SecretProviderError):
    """Raised when a requested secret resource does not exist."""


class ContainerNotFoundError(SecretNotFoundError):
    """Raised when no container is labelled with the requested name and scope."""

    def __init__(self, name: str, scope: str):
        super().__init__(f"no secret container for '{name}' in scope '{scope}'")
        self.name = name
        self.scope = scope


class VersionNotFoundError(SecretNotFoundError):
    """Raised when a secret version does not exist."""


class ContainerExistsError(SecretProviderError):
    """Raised when creating a container that another caller already created."""
