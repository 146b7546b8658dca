"""Secret services exposing versioned put and access operations."""

from __future__ import annotations

from ..error_handling import ErrorCode, errors_with_scope
from ..utils.logging import get_logger
from .exceptions import InvalidSecretError, SecretError
from .models import Secret, SecretAccessResponse, SecretPutResponse, SecretVersion
from .resolver import ResolutionCache, ResourceResolver
from .store import SecretStore

logger = get_logger(__name__)


def validate_new_secret(secret: Secret | None, value: bytes | None) -> None:
    """Reject a put request before any backend call is made."""
    if secret is None:
        raise InvalidSecretError("provide non-nil secret")
    if not secret.name:
        raise InvalidSecretError("provide non-blank secret name")
    if not value:
        raise InvalidSecretError("provide non-blank secret value")


class SecretService:
    """Base class for secret services.

    Operations a provider does not override fail with ``UNIMPLEMENTED``.
    """

    def put(self, secret: Secret, value: bytes) -> SecretPutResponse:
        """Store ``value`` as a new version of ``secret``."""
        new_err = errors_with_scope(f"{type(self).__name__}.put", {"secret": secret})
        raise new_err(ErrorCode.UNIMPLEMENTED, "put is not implemented")

    def access(self, secret_version: SecretVersion) -> SecretAccessResponse:
        """Return the payload stored under ``secret_version``."""
        new_err = errors_with_scope(
            f"{type(self).__name__}.access", {"version": secret_version}
        )
        raise new_err(ErrorCode.UNIMPLEMENTED, "access is not implemented")


class ResolvingSecretService(SecretService):
    """Secret service over any ``SecretStore``.

    Secret names are mapped to store containers by a ``ResourceResolver``
    scoped to one stack. Containers are created on first put.
    """

    def __init__(
        self,
        store: SecretStore,
        scope: str,
        cache: ResolutionCache | None = None,
    ):
        self.store = store
        self.scope = scope
        self.resolver = ResourceResolver(store, scope, cache)

    def put(self, secret: Secret, value: bytes) -> SecretPutResponse:
        """Creates the secret container if it doesn't exist, then adds a new version."""
        new_err = errors_with_scope(
            f"{type(self).__name__}.put", {"secret": secret, "scope": self.scope}
        )

        try:
            validate_new_secret(secret, value)
        except InvalidSecretError as e:
            raise new_err(ErrorCode.INVALID_ARGUMENT, "invalid secret", e) from e

        logger.debug("Putting secret", extra={"secret": secret.name, "scope": self.scope})

        try:
            container_ref = self.resolver.resolve_or_create(secret.name)
        except SecretError as e:
            raise new_err(
                ErrorCode.INTERNAL, "error ensuring secret container exists", e
            ) from e

        try:
            version_name = self.store.add_version(container_ref, value)
        except SecretError as e:
            raise new_err(ErrorCode.INTERNAL, "failed to add new secret version", e) from e

        version = version_name.split("/")[-1]

        return SecretPutResponse(
            secret_version=SecretVersion(secret=Secret(name=secret.name), version=version)
        )

    def access(self, secret_version: SecretVersion) -> SecretAccessResponse:
        """Retrieves a secret given a name and a version."""
        new_err = errors_with_scope(
            f"{type(self).__name__}.access",
            {"version": secret_version, "scope": self.scope},
        )

        if secret_version is None or secret_version.secret is None:
            raise new_err(ErrorCode.INVALID_ARGUMENT, "invalid secret version")

        try:
            version_ref = self.resolver.build_version_reference(
                secret_version.secret.name, secret_version.version
            )
        except InvalidSecretError as e:
            raise new_err(ErrorCode.INVALID_ARGUMENT, "invalid secret version", e) from e
        except SecretError as e:
            raise new_err(ErrorCode.INTERNAL, "failed to resolve secret", e) from e

        try:
            payload = self.store.access_version(version_ref)
        except SecretError as e:
            raise new_err(ErrorCode.INTERNAL, "failed to access secret version", e) from e

        return SecretAccessResponse(secret_version=secret_version, value=payload)
