"""Google Cloud Secret Manager backing store."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterator, Mapping
from typing import Any

import google.auth
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from ..config import Settings, get_settings
from ..utils.logging import get_logger, timed_operation
from .exceptions import (
    ContainerExistsError,
    SecretConfigError,
    SecretProviderError,
    VersionNotFoundError,
)
from .resolver import NAME_LABEL, SCOPE_LABEL, ResolutionCache
from .service import ResolvingSecretService
from .store import SecretStore

logger = get_logger(__name__)

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_MAX_SECRET_ID_LENGTH = 255
_DIGEST_LENGTH = 12


def secret_id_for(labels: Mapping[str, str]) -> str:
    """Derive a deterministic GCP secret id from container labels.

    The same name and scope always map to the same id, so Secret Manager
    rejects a second concurrent create with ``AlreadyExists``. The readable
    prefix is ambiguous on its own (``prod-eu`` + ``db`` and ``prod`` +
    ``eu-db``), the digest suffix of the exact pair is not.
    """
    scope = labels.get(SCOPE_LABEL, "")
    name = labels.get(NAME_LABEL, "")
    digest = hashlib.sha256(f"{scope}\0{name}".encode()).hexdigest()[:_DIGEST_LENGTH]

    prefix = _INVALID_ID_CHARS.sub("_", "-".join(part for part in (scope, name) if part))
    prefix = prefix[: _MAX_SECRET_ID_LENGTH - _DIGEST_LENGTH - 1]
    return f"{prefix}-{digest}"


def label_filter(labels: Mapping[str, str]) -> str:
    """Build a ``list_secrets`` filter matching every label."""
    return " AND ".join(f"labels.{key}={value}" for key, value in labels.items())


class GCPSecretStore(SecretStore):
    """Secret store backed by Google Cloud Secret Manager."""

    def __init__(self, client: Any, project_id: str):
        """Initialize GCP Secret Manager store.

        Args:
            client: A ``secretmanager.SecretManagerServiceClient``
            project_id: GCP project that holds the secrets
        """
        if not project_id:
            raise SecretConfigError("GCP project ID not provided")

        self.client = client
        self.project_id = project_id

    def _get_parent_path(self) -> str:
        """Get parent path for listing and creating secrets."""
        return f"projects/{self.project_id}"

    def list_containers(self, labels: Mapping[str, str]) -> Iterator[str]:
        try:
            pages = self.client.list_secrets(
                request={"parent": self._get_parent_path(), "filter": label_filter(labels)}
            )
            for secret in pages:
                yield secret.name
        except gcp_exceptions.GoogleAPICallError as e:
            raise SecretProviderError(f"Failed to list secrets from GCP: {e}") from e

    @timed_operation()
    def create_container(self, labels: Mapping[str, str]) -> str:
        try:
            secret = self.client.create_secret(
                request={
                    "parent": self._get_parent_path(),
                    "secret_id": secret_id_for(labels),
                    "secret": {
                        "replication": {"automatic": {}},
                        "labels": dict(labels),
                    },
                }
            )
        except gcp_exceptions.AlreadyExists as e:
            raise ContainerExistsError(f"Secret already exists in GCP: {e}") from e
        except gcp_exceptions.GoogleAPICallError as e:
            raise SecretProviderError(f"Failed to create secret in GCP: {e}") from e
        return secret.name

    @timed_operation()
    def add_version(self, container_ref: str, payload: bytes) -> str:
        try:
            version = self.client.add_secret_version(
                request={"parent": container_ref, "payload": {"data": payload}}
            )
        except gcp_exceptions.GoogleAPICallError as e:
            raise SecretProviderError(f"Failed to add secret version in GCP: {e}") from e
        return version.name

    @timed_operation()
    def access_version(self, version_ref: str) -> bytes:
        try:
            response = self.client.access_secret_version(request={"name": version_ref})
        except gcp_exceptions.NotFound as e:
            raise VersionNotFoundError(f"Secret version not found in GCP: {e}") from e
        except gcp_exceptions.GoogleAPICallError as e:
            raise SecretProviderError(f"Failed to access secret in GCP: {e}") from e
        return response.payload.data


def new_secret_service(
    scope: str | None = None,
    *,
    settings: Settings | None = None,
    client: Any | None = None,
    cache: ResolutionCache | None = None,
) -> ResolvingSecretService:
    """Create a secret service backed by Google Cloud Secret Manager.

    Credentials and the project are discovered once, here.

    Args:
        scope: Stack name scoping all lookups. Defaults to ``STACK_NAME``.
        settings: Settings to read defaults from.
        client: Pre-built ``SecretManagerServiceClient``.
        cache: Resolution cache to share with the service.

    Raises:
        SecretConfigError: If credentials or the client cannot be set up
    """
    settings = settings or get_settings()
    scope = settings.stack_name if scope is None else scope

    try:
        credentials, project_id = google.auth.default(
            scopes=["https://www.googleapis.com/auth/cloud-platform"]
        )
    except auth_exceptions.DefaultCredentialsError as e:
        raise SecretConfigError(f"GCP credentials error: {e}") from e

    project_id = settings.gcp_project_id or project_id
    if not project_id:
        raise SecretConfigError(
            "GCP project ID could not be determined. Set GCP_PROJECT_ID environment "
            "variable or configure a default project for the credentials."
        )

    if client is None:
        try:
            client = secretmanager.SecretManagerServiceClient(credentials=credentials)
        except (auth_exceptions.GoogleAuthError, ValueError) as e:
            raise SecretConfigError(f"Secret Manager client error: {e}") from e

    logger.info(
        "Initialized GCP secret service",
        extra={"project_id": project_id, "scope": scope},
    )
    return ResolvingSecretService(GCPSecretStore(client, project_id), scope, cache)
