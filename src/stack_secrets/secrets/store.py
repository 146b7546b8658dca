"""Backing-store capability used by the resolver and secret services."""

from __future__ import annotations

import itertools
import threading
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterator, Mapping

from ..utils.logging import get_logger
from .exceptions import (
    ContainerExistsError,
    SecretNotFoundError,
    VersionNotFoundError,
)

logger = get_logger(__name__)


class SecretStore(ABC):
    """Abstract base class for secret backing stores.

    A store holds containers, each tagged with labels and holding immutable
    payload versions. Provider failures must be raised as
    ``SecretProviderError`` subclasses so callers stay provider-agnostic.
    """

    @abstractmethod
    def list_containers(self, labels: Mapping[str, str]) -> Iterator[str]:
        """Yield references of containers whose labels match all of ``labels``."""

    @abstractmethod
    def create_container(self, labels: Mapping[str, str]) -> str:
        """Create a labelled container and return its reference.

        Raises:
            ContainerExistsError: If the store detects that the container exists
        """

    @abstractmethod
    def add_version(self, container_ref: str, payload: bytes) -> str:
        """Store ``payload`` as a new version and return the version resource name."""

    @abstractmethod
    def access_version(self, version_ref: str) -> bytes:
        """Return the payload of a version.

        Raises:
            VersionNotFoundError: If the version does not exist
        """

    def version_reference(self, container_ref: str, version: str) -> str:
        """Build the fully-qualified reference of a version in a container."""
        return f"{container_ref}/versions/{version}"


class MemorySecretStore(SecretStore):
    """Secret store kept in process memory.

    Nothing is written to disk; contents are lost with the process. Creating a
    second container with an identical label set raises
    ``ContainerExistsError``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._labels: dict[str, dict[str, str]] = {}
        self._versions: dict[str, list[bytes]] = {}
        self.calls: Counter[str] = Counter()

    def list_containers(self, labels: Mapping[str, str]) -> Iterator[str]:
        with self._lock:
            self.calls["list_containers"] += 1
            matches = [
                ref
                for ref, container_labels in self._labels.items()
                if all(container_labels.get(k) == v for k, v in labels.items())
            ]
        return iter(matches)

    def create_container(self, labels: Mapping[str, str]) -> str:
        with self._lock:
            self.calls["create_container"] += 1
            if dict(labels) in self._labels.values():
                raise ContainerExistsError(f"container with labels {dict(labels)} exists")
            ref = f"containers/{next(self._ids)}"
            self._labels[ref] = dict(labels)
            self._versions[ref] = []
        logger.debug("Created container", extra={"container": ref})
        return ref

    def add_version(self, container_ref: str, payload: bytes) -> str:
        with self._lock:
            self.calls["add_version"] += 1
            if container_ref not in self._versions:
                raise SecretNotFoundError(f"container '{container_ref}' not found")
            versions = self._versions[container_ref]
            versions.append(bytes(payload))
            return self.version_reference(container_ref, str(len(versions)))

    def access_version(self, version_ref: str) -> bytes:
        container_ref, _, version = version_ref.rpartition("/versions/")
        with self._lock:
            self.calls["access_version"] += 1
            versions = self._versions.get(container_ref)
            if versions is None or not version.isdigit():
                raise VersionNotFoundError(f"version '{version_ref}' not found")
            index = int(version) - 1
            if not 0 <= index < len(versions):
                raise VersionNotFoundError(f"version '{version_ref}' not found")
            return versions[index]

    @property
    def backend_calls(self) -> int:
        """Total number of store operations performed."""
        return sum(self.calls.values())
