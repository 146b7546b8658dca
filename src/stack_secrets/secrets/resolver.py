"""Resolve logical secret names to backing-store containers."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from ..utils.logging import get_logger
from .exceptions import (
    ContainerExistsError,
    ContainerNotFoundError,
    InvalidSecretError,
    SecretProviderError,
)
from .store import SecretStore

logger = get_logger(__name__)

NAME_LABEL = "x-stack-secrets-name"
SCOPE_LABEL = "x-stack-secrets-scope"


@dataclass
class CacheStats:
    """Resolution cache statistics."""

    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class ResolutionCache:
    """Thread-safe mapping of secret name to container reference.

    Entries are never evicted. The cache only memoizes lookups against the
    store, so a missing entry costs one extra lookup and never a wrong answer.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()
        self.stats = CacheStats()

    def get(self, name: str) -> str | None:
        with self._lock:
            ref = self._entries.get(name)
            if ref is None:
                self.stats.misses += 1
            else:
                self.stats.hits += 1
            return ref

    def put(self, name: str, container_ref: str) -> None:
        with self._lock:
            self._entries[name] = container_ref

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ResourceResolver:
    """Maps secret names within one scope to store containers.

    Usage:
        resolver = ResourceResolver(store, scope="prod")
        container = resolver.resolve_or_create("db-pass")
        ref = resolver.build_version_reference("db-pass", "1")
    """

    def __init__(
        self,
        store: SecretStore,
        scope: str,
        cache: ResolutionCache | None = None,
    ):
        self.store = store
        self.scope = scope
        self.cache = cache if cache is not None else ResolutionCache()

    def labels_for(self, name: str) -> dict[str, str]:
        """Labels identifying the container of ``name`` in this scope."""
        return {NAME_LABEL: name, SCOPE_LABEL: self.scope}

    def resolve(self, name: str) -> str:
        """Return the container reference for ``name``.

        Raises:
            ContainerNotFoundError: If no container carries the name and scope labels
            SecretProviderError: If the lookup itself fails
        """
        cached = self.cache.get(name)
        if cached is not None:
            return cached

        container_ref = next(iter(self.store.list_containers(self.labels_for(name))), None)
        if container_ref is None:
            raise ContainerNotFoundError(name, self.scope)

        self.cache.put(name, container_ref)
        logger.debug(
            "Resolved secret container",
            extra={"secret": name, "scope": self.scope, "container": container_ref},
        )
        return container_ref

    def resolve_or_create(self, name: str) -> str:
        """Return the container for ``name``, creating it on first use."""
        try:
            return self.resolve(name)
        except ContainerNotFoundError:
            pass

        # Lookup and creation are two calls; a store that cannot reject
        # duplicates may end up with several containers for one name.
        try:
            container_ref = self.store.create_container(self.labels_for(name))
        except ContainerExistsError as exists:
            logger.info(
                "Secret container created concurrently, resolving again",
                extra={"secret": name, "scope": self.scope},
            )
            try:
                return self.resolve(name)
            except ContainerNotFoundError:
                # The existing container carries other labels
                raise SecretProviderError(
                    f"cannot create secret container for '{name}' in scope "
                    f"'{self.scope}': the store holds a container under the same "
                    "id that is labelled for another secret"
                ) from exists

        self.cache.put(name, container_ref)
        logger.info(
            "Created secret container",
            extra={"secret": name, "scope": self.scope, "container": container_ref},
        )
        return container_ref

    def build_version_reference(self, name: str, version: str) -> str:
        """Build the store reference of ``version`` of secret ``name``.

        Never creates a container: a version of an unknown secret cannot exist.

        Raises:
            InvalidSecretError: If ``name`` or ``version`` is blank
            ContainerNotFoundError: If the secret has no container
        """
        if not name:
            raise InvalidSecretError("provide non-blank name")
        if not version:
            raise InvalidSecretError("provide non-blank version")

        return self.store.version_reference(self.resolve(name), version)
