"""Request and response types shared by all secret services."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Secret:
    """A named container for immutable secret versions."""

    name: str


@dataclass(frozen=True)
class SecretVersion:
    """One version of a secret, identified by a provider-assigned string."""

    secret: Secret
    version: str


@dataclass(frozen=True)
class SecretPutResponse:
    """Result of storing a new secret value."""

    secret_version: SecretVersion


@dataclass(frozen=True)
class SecretAccessResponse:
    """A secret version together with its raw payload."""

    secret_version: SecretVersion
    value: bytes = field(repr=False)
