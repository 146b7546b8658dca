"""Shared fixtures for stack-secrets tests."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from stack_secrets.secrets import MemorySecretStore, ResolvingSecretService
from stack_secrets.secrets.gcp import GCPSecretStore


@pytest.fixture
def memory_store():
    """Empty in-memory secret store."""
    return MemorySecretStore()


@pytest.fixture
def service(memory_store):
    """Secret service over the in-memory store, scoped to a test stack."""
    return ResolvingSecretService(memory_store, scope="test-stack")


@pytest.fixture
def gcp_client():
    """Mocked ``SecretManagerServiceClient``."""
    client = MagicMock()
    client.list_secrets.return_value = []
    client.create_secret.return_value = SimpleNamespace(
        name="projects/test-project/secrets/test-stack-db-pass"
    )
    client.add_secret_version.return_value = SimpleNamespace(
        name="projects/test-project/secrets/test-stack-db-pass/versions/1"
    )
    client.access_secret_version.return_value = SimpleNamespace(
        payload=SimpleNamespace(data=b"s3cr3t")
    )
    return client


@pytest.fixture
def gcp_store(gcp_client):
    """GCP store using the mocked client."""
    return GCPSecretStore(gcp_client, "test-project")
