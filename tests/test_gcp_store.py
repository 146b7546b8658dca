"""Tests for the Google Cloud Secret Manager store."""

import hashlib
import re
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions

from stack_secrets.config import Settings
from stack_secrets.error_handling import ErrorCode, SecretServiceError
from stack_secrets.secrets import (
    ContainerExistsError,
    GCPSecretStore,
    ResolvingSecretService,
    Secret,
    SecretConfigError,
    SecretProviderError,
    SecretVersion,
    VersionNotFoundError,
    new_secret_service,
)
from stack_secrets.secrets.gcp import label_filter, secret_id_for
from stack_secrets.secrets.resolver import NAME_LABEL, SCOPE_LABEL

LABELS = {NAME_LABEL: "db-pass", SCOPE_LABEL: "test-stack"}


class FakeSecretManagerClient:
    """Secret Manager stand-in keyed by secret id, listing by label filter."""

    def __init__(self):
        self.secrets = {}
        self.versions = {}

    def list_secrets(self, request):
        wanted = dict(
            clause.removeprefix("labels.").split("=", 1)
            for clause in request["filter"].split(" AND ")
        )
        return [
            SimpleNamespace(name=name)
            for name, labels in self.secrets.items()
            if all(labels.get(k) == v for k, v in wanted.items())
        ]

    def create_secret(self, request):
        name = f"{request['parent']}/secrets/{request['secret_id']}"
        if name in self.secrets:
            raise gcp_exceptions.AlreadyExists(f"{name} exists")
        self.secrets[name] = dict(request["secret"]["labels"])
        self.versions[name] = []
        return SimpleNamespace(name=name)

    def add_secret_version(self, request):
        versions = self.versions[request["parent"]]
        versions.append(request["payload"]["data"])
        return SimpleNamespace(name=f"{request['parent']}/versions/{len(versions)}")

    def access_secret_version(self, request):
        parent, _, version = request["name"].rpartition("/versions/")
        return SimpleNamespace(payload=SimpleNamespace(data=self.versions[parent][int(version) - 1]))


class TestHelpers:
    """Test request-building helpers."""

    def test_label_filter(self):
        assert label_filter(LABELS) == (
            "labels.x-stack-secrets-name=db-pass AND labels.x-stack-secrets-scope=test-stack"
        )

    def test_secret_id_is_deterministic(self):
        digest = hashlib.sha256(b"test-stack\0db-pass").hexdigest()[:12]

        assert secret_id_for(LABELS) == f"test-stack-db-pass-{digest}"
        assert secret_id_for(LABELS) == secret_id_for(dict(LABELS))

    def test_secret_id_replaces_invalid_characters(self):
        labels = {NAME_LABEL: "api.key/v2", SCOPE_LABEL: "prod"}
        secret_id = secret_id_for(labels)

        assert secret_id.startswith("prod-api_key_v2-")
        assert re.fullmatch(r"[A-Za-z0-9_-]+", secret_id)

    def test_secret_id_without_scope(self):
        assert secret_id_for({NAME_LABEL: "db-pass", SCOPE_LABEL: ""}).startswith("db-pass-")

    def test_secret_id_separates_ambiguous_pairs(self):
        first = {NAME_LABEL: "db", SCOPE_LABEL: "prod-eu"}
        second = {NAME_LABEL: "eu-db", SCOPE_LABEL: "prod"}

        assert secret_id_for(first) != secret_id_for(second)

    def test_secret_id_is_truncated(self):
        labels = {NAME_LABEL: "x" * 300, SCOPE_LABEL: "prod"}
        assert len(secret_id_for(labels)) == 255


class TestGCPSecretStore:
    """Test GCP store calls against a mocked client."""

    def test_requires_project(self, gcp_client):
        with pytest.raises(SecretConfigError):
            GCPSecretStore(gcp_client, "")

    def test_list_containers(self, gcp_store, gcp_client):
        gcp_client.list_secrets.return_value = [
            SimpleNamespace(name="projects/test-project/secrets/a"),
            SimpleNamespace(name="projects/test-project/secrets/b"),
        ]

        refs = list(gcp_store.list_containers(LABELS))

        assert refs == [
            "projects/test-project/secrets/a",
            "projects/test-project/secrets/b",
        ]
        gcp_client.list_secrets.assert_called_once_with(
            request={"parent": "projects/test-project", "filter": label_filter(LABELS)}
        )

    def test_list_failure(self, gcp_store, gcp_client):
        gcp_client.list_secrets.side_effect = gcp_exceptions.ServiceUnavailable("down")

        with pytest.raises(SecretProviderError):
            list(gcp_store.list_containers(LABELS))

    def test_create_container(self, gcp_store, gcp_client):
        ref = gcp_store.create_container(LABELS)

        assert ref == "projects/test-project/secrets/test-stack-db-pass"
        gcp_client.create_secret.assert_called_once_with(
            request={
                "parent": "projects/test-project",
                "secret_id": secret_id_for(LABELS),
                "secret": {"replication": {"automatic": {}}, "labels": LABELS},
            }
        )

    def test_create_existing_container(self, gcp_store, gcp_client):
        gcp_client.create_secret.side_effect = gcp_exceptions.AlreadyExists("exists")

        with pytest.raises(ContainerExistsError):
            gcp_store.create_container(LABELS)

    def test_create_failure(self, gcp_store, gcp_client):
        gcp_client.create_secret.side_effect = gcp_exceptions.PermissionDenied("denied")

        with pytest.raises(SecretProviderError) as exc_info:
            gcp_store.create_container(LABELS)

        assert not isinstance(exc_info.value, ContainerExistsError)

    def test_add_version(self, gcp_store, gcp_client):
        name = gcp_store.add_version("projects/test-project/secrets/test-stack-db-pass", b"s3cr3t")

        assert name == "projects/test-project/secrets/test-stack-db-pass/versions/1"
        gcp_client.add_secret_version.assert_called_once_with(
            request={
                "parent": "projects/test-project/secrets/test-stack-db-pass",
                "payload": {"data": b"s3cr3t"},
            }
        )

    def test_add_version_failure(self, gcp_store, gcp_client):
        gcp_client.add_secret_version.side_effect = gcp_exceptions.ResourceExhausted("quota")

        with pytest.raises(SecretProviderError):
            gcp_store.add_version("projects/test-project/secrets/x", b"s3cr3t")

    def test_access_version(self, gcp_store, gcp_client):
        ref = "projects/test-project/secrets/test-stack-db-pass/versions/1"

        assert gcp_store.access_version(ref) == b"s3cr3t"
        gcp_client.access_secret_version.assert_called_once_with(request={"name": ref})

    def test_access_missing_version(self, gcp_store, gcp_client):
        gcp_client.access_secret_version.side_effect = gcp_exceptions.NotFound("gone")

        with pytest.raises(VersionNotFoundError):
            gcp_store.access_version("projects/test-project/secrets/x/versions/9")

    def test_version_reference(self, gcp_store):
        assert (
            gcp_store.version_reference("projects/test-project/secrets/x", "4")
            == "projects/test-project/secrets/x/versions/4"
        )


class TestGCPSecretService:
    """Test the service wired to the GCP store."""

    def test_put_creates_container_then_adds_version(self, gcp_store, gcp_client):
        service = ResolvingSecretService(gcp_store, "test-stack")

        response = service.put(Secret(name="db-pass"), b"s3cr3t")

        assert response.secret_version == SecretVersion(secret=Secret(name="db-pass"), version="1")
        gcp_client.create_secret.assert_called_once()
        gcp_client.add_secret_version.assert_called_once()

    def test_put_uses_existing_container(self, gcp_store, gcp_client):
        gcp_client.list_secrets.return_value = [
            SimpleNamespace(name="projects/test-project/secrets/existing")
        ]
        service = ResolvingSecretService(gcp_store, "test-stack")

        service.put(Secret(name="db-pass"), b"s3cr3t")

        gcp_client.create_secret.assert_not_called()
        gcp_client.add_secret_version.assert_called_once_with(
            request={
                "parent": "projects/test-project/secrets/existing",
                "payload": {"data": b"s3cr3t"},
            }
        )

    def test_access_builds_version_name(self, gcp_store, gcp_client):
        gcp_client.list_secrets.return_value = [
            SimpleNamespace(name="projects/test-project/secrets/existing")
        ]
        service = ResolvingSecretService(gcp_store, "test-stack")
        version = SecretVersion(secret=Secret(name="db-pass"), version="3")

        response = service.access(version)

        assert response.value == b"s3cr3t"
        assert response.secret_version is version
        gcp_client.access_secret_version.assert_called_once_with(
            request={"name": "projects/test-project/secrets/existing/versions/3"}
        )

    def test_access_missing_version_is_internal(self, gcp_store, gcp_client):
        gcp_client.list_secrets.return_value = [
            SimpleNamespace(name="projects/test-project/secrets/existing")
        ]
        gcp_client.access_secret_version.side_effect = gcp_exceptions.NotFound("gone")
        service = ResolvingSecretService(gcp_store, "test-stack")

        with pytest.raises(SecretServiceError) as exc_info:
            service.access(SecretVersion(secret=Secret(name="db-pass"), version="3"))

        assert exc_info.value.code is ErrorCode.INTERNAL
        assert exc_info.value.is_not_found()


class TestNewSecretService:
    """Test service construction."""

    def test_uses_discovered_project(self, gcp_client):
        with patch(
            "google.auth.default", return_value=(MagicMock(), "discovered-project")
        ):
            service = new_secret_service(
                "prod", settings=Settings(GCP_PROJECT_ID=None), client=gcp_client
            )

        assert service.scope == "prod"
        assert service.store.project_id == "discovered-project"
        assert service.store.client is gcp_client

    def test_settings_override_project_and_scope(self, gcp_client):
        settings = Settings(STACK_NAME="staging", GCP_PROJECT_ID="override-project")
        with patch("google.auth.default", return_value=(MagicMock(), "discovered-project")):
            service = new_secret_service(settings=settings, client=gcp_client)

        assert service.scope == "staging"
        assert service.store.project_id == "override-project"

    def test_builds_client_from_credentials(self):
        credentials = MagicMock()
        with patch("google.auth.default", return_value=(credentials, "p")), patch(
            "stack_secrets.secrets.gcp.secretmanager.SecretManagerServiceClient"
        ) as client_cls:
            service = new_secret_service("prod", settings=Settings())

        client_cls.assert_called_once_with(credentials=credentials)
        assert service.store.client is client_cls.return_value

    def test_credentials_error(self):
        with patch(
            "google.auth.default",
            side_effect=auth_exceptions.DefaultCredentialsError("no credentials"),
        ):
            with pytest.raises(SecretConfigError):
                new_secret_service("prod", settings=Settings())

    def test_missing_project(self, gcp_client):
        with patch("google.auth.default", return_value=(MagicMock(), None)):
            with pytest.raises(SecretConfigError):
                new_secret_service("prod", settings=Settings(GCP_PROJECT_ID=None), client=gcp_client)

    def test_client_error(self):
        with patch("google.auth.default", return_value=(MagicMock(), "p")), patch(
            "stack_secrets.secrets.gcp.secretmanager.SecretManagerServiceClient",
            side_effect=ValueError("bad client options"),
        ):
            with pytest.raises(SecretConfigError):
                new_secret_service("prod", settings=Settings())


class TestSecretIdConflicts:
    """Test secrets whose readable ids look alike across scopes."""

    def test_ambiguous_scope_and_name_pairs_are_independent(self):
        client = FakeSecretManagerClient()
        store = GCPSecretStore(client, "test-project")
        eu = ResolvingSecretService(store, "prod-eu")
        prod = ResolvingSecretService(store, "prod")

        eu_response = eu.put(Secret(name="db"), b"eu-value")
        prod_response = prod.put(Secret(name="eu-db"), b"prod-value")

        assert len(client.secrets) == 2
        assert eu.access(eu_response.secret_version).value == b"eu-value"
        assert prod.access(prod_response.secret_version).value == b"prod-value"

    def test_id_taken_by_foreign_secret_is_reported(self):
        client = FakeSecretManagerClient()
        store = GCPSecretStore(client, "test-project")
        # Created outside this library under the id this library would use
        client.secrets[f"projects/test-project/secrets/{secret_id_for(LABELS)}"] = {}

        service = ResolvingSecretService(store, "test-stack")
        with pytest.raises(SecretServiceError) as exc_info:
            service.put(Secret(name="db-pass"), b"s3cr3t")

        assert exc_info.value.code is ErrorCode.INTERNAL
        assert isinstance(exc_info.value.__cause__, SecretProviderError)
        assert "labelled for another secret" in str(exc_info.value.__cause__)
        assert not exc_info.value.is_not_found()
