"""Tests for the Kubernetes backed object store."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from generated_secrets_operator.constants import API_GROUP, API_VERSION, PLURAL_GENERATED_SECRET
from generated_secrets_operator.models import Secret
from generated_secrets_operator.services.kubernetes.client import (
    KubernetesStore,
    secret_from_v1,
    secret_to_v1,
    translate_api_exception,
)
from generated_secrets_operator.utils.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    StoreError,
)


def _v1_secret(data: dict[str, bytes], resource_version: str = "5") -> client.V1Secret:
    return client.V1Secret(
        metadata=client.V1ObjectMeta(
            name="creds",
            namespace="a",
            uid="uid-1",
            resource_version=resource_version,
            labels={"team": "x"},
        ),
        type="Opaque",
        data={key: base64.b64encode(value).decode() for key, value in data.items()},
    )


@pytest.fixture
def apis():
    return MagicMock(spec=client.CoreV1Api), MagicMock(spec=client.CustomObjectsApi)


@pytest.fixture
def k8s_store(apis):
    core_api, custom_api = apis
    return KubernetesStore(core_api, custom_api)


class TestTranslateApiException:
    """Test cases for translate_api_exception."""

    def test_not_found(self):
        """Test that 404 becomes NotFoundError."""
        error = translate_api_exception(ApiException(status=404), "get_secret", "secret a/creds")
        assert isinstance(error, NotFoundError)
        assert error.status_code == 404

    def test_conflict_on_create(self):
        """Test that 409 on create means the name is taken."""
        error = translate_api_exception(ApiException(status=409), "create_secret", "secret a/creds")
        assert isinstance(error, AlreadyExistsError)

    def test_conflict_on_update(self):
        """Test that 409 on update is a resourceVersion conflict."""
        error = translate_api_exception(ApiException(status=409), "update_secret", "secret a/creds")
        assert isinstance(error, ConflictError)

    def test_other_status(self):
        """Test that other failures become a generic StoreError."""
        error = translate_api_exception(ApiException(status=500, reason="Internal"), "get_secret", "secret a/creds")
        assert type(error) is StoreError
        assert error.status_code == 500


class TestSecretConversion:
    """Test cases for V1Secret conversion."""

    def test_from_v1_decodes_data(self):
        """Test that base64 data is decoded and identity copied."""
        secret = secret_from_v1(_v1_secret({"PASSWORD": b"pw"}))

        assert secret.data == {"PASSWORD": b"pw"}
        assert secret.uid == "uid-1"
        assert secret.resource_version == "5"
        assert secret.labels == {"team": "x"}

    def test_to_v1_encodes_data(self):
        """Test that data is base64 encoded and the resourceVersion kept."""
        body = secret_to_v1(Secret(name="creds", namespace="a", data={"K": b"v"}, resource_version="7"))

        assert body.data == {"K": base64.b64encode(b"v").decode()}
        assert body.metadata.resource_version == "7"
        assert body.type == "Opaque"


@patch("generated_secrets_operator.utils.rate_limit.time.sleep")
class TestKubernetesStore:
    """Test cases for KubernetesStore."""

    def test_get_secret(self, mock_sleep, k8s_store, apis):
        """Test reading a secret."""
        core_api, _ = apis
        core_api.read_namespaced_secret.return_value = _v1_secret({"K": b"v"})

        secret = k8s_store.get_secret("a", "creds")

        assert secret.data == {"K": b"v"}
        core_api.read_namespaced_secret.assert_called_once_with(name="creds", namespace="a")

    def test_get_secret_not_found(self, mock_sleep, k8s_store, apis):
        """Test that a missing secret raises NotFoundError."""
        core_api, _ = apis
        core_api.read_namespaced_secret.side_effect = ApiException(status=404)

        with pytest.raises(NotFoundError):
            k8s_store.get_secret("a", "creds")

    def test_create_secret_clears_identity(self, mock_sleep, k8s_store, apis):
        """Test that create never sends a uid or resourceVersion."""
        core_api, _ = apis
        core_api.create_namespaced_secret.return_value = _v1_secret({"K": b"v"}, resource_version="1")

        created = k8s_store.create_secret(Secret(name="creds", namespace="a", data={"K": b"v"}, resource_version="9"))

        body = core_api.create_namespaced_secret.call_args.kwargs["body"]
        assert body.metadata.resource_version is None
        assert body.metadata.uid is None
        assert created.resource_version == "1"

    def test_create_secret_already_exists(self, mock_sleep, k8s_store, apis):
        """Test that a name clash raises AlreadyExistsError."""
        core_api, _ = apis
        core_api.create_namespaced_secret.side_effect = ApiException(status=409)

        with pytest.raises(AlreadyExistsError):
            k8s_store.create_secret(Secret(name="creds", namespace="a"))

    def test_update_status(self, mock_sleep, k8s_store, apis):
        """Test that status writes go to the status subresource."""
        _, custom_api = apis
        body = {"metadata": {"name": "creds", "namespace": "apps", "resourceVersion": "3"}, "status": {}}
        custom_api.replace_namespaced_custom_object_status.return_value = body

        assert k8s_store.update_generated_secret_status(body) == body
        custom_api.replace_namespaced_custom_object_status.assert_called_once_with(
            group=API_GROUP,
            version=API_VERSION,
            namespace="apps",
            plural=PLURAL_GENERATED_SECRET,
            name="creds",
            body=body,
        )

    def test_update_status_conflict(self, mock_sleep, k8s_store, apis):
        """Test that a stale resourceVersion raises ConflictError."""
        _, custom_api = apis
        custom_api.replace_namespaced_custom_object_status.side_effect = ApiException(status=409)

        with pytest.raises(ConflictError):
            k8s_store.update_generated_secret_status({"metadata": {"name": "creds", "namespace": "apps"}})

    def test_rate_limited_call_is_retried(self, mock_sleep, k8s_store, apis):
        """Test that a 429 response is retried."""
        core_api, _ = apis
        core_api.read_namespaced_secret.side_effect = [ApiException(status=429), _v1_secret({"K": b"v"})]

        secret = k8s_store.get_secret("a", "creds")

        assert secret.data == {"K": b"v"}
        assert core_api.read_namespaced_secret.call_count == 2
