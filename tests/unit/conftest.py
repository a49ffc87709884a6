"""Shared fixtures for unit tests."""

from __future__ import annotations

import copy
import itertools
import uuid
from typing import Any
from unittest.mock import patch

import pytest

from generated_secrets_operator.constants import API_GROUP_VERSION, KIND_GENERATED_SECRET
from generated_secrets_operator.models import Secret
from generated_secrets_operator.utils.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
)


class InMemoryStore:
    """Object store keeping secrets and GeneratedSecrets in dictionaries.

    Assigns uids and bumps resourceVersions like the API server and rejects
    writes carrying a stale resourceVersion.
    """

    def __init__(self) -> None:
        self.secrets: dict[tuple[str, str], Secret] = {}
        self.resources: dict[tuple[str, str], dict[str, Any]] = {}
        self._versions = itertools.count(1)
        self.calls: list[tuple[str, str, str]] = []

    def _next_version(self) -> str:
        return str(next(self._versions))

    # Secrets

    def get_secret(self, namespace: str, name: str) -> Secret:
        self.calls.append(("get_secret", namespace, name))
        try:
            return copy.deepcopy(self.secrets[(namespace, name)])
        except KeyError:
            raise NotFoundError(f"secret {namespace}/{name} not found", status_code=404) from None

    def create_secret(self, secret: Secret) -> Secret:
        self.calls.append(("create_secret", secret.namespace, secret.name))
        key = (secret.namespace, secret.name)
        if key in self.secrets:
            raise AlreadyExistsError(f"secret {secret.namespace}/{secret.name} already exists", status_code=409)
        stored = copy.deepcopy(secret)
        stored.uid = str(uuid.uuid4())
        stored.resource_version = self._next_version()
        self.secrets[key] = stored
        return copy.deepcopy(stored)

    def update_secret(self, secret: Secret) -> Secret:
        self.calls.append(("update_secret", secret.namespace, secret.name))
        key = (secret.namespace, secret.name)
        if key not in self.secrets:
            raise NotFoundError(f"secret {secret.namespace}/{secret.name} not found", status_code=404)
        current = self.secrets[key]
        if secret.resource_version and secret.resource_version != current.resource_version:
            raise ConflictError(f"secret {secret.namespace}/{secret.name} was modified", status_code=409)
        stored = copy.deepcopy(secret)
        stored.uid = current.uid
        stored.resource_version = self._next_version()
        self.secrets[key] = stored
        return copy.deepcopy(stored)

    def delete_secret(self, namespace: str, name: str) -> None:
        self.calls.append(("delete_secret", namespace, name))
        if self.secrets.pop((namespace, name), None) is None:
            raise NotFoundError(f"secret {namespace}/{name} not found", status_code=404)

    # GeneratedSecrets

    def add_generated_secret(
        self,
        name: str,
        namespace: str,
        spec: dict[str, Any],
        finalizers: list[str] | None = None,
    ) -> dict[str, Any]:
        body = {
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_GENERATED_SECRET,
            "metadata": {
                "name": name,
                "namespace": namespace,
                "uid": str(uuid.uuid4()),
                "generation": 1,
                "resourceVersion": self._next_version(),
                "finalizers": list(finalizers or []),
            },
            "spec": spec,
        }
        self.resources[(namespace, name)] = body
        return copy.deepcopy(body)

    def edit_spec(self, namespace: str, name: str, spec: dict[str, Any]) -> None:
        body = self.resources[(namespace, name)]
        body["spec"] = spec
        body["metadata"]["generation"] += 1
        body["metadata"]["resourceVersion"] = self._next_version()

    def mark_deleted(self, namespace: str, name: str) -> None:
        body = self.resources[(namespace, name)]
        body["metadata"]["deletionTimestamp"] = "2024-01-01T00:00:00Z"
        body["metadata"]["resourceVersion"] = self._next_version()

    def get_generated_secret(self, namespace: str, name: str) -> dict[str, Any]:
        try:
            return copy.deepcopy(self.resources[(namespace, name)])
        except KeyError:
            raise NotFoundError(f"generatedsecret {namespace}/{name} not found", status_code=404) from None

    def _replace(self, body: dict[str, Any], status_only: bool) -> dict[str, Any]:
        meta = body["metadata"]
        key = (meta["namespace"], meta["name"])
        if key not in self.resources:
            raise NotFoundError(f"generatedsecret {key[0]}/{key[1]} not found", status_code=404)
        current = self.resources[key]
        if meta.get("resourceVersion") != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"generatedsecret {key[0]}/{key[1]} was modified", status_code=409)

        updated = copy.deepcopy(current)
        if status_only:
            updated["status"] = copy.deepcopy(body.get("status") or {})
        else:
            updated["metadata"]["finalizers"] = list(meta.get("finalizers") or [])
            updated["spec"] = copy.deepcopy(body.get("spec"))
        updated["metadata"]["resourceVersion"] = self._next_version()

        if updated["metadata"].get("deletionTimestamp") and not updated["metadata"]["finalizers"]:
            del self.resources[key]
        else:
            self.resources[key] = updated
        return copy.deepcopy(updated)

    def update_generated_secret(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._replace(body, status_only=False)

    def update_generated_secret_status(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._replace(body, status_only=True)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture(autouse=True)
def mock_kopf_event():
    """Events are posted through kopf, which needs a running operator."""
    with patch("generated_secrets_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


def generated_secret_spec(
    namespaces: list[str],
    data: dict[str, Any] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a GeneratedSecret spec body."""
    spec: dict[str, Any] = {
        "metadata": {"namespaces": namespaces},
        "template": {"data": data if data is not None else {"PASSWORD": {"generated": {"length": 10}}}},
    }
    spec.update(extra)
    return spec


@pytest.fixture
def make_resource(store: InMemoryStore):
    """Factory storing a GeneratedSecret and returning its parsed model."""
    from generated_secrets_operator.builders.generated_secret import create_generated_secret_from_body

    def factory(
        namespaces: list[str],
        data: dict[str, Any] | None = None,
        name: str = "creds",
        namespace: str = "apps",
        **extra: Any,
    ):
        body = store.add_generated_secret(name, namespace, generated_secret_spec(namespaces, data, **extra))
        return create_generated_secret_from_body(body)

    return factory
