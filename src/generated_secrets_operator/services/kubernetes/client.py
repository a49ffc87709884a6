"""Kubernetes API backed object store."""

from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable

from kubernetes import client

from ... import metrics
from ...constants import API_GROUP, API_VERSION, FIELD_MANAGER, PLURAL_GENERATED_SECRET
from ...models import Secret
from ...utils.errors import AlreadyExistsError, ConflictError, NotFoundError, StoreError
from ...utils.rate_limit import handle_rate_limit_error, rate_limit_k8s

logger = logging.getLogger(__name__)


def translate_api_exception(e: client.exceptions.ApiException, operation: str, target: str) -> StoreError:
    """Translate a kubernetes ApiException into a store error.

    A 409 on create means the name is taken; on any other write it means the
    resourceVersion precondition failed.
    """
    message = f"{operation} {target} failed: {e.reason or e.status}"
    if e.status == 404:
        return NotFoundError(f"{target} not found", status_code=404)
    if e.status == 409:
        if operation.startswith("create"):
            return AlreadyExistsError(f"{target} already exists", status_code=409)
        return ConflictError(f"{target} was modified concurrently", status_code=409)
    return StoreError(message, status_code=e.status)


def _decode_value(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return base64.b64decode(value)


def secret_from_v1(obj: client.V1Secret) -> Secret:
    """Convert a V1Secret into the operator's Secret model."""
    metadata = obj.metadata or client.V1ObjectMeta()
    return Secret(
        name=metadata.name or "",
        namespace=metadata.namespace or "",
        type=obj.type or "Opaque",
        data={key: _decode_value(value) for key, value in (obj.data or {}).items()},
        labels=dict(metadata.labels or {}),
        annotations=dict(metadata.annotations or {}),
        uid=metadata.uid or "",
        resource_version=metadata.resource_version or "",
    )


def secret_to_v1(secret: Secret) -> client.V1Secret:
    """Convert the operator's Secret model into a V1Secret body."""
    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=client.V1ObjectMeta(
            name=secret.name,
            namespace=secret.namespace,
            labels=dict(secret.labels),
            annotations=dict(secret.annotations),
            resource_version=secret.resource_version or None,
        ),
        type=secret.type,
        data={key: base64.b64encode(value).decode("utf-8") for key, value in secret.data.items()},
    )


class KubernetesStore:
    """Object store implementation on top of the Kubernetes API."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        custom_api: client.CustomObjectsApi,
    ) -> None:
        """Initialize the store.

        Args:
            core_api: API used for Secrets
            custom_api: API used for GeneratedSecret custom resources
        """
        self.core_api = core_api
        self.custom_api = custom_api

    def _call(self, operation: str, target: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        """Run an API call with rate limiting, metrics and error translation."""
        attempt = 0
        while True:
            start_time = time.time()
            try:
                result = rate_limit_k8s(func)(**kwargs)
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
                return result
            except client.exceptions.ApiException as e:
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
                if handle_rate_limit_error(e, attempt):
                    attempt += 1
                    continue
                raise translate_api_exception(e, operation, target) from e
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get_secret(self, namespace: str, name: str) -> Secret:
        obj = self._call(
            "get_secret",
            f"secret {namespace}/{name}",
            self.core_api.read_namespaced_secret,
            name=name,
            namespace=namespace,
        )
        return secret_from_v1(obj)

    def create_secret(self, secret: Secret) -> Secret:
        body = secret_to_v1(secret)
        # Server assigns identity on create
        body.metadata.resource_version = None
        body.metadata.uid = None
        obj = self._call(
            "create_secret",
            f"secret {secret.namespace}/{secret.name}",
            self.core_api.create_namespaced_secret,
            namespace=secret.namespace,
            body=body,
            field_manager=FIELD_MANAGER,
        )
        return secret_from_v1(obj)

    def update_secret(self, secret: Secret) -> Secret:
        obj = self._call(
            "update_secret",
            f"secret {secret.namespace}/{secret.name}",
            self.core_api.replace_namespaced_secret,
            name=secret.name,
            namespace=secret.namespace,
            body=secret_to_v1(secret),
            field_manager=FIELD_MANAGER,
        )
        return secret_from_v1(obj)

    def delete_secret(self, namespace: str, name: str) -> None:
        self._call(
            "delete_secret",
            f"secret {namespace}/{name}",
            self.core_api.delete_namespaced_secret,
            name=name,
            namespace=namespace,
        )

    def get_generated_secret(self, namespace: str, name: str) -> dict[str, Any]:
        return self._call(
            "get_generated_secret",
            f"generatedsecret {namespace}/{name}",
            self.custom_api.get_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_GENERATED_SECRET,
            name=name,
        )

    def update_generated_secret(self, body: dict[str, Any]) -> dict[str, Any]:
        meta = body.get("metadata", {})
        return self._call(
            "update_generated_secret",
            f"generatedsecret {meta.get('namespace')}/{meta.get('name')}",
            self.custom_api.replace_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta.get("namespace"),
            plural=PLURAL_GENERATED_SECRET,
            name=meta.get("name"),
            body=body,
        )

    def update_generated_secret_status(self, body: dict[str, Any]) -> dict[str, Any]:
        meta = body.get("metadata", {})
        return self._call(
            "update_generated_secret_status",
            f"generatedsecret {meta.get('namespace')}/{meta.get('name')}",
            self.custom_api.replace_namespaced_custom_object_status,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta.get("namespace"),
            plural=PLURAL_GENERATED_SECRET,
            name=meta.get("name"),
            body=body,
        )


def get_kubernetes_store() -> KubernetesStore:
    """Build a KubernetesStore from in-cluster or local kubeconfig."""
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return KubernetesStore(client.CoreV1Api(), client.CustomObjectsApi())
