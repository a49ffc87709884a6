"""Fan-out of a generated payload into one secret copy per target namespace."""

from __future__ import annotations

import logging
from typing import Mapping

from .. import metrics
from ..constants import (
    CONTROLLER_NAME,
    LABEL_GENERATED_SECRET_NAME,
    LABEL_GENERATED_SECRET_NAMESPACE,
    LABEL_GENERATED_SECRET_UID,
    LABEL_MANAGED_BY,
)
from ..generation.values import complete_payload
from ..models import GeneratedSecret, GeneratedSecretRef, Secret
from ..services.store.base import ObjectStore
from ..utils.errors import (
    AlreadyExistsError,
    CleanupError,
    NotFoundError,
    StoreError,
    SynchronizationError,
    sanitize_exception,
)
from ..utils.events import (
    emit_secret_create_failed,
    emit_secret_created,
    emit_secret_deleted,
    emit_secret_updated,
)

logger = logging.getLogger(__name__)


def ownership_labels(resource: GeneratedSecret) -> dict[str, str]:
    """Labels marking a secret as owned by the given GeneratedSecret."""
    return {
        LABEL_MANAGED_BY: CONTROLLER_NAME,
        LABEL_GENERATED_SECRET_NAME: resource.name,
        LABEL_GENERATED_SECRET_NAMESPACE: resource.namespace,
        LABEL_GENERATED_SECRET_UID: resource.uid,
    }


def is_owned_by(secret: Secret, resource: GeneratedSecret) -> bool:
    """Return True if the secret carries the ownership marker of the resource."""
    labels = secret.labels or {}
    return (
        labels.get(LABEL_GENERATED_SECRET_NAME) == resource.name
        and labels.get(LABEL_GENERATED_SECRET_NAMESPACE) == resource.namespace
        and labels.get(LABEL_GENERATED_SECRET_UID) == resource.uid
    )


def expected_labels(resource: GeneratedSecret) -> dict[str, str]:
    """Declared labels with the ownership labels on top."""
    return {**resource.spec.metadata.labels, **ownership_labels(resource)}


def build_secret(resource: GeneratedSecret, namespace: str, payload: Mapping[str, bytes]) -> Secret:
    """Build the desired copy of the payload for one namespace."""
    return Secret(
        name=resource.secret_name,
        namespace=namespace,
        type=resource.spec.metadata.type,
        data=dict(payload),
        labels=expected_labels(resource),
        annotations=dict(resource.spec.metadata.annotations),
    )


class SecretSynchronizer:
    """Creates, repairs and removes the copies of a GeneratedSecret."""

    def __init__(self, store: ObjectStore):
        self.store = store

    def _record(self, operation: str, result: str) -> None:
        metrics.secret_operations_total.labels(operation=operation, result=result).inc()

    def _repair(self, resource: GeneratedSecret, existing: Secret, desired: Secret) -> Secret:
        """Bring an owned copy back in line with the desired one.

        The secret type is immutable, so a type change needs a delete and a
        fresh create.
        """
        if existing.type != desired.type:
            logger.info(
                f"Recreating secret {existing.namespace}/{existing.name} "
                f"(type {existing.type} -> {desired.type})"
            )
            self.store.delete_secret(existing.namespace, existing.name)
            created = self.store.create_secret(desired)
            self._record("recreate", "success")
            emit_secret_updated(resource.body, created.namespace, created.name)
            return created

        if (
            existing.data == desired.data
            and existing.labels == desired.labels
            and existing.annotations == desired.annotations
        ):
            logger.debug(f"Adopting secret {existing.namespace}/{existing.name} unchanged")
            return existing

        desired.resource_version = existing.resource_version
        updated = self.store.update_secret(desired)
        self._record("update", "success")
        emit_secret_updated(resource.body, updated.namespace, updated.name)
        return updated

    def ensure_copy(self, resource: GeneratedSecret, desired: Secret) -> GeneratedSecretRef:
        """Create one copy, adopting or repairing an owned copy that already exists.

        Raises:
            SynchronizationError: If an unowned secret is in the way or the
                copy has no uid
            StoreError: If a store call fails
        """
        try:
            secret = self.store.create_secret(desired)
            self._record("create", "success")
            emit_secret_created(resource.body, secret.namespace, secret.name)
        except AlreadyExistsError:
            existing = self.store.get_secret(desired.namespace, desired.name)
            if not is_owned_by(existing, resource):
                raise SynchronizationError(
                    f"secret {desired.namespace}/{desired.name} already exists "
                    "and is not managed by this GeneratedSecret"
                )
            secret = self._repair(resource, existing, desired)

        if not secret.uid:
            raise SynchronizationError(f"secret {secret.namespace}/{secret.name} has no uid")
        return GeneratedSecretRef.from_secret(secret)

    def _ensure_copies(
        self,
        resource: GeneratedSecret,
        namespaces: list[str],
        payload: Mapping[str, bytes],
    ) -> tuple[list[GeneratedSecretRef], list[str]]:
        refs: list[GeneratedSecretRef] = []
        failures: list[str] = []
        for namespace in namespaces:
            try:
                refs.append(self.ensure_copy(resource, build_secret(resource, namespace, payload)))
            except (SynchronizationError, StoreError) as e:
                message = sanitize_exception(e)
                logger.error(f"Failed to create secret in namespace {namespace}: {message}")
                self._record("create", "error")
                emit_secret_create_failed(resource.body, namespace, message)
                failures.append(f"{namespace}: {message}")
        return refs, failures

    def create_all(
        self,
        resource: GeneratedSecret,
        payload: Mapping[str, bytes],
    ) -> tuple[list[GeneratedSecretRef], list[str]]:
        """Create one copy of the payload in every target namespace.

        Running it again for the same resource and payload adopts the copies
        created before instead of duplicating them.

        Args:
            resource: GeneratedSecret to fan out
            payload: Canonical payload shared by every copy

        Returns:
            Tuple of (refs of the copies, per-namespace failure messages)
        """
        return self._ensure_copies(resource, resource.spec.metadata.namespaces, payload)

    def find_adoptable(
        self,
        resource: GeneratedSecret,
        exclude: set[tuple[str, str]] | None = None,
    ) -> Secret | None:
        """Find an owned copy left in a target namespace without a recorded ref.

        Such a copy exists when an earlier run created the copies but failed
        to record them in status. Its payload is the one consumers already use.

        Args:
            resource: GeneratedSecret whose target namespaces are searched
            exclude: (namespace, name) pairs to skip, e.g. copies that drifted

        Returns:
            The first owned copy with a non-empty payload, or None

        Raises:
            StoreError: If a copy could not be read for any reason other than
                not existing
        """
        exclude = exclude or set()
        for namespace in resource.spec.metadata.namespaces:
            if (namespace, resource.secret_name) in exclude:
                continue
            try:
                live = self.store.get_secret(namespace, resource.secret_name)
            except NotFoundError:
                continue
            if live.data and is_owned_by(live, resource):
                return live
        return None

    def reconcile_metadata(self, resource: GeneratedSecret) -> bool:
        """Sync labels and annotations of the recorded copies.

        Refs whose copy is gone, has an incomplete payload or is no longer
        owned are dropped so that ``create_missing`` recreates them. The
        status refs of ``resource`` are replaced in place.

        Returns:
            True if the refs changed
        """
        labels = expected_labels(resource)
        annotations = dict(resource.spec.metadata.annotations)
        template_keys = set(resource.spec.data)

        refs: list[GeneratedSecretRef] = []
        for ref in resource.status.refs:
            try:
                live = self.store.get_secret(ref.namespace, ref.name)
            except NotFoundError:
                logger.info(f"Dropping ref to missing secret {ref.namespace}/{ref.name}")
                continue
            except StoreError as e:
                logger.warning(f"Failed to fetch secret {ref.namespace}/{ref.name}: {sanitize_exception(e)}")
                refs.append(ref)
                continue

            if not live.data or not template_keys.issubset(live.data):
                logger.info(f"Secret {ref.namespace}/{ref.name} is missing template keys, recreating")
                continue
            if not is_owned_by(live, resource):
                logger.warning(f"Secret {ref.namespace}/{ref.name} is no longer owned, dropping ref")
                continue

            if live.labels != labels or live.annotations != annotations:
                live.labels = dict(labels)
                live.annotations = dict(annotations)
                try:
                    live = self.store.update_secret(live)
                except StoreError as e:
                    logger.warning(
                        f"Failed to update metadata of secret {ref.namespace}/{ref.name}: {sanitize_exception(e)}"
                    )
                    self._record("update_metadata", "error")
                    refs.append(ref)
                    continue
                self._record("update_metadata", "success")
                emit_secret_updated(resource.body, live.namespace, live.name)

            refs.append(GeneratedSecretRef.from_secret(live))

        updated = refs != resource.status.refs
        resource.status.refs = refs
        return updated

    def create_missing(self, resource: GeneratedSecret, valid_secrets: list[Secret]) -> list[str]:
        """Create the copies that are missing from the recorded refs.

        The payload of the first valid copy is the canonical one; keys added
        to the template since it was generated are filled in.

        Args:
            resource: GeneratedSecret whose status refs are extended in place
            valid_secrets: Copies that passed drift classification

        Returns:
            Per-namespace failure messages

        Raises:
            SynchronizationError: If there is no valid copy to copy from
            GenerationError: If missing template keys cannot be generated
        """
        if not valid_secrets:
            raise SynchronizationError("cannot create missing secrets without a valid secret to copy from")

        payload = complete_payload(
            self.store,
            resource.spec.data,
            resource.namespace,
            valid_secrets[0].data,
        )

        kept: list[GeneratedSecretRef] = []
        missing: list[str] = []
        for namespace in resource.spec.metadata.namespaces:
            ref = resource.status.find_ref(namespace, resource.secret_name)
            if ref is not None:
                kept.append(ref)
            else:
                missing.append(namespace)

        created, failures = self._ensure_copies(resource, missing, payload)
        self.prune(resource, keep=kept + created)
        resource.status.refs = sorted(kept + created, key=lambda r: r.namespace)
        return failures

    def prune(self, resource: GeneratedSecret, keep: list[GeneratedSecretRef]) -> None:
        """Remove copies that are recorded but no longer targeted.

        Copies are only deleted when the deletion policy is ``Delete``.
        """
        targeted = {(ref.namespace, ref.name) for ref in keep}
        stale = [ref for ref in resource.status.refs if (ref.namespace, ref.name) not in targeted]
        for ref in stale:
            if not resource.deletes_copies:
                logger.info(f"Releasing secret {ref.namespace}/{ref.name} (deletion policy Retain)")
                continue
            try:
                self._delete_owned(resource, ref.namespace, ref.name)
            except StoreError as e:
                logger.warning(f"Failed to prune secret {ref.namespace}/{ref.name}: {sanitize_exception(e)}")

    def _delete_owned(self, resource: GeneratedSecret, namespace: str, name: str) -> bool:
        """Delete a copy if it exists and is owned. Returns True if deleted."""
        try:
            live = self.store.get_secret(namespace, name)
        except NotFoundError:
            return False
        if not is_owned_by(live, resource):
            logger.warning(f"Not deleting secret {namespace}/{name}: it is not owned by this GeneratedSecret")
            return False
        try:
            self.store.delete_secret(namespace, name)
        except NotFoundError:
            return False
        self._record("delete", "success")
        emit_secret_deleted(resource.body, namespace, name)
        return True

    def cleanup(self, resource: GeneratedSecret) -> None:
        """Delete the recorded copies according to the deletion policy.

        Safe to run repeatedly. Every copy is attempted before failures are
        reported.

        Raises:
            CleanupError: If one or more copies could not be deleted
        """
        if not resource.deletes_copies:
            logger.info(f"Retaining {resource.status.secrets_count} secret(s) of {resource.namespace}/{resource.name}")
            return

        failures: list[str] = []
        for ref in resource.status.refs:
            try:
                self._delete_owned(resource, ref.namespace, ref.name)
            except StoreError as e:
                self._record("delete", "error")
                failures.append(f"{ref.namespace}/{ref.name}: {sanitize_exception(e)}")

        if failures:
            raise CleanupError(f"failed to delete {len(failures)} secret(s): {'; '.join(failures)}")
