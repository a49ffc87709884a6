"""Drift classification of the copies recorded in a GeneratedSecret status."""

from __future__ import annotations

import logging

from .. import metrics
from ..constants import KIND_GENERATED_SECRET
from ..models import GeneratedSecret, Secret
from ..services.store.base import ObjectStore
from ..utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def classify(store: ObjectStore, resource: GeneratedSecret) -> tuple[list[Secret], list[Secret]]:
    """Split the recorded copies into valid and invalid ones.

    A copy is invalid when its live uid, resourceVersion or type no longer
    matches the recorded ref. Copies that no longer exist end up in neither
    list.

    Args:
        store: Object store
        resource: GeneratedSecret whose status refs are checked

    Returns:
        Tuple of (valid, invalid) live secrets

    Raises:
        StoreError: If a recorded copy could not be read for any reason other
            than not existing
    """
    valid: list[Secret] = []
    invalid: list[Secret] = []

    for ref in resource.status.refs:
        try:
            secret = store.get_secret(ref.namespace, ref.name)
        except NotFoundError:
            logger.info(f"Recorded secret {ref.namespace}/{ref.name} no longer exists")
            metrics.drift_detected_total.labels(kind=KIND_GENERATED_SECRET, reason="deleted").inc()
            continue

        if ref.matches(secret):
            valid.append(secret)
        else:
            logger.info(
                f"Secret {ref.namespace}/{ref.name} drifted from its recorded identity "
                f"(uid {ref.uid} -> {secret.uid}, resourceVersion {ref.resource_version} -> "
                f"{secret.resource_version}, type {ref.type} -> {secret.type})"
            )
            metrics.drift_detected_total.labels(kind=KIND_GENERATED_SECRET, reason="modified").inc()
            invalid.append(secret)

    return valid, invalid
