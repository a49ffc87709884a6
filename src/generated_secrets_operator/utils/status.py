"""Optimistic-concurrency writers for GeneratedSecret status and metadata."""

from __future__ import annotations

import copy
import logging
import time
from typing import Any, Callable, TypeVar

from .. import metrics
from ..constants import (
    FINALIZER,
    KIND_GENERATED_SECRET,
    STATUS_UPDATE_BACKOFF_SECONDS,
    STATUS_UPDATE_MAX_RETRIES,
)
from ..models import GeneratedSecretStatus
from ..services.store.base import ObjectStore
from .errors import ConflictError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def retry_on_conflict(
    read: Callable[[], _T],
    merge: Callable[[_T], _T | None],
    write: Callable[[_T], _T],
    max_retries: int = STATUS_UPDATE_MAX_RETRIES,
    backoff: float = STATUS_UPDATE_BACKOFF_SECONDS,
) -> _T:
    """Read, merge and conditionally write an object, retrying on conflicts.

    Args:
        read: Fetch the latest version of the object
        merge: Overlay local changes onto the fetched object. Returning None
            means there is nothing to write and the fetched object is returned.
        write: Conditional write, raising ConflictError if the object changed
        max_retries: Number of retries after the first attempt
        backoff: Base delay in seconds, doubled after every conflict

    Returns:
        The written (or unchanged) object

    Raises:
        ConflictError: If every attempt conflicted
    """
    attempt = 0
    while True:
        latest = read()
        merged = merge(latest)
        if merged is None:
            return latest
        try:
            return write(merged)
        except ConflictError:
            metrics.status_update_conflicts_total.labels(kind=KIND_GENERATED_SECRET).inc()
            if attempt >= max_retries:
                raise
            delay = backoff * (2 ** attempt)
            logger.debug(f"Conflict on write, retrying in {delay:.2f}s (attempt {attempt + 1})")
            time.sleep(delay)
            attempt += 1


def update_status_with_retry(
    store: ObjectStore,
    namespace: str,
    name: str,
    status: GeneratedSecretStatus,
) -> dict[str, Any]:
    """Persist the computed status on the latest version of the resource.

    The write is skipped when the stored status already matches.
    """
    desired = status.to_dict()

    def merge(latest: dict[str, Any]) -> dict[str, Any] | None:
        current = latest.get("status") or {}
        if all(current.get(key) == value for key, value in desired.items()):
            return None
        updated = copy.deepcopy(latest)
        updated["status"] = {**current, **desired}
        return updated

    return retry_on_conflict(
        lambda: store.get_generated_secret(namespace, name),
        merge,
        store.update_generated_secret_status,
    )


def add_finalizer(store: ObjectStore, namespace: str, name: str) -> dict[str, Any]:
    """Attach the operator finalizer to the resource."""

    def merge(latest: dict[str, Any]) -> dict[str, Any] | None:
        finalizers = list(latest.get("metadata", {}).get("finalizers") or [])
        if FINALIZER in finalizers:
            return None
        updated = copy.deepcopy(latest)
        updated["metadata"]["finalizers"] = finalizers + [FINALIZER]
        return updated

    return retry_on_conflict(
        lambda: store.get_generated_secret(namespace, name),
        merge,
        store.update_generated_secret,
    )


def remove_finalizer(store: ObjectStore, namespace: str, name: str) -> dict[str, Any]:
    """Remove the operator finalizer from the resource."""

    def merge(latest: dict[str, Any]) -> dict[str, Any] | None:
        finalizers = list(latest.get("metadata", {}).get("finalizers") or [])
        if FINALIZER not in finalizers:
            return None
        updated = copy.deepcopy(latest)
        updated["metadata"]["finalizers"] = [f for f in finalizers if f != FINALIZER]
        return updated

    return retry_on_conflict(
        lambda: store.get_generated_secret(namespace, name),
        merge,
        store.update_generated_secret,
    )
