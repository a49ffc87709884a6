"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CLEANUP_ABANDONED,
    EVENT_REASON_CLEANUP_FAILED,
    EVENT_REASON_CLEANUP_SUCCEEDED,
    EVENT_REASON_DRIFT_DETECTED,
    EVENT_REASON_GENERATION_FAILED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_SECRET_CREATE_FAILED,
    EVENT_REASON_SECRET_CREATED,
    EVENT_REASON_SECRET_DELETED,
    EVENT_REASON_SECRET_UPDATED,
    EVENT_REASON_VALIDATE_FAILED,
)

logger = logging.getLogger(__name__)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Events are fire-and-forget: a failure to post is logged and never
    interrupts reconciliation.

    Args:
        body: Resource body (apiVersion, kind and metadata are used)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    try:
        kopf.event(
            body,
            reason=reason,
            message=message,
            type=type_,
        )
    except Exception as e:
        logger.warning(f"Failed to post event {reason}: {e}")


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_failed(body: dict[str, Any], message: str) -> None:
    """Emit validation failed event."""
    emit_event(body, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_generation_failed(body: dict[str, Any], message: str) -> None:
    """Emit generation failed event."""
    emit_event(body, EVENT_REASON_GENERATION_FAILED, message, type_="Warning")


def emit_secret_created(body: dict[str, Any], namespace: str, name: str) -> None:
    """Emit secret created event."""
    emit_event(body, EVENT_REASON_SECRET_CREATED, f"Created secret {namespace}/{name}")


def emit_secret_create_failed(body: dict[str, Any], namespace: str, message: str) -> None:
    """Emit secret create failed event."""
    emit_event(
        body,
        EVENT_REASON_SECRET_CREATE_FAILED,
        f"Error while creating secret in namespace '{namespace}': {message}",
        type_="Warning",
    )


def emit_secret_updated(body: dict[str, Any], namespace: str, name: str) -> None:
    """Emit secret updated event."""
    emit_event(body, EVENT_REASON_SECRET_UPDATED, f"Updated secret {namespace}/{name}")


def emit_secret_deleted(body: dict[str, Any], namespace: str, name: str) -> None:
    """Emit secret deleted event."""
    emit_event(body, EVENT_REASON_SECRET_DELETED, f"Deleted secret {namespace}/{name}")


def emit_drift_detected(body: dict[str, Any], namespace: str, name: str) -> None:
    """Emit drift detected event."""
    emit_event(
        body,
        EVENT_REASON_DRIFT_DETECTED,
        f"Secret {namespace}/{name} has been modified outside the operator",
        type_="Warning",
    )


def emit_cleanup_succeeded(body: dict[str, Any]) -> None:
    """Emit cleanup succeeded event."""
    emit_event(body, EVENT_REASON_CLEANUP_SUCCEEDED, "Generated secrets have been cleaned up")


def emit_cleanup_failed(body: dict[str, Any], message: str) -> None:
    """Emit cleanup failed event."""
    emit_event(
        body,
        EVENT_REASON_CLEANUP_FAILED,
        f"Failed to clean up generated secrets: {message}",
        type_="Warning",
    )


def emit_cleanup_abandoned(body: dict[str, Any], attempts: int) -> None:
    """Emit cleanup abandoned event."""
    emit_event(
        body,
        EVENT_REASON_CLEANUP_ABANDONED,
        f"Cleanup gave up after {attempts} attempts, remaining secrets are left in place",
        type_="Warning",
    )
