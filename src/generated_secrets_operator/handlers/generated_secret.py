"""Handler for GeneratedSecret CRD."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import kopf

from .. import metrics
from ..builders.generated_secret import create_generated_secret_from_body
from ..constants import (
    API_GROUP_VERSION,
    CLEANUP_MAX_RETRIES,
    DRIFT_CHECK_INTERVAL_SECONDS,
    KIND_GENERATED_SECRET,
    REASON_CREATION_FAILED,
    REASON_NO_SECRETS,
    REASON_RECONCILING,
    REQUEUE_AFTER_ERROR_SECONDS,
)
from ..generation.values import complete_payload, generate_values
from ..models import GeneratedSecret
from ..services.store.base import ObjectStore
from ..sync.classifier import classify
from ..sync.synchronizer import SecretSynchronizer
from ..tracing import add_span_attribute, trace_span
from ..utils.conditions import (
    set_error_condition,
    set_ready_condition,
    set_secrets_generated_condition,
)
from ..utils.context import with_correlation_id
from ..utils.errors import (
    CleanupError,
    GenerationError,
    NotFoundError,
    OperatorError,
    SynchronizationError,
    ValidationError,
    sanitize_exception,
)
from ..utils.events import (
    emit_cleanup_abandoned,
    emit_cleanup_failed,
    emit_cleanup_succeeded,
    emit_drift_detected,
    emit_generation_failed,
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_validate_failed,
)
from ..utils.status import add_finalizer, remove_finalizer, update_status_with_retry
from .base import BaseHandler


@dataclass
class ReconcileResult:
    """Outcome of one reconcile run.

    ``requeue_after`` is set together with ``error`` when the resource should
    be reconciled again after a delay.
    """

    requeue_after: float | None = None
    error: Exception | None = None


class GeneratedSecretHandler(BaseHandler):
    """Handler for GeneratedSecret resources."""

    def __init__(
        self,
        store: ObjectStore,
        synchronizer: SecretSynchronizer | None = None,
        requeue_after_error: float = REQUEUE_AFTER_ERROR_SECONDS,
        cleanup_max_retries: int = CLEANUP_MAX_RETRIES,
    ):
        """Initialize the handler.

        Args:
            store: Object store used for every read and write
            synchronizer: Secret synchronizer, built from ``store`` if omitted
            requeue_after_error: Delay before a failed reconcile is retried
            cleanup_max_retries: Failed cleanups after which the finalizer is
                released anyway, 0 retries forever
        """
        super().__init__(KIND_GENERATED_SECRET)
        self.store = store
        self.synchronizer = synchronizer or SecretSynchronizer(store)
        self.requeue_after_error = requeue_after_error
        self.cleanup_max_retries = cleanup_max_retries

    def reconcile(self, namespace: str, name: str, retry: int = 0) -> ReconcileResult:
        """Reconcile one GeneratedSecret.

        Args:
            namespace: Namespace of the resource
            name: Name of the resource
            retry: Number of previous failed attempts for the current event

        Returns:
            ReconcileResult carrying the error and requeue delay on failure
        """
        with with_correlation_id():
            with trace_span(
                "reconcile_generated_secret",
                kind=KIND_GENERATED_SECRET,
                attributes={"resource.name": name, "resource.namespace": namespace},
            ):
                result = self.reconcile_with_metrics(lambda: self._reconcile(namespace, name, retry))
        outcome = "failed" if result.error is not None else "success"
        metrics.reconcile_total.labels(kind=self.kind, result=outcome).inc()
        return result

    def _reconcile(self, namespace: str, name: str, retry: int) -> ReconcileResult:
        try:
            body = self.store.get_generated_secret(namespace, name)
        except NotFoundError:
            self.logger.info(f"GeneratedSecret {namespace}/{name} no longer exists")
            return ReconcileResult()

        # Lenient parse: a broken spec must not prevent cleanup
        resource = create_generated_secret_from_body(body, strict=False)

        try:
            if resource.being_deleted:
                if not resource.has_finalizer:
                    return ReconcileResult()
                return self.finalize(resource, retry)

            if not resource.has_finalizer:
                body = add_finalizer(self.store, namespace, name)
                self.log_info(resource.meta, "Attached finalizer", event="finalizer", reason="FinalizerAdded")

            try:
                resource = create_generated_secret_from_body(body)
            except ValidationError as e:
                resource = create_generated_secret_from_body(body, strict=False)
                emit_validate_failed(resource.body, sanitize_exception(e))
                return self._fail(resource, e, e.reason, sanitize_exception(e))

            return self.reconcile_active(resource)
        except OperatorError as e:
            message = sanitize_exception(e)
            self.log_error(resource.meta, f"Reconciliation failed: {message}", error=e, reason="ReconcileFailed")
            emit_reconcile_failed(resource.body, f"Reconciliation failed: {message}")
            return ReconcileResult(self.requeue_after_error, e)

    def reconcile_active(self, resource: GeneratedSecret) -> ReconcileResult:
        """Generate, fan out and repair the copies of an active resource."""
        meta = resource.meta
        status = resource.status
        generation = resource.generation

        if not status.initialized or status.observed_generation != generation:
            emit_reconcile_started(resource.body)

        with trace_span("classify_secrets", kind=self.kind):
            valid, invalid = classify(self.store, resource)
            add_span_attribute("secrets.valid", len(valid))
            add_span_attribute("secrets.invalid", len(invalid))

        drifted = {(secret.namespace, secret.name) for secret in invalid}
        if invalid:
            status.refs = [ref for ref in status.refs if (ref.namespace, ref.name) not in drifted]
            for secret in invalid:
                emit_drift_detected(resource.body, secret.namespace, secret.name)
            self.log_warning(
                meta,
                f"Detected {len(invalid)} secret(s) modified outside the operator",
                event="drift",
                reason="DriftDetected",
                secrets=sorted(f"{ns}/{n}" for ns, n in drifted),
            )
            set_ready_condition(
                status.conditions,
                False,
                f"Repairing {len(invalid)} modified secret(s)",
                generation,
                reason=REASON_RECONCILING,
            )
            update_status_with_retry(self.store, resource.namespace, resource.name, status)

        try:
            if not valid:
                with trace_span("generate_secrets", kind=self.kind):
                    payload = self._initial_payload(resource, drifted)
                    refs, failures = self.synchronizer.create_all(resource, payload)
                    self.synchronizer.prune(resource, keep=refs)
                    status.refs = refs
            else:
                with trace_span("sync_secrets", kind=self.kind):
                    if self.synchronizer.reconcile_metadata(resource):
                        self.log_info(meta, "Synchronized secret metadata", event="sync", reason="MetadataSynced")
                    failures = self.synchronizer.create_missing(resource, valid)
        except GenerationError as e:
            message = e.describe()
            emit_generation_failed(resource.body, sanitize_exception(e))
            return self._fail(resource, e, e.reason, message)

        if status.refs:
            status.initialized = True

        if failures:
            message = (
                f"Failed to create {len(failures)} of {len(resource.spec.metadata.namespaces)} "
                f"secret(s): {'; '.join(failures)}"
            )
            return self._fail(resource, SynchronizationError(message), REASON_CREATION_FAILED, message)

        if status.secrets_count > 0:
            set_secrets_generated_condition(status.conditions, status.secrets_count, generation)
        else:
            set_ready_condition(status.conditions, False, "No secrets have been generated", generation, reason=REASON_NO_SECRETS)
        status.observed_generation = generation
        update_status_with_retry(self.store, resource.namespace, resource.name, status)

        ready = status.secrets_count > 0
        metrics.resource_status_total.labels(kind=self.kind, status="ready" if ready else "not_ready").inc()
        self.log_info(
            meta,
            f"Reconciled {status.secrets_count} secret(s)",
            event="reconciled",
            reason="Reconciled",
            secrets_count=status.secrets_count,
        )
        return ReconcileResult()

    def _initial_payload(self, resource: GeneratedSecret, drifted: set[tuple[str, str]]) -> dict[str, bytes]:
        """Payload for a resource without a valid recorded copy.

        An owned copy that was created but never recorded keeps its values;
        fresh values are generated only when there is none.
        """
        adopted = self.synchronizer.find_adoptable(resource, exclude=drifted)
        if adopted is None:
            return generate_values(self.store, resource.spec.data, resource.namespace)

        self.log_info(
            resource.meta,
            f"Adopting payload of existing secret {adopted.namespace}/{adopted.name}",
            event="adopt",
            reason="SecretAdopted",
        )
        return complete_payload(self.store, resource.spec.data, resource.namespace, adopted.data)

    def finalize(self, resource: GeneratedSecret, retry: int = 0) -> ReconcileResult:
        """Clean up the copies of a resource being deleted and release it."""
        meta = resource.meta
        self.log_info(
            meta,
            f"GeneratedSecret is being deleted (deletion policy {resource.spec.deletion_policy.value})",
            event="deletion",
            reason="Deletion",
        )

        with trace_span("cleanup_secrets", kind=self.kind):
            try:
                self.synchronizer.cleanup(resource)
            except CleanupError as e:
                message = sanitize_exception(e)
                emit_cleanup_failed(resource.body, message)
                attempts = retry + 1
                if self.cleanup_max_retries <= 0 or attempts < self.cleanup_max_retries:
                    self.log_error(meta, "Cleanup failed", error=e, reason="CleanupFailed", attempt=attempts)
                    return ReconcileResult(self.requeue_after_error, e)
                self.log_warning(meta, f"Giving up cleanup after {attempts} attempts", reason="CleanupAbandoned")
                emit_cleanup_abandoned(resource.body, attempts)
            else:
                emit_cleanup_succeeded(resource.body)

        remove_finalizer(self.store, resource.namespace, resource.name)
        self.log_info(meta, "Released finalizer", event="finalizer", reason="FinalizerRemoved")
        return ReconcileResult()

    def _fail(self, resource: GeneratedSecret, error: Exception, reason: str, message: str) -> ReconcileResult:
        """Record a failed reconcile on the resource status and schedule a retry."""
        status = resource.status
        set_error_condition(status.conditions, reason, message, resource.generation)
        status.observed_generation = resource.generation
        update_status_with_retry(self.store, resource.namespace, resource.name, status)

        metrics.error_total.labels(kind=self.kind, error_type=type(error).__name__).inc()
        metrics.resource_status_total.labels(kind=self.kind, status="not_ready").inc()
        self.log_error(resource.meta, message, error=error, reason=reason)
        return ReconcileResult(self.requeue_after_error, error)


def _reconcile_or_retry(memo: kopf.Memo, namespace: str, name: str, retry: int) -> None:
    handler: GeneratedSecretHandler = memo.handler
    result = handler.reconcile(namespace, name, retry=retry)
    if result.error is not None:
        raise kopf.TemporaryError(sanitize_exception(result.error), delay=result.requeue_after)


@kopf.on.create(API_GROUP_VERSION, KIND_GENERATED_SECRET)
@kopf.on.update(API_GROUP_VERSION, KIND_GENERATED_SECRET)
@kopf.on.resume(API_GROUP_VERSION, KIND_GENERATED_SECRET)
def handle_generated_secret(
    name: str,
    namespace: str,
    memo: kopf.Memo,
    retry: int,
    **kwargs: Any,
) -> None:
    """Handle GeneratedSecret resource reconciliation."""
    _reconcile_or_retry(memo, namespace, name, retry)


@kopf.on.delete(API_GROUP_VERSION, KIND_GENERATED_SECRET, optional=True)
def handle_generated_secret_delete(
    name: str,
    namespace: str,
    memo: kopf.Memo,
    retry: int,
    **kwargs: Any,
) -> None:
    """Handle GeneratedSecret deletion.

    The operator's own finalizer keeps the resource around until the copies
    are cleaned up.
    """
    _reconcile_or_retry(memo, namespace, name, retry)


@kopf.timer(API_GROUP_VERSION, KIND_GENERATED_SECRET, interval=DRIFT_CHECK_INTERVAL_SECONDS)
def check_generated_secret_drift(
    name: str,
    namespace: str,
    memo: kopf.Memo,
    retry: int,
    **kwargs: Any,
) -> None:
    """Periodically repair copies that were modified outside the operator."""
    _reconcile_or_retry(memo, namespace, name, retry)
