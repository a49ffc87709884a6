"""Shared plumbing for resource handlers: structured logs and reconcile metrics."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from .. import metrics
from ..constants import CONTROLLER_NAME
from ..logging import log_resource_event
from ..utils.errors import sanitize_exception

_T = TypeVar("_T")


class BaseHandler:
    """Base class for handlers of one custom resource kind."""

    def __init__(self, kind: str):
        self.kind = kind
        self.logger = logging.getLogger(f"{__package__}.{kind.lower()}")

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def log(self, level: int, meta: dict[str, Any], message: str, event: str, reason: str, **fields: Any) -> None:
        """Emit a structured log line about the resource described by ``meta``.

        Args:
            level: Logging level
            meta: Resource metadata, only name, namespace and uid are used
            message: Human-readable message
            event: Short machine-readable event name
            reason: CamelCase reason, usually matching a condition or event reason
            **fields: Extra fields; secret-bearing ones are masked
        """
        if not self.logger.isEnabledFor(level):
            return
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **fields,
        )

    def log_info(self, meta: dict[str, Any], message: str, event: str = "info", reason: str = "Info", **fields: Any) -> None:
        self.log(logging.INFO, meta, message, event, reason, **fields)

    def log_warning(
        self, meta: dict[str, Any], message: str, event: str = "warning", reason: str = "Warning", **fields: Any
    ) -> None:
        self.log(logging.WARNING, meta, message, event, reason, **fields)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **fields: Any,
    ) -> None:
        """Log at error level, attaching the sanitized ``error`` and its type."""
        if error is not None:
            fields.setdefault("error", sanitize_exception(error))
            fields.setdefault("error_type", type(error).__name__)
        self.log(logging.ERROR, meta, message, event, reason, **fields)

    def reconcile_with_metrics(self, reconcile_fn: Callable[[], _T]) -> _T:
        """Call ``reconcile_fn``, counting the attempt and timing it.

        Exceptions are counted by type and re-raised.
        """
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()
        started = time.monotonic()
        try:
            return reconcile_fn()
        except Exception as e:
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(time.monotonic() - started)
