"""Per-reconcile context that is attached to every structured log line."""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "generated_secrets_correlation_id", default=None
)


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:16]


def get_correlation_id() -> str | None:
    return _correlation_id.get()


@contextmanager
def with_correlation_id(corr_id: str | None = None) -> Iterator[str]:
    """Bind a correlation ID to everything logged inside the block.

    Args:
        corr_id: ID to bind; a fresh one is generated when omitted

    Yields:
        The bound correlation ID
    """
    token = _correlation_id.set(corr_id or new_correlation_id())
    try:
        yield _correlation_id.get()
    finally:
        _correlation_id.reset(token)


def current_trace_ids() -> dict[str, str]:
    """Return the hex trace and span IDs of the active span, if there is one."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Collect the correlation ID and trace IDs bound to the current context.

    Args:
        additional: Extra fields merged over the collected ones

    Returns:
        Mapping suitable for merging into a log record
    """
    ctx: dict[str, Any] = current_trace_ids()
    corr_id = get_correlation_id()
    if corr_id:
        ctx["correlation_id"] = corr_id
    ctx.update(additional or {})
    return ctx
