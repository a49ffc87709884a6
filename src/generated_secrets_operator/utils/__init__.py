"""Utility functions for the Generated Secrets Operator."""

from .conditions import (
    set_error_condition,
    set_ready_condition,
    set_secrets_generated_condition,
    update_condition,
)
from .context import get_context_dict, get_correlation_id, with_correlation_id
from .events import emit_event
from .rate_limit import handle_rate_limit_error, rate_limit_k8s

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_error_condition",
    "set_secrets_generated_condition",
    "emit_event",
    "rate_limit_k8s",
    "handle_rate_limit_error",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
