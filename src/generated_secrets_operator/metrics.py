"""Prometheus metrics for the Generated Secrets Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "generated_secrets_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "generated_secrets_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "generated_secrets_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "generated_secrets_operator_resource_status_total",
    "Resource status observed at the end of a reconciliation",
    ["kind", "status"],
)

# Generated copy operations
secret_operations_total = Counter(
    "generated_secrets_operator_secret_operations_total",
    "Total number of operations on generated secret copies",
    ["operation", "result"],
)

# Values produced by the generation engine
values_generated_total = Counter(
    "generated_secrets_operator_values_generated_total",
    "Total number of secret values resolved",
    ["source", "result"],
)

# Drift detection metrics
drift_detected_total = Counter(
    "generated_secrets_operator_drift_detected_total",
    "Total number of copies found modified outside the operator",
    ["kind", "reason"],
)

status_update_conflicts_total = Counter(
    "generated_secrets_operator_status_update_conflicts_total",
    "Total number of optimistic concurrency conflicts while writing resources",
    ["kind"],
)

# API call metrics
api_call_total = Counter(
    "generated_secrets_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "generated_secrets_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "generated_secrets_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
