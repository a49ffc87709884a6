"""Constants for the Generated Secrets Operator."""

import os

# API Group
API_GROUP = "secrets.cloud37.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_GENERATED_SECRET = "GeneratedSecret"
PLURAL_GENERATED_SECRET = "generatedsecrets"

# Ownership labels carried by every generated copy
LABEL_MANAGED_BY = f"{API_GROUP}/managed-by"
LABEL_GENERATED_SECRET_NAME = f"{API_GROUP}/generated-secret-name"
LABEL_GENERATED_SECRET_NAMESPACE = f"{API_GROUP}/generated-secret-namespace"
LABEL_GENERATED_SECRET_UID = f"{API_GROUP}/generated-secret-uid"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "generated-secrets-operator"
CONTROLLER_NAME = "generated-secrets-operator"

# Secret defaults
DEFAULT_SECRET_TYPE = "Opaque"
DELETION_POLICY_DELETE = "Delete"
DELETION_POLICY_RETAIN = "Retain"

# Condition Types
COND_READY = "Ready"
COND_ERROR = "Error"

# Condition Reasons
REASON_SECRETS_GENERATED = "SecretsGenerated"
REASON_GENERATION_FAILED = "GenerationFailed"
REASON_VALIDATION_FAILED = "ValidationFailed"
REASON_CREATION_FAILED = "SecretCreationFailed"
REASON_RECONCILING = "Reconciling"
REASON_NO_SECRETS = "NoSecrets"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_GENERATION_FAILED = "GenerationFailed"
EVENT_REASON_SECRET_CREATED = "SecretCreated"
EVENT_REASON_SECRET_CREATE_FAILED = "SecretCreateFailed"
EVENT_REASON_SECRET_UPDATED = "SecretUpdated"
EVENT_REASON_SECRET_DELETED = "SecretDeleted"
EVENT_REASON_DRIFT_DETECTED = "DriftDetected"
EVENT_REASON_CLEANUP_SUCCEEDED = "CleanupSucceeded"
EVENT_REASON_CLEANUP_FAILED = "CleanupFailed"
EVENT_REASON_CLEANUP_ABANDONED = "CleanupAbandoned"

# Reconciliation tuning
REQUEUE_AFTER_ERROR_SECONDS = float(os.getenv("REQUEUE_AFTER_ERROR_SECONDS", "60"))
DRIFT_CHECK_INTERVAL_SECONDS = float(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))
STATUS_UPDATE_MAX_RETRIES = int(os.getenv("STATUS_UPDATE_MAX_RETRIES", "5"))
STATUS_UPDATE_BACKOFF_SECONDS = float(os.getenv("STATUS_UPDATE_BACKOFF_SECONDS", "0.1"))
# 0 keeps retrying cleanup until it succeeds
CLEANUP_MAX_RETRIES = int(os.getenv("CLEANUP_MAX_RETRIES", "0"))
