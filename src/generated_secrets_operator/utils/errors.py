"""Operator exceptions and error sanitization utilities."""

from __future__ import annotations

import re
from typing import Any

from ..constants import REASON_GENERATION_FAILED, REASON_VALIDATION_FAILED


class OperatorError(Exception):
    """Base class for all errors raised by the operator."""

    reason = "Error"


class ValidationError(OperatorError, ValueError):
    """The GeneratedSecret spec is malformed and must be edited."""

    reason = REASON_VALIDATION_FAILED


class GenerationError(OperatorError):
    """Secret values could not be produced."""

    reason = REASON_GENERATION_FAILED
    # Template key that failed, set once the error leaves the key resolver
    key: str | None = None

    def describe(self) -> str:
        if self.key:
            return f"failed to generate value for key '{self.key}': {self}"
        return str(self)


class TemplateError(GenerationError):
    """A templated value failed to parse or render."""


class InputSecretNotFoundError(GenerationError):
    """The secret referenced by a templated value does not exist."""

    def __init__(self, namespace: str, name: str):
        super().__init__(f"Input secret '{name}' not found in namespace '{namespace}'")
        self.namespace = namespace
        self.name = name


class SynchronizationError(OperatorError):
    """One or more copies could not be created or repaired."""


class CleanupError(OperatorError):
    """One or more copies could not be deleted during cleanup."""


class StoreError(OperatorError):
    """Object store call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(StoreError):
    """The requested object does not exist."""


class AlreadyExistsError(StoreError):
    """An object with the same namespace and name already exists."""


class ConflictError(StoreError):
    """The object was modified since it was read (resourceVersion mismatch)."""


# Patterns that might expose sensitive information, with their replacement
SENSITIVE_PATTERNS = [
    (r"://([^:/\s]+):([^@/\s]+)@", r"://\1:[REDACTED]@"),
    (r"(password|passwd|token)([=:\s]+)([^\s,;\)]+)", r"\1\2[REDACTED]"),
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
    "data",
    "stringdata",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        if key.lower() in all_sensitive:
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
