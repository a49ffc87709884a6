"""JSON log lines for GeneratedSecret reconcile events."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from .utils.context import get_context_dict

REDACTED = "***REDACTED***"

# Fields that may carry generated secret material
SECRET_FIELDS = frozenset({"data", "string_data", "payload", "value", "values", "password"})

# Client libraries that log every request at INFO
_CHATTY_LOGGERS = ("kubernetes.client.rest", "urllib3")


def setup_structured_logging(level: str | None = None) -> None:
    """Send one JSON document per line to stdout.

    Args:
        level: Level name; falls back to LOG_LEVEL, then INFO
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``log_data`` with secret-bearing fields masked."""
    return {key: REDACTED if key in SECRET_FIELDS else value for key, value in log_data.items()}


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured event about one custom resource.

    The correlation ID and any active trace IDs are attached automatically.
    Extra keyword fields are included after masking secret-bearing ones.
    """
    record: dict[str, Any] = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    record.update(get_context_dict(sanitize_secrets(kwargs)))
    logger.log(level, json.dumps(record, default=str))
