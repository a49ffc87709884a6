"""Status conditions for GeneratedSecret resources.

Helpers mutate the given conditions list in place and return it, so they
can be chained on ``status.conditions``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_ERROR, COND_READY, REASON_SECRETS_GENERATED


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if any."""
    return next((cond for cond in conditions if cond.get("type") == condition_type), None)


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set a condition, replacing any previous one of the same type.

    ``lastTransitionTime`` is carried over unless the status flips.

    Args:
        conditions: Conditions to update in place
        condition_type: Type of condition
        status: "True", "False" or "Unknown"
        reason: CamelCase reason
        message: Human-readable message
        observed_generation: Generation the condition reflects

    Returns:
        The updated conditions
    """
    previous = get_condition(conditions, condition_type)
    condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": (
            previous.get("lastTransitionTime") or _now()
            if previous is not None and previous.get("status") == status
            else _now()
        ),
    }
    if observed_generation is not None:
        condition["observedGeneration"] = observed_generation

    if previous is None:
        conditions.append(condition)
    else:
        conditions[conditions.index(previous)] = condition
    return conditions


def remove_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    """Remove a condition by type, keeping the order of the others."""
    conditions[:] = [cond for cond in conditions if cond.get("type") != condition_type]
    return conditions


def is_condition_true(conditions: list[dict[str, Any]], condition_type: str) -> bool:
    cond = get_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == "True"


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
    reason: str | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        reason or ("Ready" if status else "NotReady"),
        message,
        observed_generation,
    )


def set_error_condition(
    conditions: list[dict[str, Any]],
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set Error=True together with Ready=False.

    An error always implies the resource is not ready.
    """
    update_condition(conditions, COND_ERROR, "True", reason, message, observed_generation)
    return set_ready_condition(conditions, False, message, observed_generation, reason=reason)


def set_secrets_generated_condition(
    conditions: list[dict[str, Any]],
    count: int,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Mark the resource Ready and clear any Error condition."""
    remove_condition(conditions, COND_ERROR)
    return set_ready_condition(
        conditions,
        True,
        f"Successfully generated {count} secret(s)",
        observed_generation,
        reason=REASON_SECRETS_GENERATED,
    )
