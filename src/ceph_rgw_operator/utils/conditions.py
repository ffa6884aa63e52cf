"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_AUTH_VALID,
    COND_CREATION_FAILED,
    COND_ENDPOINT_REACHABLE,
    COND_IMMUTABLE_FIELD,
    COND_PROVIDER_NOT_READY,
    COND_READY,
    COND_UPDATE_FAILED,
)


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated copy of the conditions list
    """
    conditions = list(conditions)
    now = datetime.now(timezone.utc).isoformat()

    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def clear_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    """Drop a condition type from the list."""
    return [cond for cond in conditions if cond.get("type") != condition_type]


def _set_bool_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: bool,
    reasons: tuple[str, str],
    message: str,
    observed_generation: int | None,
) -> list[dict[str, Any]]:
    return update_condition(
        conditions,
        condition_type,
        "True" if status else "False",
        reasons[0] if status else reasons[1],
        message,
        observed_generation,
    )


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
    reason: str | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition.

    ``reason`` overrides the default Ready/NotReady reason.
    """
    reasons = (reason, reason) if reason else ("Ready", "NotReady")
    return _set_bool_condition(conditions, COND_READY, status, reasons, message, observed_generation)


def set_auth_valid_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the AuthValid condition."""
    return _set_bool_condition(
        conditions, COND_AUTH_VALID, status, ("AuthValid", "AuthInvalid"), message, observed_generation
    )


def set_endpoint_reachable_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the EndpointReachable condition."""
    return _set_bool_condition(
        conditions,
        COND_ENDPOINT_REACHABLE,
        status,
        ("EndpointReachable", "EndpointUnreachable"),
        message,
        observed_generation,
    )


def _set_failure_condition(condition_type: str):
    def setter(
        conditions: list[dict[str, Any]],
        message: str,
        observed_generation: int | None = None,
    ) -> list[dict[str, Any]]:
        return update_condition(conditions, condition_type, "True", condition_type, message, observed_generation)

    setter.__name__ = f"set_{condition_type}_condition"
    setter.__doc__ = f"Set the {condition_type} condition."
    return setter


# Failure conditions are only ever set to True and cleared on success
set_provider_not_ready_condition = _set_failure_condition(COND_PROVIDER_NOT_READY)
set_creation_failed_condition = _set_failure_condition(COND_CREATION_FAILED)
set_update_failed_condition = _set_failure_condition(COND_UPDATE_FAILED)
set_immutable_field_condition = _set_failure_condition(COND_IMMUTABLE_FIELD)
