"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_BUCKET_CREATED,
    EVENT_REASON_BUCKET_DELETED,
    EVENT_REASON_BUCKET_UPDATED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_RESOURCE_GONE,
    EVENT_REASON_USER_CREATED,
    EVENT_REASON_USER_DELETED,
    EVENT_REASON_USER_UPDATED,
    EVENT_REASON_VALIDATE_FAILED,
    EVENT_REASON_VALIDATE_SUCCEEDED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_succeeded(body: dict[str, Any]) -> None:
    """Emit validation succeeded event."""
    emit_event(body, EVENT_REASON_VALIDATE_SUCCEEDED, "Validation succeeded")


def emit_validate_failed(body: dict[str, Any], message: str) -> None:
    """Emit validation failed event."""
    emit_event(body, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_bucket_created(body: dict[str, Any], bucket_name: str) -> None:
    """Emit bucket created event."""
    emit_event(body, EVENT_REASON_BUCKET_CREATED, f"Bucket {bucket_name} created")


def emit_bucket_updated(body: dict[str, Any], bucket_name: str) -> None:
    """Emit bucket updated event."""
    emit_event(body, EVENT_REASON_BUCKET_UPDATED, f"Bucket {bucket_name} updated")


def emit_bucket_deleted(body: dict[str, Any], bucket_name: str) -> None:
    """Emit bucket deleted event."""
    emit_event(body, EVENT_REASON_BUCKET_DELETED, f"Bucket {bucket_name} deleted")


def emit_user_created(body: dict[str, Any], user_id: str) -> None:
    """Emit user created event."""
    emit_event(body, EVENT_REASON_USER_CREATED, f"User {user_id} created")


def emit_user_updated(body: dict[str, Any], user_id: str) -> None:
    """Emit user updated event."""
    emit_event(body, EVENT_REASON_USER_UPDATED, f"User {user_id} updated")


def emit_user_deleted(body: dict[str, Any], user_id: str) -> None:
    """Emit user deleted event."""
    emit_event(body, EVENT_REASON_USER_DELETED, f"User {user_id} deleted")


def emit_resource_gone(body: dict[str, Any], kind: str, name: str) -> None:
    """Emit an event when a tracked remote object no longer exists."""
    emit_event(body, EVENT_REASON_RESOURCE_GONE, f"{kind} {name} no longer exists on the gateway")
