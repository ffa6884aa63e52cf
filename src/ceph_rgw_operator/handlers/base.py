"""Base handler class with common functionality for all CRD handlers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import kopf
from kubernetes import client

from .. import metrics
from ..builders.provider import RgwClients, create_clients_from_spec
from ..constants import FINALIZER
from ..logging import log_resource_event
from ..utils.conditions import (
    clear_condition,
    set_immutable_field_condition,
    set_provider_not_ready_condition,
)
from ..utils.errors import ImmutableFieldError, sanitize_exception
from ..utils.events import (
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_validate_failed,
)
from .shared import get_k8s_client, get_provider, is_ready

CONTROLLER = "ceph-rgw-operator"

ConditionSetter = Callable[[list[dict[str, Any]], str], list[dict[str, Any]]]


class BaseHandler:
    """Base class for all CRD handlers with common functionality."""

    def __init__(self, kind: str):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "Provider", "Bucket")
        """
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _log(
        self,
        level: int,
        body: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        meta = body.get("metadata", {})
        log_resource_event(
            self.logger,
            controller=CONTROLLER,
            resource_kind=self.kind,
            resource_name=meta.get("name", "unknown"),
            namespace=meta.get("namespace", "default"),
            uid=meta.get("uid", "unknown"),
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        body: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message.

        Args:
            body: Kubernetes resource body
            message: Log message
            event: Event type (default: "info")
            reason: Reason for the event (default: "Info")
            **kwargs: Additional fields to include in the log
        """
        self._log(logging.INFO, body, message, event, reason, **kwargs)

    def log_warning(
        self,
        body: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, body, message, event, reason, **kwargs)

    def log_error(
        self,
        body: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            body: Kubernetes resource body
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        if error is not None:
            kwargs["error"] = sanitize_exception(error)
            kwargs["error_type"] = type(error).__name__
        self._log(logging.ERROR, body, message, event, reason, **kwargs)

    def _patch_conditions(
        self,
        body: dict[str, Any],
        patch: kopf.Patch,
        conditions: list[dict[str, Any]],
    ) -> None:
        patch.status.update({
            "conditions": conditions,
            "observedGeneration": body.get("metadata", {}).get("generation", 0),
        })

    def resolve_provider(
        self,
        spec: dict[str, Any],
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        require_ready: bool = True,
    ) -> RgwClients | None:
        """Resolve the referenced Provider into gateway clients.

        Returns:
            Clients, or None if the provider does not exist

        Raises:
            kopf.TemporaryError: If the provider exists but is not ready
        """
        meta = body.get("metadata", {})
        provider_ref = spec.get("providerRef") or {}
        provider_name = provider_ref.get("name")
        if not provider_name:
            self.handle_validation_error(body, "providerRef.name is required")

        provider_ns = provider_ref.get("namespace", meta.get("namespace", "default"))
        try:
            provider_obj = get_provider(get_k8s_client(), provider_name, provider_ns)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                error_msg = f"Provider {provider_name} not found in namespace {provider_ns}"
                self.handle_provider_not_found(body, status, patch, error_msg)
                return None
            raise

        if require_ready and not is_ready(provider_obj):
            self.handle_provider_not_ready(body, status, patch, provider_name, f"Provider {provider_name} is not ready")

        return create_clients_from_spec(provider_obj.get("spec", {}), provider_obj.get("metadata", {}))

    def handle_provider_not_found(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error_msg: str,
    ) -> None:
        """Report a missing provider without requesting a retry."""
        self.log_error(body, error_msg, reason="ProviderNotFound")
        conditions = set_provider_not_ready_condition(status.get("conditions", []), error_msg)
        emit_reconcile_failed(body, error_msg)
        metrics.reconcile_total.labels(kind=self.kind, result="failed").inc()
        self._patch_conditions(body, patch, conditions)

    def handle_provider_not_ready(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        provider_name: str,
        error_msg: str,
    ) -> None:
        """Report a provider that is not ready yet.

        Raises:
            kopf.TemporaryError: Always raises to trigger retry
        """
        self.log_warning(body, error_msg, reason="ProviderNotReady", provider=provider_name)
        conditions = set_provider_not_ready_condition(status.get("conditions", []), error_msg)
        emit_reconcile_failed(body, error_msg)
        metrics.reconcile_total.labels(kind=self.kind, result="failed").inc()
        self._patch_conditions(body, patch, conditions)
        raise kopf.TemporaryError(error_msg)

    def handle_validation_error(
        self,
        body: dict[str, Any],
        error_msg: str,
    ) -> None:
        """Handle validation error consistently.

        Raises:
            ValueError: Always raises with the error message
        """
        self.log_error(body, error_msg, reason="ValidationFailed")
        emit_validate_failed(body, error_msg)
        metrics.reconcile_total.labels(kind=self.kind, result="failed").inc()
        raise ValueError(error_msg)

    def handle_immutable_field(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error: ImmutableFieldError,
    ) -> None:
        """Reject a change to a write-once field.

        Raises:
            kopf.PermanentError: Always raises; the change is never retried
        """
        message = str(error)
        self.log_error(body, message, error=error, reason="ImmutableFieldViolation", field=error.field)
        conditions = set_immutable_field_condition(status.get("conditions", []), message)
        self._patch_conditions(body, patch, conditions)
        raise kopf.PermanentError(message) from error

    def handle_step_error(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error: Exception,
        condition_fn: ConditionSetter,
    ) -> None:
        """Record a failed remote step as a condition.

        The caller re-raises so the host retries the handler.
        """
        sanitized_error = sanitize_exception(error)
        self.log_error(body, f"Reconciliation step failed: {sanitized_error}", error=error, reason="StepFailed")
        conditions = condition_fn(status.get("conditions", []), sanitized_error)
        self._patch_conditions(body, patch, conditions)

    def clear_failure_conditions(
        self,
        conditions: list[dict[str, Any]],
        *condition_types: str,
    ) -> list[dict[str, Any]]:
        """Drop failure conditions once a reconciliation succeeds."""
        for condition_type in condition_types:
            conditions = clear_condition(conditions, condition_type)
        return conditions

    def ensure_finalizer(self, meta: dict[str, Any], patch: kopf.Patch) -> None:
        """Ensure finalizer is present in metadata."""
        finalizers = list(meta.get("finalizers", []))
        if FINALIZER not in finalizers:
            finalizers.append(FINALIZER)
            patch.metadata["finalizers"] = finalizers

    def remove_finalizer(self, meta: dict[str, Any], patch: kopf.Patch) -> None:
        """Remove finalizer from metadata."""
        finalizers = list(meta.get("finalizers", []))
        if FINALIZER in finalizers:
            finalizers.remove(FINALIZER)
            patch.metadata["finalizers"] = finalizers if finalizers else None

    def reconcile_with_metrics(
        self,
        body: dict[str, Any],
        reconcile_fn: Callable[[], None],
    ) -> None:
        """Execute reconciliation with metrics and error handling.

        Args:
            body: Kubernetes resource body
            reconcile_fn: Function to execute for reconciliation
        """
        emit_reconcile_started(body)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            reconcile_fn()
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
        except Exception as e:
            sanitized_error = sanitize_exception(e)
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(body, "Reconciliation failed", error=e, reason="ReconciliationFailed")
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitized_error}")
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)

    def update_resource_status(
        self,
        patch: kopf.Patch,
        meta: dict[str, Any],
        ready: bool,
        status_data: dict[str, Any] | None = None,
    ) -> None:
        """Update resource status with common fields.

        Args:
            patch: Kopf patch object
            meta: Kubernetes resource metadata
            ready: Whether the resource is ready
            status_data: Additional status data to include
        """
        status_update = {
            "observedGeneration": meta.get("generation", 0),
            **(status_data or {}),
        }

        if ready:
            metrics.resource_status_total.labels(kind=self.kind, status="ready").inc()
        else:
            metrics.resource_status_total.labels(kind=self.kind, status="not_ready").inc()

        patch.status.update(status_update)
