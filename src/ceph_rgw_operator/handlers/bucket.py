"""Handler for Bucket CRD."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

import kopf

from .. import metrics
from ..builders.bucket import bucket_from_spec, bucket_from_status, bucket_to_status
from ..constants import (
    API_GROUP_VERSION,
    COND_CREATION_FAILED,
    COND_IMMUTABLE_FIELD,
    COND_PROVIDER_NOT_READY,
    COND_UPDATE_FAILED,
    KIND_BUCKET,
)
from ..models import Bucket
from ..reconcilers.bucket import BucketReconciler
from ..services.rgw.admin import NoSuchBucketError
from ..tracing import trace_span
from ..utils.conditions import (
    set_creation_failed_condition,
    set_ready_condition,
    set_update_failed_condition,
)
from ..utils.errors import ImmutableFieldError, ReconcileStepError
from ..utils.events import (
    emit_bucket_created,
    emit_bucket_deleted,
    emit_bucket_updated,
    emit_reconcile_failed,
    emit_resource_gone,
    emit_validate_succeeded,
)
from .base import BaseHandler

DRIFT_CHECK_INTERVAL = int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))


def _read_failed_condition(conditions: list[dict[str, Any]], message: str) -> list[dict[str, Any]]:
    return set_ready_condition(conditions, False, message, reason="ReadFailed")


class BucketHandler(BaseHandler):
    """Handler for Bucket resources."""

    def __init__(self):
        """Initialize bucket handler."""
        super().__init__(KIND_BUCKET)

    def reconcile(
        self,
        spec: dict[str, Any],
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        refresh: bool = False,
    ) -> None:
        """Reconcile a Bucket resource.

        A bucket without tracked state is created. A tracked bucket is updated
        on spec changes and refreshed (with drift correction) otherwise.
        """
        try:
            desired = bucket_from_spec(spec)
        except ValueError as e:
            self.handle_validation_error(body, str(e))

        with trace_span("reconcile_bucket", kind=KIND_BUCKET, attributes={"bucket.name": desired.name}):
            emit_validate_succeeded(body)

            clients = self.resolve_provider(spec, body, status, patch)
            if clients is None:
                return

            reconciler = BucketReconciler(clients.admin, clients.s3, clients.zone)
            state = bucket_from_status(status.get("observed"))

            if spec.get("observeOnly", False):
                self._observe(reconciler, desired.name, body, status, patch)
            elif state is None:
                self._create(reconciler, desired, body, status, patch)
            elif refresh:
                self._refresh(reconciler, state, desired, body, status, patch)
            else:
                self._update(reconciler, state, desired, body, status, patch)

    def _store(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        bucket: Bucket,
        message: str,
    ) -> None:
        meta = body.get("metadata", {})
        conditions = self.clear_failure_conditions(
            status.get("conditions", []),
            COND_CREATION_FAILED,
            COND_UPDATE_FAILED,
            COND_IMMUTABLE_FIELD,
            COND_PROVIDER_NOT_READY,
        )
        conditions = set_ready_condition(conditions, True, message, meta.get("generation"))
        self.update_resource_status(patch, meta, True, {
            "observed": bucket_to_status(bucket),
            "conditions": conditions,
            "lastSyncTime": datetime.now(timezone.utc).isoformat(),
        })

    def _drop(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        bucket_name: str,
    ) -> None:
        meta = body.get("metadata", {})
        self.log_info(body, f"Bucket {bucket_name} no longer exists", reason="ResourceGone", bucket_name=bucket_name)
        emit_resource_gone(body, KIND_BUCKET, bucket_name)
        conditions = set_ready_condition(
            status.get("conditions", []),
            False,
            f"Bucket {bucket_name} does not exist",
            meta.get("generation"),
            reason="NotFound",
        )
        self.update_resource_status(patch, meta, False, {
            "observed": None,
            "conditions": conditions,
            "lastSyncTime": datetime.now(timezone.utc).isoformat(),
        })

    def _create(
        self,
        reconciler: BucketReconciler,
        desired: Bucket,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        with trace_span("create_bucket", kind=KIND_BUCKET):
            try:
                observed = reconciler.create(desired)
            except ReconcileStepError as e:
                metrics.bucket_operations_total.labels(operation="create", result="failed").inc()
                self.handle_step_error(body, status, patch, e, set_creation_failed_condition)
                raise

        metrics.bucket_operations_total.labels(operation="create", result="success").inc()
        emit_bucket_created(body, desired.name)
        self.log_info(body, f"Created bucket {desired.name}", reason="BucketCreated", bucket_name=desired.name)
        self._store(body, status, patch, observed, f"Bucket {desired.name} is ready")

    def _apply_update(
        self,
        reconciler: BucketReconciler,
        state: Bucket,
        desired: Bucket,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> Bucket:
        with trace_span("update_bucket", kind=KIND_BUCKET):
            try:
                updated = reconciler.update(state, desired)
            except ImmutableFieldError as e:
                self.handle_immutable_field(body, status, patch, e)
            except ReconcileStepError as e:
                metrics.bucket_operations_total.labels(operation="update", result="failed").inc()
                self.handle_step_error(body, status, patch, e, set_update_failed_condition)
                raise

        metrics.bucket_operations_total.labels(operation="update", result="success").inc()
        emit_bucket_updated(body, state.name)
        self.log_info(body, f"Updated bucket {state.name}", reason="BucketUpdated", bucket_name=state.name)
        return updated

    def _update(
        self,
        reconciler: BucketReconciler,
        state: Bucket,
        desired: Bucket,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        updated = self._apply_update(reconciler, state, desired, body, status, patch)
        self._store(body, status, patch, updated, f"Bucket {state.name} is ready")

    @staticmethod
    def _drifted(observed: Bucket, desired: Bucket) -> bool:
        # Noncurrent lifecycle rules are not read back and cannot be compared
        return (
            observed.versioning_enabled != desired.versioning_enabled
            or observed.permissions != desired.permissions
            or observed.lifecycle_delete != desired.lifecycle_delete
        )

    def _refresh(
        self,
        reconciler: BucketReconciler,
        state: Bucket,
        desired: Bucket,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        with trace_span("read_bucket", kind=KIND_BUCKET):
            try:
                observed = reconciler.read(state.name)
            except ReconcileStepError as e:
                self.handle_step_error(body, status, patch, e, _read_failed_condition)
                raise

        if observed is None:
            self._drop(body, status, patch, state.name)
            return

        if self._drifted(observed, desired):
            self.log_info(body, f"Drift detected for bucket {state.name}", reason="DriftDetected", bucket_name=state.name)
            metrics.drift_detected_total.labels(kind=KIND_BUCKET, resource_type="configuration").inc()
            observed = self._apply_update(reconciler, observed, desired, body, status, patch)

        self._store(body, status, patch, observed, f"Bucket {state.name} is ready")

    def _observe(
        self,
        reconciler: BucketReconciler,
        bucket_name: str,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        with trace_span("read_bucket", kind=KIND_BUCKET):
            try:
                observed = reconciler.read(bucket_name)
            except ReconcileStepError as e:
                self.handle_step_error(body, status, patch, e, _read_failed_condition)
                raise

        if observed is None:
            self._drop(body, status, patch, bucket_name)
            return
        self._store(body, status, patch, observed, f"Bucket {bucket_name} observed")

    def delete(
        self,
        spec: dict[str, Any],
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Handle Bucket resource deletion.

        Observed-only buckets and buckets that were never created are left
        alone. A failed removal is raised so the deletion is retried.
        """
        meta = body.get("metadata", {})
        state = bucket_from_status(status.get("observed"))

        self.log_info(body, "Bucket is being deleted", event="deletion", reason="Deletion")

        if spec.get("observeOnly", False) or state is None:
            self.log_info(body, "No managed bucket to remove", reason="BucketNotManaged")
            self.remove_finalizer(meta, patch)
            return

        clients = self.resolve_provider(spec, body, status, patch, require_ready=False)
        if clients is None:
            self.log_warning(body, f"Provider is gone, leaving bucket {state.name} in place",
                             reason="BucketRetained", bucket_name=state.name)
            self.remove_finalizer(meta, patch)
            return

        with trace_span("delete_bucket", kind=KIND_BUCKET, attributes={"bucket.name": state.name}):
            try:
                BucketReconciler(clients.admin, clients.s3, clients.zone).delete(state)
            except ReconcileStepError as e:
                if not isinstance(e.cause, NoSuchBucketError):
                    metrics.bucket_operations_total.labels(operation="delete", result="failed").inc()
                    self.log_error(body, f"Failed to delete bucket {state.name}", error=e,
                                   reason="DeletionFailed", bucket_name=state.name)
                    emit_reconcile_failed(body, str(e))
                    raise
                self.log_info(body, f"Bucket {state.name} was already removed", reason="BucketNotExists")

        metrics.bucket_operations_total.labels(operation="delete", result="success").inc()
        emit_bucket_deleted(body, state.name)
        self.log_info(body, f"Deleted bucket {state.name}", reason="BucketDeleted", bucket_name=state.name)
        self.remove_finalizer(meta, patch)


# Global handler instance
_handler = BucketHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_BUCKET)
@kopf.on.update(API_GROUP_VERSION, KIND_BUCKET, field="spec")
def handle_bucket(
    spec: dict[str, Any],
    meta: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Create or update a Bucket."""
    _handler.ensure_finalizer(meta, patch)
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, body, status, patch))


@kopf.on.resume(API_GROUP_VERSION, KIND_BUCKET)
@kopf.timer(API_GROUP_VERSION, KIND_BUCKET, interval=DRIFT_CHECK_INTERVAL, initial_delay=DRIFT_CHECK_INTERVAL)
def refresh_bucket(
    spec: dict[str, Any],
    meta: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Refresh a Bucket from the gateway and correct drift."""
    _handler.ensure_finalizer(meta, patch)
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, body, status, patch, refresh=True))


@kopf.on.delete(API_GROUP_VERSION, KIND_BUCKET)
def handle_bucket_delete(
    spec: dict[str, Any],
    meta: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Bucket resource deletion."""
    _handler.delete(spec, body, status, patch)
