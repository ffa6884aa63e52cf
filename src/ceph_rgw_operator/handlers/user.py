"""Handler for User CRD."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

import kopf

from .. import metrics
from ..builders.user import user_from_spec, user_from_status, user_to_status
from ..constants import (
    API_GROUP_VERSION,
    COND_CREATION_FAILED,
    COND_IMMUTABLE_FIELD,
    COND_PROVIDER_NOT_READY,
    COND_UPDATE_FAILED,
    CREDENTIALS_SECRET_SUFFIX,
    KIND_USER,
    SECRET_KEY_ACCESS_KEY,
    SECRET_KEY_SECRET_KEY,
)
from ..models import User
from ..reconcilers.user import UserReconciler
from ..services.rgw.admin import NoSuchUserError
from ..tracing import trace_span
from ..utils.conditions import (
    set_creation_failed_condition,
    set_ready_condition,
    set_update_failed_condition,
)
from ..utils.errors import ImmutableFieldError, ReconcileStepError
from ..utils.events import (
    emit_reconcile_failed,
    emit_resource_gone,
    emit_user_created,
    emit_user_deleted,
    emit_user_updated,
    emit_validate_succeeded,
)
from ..utils.secrets import delete_secret, get_secret_value, read_secret_data, upsert_secret
from .base import BaseHandler
from .shared import get_core_client, owner_reference

REFRESH_INTERVAL = int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))


def credentials_secret_name(meta: dict[str, Any]) -> str:
    """Name of the secret holding the credentials of a User resource."""
    return f"{meta.get('name')}{CREDENTIALS_SECRET_SUFFIX}"


def _read_failed_condition(conditions: list[dict[str, Any]], message: str) -> list[dict[str, Any]]:
    return set_ready_condition(conditions, False, message, reason="ReadFailed")


class UserHandler(BaseHandler):
    """Handler for User resources."""

    def __init__(self):
        """Initialize user handler."""
        super().__init__(KIND_USER)

    def _desired(self, api: Any, spec: dict[str, Any], body: dict[str, Any]) -> User:
        namespace = body.get("metadata", {}).get("namespace", "default")
        access_key = secret_key = None
        try:
            ref = spec.get("credentialsSecretRef") or {}
            if ref.get("name"):
                access_key = get_secret_value(
                    api, namespace, ref["name"], ref.get("accessKeyKey", SECRET_KEY_ACCESS_KEY)
                )
                secret_key = get_secret_value(
                    api, namespace, ref["name"], ref.get("secretKeyKey", SECRET_KEY_SECRET_KEY)
                )
            return user_from_spec(spec, access_key, secret_key)
        except ValueError as e:
            self.handle_validation_error(body, str(e))

    def _state(self, api: Any, status: dict[str, Any], meta: dict[str, Any]) -> User | None:
        observed = status.get("observed")
        if not observed:
            return None
        stored = read_secret_data(api, meta.get("namespace", "default"), credentials_secret_name(meta)) or {}
        secret_key = stored.get(SECRET_KEY_SECRET_KEY)
        if secret_key is None and observed.get("accessKey") is not None:
            secret_key = ""
        return user_from_status(observed, secret_key)

    def reconcile(
        self,
        spec: dict[str, Any],
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        refresh: bool = False,
    ) -> None:
        """Reconcile a User resource.

        A user without tracked state is created, a tracked user is updated on
        spec changes and re-read otherwise. Resulting keys are written to the
        credentials secret.
        """
        meta = body.get("metadata", {})
        api = get_core_client()
        desired = self._desired(api, spec, body)

        with trace_span("reconcile_user", kind=KIND_USER, attributes={"user.id": desired.id}):
            emit_validate_succeeded(body)

            clients = self.resolve_provider(spec, body, status, patch)
            if clients is None:
                return

            reconciler = UserReconciler(clients.admin)

            if spec.get("observeOnly", False):
                with trace_span("lookup_user", kind=KIND_USER):
                    try:
                        observed = reconciler.lookup(desired.id)
                    except ReconcileStepError as e:
                        self.handle_step_error(body, status, patch, e, _read_failed_condition)
                        raise
                self._store(api, body, status, patch, observed, f"User {desired.id} observed")
                return

            state = self._state(api, status, meta)
            if state is None:
                self._create(api, reconciler, desired, body, status, patch)
            elif refresh:
                self._refresh(api, reconciler, state, body, status, patch)
            else:
                self._update(api, reconciler, state, desired, body, status, patch)

    def _store(
        self,
        api: Any,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        user: User,
        message: str,
    ) -> None:
        meta = body.get("metadata", {})
        upsert_secret(
            api,
            meta.get("namespace", "default"),
            credentials_secret_name(meta),
            {
                SECRET_KEY_ACCESS_KEY: user.access_key or "",
                SECRET_KEY_SECRET_KEY: user.secret_key or "",
            },
            owner_references=[owner_reference(meta, KIND_USER)],
        )

        conditions = self.clear_failure_conditions(
            status.get("conditions", []),
            COND_CREATION_FAILED,
            COND_UPDATE_FAILED,
            COND_IMMUTABLE_FIELD,
            COND_PROVIDER_NOT_READY,
        )
        conditions = set_ready_condition(conditions, True, message, meta.get("generation"))
        self.update_resource_status(patch, meta, True, {
            "observed": user_to_status(user),
            "credentialsSecret": credentials_secret_name(meta),
            "conditions": conditions,
            "lastSyncTime": datetime.now(timezone.utc).isoformat(),
        })

    def _create(
        self,
        api: Any,
        reconciler: UserReconciler,
        desired: User,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        with trace_span("create_user", kind=KIND_USER):
            try:
                created = reconciler.create(desired)
            except ReconcileStepError as e:
                metrics.user_operations_total.labels(operation="create", result="failed").inc()
                self.handle_step_error(body, status, patch, e, set_creation_failed_condition)
                raise

        metrics.user_operations_total.labels(operation="create", result="success").inc()
        emit_user_created(body, desired.id)
        self.log_info(body, f"Created user {desired.id}", reason="UserCreated", user_id=desired.id)
        self._store(api, body, status, patch, created, f"User {desired.id} is ready")

    def _update(
        self,
        api: Any,
        reconciler: UserReconciler,
        state: User,
        desired: User,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        with trace_span("update_user", kind=KIND_USER):
            try:
                updated = reconciler.update(state, desired)
            except ImmutableFieldError as e:
                self.handle_immutable_field(body, status, patch, e)
            except ReconcileStepError as e:
                metrics.user_operations_total.labels(operation="update", result="failed").inc()
                self.handle_step_error(body, status, patch, e, set_update_failed_condition)
                raise

        metrics.user_operations_total.labels(operation="update", result="success").inc()
        emit_user_updated(body, state.id)
        self.log_info(body, f"Updated user {state.id}", reason="UserUpdated", user_id=state.id)
        self._store(api, body, status, patch, updated, f"User {state.id} is ready")

    def _refresh(
        self,
        api: Any,
        reconciler: UserReconciler,
        state: User,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        with trace_span("read_user", kind=KIND_USER):
            try:
                observed = reconciler.read(state.id)
            except ReconcileStepError as e:
                self.handle_step_error(body, status, patch, e, _read_failed_condition)
                raise

        if observed is not None:
            self._store(api, body, status, patch, observed, f"User {state.id} is ready")
            return

        meta = body.get("metadata", {})
        self.log_info(body, f"User {state.id} no longer exists", reason="ResourceGone", user_id=state.id)
        emit_resource_gone(body, KIND_USER, state.id)
        conditions = set_ready_condition(
            status.get("conditions", []),
            False,
            f"User {state.id} does not exist",
            meta.get("generation"),
            reason="NotFound",
        )
        self.update_resource_status(patch, meta, False, {
            "observed": None,
            "conditions": conditions,
            "lastSyncTime": datetime.now(timezone.utc).isoformat(),
        })

    def delete(
        self,
        spec: dict[str, Any],
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Handle User resource deletion."""
        meta = body.get("metadata", {})
        namespace = meta.get("namespace", "default")
        observed = status.get("observed") or {}

        self.log_info(body, "User is being deleted", event="deletion", reason="Deletion")

        if spec.get("observeOnly", False) or not observed.get("id"):
            self.log_info(body, "No managed user to remove", reason="UserNotManaged")
            self.remove_finalizer(meta, patch)
            return

        state = User(id=observed["id"])
        clients = self.resolve_provider(spec, body, status, patch, require_ready=False)
        if clients is None:
            self.log_warning(body, f"Provider is gone, leaving user {state.id} in place",
                             reason="UserRetained", user_id=state.id)
            self.remove_finalizer(meta, patch)
            return

        with trace_span("delete_user", kind=KIND_USER, attributes={"user.id": state.id}):
            try:
                UserReconciler(clients.admin).delete(state)
            except ReconcileStepError as e:
                if not isinstance(e.cause, NoSuchUserError):
                    metrics.user_operations_total.labels(operation="delete", result="failed").inc()
                    self.log_error(body, f"Failed to delete user {state.id}", error=e,
                                   reason="DeletionFailed", user_id=state.id)
                    emit_reconcile_failed(body, str(e))
                    raise
                self.log_info(body, f"User {state.id} was already removed", reason="UserNotExists")

        delete_secret(get_core_client(), namespace, credentials_secret_name(meta))
        metrics.user_operations_total.labels(operation="delete", result="success").inc()
        emit_user_deleted(body, state.id)
        self.log_info(body, f"Deleted user {state.id}", reason="UserDeleted", user_id=state.id)
        self.remove_finalizer(meta, patch)


# Global handler instance
_handler = UserHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_USER)
@kopf.on.update(API_GROUP_VERSION, KIND_USER, field="spec")
def handle_user(
    spec: dict[str, Any],
    meta: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Create or update a User."""
    _handler.ensure_finalizer(meta, patch)
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, body, status, patch))


@kopf.on.resume(API_GROUP_VERSION, KIND_USER)
@kopf.timer(API_GROUP_VERSION, KIND_USER, interval=REFRESH_INTERVAL, initial_delay=REFRESH_INTERVAL)
def refresh_user(
    spec: dict[str, Any],
    meta: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Re-read a User from the gateway."""
    _handler.ensure_finalizer(meta, patch)
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, body, status, patch, refresh=True))


@kopf.on.delete(API_GROUP_VERSION, KIND_USER)
def handle_user_delete(
    spec: dict[str, Any],
    meta: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle User resource deletion."""
    _handler.delete(spec, body, status, patch)
