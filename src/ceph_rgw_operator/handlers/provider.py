"""Handler for Provider CRD."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import kopf

from .. import metrics
from ..builders.provider import create_clients_from_spec
from ..constants import API_GROUP_VERSION, KIND_PROVIDER
from ..tracing import trace_span
from ..utils.conditions import (
    set_auth_valid_condition,
    set_endpoint_reachable_condition,
    set_ready_condition,
)
from ..utils.errors import sanitize_exception
from .base import BaseHandler


class ProviderHandler(BaseHandler):
    """Handler for Provider resources."""

    def __init__(self):
        """Initialize provider handler."""
        super().__init__(KIND_PROVIDER)

    def reconcile(
        self,
        spec: dict[str, Any],
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Resolve the provider settings and probe the gateway."""
        meta = body.get("metadata", {})
        name = meta.get("name", "unknown")

        with trace_span("reconcile_provider", kind=KIND_PROVIDER, attributes={"provider.name": name}):
            conditions = status.get("conditions", [])

            with trace_span("create_clients", kind=KIND_PROVIDER):
                try:
                    clients = create_clients_from_spec(spec, meta)
                    auth_valid = True
                    auth_message = "Credentials resolved"
                except Exception as e:
                    clients = None
                    auth_valid = False
                    sanitized_error = sanitize_exception(e)
                    auth_message = f"Failed to resolve credentials: {sanitized_error}"
                    metrics.error_total.labels(kind=KIND_PROVIDER, error_type=type(e).__name__).inc()
                    self.log_error(body, auth_message, error=e, reason="AuthFailed")

            conditions = set_auth_valid_condition(conditions, auth_valid, auth_message)

            connected = False
            if clients is not None:
                with trace_span("test_connectivity", kind=KIND_PROVIDER):
                    connected = clients.test_connectivity()
                endpoint_message = "Endpoint is reachable" if connected else "Endpoint is unreachable"
                metrics.provider_connectivity_total.labels(
                    provider=name, status="connected" if connected else "disconnected"
                ).inc()
            else:
                endpoint_message = "Cannot test connectivity without credentials"

            conditions = set_endpoint_reachable_condition(conditions, connected, endpoint_message)

            ready = auth_valid and connected
            conditions = set_ready_condition(conditions, ready, "Provider is ready" if ready else "Provider is not ready")

            self.update_resource_status(patch, meta, ready, {
                "connected": connected,
                "zone": clients.zone if clients is not None else None,
                "lastConnectTime": datetime.now(timezone.utc).isoformat() if connected else None,
                "conditions": conditions,
            })

    def delete(
        self,
        body: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Handle Provider resource deletion."""
        self.log_info(body, "Provider is being deleted", event="deletion", reason="Deletion")
        self.remove_finalizer(body.get("metadata", {}), patch)


# Global handler instance
_handler = ProviderHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_PROVIDER)
@kopf.on.update(API_GROUP_VERSION, KIND_PROVIDER, field="spec")
@kopf.on.resume(API_GROUP_VERSION, KIND_PROVIDER)
def handle_provider(
    spec: dict[str, Any],
    meta: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Provider resource reconciliation."""
    _handler.ensure_finalizer(meta, patch)
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, body, status, patch))


@kopf.on.delete(API_GROUP_VERSION, KIND_PROVIDER)
def handle_provider_delete(
    body: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Provider resource deletion."""
    _handler.delete(body, patch)
