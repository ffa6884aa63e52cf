"""Handler for BucketList CRD."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

import kopf

from ..constants import API_GROUP_VERSION, KIND_BUCKET_LIST
from ..reconcilers.bucket import BucketReconciler
from ..tracing import trace_span
from ..utils.conditions import set_ready_condition
from ..utils.errors import ReconcileStepError
from .base import BaseHandler

REFRESH_INTERVAL = int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))


class BucketListHandler(BaseHandler):
    """Handler for BucketList resources.

    Lists the gateway's buckets, filtered by name substring and owner, into
    ``status.buckets``. Nothing on the gateway is modified.
    """

    def __init__(self):
        """Initialize bucket list handler."""
        super().__init__(KIND_BUCKET_LIST)

    def reconcile(
        self,
        spec: dict[str, Any],
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """List matching buckets into status."""
        meta = body.get("metadata", {})
        name_filter = spec.get("name") or None
        owner_filter = spec.get("owner") or None

        with trace_span("list_buckets", kind=KIND_BUCKET_LIST, attributes={"filter.name": name_filter or ""}):
            clients = self.resolve_provider(spec, body, status, patch)
            if clients is None:
                return

            reconciler = BucketReconciler(clients.admin, clients.s3, clients.zone)
            try:
                buckets = reconciler.list(name_filter, owner_filter)
            except ReconcileStepError as e:
                self.handle_step_error(
                    body, status, patch, e,
                    lambda conditions, message: set_ready_condition(conditions, False, message, reason="ListFailed"),
                )
                raise

            conditions = set_ready_condition(
                status.get("conditions", []), True, f"Found {len(buckets)} buckets", meta.get("generation")
            )
            self.update_resource_status(patch, meta, True, {
                "buckets": [
                    {"name": b.name, "placementRule": b.placement_rule, "owner": b.owner}
                    for b in buckets
                ],
                "conditions": conditions,
                "lastSyncTime": datetime.now(timezone.utc).isoformat(),
            })


# Global handler instance
_handler = BucketListHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_BUCKET_LIST)
@kopf.on.update(API_GROUP_VERSION, KIND_BUCKET_LIST, field="spec")
@kopf.on.resume(API_GROUP_VERSION, KIND_BUCKET_LIST)
@kopf.timer(API_GROUP_VERSION, KIND_BUCKET_LIST, interval=REFRESH_INTERVAL, initial_delay=REFRESH_INTERVAL)
def handle_bucket_list(
    spec: dict[str, Any],
    body: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle BucketList resource reconciliation."""
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, body, status, patch))
