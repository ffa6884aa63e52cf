"""Bucket reconciliation against the admin and S3 APIs."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable

from ..builders.bucket import (
    bucket_from_admin,
    build_bucket_policy,
    build_lifecycle_rules,
    merge_bucket,
)
from ..constants import KIND_BUCKET
from ..models import Bucket
from ..services.rgw.admin import NoSuchBucketError
from ..services.rgw.base import RgwAdminProvider
from ..services.s3.base import S3DataProvider
from ..utils.errors import ReconcileStepError
from .transitions import validate_transition

logger = logging.getLogger(__name__)


def run_step(step: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Run one remote call, wrapping any failure with the step name."""
    try:
        return fn(*args)
    except Exception as e:
        raise ReconcileStepError(step, e) from e


class BucketReconciler:
    """Create, read, update and delete buckets on a gateway.

    Each operation runs its remote calls in a fixed order and stops at the
    first failure. Nothing is rolled back.
    """

    def __init__(self, admin: RgwAdminProvider, s3: S3DataProvider, zone: str):
        self.admin = admin
        self.s3 = s3
        self.zone = zone

    def _location_constraint(self, bucket: Bucket) -> str | None:
        if bucket.placement_rule is None:
            return None
        return f"{self.zone}:{bucket.placement_rule}"

    def _fetch(self, info: dict[str, Any]) -> Bucket:
        name = info.get("bucket", "")
        versioning = run_step("get bucket versioning", self.s3.get_bucket_versioning, name)
        policy = run_step("get bucket policy", self.s3.get_bucket_policy, name)
        lifecycle = run_step("get bucket lifecycle", self.s3.get_bucket_lifecycle, name)
        # Policy parsing happens during the merge
        return run_step("read bucket policy", merge_bucket, info, versioning, policy, lifecycle)

    def create(self, desired: Bucket) -> Bucket:
        """Create a bucket and return the state read back from the gateway.

        Raises:
            ReconcileStepError: If any call fails
        """
        name = desired.name
        run_step("create bucket", self.s3.create_bucket, name, self._location_constraint(desired))
        logger.info(f"Created bucket {name}")

        run_step("put bucket versioning", self.s3.set_bucket_versioning, name, desired.versioning_enabled)

        policy = build_bucket_policy(desired)
        if policy is not None:
            run_step("put bucket policy", self.s3.set_bucket_policy, name, policy)

        rules = build_lifecycle_rules(desired)
        if rules is not None:
            run_step("put bucket lifecycle", self.s3.set_bucket_lifecycle, name, rules)

        info = run_step("get bucket info", self.admin.get_bucket_info, name)
        return self._fetch(info)

    def read(self, name: str) -> Bucket | None:
        """Read a bucket from the gateway.

        Returns:
            The bucket, or None if it no longer exists
        """
        try:
            info = self.admin.get_bucket_info(name)
        except NoSuchBucketError:
            logger.debug(f"Bucket {name} not found, dropping it from tracked state")
            return None
        except Exception as e:
            raise ReconcileStepError("get bucket info", e) from e
        return self._fetch(info)

    def update(self, state: Bucket, desired: Bucket) -> Bucket:
        """Apply the mutable settings of ``desired`` to an existing bucket.

        Versioning is always written. Policy and lifecycle configuration are
        written when declared and deleted otherwise.

        Raises:
            ImmutableFieldError: If name, placement rule or owner would change.
                No remote call is made in that case.
            ReconcileStepError: If any call fails
        """
        validate_transition(KIND_BUCKET, state, desired)

        name = state.name
        run_step("put bucket versioning", self.s3.set_bucket_versioning, name, desired.versioning_enabled)

        policy = build_bucket_policy(desired)
        if policy is not None:
            run_step("put bucket policy", self.s3.set_bucket_policy, name, policy)
        else:
            run_step("delete bucket policy", self.s3.delete_bucket_policy, name)

        rules = build_lifecycle_rules(desired)
        if rules is not None:
            run_step("put bucket lifecycle", self.s3.set_bucket_lifecycle, name, rules)
        else:
            run_step("delete bucket lifecycle", self.s3.delete_bucket_lifecycle, name)

        return replace(
            state,
            versioning_enabled=desired.versioning_enabled,
            permissions=list(desired.permissions),
            lifecycle_delete=list(desired.lifecycle_delete),
            lifecycle_delete_noncurrent=list(desired.lifecycle_delete_noncurrent),
        )

    def delete(self, state: Bucket) -> None:
        """Remove the bucket.

        Raises:
            ReconcileStepError: If the removal fails
        """
        run_step("remove bucket", self.admin.remove_bucket, state.name)

    def list(self, name_filter: str | None = None, owner_filter: str | None = None) -> list[Bucket]:
        """List buckets, optionally filtered by name substring and owner.

        Records carry admin metadata only.
        """
        names = run_step("list buckets", self.admin.list_buckets)

        buckets = []
        for name in names:
            info = run_step(f"get bucket info for {name}", self.admin.get_bucket_info, name)
            bucket = bucket_from_admin(info)
            if name_filter and name_filter not in bucket.name:
                continue
            if owner_filter and bucket.owner != owner_filter:
                continue
            buckets.append(bucket)
        return buckets
