"""Translation between bucket records and their wire shapes."""

from __future__ import annotations

from typing import Any

from ..constants import IAM_USER_ARN_PREFIX, POLICY_VERSION, S3_ARN_PREFIX
from ..models import Bucket, LifecycleRule, Permission
from ..utils.errors import MalformedPrincipalError

LIFECYCLE_ID_MIN_LENGTH = 10
LIFECYCLE_ID_MAX_LENGTH = 255


def _lifecycle_rules_from_spec(entries: list[dict[str, Any]], field_name: str) -> list[LifecycleRule]:
    rules = []
    for idx, entry in enumerate(entries):
        rule_id = entry.get("id")
        prefix = entry.get("objectPrefix")
        after_days = entry.get("afterDays")

        if not rule_id or not LIFECYCLE_ID_MIN_LENGTH <= len(rule_id) <= LIFECYCLE_ID_MAX_LENGTH:
            raise ValueError(
                f"{field_name}[{idx}].id must be between {LIFECYCLE_ID_MIN_LENGTH} "
                f"and {LIFECYCLE_ID_MAX_LENGTH} characters"
            )
        if prefix is None:
            raise ValueError(f"{field_name}[{idx}].objectPrefix is required")
        if isinstance(after_days, bool) or not isinstance(after_days, int) or after_days < 1:
            raise ValueError(f"{field_name}[{idx}].afterDays must be at least 1")

        rules.append(LifecycleRule(id=rule_id, prefix=prefix, after_days=after_days))
    return rules


def bucket_from_spec(spec: dict[str, Any]) -> Bucket:
    """Create the desired bucket record from a Bucket CRD spec.

    Args:
        spec: Bucket CRD spec

    Returns:
        Desired bucket record

    Raises:
        ValueError: If the spec is invalid
    """
    name = spec.get("name")
    if not name:
        raise ValueError("bucket name is required")

    permissions = []
    for idx, entry in enumerate(spec.get("permissions") or []):
        user_id = entry.get("userId")
        if not user_id:
            raise ValueError(f"permissions[{idx}].userId is required")
        permissions.append(Permission(user_id=user_id, actions=list(entry.get("permissions") or [])))

    return Bucket(
        name=name,
        placement_rule=spec.get("placementRule") or None,
        versioning_enabled=bool(spec.get("versioningEnabled", False)),
        permissions=permissions,
        lifecycle_delete=_lifecycle_rules_from_spec(spec.get("lifecycleDelete") or [], "lifecycleDelete"),
        lifecycle_delete_noncurrent=_lifecycle_rules_from_spec(
            spec.get("lifecycleDeleteNoncurrent") or [], "lifecycleDeleteNoncurrent"
        ),
    )


def _lifecycle_rules_to_status(rules: list[LifecycleRule]) -> list[dict[str, Any]]:
    return [{"id": r.id, "objectPrefix": r.prefix, "afterDays": r.after_days} for r in rules]


def bucket_to_status(bucket: Bucket) -> dict[str, Any]:
    """Render a bucket record for ``status.observed``."""
    return {
        "name": bucket.name,
        "placementRule": bucket.placement_rule,
        "owner": bucket.owner,
        "versioningEnabled": bucket.versioning_enabled,
        "permissions": [{"userId": p.user_id, "permissions": list(p.actions)} for p in bucket.permissions],
        "lifecycleDelete": _lifecycle_rules_to_status(bucket.lifecycle_delete),
        "lifecycleDeleteNoncurrent": _lifecycle_rules_to_status(bucket.lifecycle_delete_noncurrent),
    }


def bucket_from_status(observed: dict[str, Any] | None) -> Bucket | None:
    """Rebuild the last tracked bucket record from ``status.observed``."""
    if not observed or not observed.get("name"):
        return None

    def rules(key: str) -> list[LifecycleRule]:
        return [
            LifecycleRule(id=r["id"], prefix=r.get("objectPrefix", ""), after_days=r["afterDays"])
            for r in observed.get(key) or []
        ]

    return Bucket(
        name=observed["name"],
        placement_rule=observed.get("placementRule"),
        owner=observed.get("owner"),
        versioning_enabled=bool(observed.get("versioningEnabled", False)),
        permissions=[
            Permission(user_id=p["userId"], actions=list(p.get("permissions") or []))
            for p in observed.get("permissions") or []
        ],
        lifecycle_delete=rules("lifecycleDelete"),
        lifecycle_delete_noncurrent=rules("lifecycleDeleteNoncurrent"),
    )


def bucket_from_admin(info: dict[str, Any]) -> Bucket:
    """Map admin API bucket metadata onto a record.

    Only identity, placement and owner come from the admin API; the data-plane
    fields are left at their empty defaults.
    """
    return Bucket(
        name=info.get("bucket", ""),
        placement_rule=info.get("placement_rule") or None,
        owner=info.get("owner") or None,
    )


def bucket_resources(bucket_name: str) -> list[str]:
    """ARNs covering a bucket and every object in it."""
    return [f"{S3_ARN_PREFIX}{bucket_name}", f"{S3_ARN_PREFIX}{bucket_name}/*"]


def build_bucket_policy(bucket: Bucket) -> dict[str, Any] | None:
    """Build the S3 bucket policy document granting the bucket's permissions.

    One Allow statement is emitted per permission entry, in order.

    Returns:
        Policy document, or None if the bucket declares no permissions. The
        caller is responsible for deleting any remote policy in that case.
    """
    if not bucket.permissions:
        return None

    statements = []
    for permission in bucket.permissions:
        statements.append({
            "Effect": "Allow",
            "Principal": {"AWS": f"{IAM_USER_ARN_PREFIX}{permission.user_id}"},
            "Action": list(permission.actions),
            "Resource": bucket_resources(bucket.name),
        })

    return {"Version": POLICY_VERSION, "Statement": statements}


def _principal_user_id(principal: Any) -> str:
    arn = principal.get("AWS") if isinstance(principal, dict) else None
    if isinstance(arn, list) and len(arn) == 1:
        arn = arn[0]
    if not isinstance(arn, str):
        raise MalformedPrincipalError(principal)

    parts = arn.split("/")
    if len(parts) != 2 or not parts[1]:
        raise MalformedPrincipalError(principal)
    return parts[1]


def read_bucket_policy(policy: dict[str, Any]) -> list[Permission]:
    """Recover the permission list from a bucket policy document.

    Raises:
        MalformedPrincipalError: If a statement principal is not a single
            ``arn:...:user/<id>`` value
    """
    permissions = []
    for statement in policy.get("Statement") or []:
        actions = statement.get("Action") or []
        if isinstance(actions, str):
            actions = [actions]
        permissions.append(Permission(user_id=_principal_user_id(statement.get("Principal")), actions=list(actions)))
    return permissions


def build_lifecycle_rules(bucket: Bucket) -> list[dict[str, Any]] | None:
    """Build S3 lifecycle rules from the bucket's expiration rules.

    Returns:
        Rules in boto3 format, or None if neither list has entries. The caller
        is responsible for deleting any remote configuration in that case.
    """
    if not bucket.has_lifecycle_rules:
        return None

    rules: list[dict[str, Any]] = []
    for rule in bucket.lifecycle_delete:
        rules.append({
            "ID": rule.id,
            "Status": "Enabled",
            "Filter": {"Prefix": rule.prefix},
            "Expiration": {"Days": rule.after_days},
        })
    for rule in bucket.lifecycle_delete_noncurrent:
        rules.append({
            "ID": rule.id,
            "Status": "Enabled",
            "Filter": {"Prefix": rule.prefix},
            "NoncurrentVersionExpiration": {"NoncurrentDays": rule.after_days},
        })
    return rules


def read_lifecycle_rules(rules: list[dict[str, Any]]) -> list[LifecycleRule]:
    """Recover current-version expiration rules from S3 lifecycle rules.

    Noncurrent-version rules are skipped and not read back.
    """
    result = []
    for rule in rules:
        days = (rule.get("Expiration") or {}).get("Days")
        if days is None:
            continue
        prefix = (rule.get("Filter") or {}).get("Prefix", rule.get("Prefix", ""))
        result.append(LifecycleRule(id=rule.get("ID", ""), prefix=prefix or "", after_days=int(days)))
    return result


def merge_bucket(
    info: dict[str, Any],
    versioning_enabled: bool,
    policy: dict[str, Any] | None,
    lifecycle: list[dict[str, Any]] | None,
) -> Bucket:
    """Merge the independently fetched partial reads into one bucket record.

    Args:
        info: Admin API bucket metadata
        versioning_enabled: Versioning status from the S3 API
        policy: Bucket policy document, or None if no policy is set
        lifecycle: Lifecycle rules, or None if no configuration is set

    Returns:
        Canonical bucket record
    """
    bucket = bucket_from_admin(info)
    bucket.versioning_enabled = versioning_enabled
    if policy is not None:
        bucket.permissions = read_bucket_policy(policy)
    if lifecycle is not None:
        bucket.lifecycle_delete = read_lifecycle_rules(lifecycle)
    return bucket
