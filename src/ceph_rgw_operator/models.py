"""Canonical records for the objects reconciled against the gateway."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Permission:
    """Actions granted to one user on a bucket."""

    user_id: str
    actions: list[str] = field(default_factory=list)


@dataclass
class LifecycleRule:
    """Expire objects under a prefix after a number of days."""

    id: str
    prefix: str
    after_days: int


@dataclass
class Bucket:
    """Observed or desired state of a bucket.

    ``permissions`` keeps the order of the statements in the stored policy
    document. ``placement_rule`` and ``owner`` are None when not declared.
    """

    name: str
    placement_rule: str | None = None
    owner: str | None = None
    versioning_enabled: bool = False
    permissions: list[Permission] = field(default_factory=list)
    lifecycle_delete: list[LifecycleRule] = field(default_factory=list)
    lifecycle_delete_noncurrent: list[LifecycleRule] = field(default_factory=list)

    @property
    def has_lifecycle_rules(self) -> bool:
        return bool(self.lifecycle_delete or self.lifecycle_delete_noncurrent)


@dataclass
class User:
    """Observed or desired state of a gateway user.

    Keys are either both set (explicit) or both None (generated by the gateway).
    """

    id: str
    display_name: str | None = None
    max_buckets: int | None = None
    access_key: str | None = None
    secret_key: str | None = None

    @property
    def has_credentials(self) -> bool:
        return self.access_key is not None and self.secret_key is not None
