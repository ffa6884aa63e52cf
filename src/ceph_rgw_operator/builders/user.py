"""Translation between user records and their wire shapes."""

from __future__ import annotations

from typing import Any

from ..models import User


def user_from_spec(
    spec: dict[str, Any],
    access_key: str | None = None,
    secret_key: str | None = None,
) -> User:
    """Create the desired user record from a User CRD spec.

    Args:
        spec: User CRD spec
        access_key: Explicit access key resolved from the credentials secret
        secret_key: Explicit secret key resolved from the credentials secret

    Returns:
        Desired user record

    Raises:
        ValueError: If the spec is invalid or only one key is supplied
    """
    user_id = spec.get("id")
    if not user_id:
        raise ValueError("user id is required")

    if (access_key is None) != (secret_key is None):
        raise ValueError("access key and secret key must be supplied together")

    max_buckets = spec.get("maxBuckets")
    if max_buckets is not None and not isinstance(max_buckets, int):
        raise ValueError("maxBuckets must be an integer")

    return User(
        id=user_id,
        display_name=spec.get("name") or None,
        max_buckets=max_buckets,
        access_key=access_key,
        secret_key=secret_key,
    )


def user_from_admin(info: dict[str, Any]) -> User:
    """Map admin API user metadata onto a record.

    The first key pair is used; a user without keys maps to empty strings.
    """
    keys = info.get("keys") or []
    access_key = keys[0].get("access_key", "") if keys else ""
    secret_key = keys[0].get("secret_key", "") if keys else ""

    return User(
        id=info.get("user_id", ""),
        display_name=info.get("display_name", ""),
        max_buckets=info.get("max_buckets"),
        access_key=access_key,
        secret_key=secret_key,
    )


def user_to_status(user: User) -> dict[str, Any]:
    """Render a user record for ``status.observed``.

    The secret key is deliberately left out; it lives in the credentials secret.
    """
    return {
        "id": user.id,
        "name": user.display_name,
        "maxBuckets": user.max_buckets,
        "accessKey": user.access_key,
    }


def user_from_status(observed: dict[str, Any] | None, secret_key: str | None = None) -> User | None:
    """Rebuild the last tracked user record from ``status.observed``."""
    if not observed or not observed.get("id"):
        return None

    return User(
        id=observed["id"],
        display_name=observed.get("name"),
        max_buckets=observed.get("maxBuckets"),
        access_key=observed.get("accessKey"),
        secret_key=secret_key,
    )
