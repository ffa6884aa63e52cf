"""Utilities for managing Kubernetes secrets."""

from __future__ import annotations

import base64
from typing import Any

from kubernetes import client

from ..constants import FIELD_MANAGER


def _decode(value: str | bytes) -> str:
    # Different versions of the kubernetes client hand back str or bytes
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True).decode("utf-8")
        except ValueError:
            return value
    return value.decode("utf-8")


def get_secret_value(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    key: str,
) -> str:
    """Get a value from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        key: Key in the secret

    Returns:
        Secret value

    Raises:
        ValueError: If secret or key not found
    """
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ValueError(f"Secret '{secret_name}' not found in namespace '{namespace}'") from e
        raise

    data = secret.data or {}
    if key not in data:
        raise ValueError(f"Key '{key}' not found in secret '{secret_name}'")
    return _decode(data[key])


def read_secret_data(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> dict[str, str] | None:
    """Read all data from a Kubernetes secret.

    Returns:
        Dictionary of decoded secret data, or None if the secret does not exist
    """
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            return None
        raise
    return {key: _decode(value) for key, value in (secret.data or {}).items()}


def upsert_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, str],
    owner_references: list[dict[str, Any]] | None = None,
) -> None:
    """Create a Kubernetes secret, or patch it if it already exists.

    Args:
        api: Kubernetes API client
        namespace: Namespace for the secret
        secret_name: Name of the secret
        data: Secret data (will be base64 encoded)
        owner_references: Owner references for the secret
    """
    secret = client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=secret_name,
            namespace=namespace,
            owner_references=owner_references or [],
        ),
        type="Opaque",
        data={k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()},
    )

    try:
        api.create_namespaced_secret(namespace=namespace, body=secret, field_manager=FIELD_MANAGER)
    except client.exceptions.ApiException as e:
        if e.status != 409:
            raise
        api.patch_namespaced_secret(
            name=secret_name,
            namespace=namespace,
            body=secret,
            field_manager=FIELD_MANAGER,
        )


def delete_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> None:
    """Delete a Kubernetes secret, ignoring secrets that are already gone."""
    try:
        api.delete_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status != 404:
            raise
