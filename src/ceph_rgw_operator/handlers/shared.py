"""Shared utilities for handlers."""

from __future__ import annotations

from typing import Any

from kubernetes import client, config

from ..constants import API_GROUP, API_VERSION, PLURAL_PROVIDERS
from ..metrics import observe_api_call


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client."""
    load_kube_config()
    return client.CustomObjectsApi()


def get_core_client() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client."""
    load_kube_config()
    return client.CoreV1Api()


def get_provider(
    api: Any,
    provider_name: str,
    provider_ns: str,
) -> dict[str, Any]:
    """Get a Provider object.

    Args:
        api: Kubernetes CustomObjectsApi instance
        provider_name: Name of the provider
        provider_ns: Namespace of the provider

    Returns:
        Provider CRD object

    Raises:
        client.exceptions.ApiException: If provider not found or API error
    """
    with observe_api_call("k8s", "get_provider"):
        return api.get_namespaced_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            namespace=provider_ns,
            plural=PLURAL_PROVIDERS,
            name=provider_name,
        )


def is_ready(obj: dict[str, Any]) -> bool:
    """Return True if the object carries a Ready=True condition."""
    conditions = (obj.get("status") or {}).get("conditions", [])
    return any(cond.get("type") == "Ready" and cond.get("status") == "True" for cond in conditions)


def owner_reference(meta: dict[str, Any], kind: str) -> dict[str, Any]:
    """Build an owner reference pointing at a custom resource."""
    return {
        "apiVersion": f"{API_GROUP}/{API_VERSION}",
        "kind": kind,
        "name": meta.get("name"),
        "uid": meta.get("uid"),
        "controller": True,
        "blockOwnerDeletion": True,
    }
