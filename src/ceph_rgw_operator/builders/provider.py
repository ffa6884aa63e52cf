"""Builder for RGW client instances."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from kubernetes import client, config

from ..constants import (
    DEFAULT_ZONE,
    ENV_ACCESS_KEY,
    ENV_ENDPOINT,
    ENV_SECRET_KEY,
    ENV_ZONE,
    SECRET_KEY_ACCESS_KEY,
    SECRET_KEY_SECRET_KEY,
)
from ..services.aws.client import S3DataClient
from ..services.rgw.admin import RgwAdminClient
from ..utils.secrets import get_secret_value


@dataclass
class ConnectionSettings:
    """Resolved gateway connection settings."""

    endpoint: str
    access_key: str
    secret_key: str
    zone: str = DEFAULT_ZONE
    insecure_skip_verify: bool = False


@dataclass
class RgwClients:
    """The admin and S3 clients bound to one gateway."""

    admin: RgwAdminClient
    s3: S3DataClient
    zone: str

    def test_connectivity(self) -> bool:
        """Test connectivity to the gateway."""
        return self.s3.test_connectivity()


def resolve_connection_settings(
    spec: dict[str, Any],
    secrets: Mapping[str, str | None] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConnectionSettings:
    """Resolve connection settings from a Provider spec and the environment.

    A declared value always wins over its environment fallback.

    Args:
        spec: Provider CRD spec
        secrets: Credentials read from the referenced secrets, keyed by
            ``access-key`` and ``secret-key``
        environ: Environment to fall back to (defaults to ``os.environ``)

    Returns:
        Resolved connection settings

    Raises:
        ValueError: If endpoint, access key or secret key cannot be resolved.
            All missing settings are reported together.
    """
    environ = os.environ if environ is None else environ
    secrets = secrets or {}

    endpoint = spec.get("endpoint") or environ.get(ENV_ENDPOINT)
    access_key = secrets.get(SECRET_KEY_ACCESS_KEY) or environ.get(ENV_ACCESS_KEY)
    secret_key = secrets.get(SECRET_KEY_SECRET_KEY) or environ.get(ENV_SECRET_KEY)
    zone = spec.get("zone") or environ.get(ENV_ZONE) or DEFAULT_ZONE

    missing = []
    if not endpoint:
        missing.append(f"endpoint (or {ENV_ENDPOINT})")
    if not access_key:
        missing.append(f"access key (or {ENV_ACCESS_KEY})")
    if not secret_key:
        missing.append(f"secret key (or {ENV_SECRET_KEY})")
    if missing:
        raise ValueError(f"missing provider settings: {', '.join(missing)}")

    tls_config = spec.get("tls") or {}
    return ConnectionSettings(
        endpoint=endpoint,
        access_key=access_key,
        secret_key=secret_key,
        zone=zone,
        insecure_skip_verify=bool(tls_config.get("insecureSkipVerify", False)),
    )


def read_provider_secrets(
    api: client.CoreV1Api,
    spec: dict[str, Any],
    namespace: str,
) -> dict[str, str]:
    """Read the credentials referenced by a Provider spec.

    Only references that are declared are read; undeclared ones are left for
    the environment fallback.
    """
    auth = spec.get("auth") or {}
    secrets = {}
    for secret_key, ref_field in (
        (SECRET_KEY_ACCESS_KEY, "accessKeySecretRef"),
        (SECRET_KEY_SECRET_KEY, "secretKeySecretRef"),
    ):
        ref = auth.get(ref_field) or {}
        if ref.get("name"):
            secrets[secret_key] = get_secret_value(api, namespace, ref["name"], ref.get("key", secret_key))
    return secrets


def create_clients_from_spec(
    spec: dict[str, Any],
    meta: dict[str, Any],
) -> RgwClients:
    """Create admin and S3 clients from a Provider spec.

    Args:
        spec: Provider CRD spec
        meta: Provider metadata

    Returns:
        Configured clients

    Raises:
        ValueError: If configuration is invalid
    """
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    api = client.CoreV1Api()
    namespace = meta.get("namespace", "default")

    settings = resolve_connection_settings(spec, read_provider_secrets(api, spec, namespace))

    return RgwClients(
        admin=RgwAdminClient(
            endpoint=settings.endpoint,
            access_key=settings.access_key,
            secret_key=settings.secret_key,
            region=settings.zone,
            insecure_skip_verify=settings.insecure_skip_verify,
        ),
        s3=S3DataClient(
            endpoint=settings.endpoint,
            region=settings.zone,
            access_key=settings.access_key,
            secret_key=settings.secret_key,
            path_style=True,
            insecure_skip_verify=settings.insecure_skip_verify,
        ),
        zone=settings.zone,
    )
