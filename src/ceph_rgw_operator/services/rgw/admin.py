"""Ceph RGW admin ops API client."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote, urlencode

import requests
from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from ...metrics import observe_api_call

logger = logging.getLogger(__name__)


class AdminAPIError(Exception):
    """Error returned by the admin ops API."""

    def __init__(self, status_code: int, code: str, message: str = "") -> None:
        self.status_code = status_code
        self.code = code
        super().__init__(f"{code} (HTTP {status_code}){': ' + message if message else ''}")


class NoSuchBucketError(AdminAPIError):
    """The requested bucket does not exist."""


class NoSuchUserError(AdminAPIError):
    """The requested user does not exist."""


_ERRORS_BY_CODE: dict[str, type[AdminAPIError]] = {
    "NoSuchBucket": NoSuchBucketError,
    "NoSuchUser": NoSuchUserError,
}


def _flag(value: bool) -> str:
    return "true" if value else "false"


class RgwAdminClient:
    """Client for the subset of the admin ops API used by the operator.

    Requests are signed with AWS SigV4 using the gateway zone as region.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        region: str = "default",
        admin_path: str = "/admin",
        insecure_skip_verify: bool = False,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the admin client.

        Args:
            endpoint: Gateway endpoint URL
            access_key: Access key ID of an admin-capable user
            secret_key: Secret access key
            region: Signing region (the gateway zone)
            admin_path: Path prefix of the admin ops API
            insecure_skip_verify: Skip TLS verification
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.endpoint = endpoint.rstrip("/")
        self.admin_path = "/" + admin_path.strip("/")
        self.region = region
        self.timeout = timeout
        self.verify = not insecure_skip_verify
        self.credentials = Credentials(access_key, secret_key)
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        resource: str,
        params: dict[str, Any] | None = None,
        sub_resource: str | None = None,
    ) -> Any:
        query = {"format": "json"}
        query.update({k: v for k, v in (params or {}).items() if v is not None})
        query_string = urlencode(query, quote_via=quote)
        if sub_resource:
            query_string = f"{sub_resource}&{query_string}"
        url = f"{self.endpoint}{self.admin_path}/{resource}?{query_string}"

        signed = AWSRequest(method=method, url=url, data=b"")
        S3SigV4Auth(self.credentials, "s3", self.region).add_auth(signed)

        with observe_api_call("admin", f"{method.lower()}_{resource}"):
            response = self.session.request(
                method,
                url,
                headers=dict(signed.headers),
                timeout=self.timeout,
                verify=self.verify,
            )
            if response.status_code >= 400:
                raise self._error_from_response(response)

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_from_response(response: requests.Response) -> AdminAPIError:
        code = ""
        message = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("Code", "")
            message = body.get("Message", "")
        if not code:
            code = response.reason or "UnknownError"
        error_cls = _ERRORS_BY_CODE.get(code, AdminAPIError)
        return error_cls(response.status_code, code, message)

    def get_bucket_info(self, name: str) -> dict[str, Any]:
        """Get bucket metadata.

        Raises:
            NoSuchBucketError: If the bucket does not exist
        """
        return self._request("GET", "bucket", {"bucket": name})

    def list_buckets(self) -> list[str]:
        """List the names of all buckets on the gateway."""
        return self._request("GET", "bucket") or []

    def remove_bucket(self, name: str) -> None:
        """Remove a bucket."""
        self._request("DELETE", "bucket", {"bucket": name})
        logger.info(f"Removed bucket {name}")

    def get_user(self, uid: str) -> dict[str, Any]:
        """Get user metadata including keys.

        Raises:
            NoSuchUserError: If the user does not exist
        """
        return self._request("GET", "user", {"uid": uid})

    def _user_params(
        self,
        uid: str,
        display_name: str | None,
        max_buckets: int | None,
        generate_key: bool,
        access_key: str | None,
        secret_key: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "uid": uid,
            "display-name": display_name,
            "max-buckets": max_buckets,
            "generate-key": _flag(generate_key),
        }
        if not generate_key and access_key is not None:
            params.update({"key-type": "s3", "access-key": access_key, "secret-key": secret_key})
        return params

    def create_user(
        self,
        uid: str,
        display_name: str,
        max_buckets: int | None = None,
        generate_key: bool = True,
        access_key: str | None = None,
        secret_key: str | None = None,
    ) -> dict[str, Any]:
        """Create a user, either with generated keys or an explicit key pair."""
        params = self._user_params(uid, display_name, max_buckets, generate_key, access_key, secret_key)
        return self._request("PUT", "user", params)

    def modify_user(
        self,
        uid: str,
        display_name: str | None = None,
        max_buckets: int | None = None,
        generate_key: bool = False,
        access_key: str | None = None,
        secret_key: str | None = None,
    ) -> dict[str, Any]:
        """Modify a user's display name, quota and keys."""
        params = self._user_params(uid, display_name, max_buckets, generate_key, access_key, secret_key)
        return self._request("POST", "user", params)

    def remove_key(self, uid: str, access_key: str) -> None:
        """Revoke one S3 key of a user."""
        self._request("DELETE", "user", {"uid": uid, "access-key": access_key, "key-type": "s3"}, sub_resource="key")

    def remove_user(self, uid: str) -> None:
        """Remove a user."""
        self._request("DELETE", "user", {"uid": uid})
        logger.info(f"Removed user {uid}")
