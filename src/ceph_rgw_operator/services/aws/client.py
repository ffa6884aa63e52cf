"""S3 data-plane client implementation."""

from __future__ import annotations

import json
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ...metrics import observe_api_call

logger = logging.getLogger(__name__)

NO_SUCH_BUCKET_POLICY = "NoSuchBucketPolicy"
NO_SUCH_LIFECYCLE_CONFIGURATION = "NoSuchLifecycleConfiguration"


def error_code(error: ClientError) -> str:
    """Return the S3 error code carried by a ClientError."""
    return error.response.get("Error", {}).get("Code", "")


class S3DataClient:
    """S3-compatible client for the gateway's bucket configuration APIs."""

    def __init__(
        self,
        endpoint: str,
        region: str,
        access_key: str,
        secret_key: str,
        path_style: bool = True,
        insecure_skip_verify: bool = False,
    ) -> None:
        """Initialize the S3 client.

        Args:
            endpoint: Gateway endpoint URL
            region: Region (the gateway zone)
            access_key: Access key ID
            secret_key: Secret access key
            path_style: Use path-style addressing
            insecure_skip_verify: Skip TLS verification
        """
        self.endpoint = endpoint
        self.region = region
        self.path_style = path_style

        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if path_style else "auto"},
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=config,
            verify=not insecure_skip_verify,
        )

    def create_bucket(self, name: str, location_constraint: str | None = None) -> None:
        """Create a bucket.

        Args:
            name: Bucket name
            location_constraint: Optional ``<zone>:<placement>`` constraint
        """
        with observe_api_call("s3", "create_bucket"):
            try:
                create_params: dict[str, Any] = {"Bucket": name}
                if location_constraint:
                    create_params["CreateBucketConfiguration"] = {"LocationConstraint": location_constraint}

                self.client.create_bucket(**create_params)
                logger.info(f"Created bucket {name}")
            except ClientError as e:
                logger.error(f"Failed to create bucket {name}: {e}")
                raise

    def get_bucket_versioning(self, name: str) -> bool:
        """Return True if versioning is enabled on the bucket."""
        with observe_api_call("s3", "get_bucket_versioning"):
            try:
                response = self.client.get_bucket_versioning(Bucket=name)
                return response.get("Status") == "Enabled"
            except ClientError as e:
                logger.error(f"Failed to get versioning for bucket {name}: {e}")
                raise

    def set_bucket_versioning(self, name: str, enabled: bool) -> None:
        """Set bucket versioning to Enabled or Suspended."""
        with observe_api_call("s3", "put_bucket_versioning"):
            try:
                self.client.put_bucket_versioning(
                    Bucket=name,
                    VersioningConfiguration={"Status": "Enabled" if enabled else "Suspended"},
                )
            except ClientError as e:
                logger.error(f"Failed to set versioning for bucket {name}: {e}")
                raise

    def get_bucket_policy(self, name: str) -> dict[str, Any] | None:
        """Get bucket policy.

        Returns:
            Policy document dict if policy exists, None if no policy is set
        """
        with observe_api_call("s3", "get_bucket_policy"):
            try:
                response = self.client.get_bucket_policy(Bucket=name)
            except ClientError as e:
                if error_code(e) == NO_SUCH_BUCKET_POLICY:
                    return None
                logger.error(f"Failed to get policy for bucket {name}: {e}")
                raise
        return json.loads(response["Policy"])

    def set_bucket_policy(self, name: str, policy: dict[str, Any]) -> None:
        """Set bucket policy."""
        with observe_api_call("s3", "put_bucket_policy"):
            try:
                self.client.put_bucket_policy(Bucket=name, Policy=json.dumps(policy))
                logger.debug(f"Set bucket policy for {name}")
            except ClientError as e:
                logger.error(f"Failed to set policy for bucket {name}: {e}")
                raise

    def delete_bucket_policy(self, name: str) -> None:
        """Delete bucket policy."""
        with observe_api_call("s3", "delete_bucket_policy"):
            try:
                self.client.delete_bucket_policy(Bucket=name)
            except ClientError as e:
                if error_code(e) == NO_SUCH_BUCKET_POLICY:
                    return
                logger.error(f"Failed to delete policy for bucket {name}: {e}")
                raise

    def get_bucket_lifecycle(self, name: str) -> list[dict[str, Any]] | None:
        """Get bucket lifecycle rules.

        Returns:
            List of rules if a configuration exists, None otherwise
        """
        with observe_api_call("s3", "get_bucket_lifecycle_configuration"):
            try:
                response = self.client.get_bucket_lifecycle_configuration(Bucket=name)
            except ClientError as e:
                if error_code(e) == NO_SUCH_LIFECYCLE_CONFIGURATION:
                    return None
                logger.error(f"Failed to get lifecycle for bucket {name}: {e}")
                raise
        return response.get("Rules", [])

    def set_bucket_lifecycle(self, name: str, rules: list[dict[str, Any]]) -> None:
        """Set bucket lifecycle configuration.

        Args:
            name: Bucket name
            rules: Lifecycle rules in S3 API format
        """
        with observe_api_call("s3", "put_bucket_lifecycle_configuration"):
            try:
                self.client.put_bucket_lifecycle_configuration(
                    Bucket=name,
                    LifecycleConfiguration={"Rules": rules},
                )
            except ClientError as e:
                logger.error(f"Failed to set lifecycle for bucket {name}: {e}")
                raise

    def delete_bucket_lifecycle(self, name: str) -> None:
        """Delete bucket lifecycle configuration."""
        with observe_api_call("s3", "delete_bucket_lifecycle"):
            try:
                self.client.delete_bucket_lifecycle(Bucket=name)
            except ClientError as e:
                if error_code(e) == NO_SUCH_LIFECYCLE_CONFIGURATION:
                    return
                logger.error(f"Failed to delete lifecycle for bucket {name}: {e}")
                raise

    def test_connectivity(self) -> bool:
        """Test connectivity to the gateway."""
        try:
            self.client.list_buckets()
            return True
        except Exception as e:
            logger.error(f"Connectivity test failed: {e}")
            return False
