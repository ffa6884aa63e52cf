"""Unit tests for bucket lifecycle management."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from ceph_rgw_operator.builders.bucket import build_lifecycle_rules, read_lifecycle_rules
from ceph_rgw_operator.models import Bucket, LifecycleRule
from ceph_rgw_operator.services.aws.client import S3DataClient


class TestBuildLifecycleRules:
    """Test cases for lifecycle rule translation."""

    def test_no_rules(self):
        """Test that no configuration is built without rules."""
        assert build_lifecycle_rules(Bucket(name="b")) is None

    def test_current_and_noncurrent_rules(self):
        """Test both rule kinds are emitted, current rules first."""
        bucket = Bucket(
            name="b",
            lifecycle_delete=[LifecycleRule(id="expire-logs", prefix="logs/", after_days=7)],
            lifecycle_delete_noncurrent=[LifecycleRule(id="expire-old", prefix="", after_days=30)],
        )

        rules = build_lifecycle_rules(bucket)

        assert rules == [
            {
                "ID": "expire-logs",
                "Status": "Enabled",
                "Filter": {"Prefix": "logs/"},
                "Expiration": {"Days": 7},
            },
            {
                "ID": "expire-old",
                "Status": "Enabled",
                "Filter": {"Prefix": ""},
                "NoncurrentVersionExpiration": {"NoncurrentDays": 30},
            },
        ]

    def test_noncurrent_only(self):
        """Test that noncurrent rules alone still produce a configuration."""
        bucket = Bucket(
            name="b",
            lifecycle_delete_noncurrent=[LifecycleRule(id="expire-old", prefix="", after_days=30)],
        )

        assert len(build_lifecycle_rules(bucket)) == 1

    def test_round_trip_current_rules(self):
        """Test current-version rules survive a build and read."""
        expected = [
            LifecycleRule(id="expire-logs", prefix="logs/", after_days=7),
            LifecycleRule(id="expire-tmp-files", prefix="tmp/", after_days=1),
        ]

        assert read_lifecycle_rules(build_lifecycle_rules(Bucket(name="b", lifecycle_delete=expected))) == expected

    def test_noncurrent_rules_not_read_back(self):
        """Test that noncurrent-version rules are skipped when reading."""
        bucket = Bucket(
            name="b",
            lifecycle_delete_noncurrent=[LifecycleRule(id="expire-old", prefix="", after_days=30)],
        )

        assert read_lifecycle_rules(build_lifecycle_rules(bucket)) == []

    def test_read_legacy_prefix(self):
        """Test rules carrying a top-level prefix instead of a filter."""
        rules = [{"ID": "legacy-rule-1", "Prefix": "old/", "Status": "Enabled", "Expiration": {"Days": 3}}]

        assert read_lifecycle_rules(rules) == [LifecycleRule(id="legacy-rule-1", prefix="old/", after_days=3)]


class TestBucketLifecycleClient:
    """Test lifecycle calls of the S3 client."""

    @pytest.fixture
    def s3(self) -> S3DataClient:
        """Create a test client."""
        client = S3DataClient(
            endpoint="https://rgw.example.com",
            region="default",
            access_key="test-access-key",
            secret_key="test-secret-key",
        )
        client.client = MagicMock()
        return client

    def test_get_bucket_lifecycle_exists(self, s3: S3DataClient) -> None:
        """Test getting lifecycle rules when a configuration exists."""
        rules = [{"ID": "test-rule-1", "Status": "Enabled", "Filter": {"Prefix": ""}, "Expiration": {"Days": 30}}]
        s3.client.get_bucket_lifecycle_configuration.return_value = {"Rules": rules}

        assert s3.get_bucket_lifecycle("test-bucket") == rules
        s3.client.get_bucket_lifecycle_configuration.assert_called_once_with(Bucket="test-bucket")

    def test_get_bucket_lifecycle_not_exists(self, s3: S3DataClient) -> None:
        """Test that a missing configuration maps to None."""
        s3.client.get_bucket_lifecycle_configuration.side_effect = ClientError(
            {"Error": {"Code": "NoSuchLifecycleConfiguration"}}, "GetBucketLifecycleConfiguration"
        )

        assert s3.get_bucket_lifecycle("test-bucket") is None

    def test_get_bucket_lifecycle_error(self, s3: S3DataClient) -> None:
        """Test that other errors propagate."""
        s3.client.get_bucket_lifecycle_configuration.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied"}}, "GetBucketLifecycleConfiguration"
        )

        with pytest.raises(ClientError):
            s3.get_bucket_lifecycle("test-bucket")

    def test_set_bucket_lifecycle(self, s3: S3DataClient) -> None:
        """Test setting lifecycle rules."""
        rules = [{"ID": "test-rule-1", "Status": "Enabled", "Filter": {"Prefix": ""}, "Expiration": {"Days": 30}}]

        s3.set_bucket_lifecycle("test-bucket", rules)

        s3.client.put_bucket_lifecycle_configuration.assert_called_once_with(
            Bucket="test-bucket",
            LifecycleConfiguration={"Rules": rules},
        )

    def test_delete_bucket_lifecycle_not_exists(self, s3: S3DataClient) -> None:
        """Test that deleting a missing configuration is tolerated."""
        s3.client.delete_bucket_lifecycle.side_effect = ClientError(
            {"Error": {"Code": "NoSuchLifecycleConfiguration"}}, "DeleteBucketLifecycle"
        )

        s3.delete_bucket_lifecycle("test-bucket")

    def test_delete_bucket_lifecycle_error(self, s3: S3DataClient) -> None:
        """Test that other delete errors propagate."""
        s3.client.delete_bucket_lifecycle.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied"}}, "DeleteBucketLifecycle"
        )

        with pytest.raises(ClientError):
            s3.delete_bucket_lifecycle("test-bucket")
