"""Tests for the Bucket handler."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock, patch

import kopf
import pytest

from ceph_rgw_operator.builders.bucket import bucket_to_status
from ceph_rgw_operator.constants import FINALIZER
from ceph_rgw_operator.handlers.bucket import BucketHandler
from ceph_rgw_operator.models import Bucket, Permission
from ceph_rgw_operator.services.rgw.admin import AdminAPIError, NoSuchBucketError
from ceph_rgw_operator.utils.errors import ReconcileStepError

BODY = {
    "apiVersion": "rgw.ceph.io/v1alpha1",
    "kind": "Bucket",
    "metadata": {
        "name": "mybucket",
        "namespace": "default",
        "uid": "uid-1",
        "generation": 1,
        "finalizers": [FINALIZER],
    },
}

SPEC = {"name": "mybucket", "providerRef": {"name": "rgw"}}


def conditions_by_type(patch: kopf.Patch) -> dict:
    return {c["type"]: c for c in patch.status["conditions"]}


@pytest.fixture(autouse=True)
def mock_event():
    with patch("ceph_rgw_operator.utils.events.kopf.event") as mock:
        yield mock


@pytest.fixture
def clients() -> Mock:
    admin = MagicMock()
    admin.get_bucket_info.return_value = {"bucket": "mybucket", "owner": "alice", "placement_rule": ""}
    s3 = MagicMock()
    s3.get_bucket_versioning.return_value = False
    s3.get_bucket_policy.return_value = None
    s3.get_bucket_lifecycle.return_value = None
    return Mock(admin=admin, s3=s3, zone="default")


@pytest.fixture
def handler(clients: Mock) -> BucketHandler:
    handler = BucketHandler()
    handler.resolve_provider = Mock(return_value=clients)
    return handler


def tracked(**kwargs) -> dict:
    return {"observed": bucket_to_status(Bucket(name="mybucket", owner="alice", **kwargs)), "conditions": []}


class TestReconcile:
    """Test cases for bucket reconciliation."""

    def test_create(self, handler: BucketHandler, clients: Mock):
        """Test that a bucket without tracked state is created."""
        patch = kopf.Patch()

        handler.reconcile(SPEC, BODY, {}, patch)

        clients.s3.create_bucket.assert_called_once_with("mybucket", None)
        assert patch.status["observed"]["name"] == "mybucket"
        assert patch.status["observed"]["owner"] == "alice"
        assert conditions_by_type(patch)["Ready"]["status"] == "True"
        assert "lastSyncTime" in patch.status

    def test_create_failure(self, handler: BucketHandler, clients: Mock):
        """Test that a failed create records the condition and re-raises."""
        clients.s3.create_bucket.side_effect = RuntimeError("BucketAlreadyExists")
        patch = kopf.Patch()

        with pytest.raises(ReconcileStepError):
            handler.reconcile(SPEC, BODY, {}, patch)

        assert conditions_by_type(patch)["CreationFailed"]["message"] == "create bucket failed: BucketAlreadyExists"
        assert "observed" not in patch.status

    def test_invalid_spec(self, handler: BucketHandler):
        """Test that an invalid spec is rejected before the provider is resolved."""
        with pytest.raises(ValueError, match="bucket name is required"):
            handler.reconcile({"providerRef": {"name": "rgw"}}, BODY, {}, kopf.Patch())

        handler.resolve_provider.assert_not_called()

    def test_provider_not_found(self, handler: BucketHandler, clients: Mock):
        """Test that nothing happens without a provider."""
        handler.resolve_provider.return_value = None

        handler.reconcile(SPEC, BODY, {}, kopf.Patch())

        clients.s3.create_bucket.assert_not_called()

    def test_update(self, handler: BucketHandler, clients: Mock):
        """Test that a spec change updates the tracked bucket."""
        spec = dict(SPEC, versioningEnabled=True, permissions=[{"userId": "bob", "permissions": ["s3:GetObject"]}])
        patch = kopf.Patch()

        handler.reconcile(spec, BODY, tracked(), patch)

        clients.s3.create_bucket.assert_not_called()
        clients.s3.set_bucket_versioning.assert_called_once_with("mybucket", True)
        clients.s3.set_bucket_policy.assert_called_once()
        assert patch.status["observed"]["versioningEnabled"] is True
        assert patch.status["observed"]["permissions"] == [{"userId": "bob", "permissions": ["s3:GetObject"]}]

    def test_update_immutable_field(self, handler: BucketHandler, clients: Mock):
        """Test that a placement change is rejected permanently."""
        spec = dict(SPEC, placementRule="slow")
        status = {"observed": bucket_to_status(Bucket(name="mybucket", placement_rule="fast")), "conditions": []}
        patch = kopf.Patch()

        with pytest.raises(kopf.PermanentError):
            handler.reconcile(spec, BODY, status, patch)

        assert clients.s3.mock_calls == []
        assert "ImmutableFieldViolation" in conditions_by_type(patch)

    def test_update_failure(self, handler: BucketHandler, clients: Mock):
        """Test that a failed update records the condition."""
        clients.s3.set_bucket_versioning.side_effect = RuntimeError("denied")
        patch = kopf.Patch()

        with pytest.raises(ReconcileStepError):
            handler.reconcile(SPEC, BODY, tracked(), patch)

        assert "UpdateFailed" in conditions_by_type(patch)


class TestRefresh:
    """Test cases for periodic refresh."""

    def test_refresh_without_drift(self, handler: BucketHandler, clients: Mock):
        """Test that a matching bucket is only re-read."""
        patch = kopf.Patch()

        handler.reconcile(SPEC, BODY, tracked(), patch, refresh=True)

        clients.s3.set_bucket_versioning.assert_not_called()
        assert patch.status["observed"]["owner"] == "alice"

    @patch("ceph_rgw_operator.handlers.bucket.metrics")
    def test_refresh_corrects_drift(self, mock_metrics, handler: BucketHandler, clients: Mock):
        """Test that drifted settings are written back."""
        clients.s3.get_bucket_versioning.return_value = True
        patch = kopf.Patch()

        handler.reconcile(SPEC, BODY, tracked(), patch, refresh=True)

        clients.s3.set_bucket_versioning.assert_called_once_with("mybucket", False)
        clients.s3.delete_bucket_policy.assert_called_once_with("mybucket")
        mock_metrics.drift_detected_total.labels.assert_called_once_with(kind="Bucket", resource_type="configuration")
        assert patch.status["observed"]["versioningEnabled"] is False

    def test_refresh_permissions_drift(self, handler: BucketHandler, clients: Mock):
        """Test that a removed policy is restored."""
        spec = dict(SPEC, permissions=[{"userId": "bob", "permissions": ["s3:GetObject"]}])
        status = tracked(permissions=[Permission("bob", ["s3:GetObject"])])

        handler.reconcile(spec, BODY, status, kopf.Patch(), refresh=True)

        clients.s3.set_bucket_policy.assert_called_once()

    def test_refresh_bucket_gone(self, handler: BucketHandler, clients: Mock, mock_event):
        """Test that a bucket removed outside the operator drops its state."""
        clients.admin.get_bucket_info.side_effect = NoSuchBucketError(404, "NoSuchBucket")
        patch = kopf.Patch()

        handler.reconcile(SPEC, BODY, tracked(), patch, refresh=True)

        assert patch.status["observed"] is None
        ready = conditions_by_type(patch)["Ready"]
        assert ready["status"] == "False"
        assert ready["reason"] == "NotFound"
        assert any(c.kwargs["reason"] == "ResourceGone" for c in mock_event.call_args_list)

    def test_refresh_read_failure(self, handler: BucketHandler, clients: Mock):
        """Test that a failed read is retried."""
        clients.admin.get_bucket_info.side_effect = AdminAPIError(500, "InternalError")
        patch = kopf.Patch()

        with pytest.raises(ReconcileStepError):
            handler.reconcile(SPEC, BODY, tracked(), patch, refresh=True)

        assert conditions_by_type(patch)["Ready"]["reason"] == "ReadFailed"


class TestObserveOnly:
    """Test cases for observe-only buckets."""

    def test_observe_existing(self, handler: BucketHandler, clients: Mock):
        """Test that an existing bucket is read but never written."""
        patch = kopf.Patch()

        handler.reconcile(dict(SPEC, observeOnly=True), BODY, {}, patch)

        clients.s3.create_bucket.assert_not_called()
        clients.s3.set_bucket_versioning.assert_not_called()
        assert patch.status["observed"]["name"] == "mybucket"

    def test_observe_missing(self, handler: BucketHandler, clients: Mock):
        """Test that a missing observed bucket clears the state."""
        clients.admin.get_bucket_info.side_effect = NoSuchBucketError(404, "NoSuchBucket")
        patch = kopf.Patch()

        handler.reconcile(dict(SPEC, observeOnly=True), BODY, tracked(), patch)

        assert patch.status["observed"] is None


class TestDelete:
    """Test cases for bucket deletion."""

    def test_delete(self, handler: BucketHandler, clients: Mock):
        """Test that a managed bucket is removed."""
        patch = kopf.Patch()

        handler.delete(SPEC, BODY, tracked(), patch)

        clients.admin.remove_bucket.assert_called_once_with("mybucket")
        assert patch.metadata["finalizers"] is None

    def test_delete_already_removed(self, handler: BucketHandler, clients: Mock):
        """Test that a bucket removed elsewhere does not block deletion."""
        clients.admin.remove_bucket.side_effect = NoSuchBucketError(404, "NoSuchBucket")
        patch = kopf.Patch()

        handler.delete(SPEC, BODY, tracked(), patch)

        assert patch.metadata["finalizers"] is None

    def test_delete_failure(self, handler: BucketHandler, clients: Mock):
        """Test that other failures keep the finalizer."""
        clients.admin.remove_bucket.side_effect = AdminAPIError(409, "BucketNotEmpty")
        patch = kopf.Patch()

        with pytest.raises(ReconcileStepError):
            handler.delete(SPEC, BODY, tracked(), patch)

        assert "finalizers" not in patch.metadata

    def test_delete_observe_only(self, handler: BucketHandler, clients: Mock):
        """Test that an observed bucket is never removed."""
        patch = kopf.Patch()

        handler.delete(dict(SPEC, observeOnly=True), BODY, tracked(), patch)

        clients.admin.remove_bucket.assert_not_called()
        assert patch.metadata["finalizers"] is None

    def test_delete_never_created(self, handler: BucketHandler, clients: Mock):
        """Test that a bucket without tracked state needs no call."""
        handler.delete(SPEC, BODY, {}, kopf.Patch())

        handler.resolve_provider.assert_not_called()

    def test_delete_provider_gone(self, handler: BucketHandler, clients: Mock):
        """Test that a missing provider releases the resource."""
        handler.resolve_provider.return_value = None
        patch = kopf.Patch()

        handler.delete(SPEC, BODY, tracked(), patch)

        clients.admin.remove_bucket.assert_not_called()
        assert patch.metadata["finalizers"] is None
