"""Tests for base handler class."""

from __future__ import annotations

from unittest.mock import Mock, patch

import kopf
import pytest
from kubernetes import client

from ceph_rgw_operator.constants import FINALIZER
from ceph_rgw_operator.handlers.base import BaseHandler
from ceph_rgw_operator.utils.conditions import set_creation_failed_condition
from ceph_rgw_operator.utils.errors import ImmutableFieldError, ReconcileStepError

BODY = {
    "apiVersion": "rgw.ceph.io/v1alpha1",
    "kind": "Bucket",
    "metadata": {"name": "test-resource", "namespace": "default", "uid": "uid-1", "generation": 2},
}

READY_PROVIDER = {
    "metadata": {"name": "rgw", "namespace": "default"},
    "spec": {"endpoint": "https://rgw.example.com"},
    "status": {"conditions": [{"type": "Ready", "status": "True"}]},
}


class TestBaseHandler:
    """Test cases for BaseHandler class."""

    def test_init(self):
        """Test handler initialization."""
        handler = BaseHandler(kind="TestKind")
        assert handler.kind == "TestKind"
        assert handler.logger is not None

    def test_ensure_finalizer_adds_when_missing(self):
        """Test that finalizer is added when not present."""
        handler = BaseHandler(kind="TestKind")
        meta = {"finalizers": []}
        patch = kopf.Patch()

        handler.ensure_finalizer(meta, patch)

        assert patch.metadata["finalizers"] == [FINALIZER]
        assert meta["finalizers"] == []

    def test_ensure_finalizer_no_duplicate(self):
        """Test that nothing is patched if the finalizer is present."""
        handler = BaseHandler(kind="TestKind")
        meta = {"finalizers": [FINALIZER, "other-finalizer"]}
        patch = kopf.Patch()

        handler.ensure_finalizer(meta, patch)

        assert "finalizers" not in patch.metadata

    def test_remove_finalizer(self):
        """Test that finalizer is removed."""
        handler = BaseHandler(kind="TestKind")
        meta = {"finalizers": [FINALIZER, "other-finalizer"]}
        patch = kopf.Patch()

        handler.remove_finalizer(meta, patch)

        assert patch.metadata["finalizers"] == ["other-finalizer"]

    def test_remove_finalizer_sets_none_when_empty(self):
        """Test that finalizers is set to None when last finalizer is removed."""
        handler = BaseHandler(kind="TestKind")
        patch = kopf.Patch()

        handler.remove_finalizer({"finalizers": [FINALIZER]}, patch)

        assert patch.metadata["finalizers"] is None

    @patch("ceph_rgw_operator.handlers.base.emit_reconcile_started")
    @patch("ceph_rgw_operator.handlers.base.metrics")
    def test_reconcile_with_metrics_success(self, mock_metrics, mock_emit_started):
        """Test successful reconciliation with metrics."""
        handler = BaseHandler(kind="TestKind")
        reconcile_fn = Mock()

        handler.reconcile_with_metrics(BODY, reconcile_fn)

        reconcile_fn.assert_called_once()
        mock_emit_started.assert_called_once_with(BODY)
        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="started")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="success")
        assert mock_metrics.reconcile_duration_seconds.labels.called

    @patch("ceph_rgw_operator.handlers.base.emit_reconcile_failed")
    @patch("ceph_rgw_operator.handlers.base.emit_reconcile_started")
    @patch("ceph_rgw_operator.handlers.base.metrics")
    def test_reconcile_with_metrics_failure(self, mock_metrics, mock_emit_started, mock_emit_failed):
        """Test failed reconciliation re-raises and records the error type."""
        handler = BaseHandler(kind="TestKind")
        error = ReconcileStepError("create bucket", RuntimeError("secret_key=abc rejected"))

        def failing_fn():
            raise error

        with pytest.raises(ReconcileStepError):
            handler.reconcile_with_metrics(BODY, failing_fn)

        message = mock_emit_failed.call_args[0][1]
        assert message.startswith("Reconciliation failed: create bucket failed")
        assert "abc" not in message
        mock_metrics.error_total.labels.assert_called_with(kind="TestKind", error_type="ReconcileStepError")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="error")

    @patch("ceph_rgw_operator.handlers.base.metrics")
    def test_update_resource_status_ready(self, mock_metrics):
        """Test updating status for a ready resource."""
        handler = BaseHandler(kind="TestKind")
        patch = kopf.Patch()

        handler.update_resource_status(patch, BODY["metadata"], True, {"observed": {"name": "b"}})

        assert patch.status["observedGeneration"] == 2
        assert patch.status["observed"] == {"name": "b"}
        mock_metrics.resource_status_total.labels.assert_called_once_with(kind="TestKind", status="ready")

    @patch("ceph_rgw_operator.handlers.base.metrics")
    def test_update_resource_status_not_ready(self, mock_metrics):
        """Test updating status for a resource that is not ready."""
        handler = BaseHandler(kind="TestKind")

        handler.update_resource_status(kopf.Patch(), {}, False)

        mock_metrics.resource_status_total.labels.assert_called_once_with(kind="TestKind", status="not_ready")

    def test_clear_failure_conditions(self):
        """Test that failure conditions are dropped."""
        handler = BaseHandler(kind="TestKind")
        conditions = set_creation_failed_condition([], "failed")

        assert handler.clear_failure_conditions(conditions, "CreationFailed", "UpdateFailed") == []


class TestErrorHandling:
    """Test cases for the error handlers."""

    @patch("ceph_rgw_operator.handlers.base.emit_validate_failed")
    @patch("ceph_rgw_operator.handlers.base.metrics")
    def test_handle_validation_error(self, mock_metrics, mock_emit):
        """Test that validation errors raise ValueError."""
        handler = BaseHandler(kind="Bucket")

        with pytest.raises(ValueError, match="bucket name is required"):
            handler.handle_validation_error(BODY, "bucket name is required")

        mock_emit.assert_called_once_with(BODY, "bucket name is required")

    def test_handle_immutable_field(self):
        """Test that an immutable field change is permanent."""
        handler = BaseHandler(kind="Bucket")
        patch = kopf.Patch()
        error = ImmutableFieldError("Bucket", "name", "a", "b")

        with pytest.raises(kopf.PermanentError):
            handler.handle_immutable_field(BODY, {}, patch, error)

        condition = patch.status["conditions"][0]
        assert condition["type"] == "ImmutableFieldViolation"
        assert condition["status"] == "True"

    def test_handle_step_error(self):
        """Test that a failed step sets the given condition."""
        handler = BaseHandler(kind="Bucket")
        patch = kopf.Patch()
        error = ReconcileStepError("create bucket", RuntimeError("denied"))

        handler.handle_step_error(BODY, {}, patch, error, set_creation_failed_condition)

        condition = patch.status["conditions"][0]
        assert condition["type"] == "CreationFailed"
        assert condition["message"] == "create bucket failed: denied"
        assert patch.status["observedGeneration"] == 2


class TestResolveProvider:
    """Test cases for provider resolution."""

    SPEC = {"providerRef": {"name": "rgw"}}

    @patch("ceph_rgw_operator.handlers.base.create_clients_from_spec")
    @patch("ceph_rgw_operator.handlers.base.get_provider")
    @patch("ceph_rgw_operator.handlers.base.get_k8s_client")
    def test_ready_provider(self, mock_k8s, mock_get_provider, mock_create_clients):
        """Test that a ready provider yields clients."""
        mock_get_provider.return_value = READY_PROVIDER

        result = BaseHandler("Bucket").resolve_provider(self.SPEC, BODY, {}, kopf.Patch())

        assert result == mock_create_clients.return_value
        mock_get_provider.assert_called_once_with(mock_k8s.return_value, "rgw", "default")
        mock_create_clients.assert_called_once_with(READY_PROVIDER["spec"], READY_PROVIDER["metadata"])

    @patch("ceph_rgw_operator.handlers.base.create_clients_from_spec")
    @patch("ceph_rgw_operator.handlers.base.get_provider")
    @patch("ceph_rgw_operator.handlers.base.get_k8s_client")
    def test_provider_namespace_override(self, mock_k8s, mock_get_provider, mock_create_clients):
        """Test resolving a provider in another namespace."""
        mock_get_provider.return_value = READY_PROVIDER
        spec = {"providerRef": {"name": "rgw", "namespace": "storage"}}

        BaseHandler("Bucket").resolve_provider(spec, BODY, {}, kopf.Patch())

        mock_get_provider.assert_called_once_with(mock_k8s.return_value, "rgw", "storage")

    @patch("ceph_rgw_operator.handlers.base.emit_reconcile_failed")
    @patch("ceph_rgw_operator.handlers.base.get_provider")
    @patch("ceph_rgw_operator.handlers.base.get_k8s_client")
    def test_provider_not_found(self, mock_k8s, mock_get_provider, mock_emit):
        """Test that a missing provider returns None and sets a condition."""
        mock_get_provider.side_effect = client.exceptions.ApiException(status=404)
        patch = kopf.Patch()

        assert BaseHandler("Bucket").resolve_provider(self.SPEC, BODY, {}, patch) is None
        assert patch.status["conditions"][0]["type"] == "ProviderNotReady"

    @patch("ceph_rgw_operator.handlers.base.emit_reconcile_failed")
    @patch("ceph_rgw_operator.handlers.base.get_provider")
    @patch("ceph_rgw_operator.handlers.base.get_k8s_client")
    def test_provider_not_ready(self, mock_k8s, mock_get_provider, mock_emit):
        """Test that a provider which is not ready triggers a retry."""
        mock_get_provider.return_value = {"metadata": {}, "spec": {}, "status": {}}

        with pytest.raises(kopf.TemporaryError):
            BaseHandler("Bucket").resolve_provider(self.SPEC, BODY, {}, kopf.Patch())

    @patch("ceph_rgw_operator.handlers.base.create_clients_from_spec")
    @patch("ceph_rgw_operator.handlers.base.get_provider")
    @patch("ceph_rgw_operator.handlers.base.get_k8s_client")
    def test_provider_not_ready_allowed(self, mock_k8s, mock_get_provider, mock_create_clients):
        """Test that readiness can be skipped, as during deletion."""
        mock_get_provider.return_value = {"metadata": {}, "spec": {}, "status": {}}

        result = BaseHandler("Bucket").resolve_provider(self.SPEC, BODY, {}, kopf.Patch(), require_ready=False)

        assert result == mock_create_clients.return_value

    @patch("ceph_rgw_operator.handlers.base.emit_validate_failed")
    def test_missing_provider_ref(self, mock_emit):
        """Test that the provider reference is required."""
        with pytest.raises(ValueError, match="providerRef.name is required"):
            BaseHandler("Bucket").resolve_provider({}, BODY, {}, kopf.Patch())
