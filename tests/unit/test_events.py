"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from ceph_rgw_operator.utils.events import (
    emit_bucket_created,
    emit_bucket_deleted,
    emit_bucket_updated,
    emit_event,
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_resource_gone,
    emit_user_created,
    emit_user_deleted,
    emit_user_updated,
    emit_validate_failed,
    emit_validate_succeeded,
)

BODY = {
    "apiVersion": "rgw.ceph.io/v1alpha1",
    "kind": "Bucket",
    "metadata": {"name": "test-resource", "namespace": "default", "uid": "uid-1"},
}


class TestEmitEvent:
    """Test cases for emit_event function."""

    @patch("ceph_rgw_operator.utils.events.kopf.event")
    def test_emit_event_normal(self, mock_event):
        """Test emitting normal event."""
        emit_event(BODY, "TestReason", "Test message")

        mock_event.assert_called_once_with(
            BODY,
            reason="TestReason",
            message="Test message",
            type="Normal",
        )

    @patch("ceph_rgw_operator.utils.events.kopf.event")
    def test_emit_event_warning(self, mock_event):
        """Test emitting warning event."""
        emit_event(BODY, "ErrorReason", "Error occurred", type_="Warning")

        mock_event.assert_called_once_with(
            BODY,
            reason="ErrorReason",
            message="Error occurred",
            type="Warning",
        )


class TestLifecycleEvents:
    """Test cases for reconciliation and validation events."""

    @pytest.mark.parametrize(
        "emit,args,reason,message,type_",
        [
            (emit_reconcile_started, (), "ReconcileStarted", "Reconciliation started", "Normal"),
            (emit_reconcile_failed, ("boom",), "ReconcileFailed", "boom", "Warning"),
            (emit_validate_succeeded, (), "ValidateSucceeded", "Validation succeeded", "Normal"),
            (emit_validate_failed, ("bad spec",), "ValidateFailed", "bad spec", "Warning"),
        ],
    )
    @patch("ceph_rgw_operator.utils.events.kopf.event")
    def test_event(self, mock_event, emit, args, reason, message, type_):
        """Test reason, message and type of each event."""
        emit(BODY, *args)

        mock_event.assert_called_once_with(BODY, reason=reason, message=message, type=type_)


class TestEntityEvents:
    """Test cases for bucket and user events."""

    @pytest.mark.parametrize(
        "emit,reason,message",
        [
            (emit_bucket_created, "BucketCreated", "Bucket mybucket created"),
            (emit_bucket_updated, "BucketUpdated", "Bucket mybucket updated"),
            (emit_bucket_deleted, "BucketDeleted", "Bucket mybucket deleted"),
            (emit_user_created, "UserCreated", "User mybucket created"),
            (emit_user_updated, "UserUpdated", "User mybucket updated"),
            (emit_user_deleted, "UserDeleted", "User mybucket deleted"),
        ],
    )
    @patch("ceph_rgw_operator.utils.events.kopf.event")
    def test_event(self, mock_event, emit, reason, message):
        """Test the event for each entity operation."""
        emit(BODY, "mybucket")

        mock_event.assert_called_once_with(BODY, reason=reason, message=message, type="Normal")

    @patch("ceph_rgw_operator.utils.events.kopf.event")
    def test_emit_resource_gone(self, mock_event):
        """Test the event for an entity removed outside the operator."""
        emit_resource_gone(BODY, "Bucket", "mybucket")

        mock_event.assert_called_once_with(
            BODY,
            reason="ResourceGone",
            message="Bucket mybucket no longer exists on the gateway",
            type="Normal",
        )
