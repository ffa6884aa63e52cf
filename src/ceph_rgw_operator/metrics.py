"""Prometheus metrics for the Ceph RGW Operator."""

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "ceph_rgw_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "ceph_rgw_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "ceph_rgw_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "ceph_rgw_operator_resource_status_total",
    "Resource status transitions",
    ["kind", "status"],
)

drift_detected_total = Counter(
    "ceph_rgw_operator_drift_detected_total",
    "Total number of drift detections",
    ["kind", "resource_type"],
)

# Entity operation metrics
bucket_operations_total = Counter(
    "ceph_rgw_operator_bucket_operations_total",
    "Total number of bucket operations",
    ["operation", "result"],
)

user_operations_total = Counter(
    "ceph_rgw_operator_user_operations_total",
    "Total number of user operations",
    ["operation", "result"],
)

# Provider connectivity metrics
provider_connectivity_total = Counter(
    "ceph_rgw_operator_provider_connectivity_total",
    "Provider connectivity status changes",
    ["provider", "status"],
)

# API call metrics
api_call_total = Counter(
    "ceph_rgw_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "ceph_rgw_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)


@contextmanager
def observe_api_call(api_type: str, operation: str) -> Iterator[None]:
    """Count and time one remote API call."""
    start_time = time.time()
    try:
        yield
        api_call_total.labels(api_type=api_type, operation=operation, result="success").inc()
    except Exception:
        api_call_total.labels(api_type=api_type, operation=operation, result="error").inc()
        raise
    finally:
        duration = time.time() - start_time
        api_call_duration_seconds.labels(api_type=api_type, operation=operation).observe(duration)
