"""Utility functions for the Ceph RGW Operator."""

from .conditions import (
    set_provider_not_ready_condition,
    set_ready_condition,
    update_condition,
)
from .errors import (
    ImmutableFieldError,
    MalformedPrincipalError,
    ReconcileStepError,
    sanitize_exception,
)
from .events import emit_event
from .secrets import get_secret_value

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_provider_not_ready_condition",
    "emit_event",
    "get_secret_value",
    "ImmutableFieldError",
    "MalformedPrincipalError",
    "ReconcileStepError",
    "sanitize_exception",
]
