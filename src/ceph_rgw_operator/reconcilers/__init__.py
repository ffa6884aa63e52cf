"""Reconciliation sequences for gateway entities."""

from .bucket import BucketReconciler
from .transitions import validate_transition
from .user import UserReconciler

__all__ = ["BucketReconciler", "UserReconciler", "validate_transition"]
