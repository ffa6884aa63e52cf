"""User reconciliation against the admin API."""

from __future__ import annotations

import logging

from ..builders.user import user_from_admin
from ..constants import KIND_USER
from ..models import User
from ..services.rgw.admin import NoSuchUserError
from ..services.rgw.base import RgwAdminProvider
from ..utils.errors import ReconcileStepError
from .bucket import run_step
from .transitions import validate_transition

logger = logging.getLogger(__name__)


class UserReconciler:
    """Create, read, update and delete gateway users."""

    def __init__(self, admin: RgwAdminProvider):
        self.admin = admin

    def create(self, desired: User) -> User:
        """Create a user.

        Keys are generated by the gateway unless an explicit pair is declared.
        The display name defaults to the user id.
        """
        generate_key = not desired.has_credentials
        info = run_step(
            "create user",
            self.admin.create_user,
            desired.id,
            desired.display_name or desired.id,
            desired.max_buckets,
            generate_key,
            desired.access_key,
            desired.secret_key,
        )
        logger.info(f"Created user {desired.id}")
        return user_from_admin(info)

    def read(self, uid: str) -> User | None:
        """Read a user, returning None if it no longer exists."""
        try:
            info = self.admin.get_user(uid)
        except NoSuchUserError:
            logger.debug(f"User {uid} not found, dropping it from tracked state")
            return None
        except Exception as e:
            raise ReconcileStepError("get user", e) from e
        return user_from_admin(info)

    def update(self, state: User, desired: User) -> User:
        """Update display name, bucket quota and keys of an existing user.

        The tracked access key is revoked before the modify call, so the user
        holds no key until the call completes. New keys are generated only
        when the user previously had a key pair and none is declared now.

        Raises:
            ImmutableFieldError: If the user id would change
            ReconcileStepError: If any call fails
        """
        validate_transition(KIND_USER, state, desired)

        display_name = desired.display_name if desired.display_name is not None else state.display_name
        max_buckets = desired.max_buckets if desired.max_buckets is not None else state.max_buckets
        generate_key = not desired.has_credentials and state.has_credentials

        if state.access_key:
            run_step("remove user key", self.admin.remove_key, state.id, state.access_key)

        info = run_step(
            "modify user",
            self.admin.modify_user,
            state.id,
            display_name,
            max_buckets,
            generate_key,
            desired.access_key,
            desired.secret_key,
        )
        return user_from_admin(info)

    def delete(self, state: User) -> None:
        """Remove the user."""
        run_step("remove user", self.admin.remove_user, state.id)

    def lookup(self, uid: str) -> User:
        """Look up an existing user.

        Raises:
            ValueError: If no uid is given
            ReconcileStepError: If the user does not exist or the lookup fails
        """
        if not uid:
            raise ValueError("user id is required")
        return user_from_admin(run_step("get user", self.admin.get_user, uid))
