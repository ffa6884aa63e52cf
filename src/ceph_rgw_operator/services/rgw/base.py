"""Base RGW admin ops interface."""

from __future__ import annotations

from typing import Any, Protocol


class RgwAdminProvider(Protocol):
    """Protocol defining the admin ops calls used for buckets and users."""

    def get_bucket_info(self, name: str) -> dict[str, Any]:
        """Get bucket metadata."""
        ...

    def list_buckets(self) -> list[str]:
        """List bucket names."""
        ...

    def remove_bucket(self, name: str) -> None:
        """Remove a bucket."""
        ...

    def get_user(self, uid: str) -> dict[str, Any]:
        """Get user metadata."""
        ...

    def create_user(
        self,
        uid: str,
        display_name: str,
        max_buckets: int | None = None,
        generate_key: bool = True,
        access_key: str | None = None,
        secret_key: str | None = None,
    ) -> dict[str, Any]:
        """Create a user."""
        ...

    def modify_user(
        self,
        uid: str,
        display_name: str | None = None,
        max_buckets: int | None = None,
        generate_key: bool = False,
        access_key: str | None = None,
        secret_key: str | None = None,
    ) -> dict[str, Any]:
        """Modify a user."""
        ...

    def remove_key(self, uid: str, access_key: str) -> None:
        """Revoke one S3 key of a user."""
        ...

    def remove_user(self, uid: str) -> None:
        """Remove a user."""
        ...
