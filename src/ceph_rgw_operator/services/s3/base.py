"""Base S3 data-plane interface."""

from __future__ import annotations

from typing import Any, Protocol


class S3DataProvider(Protocol):
    """Protocol defining the bucket configuration calls made over the S3 API."""

    def create_bucket(self, name: str, location_constraint: str | None = None) -> None:
        """Create a bucket, optionally pinned to a placement target."""
        ...

    def get_bucket_versioning(self, name: str) -> bool:
        """Return True if versioning is enabled."""
        ...

    def set_bucket_versioning(self, name: str, enabled: bool) -> None:
        """Enable or suspend versioning."""
        ...

    def get_bucket_policy(self, name: str) -> dict[str, Any] | None:
        """Get bucket policy, None if no policy is set."""
        ...

    def set_bucket_policy(self, name: str, policy: dict[str, Any]) -> None:
        """Set bucket policy."""
        ...

    def delete_bucket_policy(self, name: str) -> None:
        """Delete bucket policy."""
        ...

    def get_bucket_lifecycle(self, name: str) -> list[dict[str, Any]] | None:
        """Get lifecycle rules, None if no configuration is set."""
        ...

    def set_bucket_lifecycle(self, name: str, rules: list[dict[str, Any]]) -> None:
        """Set bucket lifecycle configuration."""
        ...

    def delete_bucket_lifecycle(self, name: str) -> None:
        """Delete bucket lifecycle configuration."""
        ...

    def test_connectivity(self) -> bool:
        """Test connectivity to the gateway."""
        ...
