"""RGW admin ops client."""

from .admin import AdminAPIError, NoSuchBucketError, NoSuchUserError, RgwAdminClient

__all__ = ["AdminAPIError", "NoSuchBucketError", "NoSuchUserError", "RgwAdminClient"]
