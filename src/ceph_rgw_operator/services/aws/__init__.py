"""S3 data-plane client."""
