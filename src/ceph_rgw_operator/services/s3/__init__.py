"""S3 data-plane interface."""
