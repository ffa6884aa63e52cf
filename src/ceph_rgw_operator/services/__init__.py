"""Remote clients for the RADOS Gateway."""
