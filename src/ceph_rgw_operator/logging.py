"""Structured logging configuration for the Ceph RGW Operator."""

import json
import logging
import os
import sys
from typing import Any

from .utils.errors import SENSITIVE_FIELDS

REDACTED = "***REDACTED***"


def setup_structured_logging(level: int | None = None) -> None:
    """Configure logging for JSON messages on stdout.

    The level defaults to ``LOG_LEVEL`` from the environment (INFO if unset).
    """
    if level is None:
        level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # One line per admin request is too chatty at INFO
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
    logging.getLogger("botocore").setLevel(max(level, logging.WARNING))


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log one JSON object describing an event on a custom resource."""
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Redact credential fields, including ones nested in dicts."""
    sanitized = {}
    for key, value in log_data.items():
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_secrets(value)
        else:
            sanitized[key] = value
    return sanitized
