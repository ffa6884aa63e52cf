"""Error types and sanitization utilities to prevent information leakage."""

from __future__ import annotations

import re
from typing import Any


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"endpoint[:\s]+([a-zA-Z0-9\-\.]+)",
    r"access[_\s]?key[_\s]?id[:\s]+([A-Z0-9]{20})",
    r"secret[_\s]?access[_\s]?key[:\s]+([A-Za-z0-9/+=]{40})",
    r"session[_\s]?token[:\s]+([A-Za-z0-9/+=]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access_key",
    "access-key",
    "secret_key",
    "secret-key",
    "session_token",
    "password",
    "credentials",
    "token",
}


class ImmutableFieldError(ValueError):
    """Raised when a desired state changes a write-once field.

    Detected locally, before any remote call is issued.
    """

    def __init__(self, kind: str, field: str, current: Any, desired: Any) -> None:
        self.kind = kind
        self.field = field
        self.current = current
        self.desired = desired
        super().__init__(
            f"{kind} {field} cannot be changed from {current!r} to {desired!r}"
        )


class MalformedPrincipalError(ValueError):
    """Raised when a policy principal is not shaped like ``arn:...:user/<id>``."""

    def __init__(self, principal: Any) -> None:
        self.principal = principal
        super().__init__(f"Malformed policy principal: {principal!r}")


class ReconcileStepError(RuntimeError):
    """Raised when one step of a reconciliation sequence fails.

    The step name is kept so the caller can report which remote call failed.
    """

    def __init__(self, step: str, cause: Exception) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"{step} failed: {cause}")


def _redact_value(match: re.Match) -> str:
    # Keep the label, replace the captured value
    offset = match.start()
    start, end = match.span(1)
    text = match.group(0)
    return f"{text[:start - offset]}[REDACTED]{text[end - offset:]}"


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, _redact_value, sanitized, flags=re.IGNORECASE)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"{field}[=:\s]+([^\s,;&\)]+)",
            rf"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))
