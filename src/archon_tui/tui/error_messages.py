"""Translate low-level error text into user-facing banner messages."""

from __future__ import annotations

import re

CONNECTION_MESSAGE = "Unable to connect to Archon server. Check that it is running and reachable."
TIMEOUT_MESSAGE = "Connection timeout. The server took too long to respond."
AUTH_MESSAGE = "Authentication failed. Check your API key configuration."
NOT_FOUND_MESSAGE = "Resource not found. The task or project may have been deleted."
SERVER_ERROR_MESSAGE = "Server error. Please try again or contact support."

_CONNECTION_PATTERNS = ("connection refused", "no such host", "name or service not known")
_TIMEOUT_PATTERNS = ("timeout", "timed out")
_SERVER_ERROR = re.compile(r"status 5\d\d")


def describe_error(message: str) -> tuple[str, bool]:
    """Map an error message to a banner and whether the server is unreachable.

    Args:
        message: Raw error text (exception message or API error)

    Returns:
        Tuple of (banner, disconnected):
            - banner: Human-readable message for the footer
            - disconnected: True for transport failures (refused, DNS, timeout)

    Examples:
        >>> describe_error("API error (status 404): not found")[0]
        'Resource not found. The task or project may have been deleted.'
        >>> describe_error("connection refused: [Errno 111]")[1]
        True
    """
    lowered = message.lower()
    if any(pattern in lowered for pattern in _CONNECTION_PATTERNS):
        return CONNECTION_MESSAGE, True
    if any(pattern in lowered for pattern in _TIMEOUT_PATTERNS):
        return TIMEOUT_MESSAGE, True
    if "status 401" in lowered or "status 403" in lowered:
        return f"{AUTH_MESSAGE} ({message})", False
    if "status 404" in lowered:
        return NOT_FOUND_MESSAGE, False
    if _SERVER_ERROR.search(lowered):
        return SERVER_ERROR_MESSAGE, False
    return message, False
