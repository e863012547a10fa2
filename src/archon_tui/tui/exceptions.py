"""Custom exceptions for TUI operations.

This module defines a hierarchy of exceptions for the collaborators the TUI
talks to, so effect workers can turn failures into error-carrying events.
"""


class TUIError(Exception):
    """Base exception for all TUI-related errors."""


class ConfigError(TUIError, ValueError):
    """Raised when configuration is invalid or cannot be loaded."""


class ClientError(TUIError):
    """Raised when a task/project API call fails."""


class ArchonAPIError(ClientError):
    """Raised when the server answers with an HTTP error status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error (status {status_code}): {body}")


class ArchonConnectionError(ClientError):
    """Raised when the server cannot be reached (refused, DNS, timeout)."""


class RealtimeError(TUIError):
    """Raised when the realtime channel fails or is closed."""


class ClipboardError(TUIError):
    """Raised when text cannot be written to the system clipboard."""
