"""Terminal client for Archon task and project management."""

__version__ = "0.1.0"
