"""Interactive terminal UI for Archon tasks."""
