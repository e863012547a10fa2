"""Rich renderers for TUI panels."""
