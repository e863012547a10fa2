"""Header bar renderer: project, sort mode and connection indicator."""

from __future__ import annotations

from rich.text import Text

from ..models import ConnectionState

_CONNECTION_STYLES = {
    ConnectionState.CONNECTED: ("●", "green", "connected"),
    ConnectionState.CONNECTING: ("○", "yellow", "connecting"),
    ConnectionState.DISCONNECTED: ("○", "red", "offline"),
}


def render_header_bar(
    project_label: str,
    sort_label: str,
    connected: bool,
    connection_state: ConnectionState = ConnectionState.DISCONNECTED,
    task_count: int = 0,
    filters_active: bool = False,
) -> Text:
    """Build Rich Text for the one-line header.

    Args:
        project_label: Selected project title, or "All Tasks"
        sort_label: Display name of the current sort mode
        connected: Whether the last request reached the server
        connection_state: Realtime connection state
        task_count: Number of visible tasks
        filters_active: Whether a status or feature filter hides tasks

    Returns:
        Rich Text component ready for rendering
    """
    dot, color, label = _CONNECTION_STYLES[connection_state]
    if connection_state == ConnectionState.DISCONNECTED and connected:
        dot, color, label = "●", "green", "online"

    header = Text()
    header.append("Archon ", style="bold magenta")
    header.append(dot, style=color)
    header.append(f" {label}", style="dim")
    header.append(" | ", style="dim")
    header.append(project_label, style="bold white")
    header.append(f" ({task_count})", style="dim")
    header.append(" | ", style="dim")
    header.append("Sort: ", style="dim")
    header.append(sort_label, style="cyan")
    if filters_active:
        header.append(" | ", style="dim")
        header.append("filtered", style="yellow")
    return header
