"""Footer bar renderer for status indicators.

This module provides the render_footer_bar function that displays the
loading spinner, error banner, transient status message, search state and
the help hint.
"""

from __future__ import annotations

from rich.text import Text

from ..tui_utils import truncate_text

HELP_HINT = "Press ? for help"


def render_footer_bar(
    loading_message: str | None = None,
    spinner_frame: str = "|",
    error_message: str | None = None,
    status_message: str | None = None,
    search_query: str = "",
    search_active: bool = False,
    search_position: tuple[int, int] = (0, 0),
    terminal_width: int = 80,
) -> Text:
    """Build Rich Text displaying footer status bar.

    Args:
        loading_message: Message shown next to the spinner while loading
        spinner_frame: Current spinner character
        error_message: Error banner to display, if any
        status_message: Transient status message, if any
        search_query: Current search query
        search_active: Whether the search prompt is being edited
        search_position: (position, total) among search matches
        terminal_width: Terminal width for truncation calculations

    Returns:
        Rich Text component ready for rendering
    """
    parts: list[tuple[str, str]] = []

    if search_active:
        parts.append((f"/{search_query}", "bold yellow"))
    elif search_query:
        position, total = search_position
        parts.append((f"/{search_query} [{position}/{total}]", "yellow"))

    if loading_message:
        parts.append((f"{spinner_frame} {loading_message}", "cyan"))

    message_style = None
    message = None
    if error_message:
        message, message_style = error_message, "red"
    elif status_message:
        message, message_style = status_message, "green"

    if message:
        used = sum(len(text) + 3 for text, _ in parts) + len(HELP_HINT)
        available_width = terminal_width - used - 3
        if available_width > 10:
            parts.append((truncate_text(message, available_width), message_style))

    parts.append((HELP_HINT, "cyan"))

    footer = Text()
    for index, (text, style) in enumerate(parts):
        if index:
            footer.append(" | ", style="dim")
        footer.append(text, style=style)

    return footer
