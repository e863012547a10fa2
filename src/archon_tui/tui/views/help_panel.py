"""Help panel renderer for keybinding reference.

This module provides the render_help_panel function that displays the
keybinding reference organized by category, scrolled by the help modal.
"""

from __future__ import annotations

from rich.panel import Panel
from rich.text import Text

from ..modals import HELP_SECTIONS

_SECTION_STYLES = ("bold cyan", "bold yellow", "bold green", "bold blue", "bold magenta")


def help_lines() -> list[Text]:
    """All help lines: a title and a blank line per section, then its entries."""
    lines: list[Text] = []
    for position, (title, entries) in enumerate(HELP_SECTIONS):
        lines.append(Text(title, style=_SECTION_STYLES[position % len(_SECTION_STYLES)]))
        for key, description in entries:
            line = Text()
            line.append(f"  {key:<22}", style="cyan")
            line.append(description, style="white")
            lines.append(line)
        lines.append(Text(""))
    return lines


def render_help_panel(scroll: int = 0, page_size: int | None = None) -> Panel:
    """Build Rich Panel displaying the keybinding reference.

    Args:
        scroll: Number of lines scrolled past
        page_size: Number of lines to show (None = all)

    Returns:
        Rich Panel component with categorized keybindings
    """
    lines = help_lines()
    end = len(lines) if page_size is None else scroll + page_size
    visible = lines[scroll:end]

    hint = "[dim](j/k: scroll · ?/esc/q: close)[/dim]"
    return Panel(
        Text("\n").join(visible),
        title=f"[bold white]Keybindings[/bold white] {hint}",
        border_style="blue",
        padding=(1, 2),
    )
